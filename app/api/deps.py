"""API Dependencies"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import Principal, principal_from_token
from app.models.admin import Admin

# Security scheme for bearer token
security = HTTPBearer()

__all__ = ["get_db", "get_current_principal", "require_superadmin", "confirmation_matches"]


async def get_current_principal(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Principal:
    """
    Build the request principal from the bearer token.

    The admin must still exist and be active; the role is re-read from the
    store so a demoted admin loses superadmin rights immediately.

    Raises:
        HTTPException: If token is invalid or the admin is gone
    """
    principal = principal_from_token(credentials.credentials)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin = await db.get(Admin, principal.admin_id)
    if admin is None or not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin account is no longer active",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(admin_id=admin.id, role=admin.role)


async def require_superadmin(
    principal: Principal = Depends(get_current_principal)
) -> Principal:
    """
    Get current principal, which must be a superadmin.

    Raises:
        HTTPException: If the admin is not a superadmin
    """
    if not principal.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return principal


def confirmation_matches(provided: str, expected: str) -> bool:
    """Exact match of the typed confirmation phrase, ignoring surrounding whitespace."""
    return bool(expected) and (provided or "").strip() == expected
