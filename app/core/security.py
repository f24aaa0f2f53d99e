"""Security and Authentication Utilities"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import PermissionDeniedError
from app.models.enums import AdminRole
from app.utils.time import get_utc_now

# Bcrypt limit; longer passwords must be truncated
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Principal:
    """
    The administrator acting in a request.

    Built once per request from the bearer token and passed explicitly
    into every workflow call.
    """
    admin_id: UUID
    role: AdminRole

    @property
    def is_superadmin(self) -> bool:
        return self.role == AdminRole.SUPERADMIN


def _truncate_password_for_bcrypt(password: str) -> bytes:
    """Truncate password to bcrypt's 72-byte limit, respecting UTF-8 boundaries."""
    encoded = password.encode("utf-8")
    if len(encoded) <= _BCRYPT_MAX_BYTES:
        return encoded
    truncated = encoded[:_BCRYPT_MAX_BYTES]
    while truncated:
        try:
            truncated.decode("utf-8")
            return truncated
        except UnicodeDecodeError:
            truncated = truncated[:-1]
    return b""


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password (ASCII string for DB storage)
    """
    pwd_bytes = _truncate_password_for_bcrypt(password)
    hashed = bcrypt.hashpw(pwd_bytes, bcrypt.gensalt())
    return hashed.decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    pwd_bytes = _truncate_password_for_bcrypt(plain_password)
    hash_bytes = hashed_password.encode("ascii") if isinstance(hashed_password, str) else hashed_password
    return bcrypt.checkpw(pwd_bytes, hash_bytes)


def create_access_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for an administrator.

    Args:
        principal: Admin the token is issued to
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    expire = get_utc_now() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(principal.admin_id),
        "role": principal.role.value,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded token payload or None if invalid
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def principal_from_token(token: str) -> Optional[Principal]:
    """Rebuild the request principal from an access token, or None if unusable."""
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None
    try:
        return Principal(admin_id=UUID(payload["sub"]), role=AdminRole(payload["role"]))
    except (KeyError, ValueError):
        return None


def check_superadmin(principal: Principal, action: str) -> None:
    """Raise PermissionDeniedError unless the principal is a superadmin."""
    if not principal.is_superadmin:
        raise PermissionDeniedError(f"Only a superadmin may {action}", admin_id=str(principal.admin_id))
