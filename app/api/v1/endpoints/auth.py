from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.config import settings
from app.core import security
from app.core.rate_limit import limiter
from app.services.admin_service import AdminService
from app.schemas.admin import AdminResponse, LoginRequest, Token
from app.schemas.responses import SuccessResponse

router = APIRouter()


@router.post("/login", response_model=SuccessResponse[Token])
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Admin login.
    Returns a JWT access token carrying the admin id and role.
    """
    admin = await AdminService.authenticate(db, login_id=login_data.login_id, password=login_data.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login id or password",
        )

    principal = security.Principal(admin_id=admin.id, role=admin.role)
    access_token = security.create_access_token(principal)

    return SuccessResponse(
        data=Token(
            access_token=access_token,
            token_type="bearer",
            admin_id=str(admin.id),
            role=admin.role,
        ),
        message="Login successful"
    )


@router.get("/me", response_model=SuccessResponse[AdminResponse])
async def read_me(
    principal: security.Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Current admin profile.
    """
    admin = await AdminService.get_admin(db, principal.admin_id)
    return SuccessResponse(data=admin)
