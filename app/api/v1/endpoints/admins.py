from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.security import Principal
from app.services.admin_service import AdminService
from app.schemas.admin import AdminInvite, AdminInviteResult, AdminResponse
from app.schemas.responses import DestructiveResult, SuccessResponse
from app.schemas.season import ConfirmationRequest

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[AdminResponse]])
async def list_admins(
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    admins = await AdminService.list_admins(db)
    return SuccessResponse(data=admins)


@router.post("", response_model=SuccessResponse[AdminInviteResult])
async def invite_admin(
    admin_in: AdminInvite,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Create another admin account. The caller stays logged in.
    """
    admin = await AdminService.invite_admin(db, admin_in, principal)
    return SuccessResponse(
        data=AdminInviteResult(admin=AdminResponse.model_validate(admin), session_invalidated=False),
        message="Admin created successfully"
    )


@router.delete("/{admin_id}", response_model=SuccessResponse[DestructiveResult])
async def delete_admin(
    admin_id: UUID,
    body: ConfirmationRequest,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete an admin. The confirmation must repeat the target's login id.
    """
    admin = await AdminService.get_admin(db, admin_id)
    if not deps.confirmation_matches(body.confirmation, admin.login_id):
        return SuccessResponse(
            data=DestructiveResult(performed=False, counts={"admins": 1}),
            message="Confirmation did not match; nothing was deleted"
        )

    await AdminService.delete_admin(db, admin_id, principal)
    return SuccessResponse(
        data=DestructiveResult(performed=True, counts={"admins": 1}),
        message="Admin deleted"
    )
