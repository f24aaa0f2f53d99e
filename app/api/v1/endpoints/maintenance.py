from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.config import settings
from app.core.security import Principal
from app.services.maintenance_service import MaintenanceService
from app.schemas.responses import DestructiveResult, SuccessResponse
from app.schemas.season import ConfirmationRequest

router = APIRouter()


@router.get("/counts", response_model=SuccessResponse[Dict[str, int]])
async def collection_counts(
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    counts = await MaintenanceService.collection_counts(db)
    return SuccessResponse(data=counts)


@router.post("/reset/{collection}", response_model=SuccessResponse[DestructiveResult])
async def reset_collection(
    collection: str,
    body: ConfirmationRequest,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete every row of a collection (and of the collections that depend on it).
    """
    if not deps.confirmation_matches(body.confirmation, settings.RESET_CONFIRMATION_PHRASE):
        counts = await MaintenanceService.reset_preview(db, collection)
        return SuccessResponse(
            data=DestructiveResult(performed=False, counts=counts),
            message="Confirmation phrase did not match; nothing was deleted"
        )

    deleted = await MaintenanceService.reset_collection(db, collection, principal)
    return SuccessResponse(
        data=DestructiveResult(performed=True, counts=deleted),
        message=f"{collection} reset"
    )


@router.post("/reset", response_model=SuccessResponse[DestructiveResult])
async def reset_all(
    body: ConfirmationRequest,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete all seasons, courses, enrollments and attendance. Admin accounts stay.
    """
    if not deps.confirmation_matches(body.confirmation, settings.RESET_CONFIRMATION_PHRASE):
        counts = await MaintenanceService.collection_counts(db)
        return SuccessResponse(
            data=DestructiveResult(performed=False, counts=counts),
            message="Confirmation phrase did not match; nothing was deleted"
        )

    deleted = await MaintenanceService.reset_all(db, principal)
    return SuccessResponse(
        data=DestructiveResult(performed=True, counts=deleted),
        message="All data reset"
    )
