from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.config import settings
from app.core.security import Principal
from app.models.enums import SeasonState
from app.services.season_service import SeasonService
from app.schemas.academic import CourseResponse, EnrollmentResponse
from app.schemas.responses import DestructiveResult, SuccessResponse
from app.schemas.season import (
    ArchivedSeasonDetail, ConfirmationRequest, PurgeCounts,
    SeasonCreate, SeasonResponse, SeasonUpdate
)

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[SeasonResponse]])
async def list_seasons(
    state: Optional[SeasonState] = None,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    All seasons, newest first.
    """
    seasons = await SeasonService.list_seasons(db, state)
    return SuccessResponse(data=seasons)


@router.post("", response_model=SuccessResponse[SeasonResponse])
async def create_season(
    season_in: SeasonCreate,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    season = await SeasonService.create_season(db, season_in, principal)
    return SuccessResponse(data=season, message="Season created successfully")


@router.get("/active", response_model=SuccessResponse[List[SeasonResponse]])
async def list_active_seasons(
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Seasons open to students. No authentication.
    """
    seasons = await SeasonService.list_active(db)
    return SuccessResponse(data=seasons)


@router.get("/archived", response_model=SuccessResponse[List[SeasonResponse]])
async def list_archived_seasons(
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    seasons = await SeasonService.list_archived(db)
    return SuccessResponse(data=seasons)


@router.get("/{season_id}", response_model=SuccessResponse[SeasonResponse])
async def get_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    season = await SeasonService.get_season(db, season_id)
    return SuccessResponse(data=season)


@router.patch("/{season_id}", response_model=SuccessResponse[SeasonResponse])
async def update_season(
    season_id: UUID,
    season_in: SeasonUpdate,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    season = await SeasonService.update_season(db, season_id, season_in, principal)
    return SuccessResponse(data=season, message="Season updated successfully")


@router.delete("/{season_id}", response_model=SuccessResponse)
async def delete_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete an empty season. Seasons that hold courses are archived instead.
    """
    await SeasonService.delete_season(db, season_id, principal)
    return SuccessResponse(message="Season deleted")


@router.post("/{season_id}/activate", response_model=SuccessResponse[SeasonResponse])
async def activate_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    season = await SeasonService.set_active(db, season_id, True, principal)
    return SuccessResponse(data=season, message="Season is visible to students")


@router.post("/{season_id}/deactivate", response_model=SuccessResponse[SeasonResponse])
async def deactivate_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    season = await SeasonService.set_active(db, season_id, False, principal)
    return SuccessResponse(data=season, message="Season is hidden from students")


@router.post("/{season_id}/archive", response_model=SuccessResponse[SeasonResponse])
async def archive_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Freeze the season's statistics and make it read-only. Cannot be undone.
    """
    season = await SeasonService.archive(db, season_id, principal)
    return SuccessResponse(data=season, message="Season archived")


@router.get("/{season_id}/archive", response_model=SuccessResponse[ArchivedSeasonDetail])
async def get_archived_season(
    season_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    detail = await SeasonService.archived_detail(db, season_id)
    return SuccessResponse(
        data=ArchivedSeasonDetail(
            season=SeasonResponse.model_validate(detail["season"]),
            courses=[CourseResponse.model_validate(c) for c in detail["courses"]],
            enrollments=[EnrollmentResponse.model_validate(e) for e in detail["enrollments"]],
        )
    )


@router.get("/{season_id}/purge-preview", response_model=SuccessResponse[PurgeCounts])
async def purge_preview(
    season_id: UUID,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    counts = await SeasonService.purge_preview(db, season_id)
    return SuccessResponse(data=counts)


@router.post("/{season_id}/purge", response_model=SuccessResponse[DestructiveResult])
async def purge_season_data(
    season_id: UUID,
    body: ConfirmationRequest,
    principal: Principal = Depends(deps.require_superadmin),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete an archived season's courses, enrollments and attendance.
    The season and its statistics stay. Requires the confirmation phrase.
    """
    if not deps.confirmation_matches(body.confirmation, settings.PURGE_CONFIRMATION_PHRASE):
        counts = await SeasonService.purge_preview(db, season_id)
        return SuccessResponse(
            data=DestructiveResult(performed=False, counts=counts.model_dump()),
            message="Confirmation phrase did not match; nothing was deleted"
        )

    counts = await SeasonService.purge_data(db, season_id, principal)
    return SuccessResponse(
        data=DestructiveResult(performed=True, counts=counts.model_dump()),
        message="Season data deleted"
    )
