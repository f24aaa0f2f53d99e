"""Season Lifecycle Service

active <-> inactive any time before archival; archive freezes the stats
snapshot and makes the season read-only; purge deletes the season's courses,
enrollments and attendance and keeps the season row and its snapshot.
Neither archive nor purge can be undone.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    NotFoundError,
    SeasonAlreadyPurgedError,
    SeasonArchivedError,
    SeasonNotArchivedError,
    ValidationError,
)
from app.core.security import Principal, check_superadmin
from app.models.academic import Course, CourseSchedule, Enrollment
from app.models.attendance import AttendanceRecord
from app.models.enums import EnrollmentStatus, SeasonState
from app.models.season import Season
from app.schemas.season import PurgeCounts, SeasonCreate, SeasonUpdate
from app.services.batch_deletion import BatchDeletionEngine
from app.services.pending_feed import pending_feed
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


def _season_course_ids(season_id: UUID):
    return select(Course.id).where(Course.season_id == season_id)


class SeasonService:
    @staticmethod
    async def get_season(db: AsyncSession, season_id: UUID) -> Season:
        season = await db.get(Season, season_id, populate_existing=True)
        if season is None:
            raise NotFoundError(f"Season {season_id} not found", season_id=str(season_id))
        return season

    @staticmethod
    async def get_writable_season(db: AsyncSession, season_id: UUID) -> Season:
        """Load a season whose courses and enrollments may still change."""
        season = await SeasonService.get_season(db, season_id)
        if season.is_archived:
            raise SeasonArchivedError(
                f"Season {season.name} is archived and can no longer be changed",
                season_id=str(season_id),
            )
        return season

    @staticmethod
    async def list_seasons(db: AsyncSession, state: Optional[SeasonState] = None) -> List[Season]:
        stmt = select(Season)
        if state is not None:
            stmt = stmt.where(Season.state == state)
        result = await db.execute(stmt.order_by(Season.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_active(db: AsyncSession) -> List[Season]:
        """Seasons visible to students."""
        return await SeasonService.list_seasons(db, SeasonState.ACTIVE)

    @staticmethod
    async def list_archived(db: AsyncSession) -> List[Season]:
        """Archived seasons, including those whose data was purged."""
        result = await db.execute(
            select(Season)
            .where(Season.state.in_([SeasonState.ARCHIVED, SeasonState.PURGED]))
            .order_by(Season.archived_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_season(db: AsyncSession, data: SeasonCreate, actor: Principal) -> Season:
        season = Season(
            name=data.name.strip(),
            start_date=data.start_date,
            end_date=data.end_date,
            state=SeasonState.ACTIVE if data.is_active else SeasonState.INACTIVE,
            created_by=actor.admin_id,
        )
        db.add(season)
        await db.commit()
        await db.refresh(season)
        logger.info("Season created", extra={"season_id": str(season.id), "admin_id": actor.admin_id})
        return season

    @staticmethod
    async def update_season(db: AsyncSession, season_id: UUID, updates: SeasonUpdate, actor: Principal) -> Season:
        season = await SeasonService.get_writable_season(db, season_id)
        fields = updates.model_dump(exclude_unset=True)
        start = fields.get("start_date", season.start_date)
        end = fields.get("end_date", season.end_date)
        if end < start:
            raise ValidationError("end_date must not be before start_date")
        for name, value in fields.items():
            setattr(season, name, value)
        await db.commit()
        await db.refresh(season)
        return season

    @staticmethod
    async def set_active(db: AsyncSession, season_id: UUID, active: bool, actor: Principal) -> Season:
        """Show or hide a season for students. Only before archival."""
        season = await SeasonService.get_writable_season(db, season_id)
        season.state = SeasonState.ACTIVE if active else SeasonState.INACTIVE
        await db.commit()
        await db.refresh(season)
        logger.info(
            "Season visibility changed",
            extra={"season_id": str(season_id), "state": season.state.value, "admin_id": actor.admin_id},
        )
        return season

    @staticmethod
    async def compute_stats(db: AsyncSession, season_id: UUID) -> dict:
        total_courses = await db.scalar(
            select(func.count()).select_from(Course).where(Course.season_id == season_id)
        )
        approved = (
            Enrollment.season_id == season_id,
            Enrollment.status == EnrollmentStatus.APPROVED,
        )
        total_students = await db.scalar(
            select(func.count(func.distinct(Enrollment.student_id))).where(*approved)
        )
        approved_enrollments = await db.scalar(
            select(func.count()).select_from(Enrollment).where(*approved)
        )
        return {
            "total_courses": total_courses or 0,
            "total_students": total_students or 0,
            "approved_enrollments": approved_enrollments or 0,
        }

    @staticmethod
    async def archive(db: AsyncSession, season_id: UUID, actor: Principal) -> Season:
        """
        Freeze the stats snapshot and make the season read-only.

        Raises:
            SeasonArchivedError: already archived
        """
        season = await SeasonService.get_writable_season(db, season_id)
        stats = await SeasonService.compute_stats(db, season_id)

        season.stats_total_courses = stats["total_courses"]
        season.stats_total_students = stats["total_students"]
        season.stats_approved_enrollments = stats["approved_enrollments"]
        season.state = SeasonState.ARCHIVED
        season.archived_at = get_utc_now()
        await db.commit()
        await db.refresh(season)

        logger.info("Season archived", extra={"season_id": str(season_id), **stats, "admin_id": actor.admin_id})
        return season

    @staticmethod
    async def purge_preview(db: AsyncSession, season_id: UUID) -> PurgeCounts:
        """Rows a purge would delete, shown before the admin confirms."""
        await SeasonService.get_season(db, season_id)
        course_ids = _season_course_ids(season_id)
        return PurgeCounts(
            courses=await BatchDeletionEngine.count_where(db, Course, Course.season_id == season_id),
            enrollments=await BatchDeletionEngine.count_where(db, Enrollment, Enrollment.season_id == season_id),
            attendance=await BatchDeletionEngine.count_where(
                db, AttendanceRecord, AttendanceRecord.course_id.in_(course_ids)
            ),
        )

    @staticmethod
    async def purge_data(db: AsyncSession, season_id: UUID, actor: Principal) -> PurgeCounts:
        """
        Delete an archived season's courses, enrollments and attendance.

        The season row and its stats snapshot stay. The season is marked
        purged only after every chunk committed; a PartialDeletionError
        leaves it archived and the purge can be re-run.

        Raises:
            SeasonNotArchivedError: season still active/inactive
            SeasonAlreadyPurgedError: nothing left to purge
            PartialDeletionError: a chunk failed part way
        """
        check_superadmin(actor, "delete season data")
        season = await SeasonService.get_season(db, season_id)
        if season.state == SeasonState.PURGED:
            raise SeasonAlreadyPurgedError(f"Season {season.name} data was already deleted")
        if season.state != SeasonState.ARCHIVED:
            raise SeasonNotArchivedError(f"Season {season.name} must be archived before its data is deleted")

        course_ids = _season_course_ids(season_id)
        enrollments = await BatchDeletionEngine.delete_where(db, Enrollment, Enrollment.season_id == season_id)
        attendance = await BatchDeletionEngine.delete_where(
            db, AttendanceRecord, AttendanceRecord.course_id.in_(course_ids)
        )
        await BatchDeletionEngine.delete_where(db, CourseSchedule, CourseSchedule.course_id.in_(course_ids))
        courses = await BatchDeletionEngine.delete_where(db, Course, Course.season_id == season_id)

        season = await SeasonService.get_season(db, season_id)
        season.state = SeasonState.PURGED
        await db.commit()

        counts = PurgeCounts(
            courses=courses.deleted,
            enrollments=enrollments.deleted,
            attendance=attendance.deleted,
        )
        logger.info(
            "Season data purged",
            extra={"season_id": str(season_id), **counts.model_dump(), "admin_id": actor.admin_id},
        )
        await pending_feed.notify()
        return counts

    @staticmethod
    async def delete_season(db: AsyncSession, season_id: UUID, actor: Principal) -> None:
        """Remove a season row. Only allowed while it is not archived and holds no courses."""
        season = await SeasonService.get_season(db, season_id)
        if season.is_archived:
            raise SeasonArchivedError(
                f"Season {season.name} is archived; it and its stats are kept",
                season_id=str(season_id),
            )
        course_count = await BatchDeletionEngine.count_where(db, Course, Course.season_id == season_id)
        if course_count:
            raise ValidationError(
                f"Season {season.name} still has {course_count} courses",
                courses=course_count,
            )
        await BatchDeletionEngine.delete_ids(db, Season, [season_id])
        logger.info("Season deleted", extra={"season_id": str(season_id), "admin_id": actor.admin_id})

    @staticmethod
    async def archived_detail(db: AsyncSession, season_id: UUID) -> dict:
        """Courses and enrollments kept by an archived season (empty once purged)."""
        from app.services.course_service import CourseService

        season = await SeasonService.get_season(db, season_id)
        if not season.is_archived:
            raise SeasonNotArchivedError(f"Season {season.name} is not archived")
        courses = await CourseService.list_courses(db, season_id=season_id)
        result = await db.execute(
            select(Enrollment)
            .where(Enrollment.season_id == season_id)
            .order_by(Enrollment.created_at.desc())
        )
        return {"season": season, "courses": courses, "enrollments": list(result.scalars().all())}
