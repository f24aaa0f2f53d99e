"""Course Service - creation and maintenance of season courses"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import Principal
from app.models.academic import Course, CourseSchedule, Enrollment
from app.models.attendance import AttendanceRecord
from app.schemas.academic import CourseUpdate
from app.services.batch_deletion import BatchDeletionEngine
from app.services.pending_feed import pending_feed
from app.services.schedule_validator import ensure_valid_schedule, find_conflicts
from app.services.season_service import SeasonService

logger = logging.getLogger(__name__)


def _build_slots(slots: List[Any]) -> List[CourseSchedule]:
    return [
        CourseSchedule(
            position=position,
            day=slot.day,
            start_period=slot.start_period,
            end_period=slot.end_period,
        )
        for position, slot in enumerate(slots)
    ]


class CourseService:
    @staticmethod
    async def get_course(db: AsyncSession, course_id: UUID) -> Course:
        result = await db.execute(
            select(Course)
            .options(selectinload(Course.schedules))
            .where(Course.id == course_id)
            .execution_options(populate_existing=True)
        )
        course = result.scalar_one_or_none()
        if course is None:
            raise NotFoundError(f"Course {course_id} not found", course_id=str(course_id))
        return course

    @staticmethod
    async def list_courses(
        db: AsyncSession,
        season_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> List[Course]:
        stmt = select(Course).options(selectinload(Course.schedules))
        if season_id is not None:
            stmt = stmt.where(Course.season_id == season_id)
        if active_only:
            stmt = stmt.where(Course.is_active.is_(True))
        result = await db.execute(stmt.order_by(Course.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def create_course(
        db: AsyncSession,
        season_id: UUID,
        data: Any,
        actor: Principal,
    ) -> Course:
        """
        Create a course with its schedule slots.

        `data` carries title, instructor, category, level, room, capacity,
        description and schedules (CourseCreate or an import candidate).

        Raises:
            ValidationError: blank title/instructor, bad capacity, bad schedule
            SeasonArchivedError: the season no longer accepts changes
        """
        title = (data.title or "").strip()
        instructor = (data.instructor or "").strip()
        if not title or not instructor:
            raise ValidationError("Title and instructor are required")
        if data.capacity is None or data.capacity < 1:
            raise ValidationError("Capacity must be a positive integer", capacity=data.capacity)
        ensure_valid_schedule(data.schedules)
        await SeasonService.get_writable_season(db, season_id)

        course = Course(
            season_id=season_id,
            title=title,
            instructor=instructor,
            category=data.category,
            level=data.level,
            room=data.room or "",
            capacity=data.capacity,
            enrolled=0,
            description=data.description or "",
            is_active=True,
            created_by=actor.admin_id,
            schedules=_build_slots(data.schedules),
        )
        db.add(course)
        await db.commit()

        logger.info(
            "Course created",
            extra={"course_id": str(course.id), "season_id": str(season_id), "admin_id": actor.admin_id},
        )
        # Fetch with eager load so schedules are available for Pydantic
        return await CourseService.get_course(db, course.id)

    @staticmethod
    async def update_course(
        db: AsyncSession,
        course_id: UUID,
        updates: CourseUpdate,
        actor: Principal,
    ) -> Course:
        """Last write wins on plain fields; `enrolled` is never written here."""
        course = await CourseService.get_course(db, course_id)
        await SeasonService.get_writable_season(db, course.season_id)

        fields = updates.model_dump(exclude_unset=True, exclude={"schedules"})
        if "capacity" in fields and fields["capacity"] < course.enrolled:
            raise ValidationError(
                f"Capacity cannot go below the {course.enrolled} approved students",
                capacity=fields["capacity"],
                enrolled=course.enrolled,
            )
        for name in ("title", "instructor"):
            if name in fields:
                fields[name] = (fields[name] or "").strip()
                if not fields[name]:
                    raise ValidationError(f"{name.capitalize()} must not be blank")
        for name, value in fields.items():
            setattr(course, name, value)

        if updates.schedules is not None:
            ensure_valid_schedule(updates.schedules)
            course.schedules = _build_slots(updates.schedules)

        try:
            await db.commit()
        except IntegrityError:
            # An approval committed after the check above
            await db.rollback()
            raise ValidationError(
                "Capacity cannot go below the number of approved students",
                capacity=fields.get("capacity"),
            )
        logger.info("Course updated", extra={"course_id": str(course_id), "admin_id": actor.admin_id})
        return await CourseService.get_course(db, course_id)

    @staticmethod
    async def delete_course(db: AsyncSession, course_id: UUID, actor: Principal) -> dict:
        """Delete a course with its enrollments and attendance records."""
        course = await CourseService.get_course(db, course_id)
        await SeasonService.get_writable_season(db, course.season_id)

        enrollments = await BatchDeletionEngine.delete_where(db, Enrollment, Enrollment.course_id == course_id)
        attendance = await BatchDeletionEngine.delete_where(
            db, AttendanceRecord, AttendanceRecord.course_id == course_id
        )
        schedules = await BatchDeletionEngine.delete_where(
            db, CourseSchedule, CourseSchedule.course_id == course_id
        )
        await BatchDeletionEngine.delete_ids(db, Course, [course_id])

        logger.info(
            "Course deleted",
            extra={
                "course_id": str(course_id),
                "enrollments": enrollments.deleted,
                "attendance": attendance.deleted,
                "schedules": schedules.deleted,
                "admin_id": actor.admin_id,
            },
        )
        await pending_feed.notify()
        return {"enrollments": enrollments.deleted, "attendance": attendance.deleted}

    @staticmethod
    async def cart_conflicts(db: AsyncSession, course_ids: List[UUID]) -> Dict[str, List[str]]:
        """
        Timetable clashes inside a student's selection, per course id.

        Only a warning for the student; submitting clashing courses is allowed.
        """
        result = await db.execute(
            select(Course)
            .options(selectinload(Course.schedules))
            .where(Course.id.in_(course_ids))
        )
        courses = list(result.scalars().all())
        clashes = {}
        for course in courses:
            others = [other for other in courses if other.id != course.id]
            conflicting = find_conflicts(course.schedules, others)
            if conflicting:
                clashes[str(course.id)] = [str(other.id) for other in conflicting]
        return clashes
