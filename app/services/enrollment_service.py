"""Enrollment Service - request workflow and seat accounting.

pending -> approved | rejected | cancelled; the decided states are terminal.
Seats are only taken on approval, through one conditional UPDATE that
increments `courses.enrolled` only while it is below capacity. Two approvals
racing for the last seat therefore cannot both succeed.
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AcademyError,
    CourseFullError,
    DuplicateActiveEnrollmentError,
    NotFoundError,
    NotPendingError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.security import Principal
from app.models.academic import Course, Enrollment
from app.models.enums import ACTIVE_ENROLLMENT_STATUSES, EnrollmentStatus
from app.schemas.responses import BatchResult
from app.services.course_service import CourseService
from app.services.pending_feed import load_pending, pending_feed
from app.services.season_service import SeasonService
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


class EnrollmentService:
    @staticmethod
    async def get_enrollment(db: AsyncSession, enrollment_id: UUID) -> Enrollment:
        enrollment = await db.get(Enrollment, enrollment_id, populate_existing=True)
        if enrollment is None:
            raise NotFoundError(f"Enrollment {enrollment_id} not found", enrollment_id=str(enrollment_id))
        return enrollment

    @staticmethod
    async def get_active_enrollment(db: AsyncSession, student_id: str, course_id: UUID) -> Optional[Enrollment]:
        result = await db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
            )
        )
        return result.scalars().first()

    @staticmethod
    async def submit(db: AsyncSession, student_id: str, course_id: UUID) -> Enrollment:
        """
        Create a pending request. Capacity is not checked until approval.

        Raises:
            NotFoundError: course missing
            SeasonArchivedError: the course's season is archived
            DuplicateActiveEnrollmentError: a pending/approved request exists
        """
        student_id = (student_id or "").strip()
        if not student_id:
            raise ValidationError("Student id is required")
        course = await CourseService.get_course(db, course_id)
        await SeasonService.get_writable_season(db, course.season_id)

        duplicate = DuplicateActiveEnrollmentError(
            f"{course.title}: already requested",
            student_id=student_id,
            course_id=str(course_id),
        )
        if await EnrollmentService.get_active_enrollment(db, student_id, course_id):
            raise duplicate

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            season_id=course.season_id,
            status=EnrollmentStatus.PENDING,
        )
        db.add(enrollment)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against a concurrent submit for the same pair
            await db.rollback()
            raise duplicate
        await db.refresh(enrollment)

        logger.info(
            "Enrollment submitted",
            extra={"enrollment_id": str(enrollment.id), "student_id": student_id, "course_id": str(course_id)},
        )
        await pending_feed.notify()
        return enrollment

    @staticmethod
    async def submit_many(db: AsyncSession, student_id: str, course_ids: Iterable[UUID]) -> BatchResult:
        """Submit one request per course; each course succeeds or fails on its own."""
        results = BatchResult()
        for course_id in course_ids:
            try:
                enrollment = await EnrollmentService.submit(db, student_id, course_id)
            except AcademyError as exc:
                logger.warning(
                    "Enrollment submission rejected",
                    extra={"student_id": student_id, "course_id": str(course_id), "code": exc.code},
                )
                results.add_failure(str(course_id), exc.code, exc.message)
                continue
            results.add_success(str(course_id), {"enrollment_id": str(enrollment.id)})
        return results

    @staticmethod
    async def approve(db: AsyncSession, enrollment_id: UUID, actor: Principal) -> Enrollment:
        """
        Approve a pending request and take a seat in the same commit.

        Raises:
            NotFoundError, NotPendingError, SeasonArchivedError, CourseFullError
        """
        enrollment = await EnrollmentService.get_enrollment(db, enrollment_id)
        if enrollment.status != EnrollmentStatus.PENDING:
            raise NotPendingError(
                f"Enrollment is {enrollment.status.value}, not pending",
                enrollment_id=str(enrollment_id),
            )
        course_id = enrollment.course_id
        await SeasonService.get_writable_season(db, enrollment.season_id)

        # Claim the request first so a second approval of the same id
        # cannot take another seat
        claimed = await db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == EnrollmentStatus.PENDING)
            .values(status=EnrollmentStatus.APPROVED, decided_at=get_utc_now(), decided_by=actor.admin_id)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            raise NotPendingError("Enrollment was decided concurrently", enrollment_id=str(enrollment_id))

        seat = await db.execute(
            update(Course)
            .where(Course.id == course_id, Course.enrolled < Course.capacity)
            .values(enrolled=Course.enrolled + 1)
            .execution_options(synchronize_session=False)
        )
        if seat.rowcount != 1:
            await db.rollback()
            raise CourseFullError(
                "Course is full",
                course_id=str(course_id),
                enrollment_id=str(enrollment_id),
            )
        await db.commit()
        await db.refresh(enrollment)

        logger.info(
            "Enrollment approved",
            extra={"enrollment_id": str(enrollment_id), "course_id": str(enrollment.course_id), "admin_id": actor.admin_id},
        )
        await pending_feed.notify()
        return enrollment

    @staticmethod
    async def reject(db: AsyncSession, enrollment_id: UUID, actor: Principal, reason: str) -> Enrollment:
        """Reject a pending request with a reason. Seats are untouched."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        enrollment = await EnrollmentService._decide(
            db, enrollment_id, EnrollmentStatus.REJECTED,
            decided_at=get_utc_now(), decided_by=actor.admin_id, rejection_reason=reason,
        )
        logger.info("Enrollment rejected", extra={"enrollment_id": str(enrollment_id), "admin_id": actor.admin_id})
        return enrollment

    @staticmethod
    async def cancel(db: AsyncSession, enrollment_id: UUID, actor: Principal) -> Enrollment:
        """Withdraw a pending request. Seats are untouched."""
        now = get_utc_now()
        enrollment = await EnrollmentService._decide(
            db, enrollment_id, EnrollmentStatus.CANCELLED,
            decided_at=now, decided_by=actor.admin_id, cancelled_at=now,
        )
        logger.info("Enrollment cancelled", extra={"enrollment_id": str(enrollment_id), "admin_id": actor.admin_id})
        return enrollment

    @staticmethod
    async def withdraw(db: AsyncSession, enrollment_id: UUID, student_id: str) -> Enrollment:
        """
        Student withdraws their own pending request. No admin is recorded.

        Raises:
            PermissionDeniedError: the request belongs to another student
            NotPendingError: already decided
        """
        enrollment = await EnrollmentService.get_enrollment(db, enrollment_id)
        if enrollment.student_id != (student_id or "").strip():
            raise PermissionDeniedError(
                "Students can only withdraw their own requests",
                enrollment_id=str(enrollment_id),
            )
        now = get_utc_now()
        enrollment = await EnrollmentService._decide(
            db, enrollment_id, EnrollmentStatus.CANCELLED,
            decided_at=now, decided_by=None, cancelled_at=now,
        )
        logger.info(
            "Enrollment withdrawn",
            extra={"enrollment_id": str(enrollment_id), "student_id": enrollment.student_id},
        )
        return enrollment

    @staticmethod
    async def _decide(db: AsyncSession, enrollment_id: UUID, status: EnrollmentStatus, **values) -> Enrollment:
        enrollment = await EnrollmentService.get_enrollment(db, enrollment_id)
        if enrollment.status != EnrollmentStatus.PENDING:
            raise NotPendingError(
                f"Enrollment is {enrollment.status.value}, not pending",
                enrollment_id=str(enrollment_id),
            )
        await SeasonService.get_writable_season(db, enrollment.season_id)

        result = await db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == EnrollmentStatus.PENDING)
            .values(status=status, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise NotPendingError("Enrollment was decided concurrently", enrollment_id=str(enrollment_id))
        await db.commit()
        await db.refresh(enrollment)
        await pending_feed.notify()
        return enrollment

    @staticmethod
    async def batch_approve(db: AsyncSession, enrollment_ids: Iterable[UUID], actor: Principal) -> BatchResult:
        """
        Approve each id in order. Failures are reported per id; approvals
        that already went through are kept.
        """
        results = BatchResult()
        for enrollment_id in enrollment_ids:
            try:
                enrollment = await EnrollmentService.approve(db, enrollment_id, actor)
            except AcademyError as exc:
                logger.warning(
                    "Batch approval item failed",
                    extra={"enrollment_id": str(enrollment_id), "code": exc.code, "admin_id": actor.admin_id},
                )
                results.add_failure(str(enrollment_id), exc.code, exc.message)
                continue
            results.add_success(str(enrollment_id), {"course_id": str(enrollment.course_id)})
        return results

    @staticmethod
    async def list_pending(db: AsyncSession) -> List[Enrollment]:
        """All pending requests across courses, oldest first."""
        return await load_pending(db)

    @staticmethod
    async def list_enrollments(
        db: AsyncSession,
        season_id: Optional[UUID] = None,
        status: Optional[EnrollmentStatus] = None,
        course_id: Optional[UUID] = None,
    ) -> List[Enrollment]:
        stmt = select(Enrollment)
        if season_id is not None:
            stmt = stmt.where(Enrollment.season_id == season_id)
        if status is not None:
            stmt = stmt.where(Enrollment.status == status)
        if course_id is not None:
            stmt = stmt.where(Enrollment.course_id == course_id)
        result = await db.execute(stmt.order_by(Enrollment.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_for_student(db: AsyncSession, student_id: str, active_only: bool = False) -> List[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.student_id == student_id)
        if active_only:
            stmt = stmt.where(Enrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES))
        result = await db.execute(stmt.order_by(Enrollment.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_by_course(
        db: AsyncSession,
        course_id: UUID,
        statuses: Iterable[EnrollmentStatus] = ACTIVE_ENROLLMENT_STATUSES,
    ) -> List[Enrollment]:
        """Course roster, oldest request first."""
        result = await db.execute(
            select(Enrollment)
            .where(Enrollment.course_id == course_id, Enrollment.status.in_(list(statuses)))
            .order_by(Enrollment.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def approved_student_ids(db: AsyncSession, course_id: UUID) -> set:
        result = await db.execute(
            select(Enrollment.student_id).where(
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.APPROVED,
            )
        )
        return {row[0] for row in result.all()}
