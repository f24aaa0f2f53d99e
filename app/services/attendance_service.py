"""Attendance Service - per-session attendance of approved students"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.security import Principal
from app.models.attendance import AttendanceRecord
from app.models.enums import AttendanceStatus
from app.schemas.attendance import AttendanceEntry, AttendanceStats
from app.services.course_service import CourseService
from app.services.enrollment_service import EnrollmentService
from app.services.season_service import SeasonService
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


def attendance_rate(present: int, total: int) -> int:
    """Percentage of present marks, rounded half up; 0 when nothing is recorded."""
    if total <= 0:
        return 0
    return (200 * present + total) // (2 * total)


def _build_stats(counts: Dict[AttendanceStatus, int]) -> AttendanceStats:
    total = sum(counts.values())
    present = counts.get(AttendanceStatus.PRESENT, 0)
    return AttendanceStats(
        present=present,
        absent=counts.get(AttendanceStatus.ABSENT, 0),
        late=counts.get(AttendanceStatus.LATE, 0),
        excused=counts.get(AttendanceStatus.EXCUSED, 0),
        total=total,
        rate=attendance_rate(present, total),
    )


class AttendanceService:
    @staticmethod
    async def get_for_date(db: AsyncSession, course_id: UUID, session_date: date) -> List[AttendanceRecord]:
        """Recorded marks only; students without a row are simply not recorded."""
        result = await db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.course_id == course_id, AttendanceRecord.session_date == session_date)
            .order_by(AttendanceRecord.student_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def bulk_set(
        db: AsyncSession,
        course_id: UUID,
        session_date: date,
        entries: Iterable[AttendanceEntry],
        actor: Principal,
    ) -> List[AttendanceRecord]:
        """
        Save one session's marks in a single transaction.

        Entries without a status are skipped. Existing marks for the same
        student and date are overwritten.

        Raises:
            ValidationError: nothing to save, or a student without an approved enrollment
            SeasonArchivedError: the course's season is archived
        """
        to_save = [entry for entry in entries if entry.status is not None]
        if not to_save:
            raise ValidationError("Nothing to save: no attendance status was selected")

        course = await CourseService.get_course(db, course_id)
        await SeasonService.get_writable_season(db, course.season_id)

        approved = await EnrollmentService.approved_student_ids(db, course_id)
        unknown = sorted({entry.student_id for entry in to_save} - approved)
        if unknown:
            raise ValidationError(
                "Attendance can only be recorded for approved students",
                student_ids=unknown,
            )

        existing = {
            record.student_id: record
            for record in await AttendanceService.get_for_date(db, course_id, session_date)
        }
        now = get_utc_now()
        saved = []
        for entry in to_save:
            record = existing.get(entry.student_id)
            if record is None:
                record = AttendanceRecord(
                    course_id=course_id,
                    student_id=entry.student_id,
                    session_date=session_date,
                )
                db.add(record)
                existing[entry.student_id] = record
            record.status = entry.status
            record.note = entry.note or ""
            record.checked_by = actor.admin_id
            record.checked_at = now
            saved.append(record)

        await db.commit()
        logger.info(
            "Attendance saved",
            extra={
                "course_id": str(course_id),
                "session_date": session_date.isoformat(),
                "records": len(saved),
                "admin_id": actor.admin_id,
            },
        )
        return await AttendanceService.get_for_date(db, course_id, session_date)

    @staticmethod
    async def _count_by_status(db: AsyncSession, *criteria) -> Dict[AttendanceStatus, int]:
        result = await db.execute(
            select(AttendanceRecord.status, func.count())
            .where(*criteria)
            .group_by(AttendanceRecord.status)
        )
        return {AttendanceStatus(status): count for status, count in result.all()}

    @staticmethod
    async def stats(db: AsyncSession, course_id: UUID) -> AttendanceStats:
        """Counts per status across every recorded date of the course."""
        counts = await AttendanceService._count_by_status(db, AttendanceRecord.course_id == course_id)
        return _build_stats(counts)

    @staticmethod
    async def student_stats(db: AsyncSession, course_id: UUID, student_id: str) -> AttendanceStats:
        counts = await AttendanceService._count_by_status(
            db,
            AttendanceRecord.course_id == course_id,
            AttendanceRecord.student_id == student_id,
        )
        return _build_stats(counts)

    @staticmethod
    async def course_records(
        db: AsyncSession,
        course_id: UUID,
        student_id: Optional[str] = None,
    ) -> List[AttendanceRecord]:
        stmt = select(AttendanceRecord).where(AttendanceRecord.course_id == course_id)
        if student_id is not None:
            stmt = stmt.where(AttendanceRecord.student_id == student_id)
        result = await db.execute(
            stmt.order_by(AttendanceRecord.session_date, AttendanceRecord.student_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def recorded_dates(db: AsyncSession, course_id: UUID) -> List[date]:
        result = await db.execute(
            select(AttendanceRecord.session_date)
            .where(AttendanceRecord.course_id == course_id)
            .distinct()
            .order_by(AttendanceRecord.session_date)
        )
        return [row[0] for row in result.all()]
