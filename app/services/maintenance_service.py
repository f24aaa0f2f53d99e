"""Maintenance Service - counts and full resets of whole collections.

Resets go through the batch deletion engine, children before parents, so a
reset that stops part way can be re-run.
"""

import logging
from typing import Dict, List, Tuple, Type

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.security import Principal, check_superadmin
from app.models.academic import Course, CourseSchedule, Enrollment
from app.models.attendance import AttendanceRecord
from app.models.base import BaseModel
from app.models.season import Season
from app.services.batch_deletion import BatchDeletionEngine
from app.services.pending_feed import pending_feed

logger = logging.getLogger(__name__)

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "enrollments": Enrollment,
    "attendance": AttendanceRecord,
    "courses": Course,
    "seasons": Season,
}

# What must be emptied, in order, to reset each collection
_RESET_PLAN: Dict[str, List[Tuple[str, Type[BaseModel]]]] = {
    "enrollments": [("enrollments", Enrollment)],
    "attendance": [("attendance", AttendanceRecord)],
    "courses": [
        ("enrollments", Enrollment),
        ("attendance", AttendanceRecord),
        ("schedules", CourseSchedule),
        ("courses", Course),
    ],
    "seasons": [
        ("enrollments", Enrollment),
        ("attendance", AttendanceRecord),
        ("schedules", CourseSchedule),
        ("courses", Course),
        ("seasons", Season),
    ],
}


def _check_collection(name: str) -> None:
    if name not in COLLECTIONS:
        raise ValidationError(
            f"Unknown collection {name}; expected one of {', '.join(COLLECTIONS)}",
            collection=name,
        )


class MaintenanceService:
    @staticmethod
    async def collection_counts(db: AsyncSession) -> Dict[str, int]:
        return {
            name: await BatchDeletionEngine.count_where(db, model)
            for name, model in COLLECTIONS.items()
        }

    @staticmethod
    async def reset_preview(db: AsyncSession, name: str) -> Dict[str, int]:
        """Rows a reset of `name` would delete, per collection."""
        _check_collection(name)
        return {
            label: await BatchDeletionEngine.count_where(db, model)
            for label, model in _RESET_PLAN[name]
            if label in COLLECTIONS
        }

    @staticmethod
    async def reset_collection(db: AsyncSession, name: str, actor: Principal) -> Dict[str, int]:
        """
        Delete every row of one collection and of the collections below it.

        Raises:
            ValidationError: unknown collection
            PartialDeletionError: a chunk failed; re-run to finish
        """
        check_superadmin(actor, "reset data")
        _check_collection(name)
        deleted = {}
        for label, model in _RESET_PLAN[name]:
            report = await BatchDeletionEngine.delete_where(db, model)
            if label in COLLECTIONS:
                deleted[label] = report.deleted
        if name == "enrollments":
            # No approved enrollment survives, so no seat is taken
            await db.execute(update(Course).values(enrolled=0))
            await db.commit()
        logger.warning(
            "Collection reset",
            extra={"collection": name, **deleted, "admin_id": actor.admin_id},
        )
        await pending_feed.notify()
        return deleted

    @staticmethod
    async def reset_all(db: AsyncSession, actor: Principal) -> Dict[str, int]:
        return await MaintenanceService.reset_collection(db, "seasons", actor)
