"""Unit tests for CourseService capacity updates (mocked session)."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.security import Principal
from app.models.academic import Course
from app.models.enums import AdminRole
from app.schemas.academic import CourseUpdate
from app.services.course_service import CourseService

ACTOR = Principal(admin_id=uuid.uuid4(), role=AdminRole.ADMIN)


def _course(capacity=3, enrolled=1):
    return Course(id=uuid.uuid4(), season_id=uuid.uuid4(), title="Algebra II", capacity=capacity, enrolled=enrolled)


@pytest.mark.asyncio
async def test_capacity_below_enrolled_is_refused_before_commit():
    db = AsyncMock(spec=AsyncSession)
    course = _course(capacity=3, enrolled=2)

    with patch.object(CourseService, "get_course", AsyncMock(return_value=course)), \
         patch("app.services.course_service.SeasonService.get_writable_season", AsyncMock()):
        with pytest.raises(ValidationError):
            await CourseService.update_course(db, course.id, CourseUpdate(capacity=1), ACTOR)

    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_capacity_lost_to_concurrent_approval_is_a_validation_error():
    db = AsyncMock(spec=AsyncSession)
    db.commit.side_effect = IntegrityError("UPDATE courses", {}, Exception("ck_courses_enrolled_within_capacity"))
    course = _course(capacity=3, enrolled=1)

    with patch.object(CourseService, "get_course", AsyncMock(return_value=course)), \
         patch("app.services.course_service.SeasonService.get_writable_season", AsyncMock()):
        with pytest.raises(ValidationError) as exc_info:
            await CourseService.update_course(db, course.id, CourseUpdate(capacity=2), ACTOR)

    assert exc_info.value.context["capacity"] == 2
    db.rollback.assert_awaited_once()
