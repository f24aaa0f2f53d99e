"""Unit tests for request/response schemas and settings."""

import uuid
from datetime import date

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.models.enums import CourseCategory, CourseLevel, DayOfWeek
from app.schemas.academic import CourseCreate, EnrollmentSubmit, ScheduleSlot
from app.schemas.responses import BatchResult
from app.schemas.season import SeasonCreate


def _course(**overrides):
    data = {
        "season_id": str(uuid.uuid4()),
        "title": "Algebra II",
        "instructor": "Kim",
        "category": "math",
        "level": "advanced",
        "capacity": 20,
        "schedules": [{"day": "Mon", "start_period": 1, "end_period": 2}],
    }
    data.update(overrides)
    return data


def test_course_create_valid():
    course = CourseCreate(**_course(title="  Algebra II  "))
    assert course.title == "Algebra II"
    assert course.category == CourseCategory.MATH
    assert course.level == CourseLevel.ADVANCED
    assert course.schedules[0].day == DayOfWeek.MONDAY


def test_course_create_blank_title():
    with pytest.raises(ValidationError):
        CourseCreate(**_course(title="   "))


def test_course_create_requires_positive_capacity():
    with pytest.raises(ValidationError):
        CourseCreate(**_course(capacity=0))


def test_course_create_requires_a_slot():
    with pytest.raises(ValidationError):
        CourseCreate(**_course(schedules=[]))


@pytest.mark.parametrize("period", [0, 13])
def test_schedule_slot_period_range(period):
    with pytest.raises(ValidationError):
        ScheduleSlot(day="Mon", start_period=period, end_period=2)


def test_season_dates_must_be_ordered():
    with pytest.raises(ValidationError):
        SeasonCreate(name="Winter", start_date=date(2027, 2, 1), end_date=date(2026, 12, 1))


def test_enrollment_submit_requires_courses():
    with pytest.raises(ValidationError):
        EnrollmentSubmit(student_id="s-001", course_ids=[])


def test_batch_result_counts():
    result = BatchResult()
    result.add_success("a", {"course_id": "1"})
    result.add_failure("b", "COURSE_FULL", "Course is full")
    result.add_success("c")

    dumped = result.model_dump()
    assert dumped["succeeded"] == 2
    assert dumped["failed"] == 1
    assert [item["key"] for item in dumped["items"]] == ["a", "b", "c"]
    assert dumped["items"][1]["error_code"] == "COURSE_FULL"


def test_settings_defaults():
    settings = Settings(DATABASE_URL="sqlite+aiosqlite:///:memory:", SECRET_KEY="x", _env_file=None)
    assert settings.BATCH_GROUP_MAX_SIZE == 450
    assert settings.is_sqlite
    assert settings.ALLOWED_ORIGINS == ["http://localhost:3000", "http://localhost:5173"]


def test_settings_reject_non_positive_group_size():
    with pytest.raises(ValidationError):
        Settings(DATABASE_URL="sqlite://", SECRET_KEY="x", BATCH_GROUP_MAX_SIZE=0, _env_file=None)
