"""Unit tests for schedule slot validation (pure logic, no DB)."""

from types import SimpleNamespace

import pytest

from app.core.exceptions import ScheduleConflictError, ValidationError
from app.models.enums import DayOfWeek
from app.schemas.academic import ScheduleSlot
from app.services.schedule_validator import (
    ensure_valid_schedule,
    find_conflicts,
    periods_overlap,
    schedules_conflict,
    validate_schedule,
)

MON = DayOfWeek.MONDAY
WED = DayOfWeek.WEDNESDAY


def slot(day, start, end):
    return ScheduleSlot(day=day, start_period=start, end_period=end)


def test_valid_schedule_returns_none():
    assert validate_schedule([slot(MON, 1, 2), slot(WED, 1, 2), slot(MON, 3, 4)]) is None


def test_single_period_slot_is_valid():
    assert validate_schedule([slot(MON, 5, 5)]) is None


def test_start_after_end_is_reported():
    violation = validate_schedule([slot(MON, 1, 2), slot(WED, 4, 3)])
    assert violation is not None
    assert violation.slot_indices == (1,)
    assert "starts after it ends" in violation.message


def test_shared_boundary_period_overlaps():
    violation = validate_schedule([slot(MON, 1, 2), slot(MON, 2, 3)])
    assert violation is not None
    assert violation.slot_indices == (0, 1)
    assert "overlap" in violation.message


def test_adjacent_periods_do_not_overlap():
    assert validate_schedule([slot(MON, 1, 2), slot(MON, 3, 4)]) is None


def test_same_periods_on_different_days_do_not_overlap():
    assert validate_schedule([slot(MON, 1, 2), slot(WED, 1, 2)]) is None


def test_first_violation_wins():
    # Slot 2 is malformed and slots 0/3 overlap; ordering errors are checked first
    violation = validate_schedule([slot(MON, 1, 3), slot(WED, 1, 2), slot(WED, 6, 5), slot(MON, 2, 2)])
    assert violation.slot_indices == (2,)


def test_periods_overlap_is_inclusive():
    assert periods_overlap(slot(MON, 1, 2), slot(MON, 2, 4))
    assert periods_overlap(slot(MON, 3, 3), slot(MON, 1, 5))
    assert not periods_overlap(slot(MON, 1, 2), slot(MON, 3, 4))


def test_ensure_valid_schedule_raises_conflict():
    with pytest.raises(ScheduleConflictError) as exc_info:
        ensure_valid_schedule([slot(MON, 1, 2), slot(MON, 2, 3)])
    assert exc_info.value.code == "SCHEDULE_CONFLICT"
    assert exc_info.value.slot_indices == (0, 1)
    assert exc_info.value.status_code == 400


def test_ensure_valid_schedule_requires_a_slot():
    with pytest.raises(ValidationError):
        ensure_valid_schedule([])


def test_schedules_conflict_across_courses():
    assert schedules_conflict([slot(MON, 1, 2)], [slot(WED, 1, 2), slot(MON, 2, 3)])
    assert not schedules_conflict([slot(MON, 1, 2)], [slot(MON, 3, 4)])


def test_find_conflicts_returns_clashing_courses():
    algebra = SimpleNamespace(title="Algebra", schedules=[slot(MON, 1, 2)])
    essay = SimpleNamespace(title="Essay", schedules=[slot(WED, 1, 2)])
    result = find_conflicts([slot(MON, 2, 3)], [algebra, essay])
    assert result == [algebra]
