"""Schedule slot validation.

Checks the weekly slots of a single course. Slots of other courses sharing
the room or the instructor are not compared here.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol, Sequence

from app.core.exceptions import ScheduleConflictError, ValidationError


class SlotLike(Protocol):
    day: Any
    start_period: int
    end_period: int


@dataclass(frozen=True)
class ScheduleViolation:
    """First problem found in a slot list; indices are 0-based positions."""
    slot_indices: tuple[int, ...]
    message: str


def _day_label(day: Any) -> str:
    return getattr(day, "value", day)


def periods_overlap(a: SlotLike, b: SlotLike) -> bool:
    """Inclusive period ranges: 1~2 and 2~3 share period 2."""
    return a.start_period <= b.end_period and b.start_period <= a.end_period


def validate_schedule(slots: Sequence[SlotLike]) -> Optional[ScheduleViolation]:
    """
    Return the first violation in `slots`, or None when the schedule is valid.

    Each slot must have start_period <= end_period; after that every pair of
    slots on the same day must not overlap.
    """
    for index, slot in enumerate(slots):
        if slot.start_period > slot.end_period:
            return ScheduleViolation(
                slot_indices=(index,),
                message=(
                    f"Slot {index + 1} ({_day_label(slot.day)} {slot.start_period}~{slot.end_period}) "
                    "starts after it ends"
                ),
            )

    for i in range(len(slots)):
        for j in range(i + 1, len(slots)):
            a, b = slots[i], slots[j]
            if a.day == b.day and periods_overlap(a, b):
                return ScheduleViolation(
                    slot_indices=(i, j),
                    message=(
                        f"Slots {i + 1} and {j + 1} overlap on {_day_label(a.day)} "
                        f"({a.start_period}~{a.end_period} vs {b.start_period}~{b.end_period})"
                    ),
                )
    return None


def ensure_valid_schedule(slots: Sequence[SlotLike]) -> None:
    """Raise ScheduleConflictError for the first violation found."""
    if not slots:
        raise ValidationError("At least one schedule slot is required")
    violation = validate_schedule(slots)
    if violation is not None:
        raise ScheduleConflictError(violation.message, violation.slot_indices)


def schedules_conflict(first: Iterable[SlotLike], second: Iterable[SlotLike]) -> bool:
    """True when any slot of one schedule overlaps a slot of the other on the same day."""
    second = list(second)
    return any(
        a.day == b.day and periods_overlap(a, b)
        for a in first
        for b in second
    )


def find_conflicts(candidate: Iterable[SlotLike], others: Iterable[Any]) -> List[Any]:
    """
    Courses in `others` whose schedules clash with `candidate`.

    Used to warn a student about timetable clashes inside their own
    selection; course creation never calls it.
    """
    candidate = list(candidate)
    return [course for course in others if schedules_conflict(candidate, course.schedules)]
