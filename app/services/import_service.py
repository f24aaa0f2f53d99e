"""Bulk Import Service - spreadsheet rows to course candidates.

Rows are normalized into candidates first (preview); the admin then commits
the candidates, each created on its own. A failed candidate never undoes the
ones created before it.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from app.config import settings
from app.core.exceptions import AcademyError
from app.core.security import Principal
from app.models.enums import CourseCategory, CourseLevel, DayOfWeek
from app.schemas.academic import MAX_PERIOD, ScheduleSlot
from app.schemas.imports import CourseCandidate, DroppedRow, ImportPreview
from app.schemas.responses import BatchResult
from app.services.course_service import CourseService
from app.services.schedule_validator import validate_schedule

logger = logging.getLogger(__name__)

HEADER_ALIASES: Dict[str, Sequence[str]] = {
    "title": ("title", "강좌명", "제목"),
    "instructor": ("instructor", "강사", "강사명"),
    "category": ("category", "카테고리", "과목"),
    "level": ("level", "난이도"),
    "schedule": ("schedule", "시간", "수업시간"),
    "day": ("day", "요일"),
    "start_period": ("startPeriod", "start_period", "시작교시"),
    "end_period": ("endPeriod", "end_period", "종료교시"),
    "room": ("room", "강의실"),
    "capacity": ("capacity", "정원"),
    "description": ("description", "설명"),
}

DAY_LABELS: Dict[DayOfWeek, str] = {
    DayOfWeek.MONDAY: "월",
    DayOfWeek.TUESDAY: "화",
    DayOfWeek.WEDNESDAY: "수",
    DayOfWeek.THURSDAY: "목",
    DayOfWeek.FRIDAY: "금",
    DayOfWeek.SATURDAY: "토",
    DayOfWeek.SUNDAY: "일",
}

CATEGORY_LABELS: Dict[CourseCategory, str] = {
    CourseCategory.KOREAN: "국어",
    CourseCategory.MATH: "수학",
    CourseCategory.ENGLISH: "영어",
    CourseCategory.SCIENCE: "과탐",
    CourseCategory.SOCIAL: "사탐",
    CourseCategory.MATH_ESSAY: "수리논술",
    CourseCategory.HUMANITIES_ESSAY: "인문논술",
}

LEVEL_LABELS: Dict[CourseLevel, str] = {
    CourseLevel.BEGINNER: "초급",
    CourseLevel.INTERMEDIATE: "중급",
    CourseLevel.ADVANCED: "고급",
    CourseLevel.PRACTICE: "실전",
}

_DAY_ALIASES: Dict[str, DayOfWeek] = {}
for _day, _label in DAY_LABELS.items():
    _DAY_ALIASES[_day.value.lower()] = _day
    _DAY_ALIASES[_day.name.lower()] = _day
    _DAY_ALIASES[_label] = _day
    _DAY_ALIASES[_label + "요일"] = _day

# "Mon 1~2", "월 3-4", "Wed 5"
_SLOT_PATTERN = re.compile(r"^\s*([^\d\s]+)\s*(\d+)\s*(?:[~\-]\s*(\d+))?\s*$")
_LEGACY_DAY_SPLIT = re.compile(r"[/,]")


def parse_day(token: str) -> Optional[DayOfWeek]:
    return _DAY_ALIASES.get((token or "").strip().lower())


def _period(value: str) -> Optional[int]:
    try:
        period = int(value)
    except (TypeError, ValueError):
        return None
    return period if 1 <= period <= MAX_PERIOD else None


def parse_compact_schedule(text: str) -> List[ScheduleSlot]:
    """Parse "Mon 1~2, Wed 3~4". Pieces that do not parse are skipped."""
    slots = []
    for piece in (text or "").split(","):
        match = _SLOT_PATTERN.match(piece)
        if not match:
            continue
        day = parse_day(match.group(1))
        start = _period(match.group(2))
        end = _period(match.group(3) or match.group(2))
        if day is None or start is None or end is None:
            continue
        slots.append(ScheduleSlot(day=day, start_period=start, end_period=end))
    return slots


def parse_legacy_schedule(day_text: str, start_text: str, end_text: str) -> List[ScheduleSlot]:
    """One slot per listed day ("Mon/Wed" or "Mon,Wed"), all sharing one period range."""
    start = _period(start_text) if str(start_text).strip() else 1
    end = _period(end_text) if str(end_text).strip() else 2
    if start is None or end is None:
        return []
    slots = []
    for token in _LEGACY_DAY_SPLIT.split(day_text or ""):
        day = parse_day(token)
        if day is not None:
            slots.append(ScheduleSlot(day=day, start_period=start, end_period=end))
    return slots


def format_schedule(slots: Iterable[Any]) -> str:
    """Inverse of parse_compact_schedule, using Korean day labels."""
    return ", ".join(
        f"{DAY_LABELS.get(DayOfWeek(slot.day), slot.day)} {slot.start_period}~{slot.end_period}"
        for slot in slots
    )


def _match_label(value: str, labels: Mapping[Any, str], default: Any) -> Any:
    value = (value or "").strip()
    for member, label in labels.items():
        if value.lower() == member.value or value == label:
            return member
    return default


def _parse_capacity(value: str) -> int:
    try:
        capacity = int(str(value).strip())
    except (TypeError, ValueError):
        return settings.IMPORT_DEFAULT_CAPACITY
    return capacity if capacity > 0 else settings.IMPORT_DEFAULT_CAPACITY


def _canonical_row(row: Mapping[str, Any]) -> Dict[str, str]:
    """Map spreadsheet headers onto canonical field names."""
    by_header = {str(key).strip().lower(): value for key, value in row.items() if key is not None}
    canonical = {}
    for field, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            value = by_header.get(alias.lower())
            if value is not None and str(value).strip():
                canonical[field] = str(value).strip()
                break
        else:
            canonical[field] = ""
    return canonical


class ImportService:
    @staticmethod
    def normalize_row(row: Mapping[str, Any], row_number: int) -> Union[CourseCandidate, DroppedRow]:
        fields = _canonical_row(row)
        title = fields["title"]
        instructor = fields["instructor"]
        if not title or not instructor:
            return DroppedRow(row_number=row_number, reason="Title and instructor are required", title=title or None)

        if fields["schedule"]:
            slots = parse_compact_schedule(fields["schedule"])
        else:
            slots = parse_legacy_schedule(fields["day"], fields["start_period"], fields["end_period"])
        if not slots:
            return DroppedRow(row_number=row_number, reason="No valid schedule slot", title=title)

        violation = validate_schedule(slots)
        if violation is not None:
            return DroppedRow(row_number=row_number, reason=violation.message, title=title)

        return CourseCandidate(
            row_number=row_number,
            title=title,
            instructor=instructor,
            category=_match_label(
                fields["category"], CATEGORY_LABELS, CourseCategory(settings.IMPORT_DEFAULT_CATEGORY)
            ),
            level=_match_label(fields["level"], LEVEL_LABELS, CourseLevel(settings.IMPORT_DEFAULT_LEVEL)),
            room=fields["room"],
            capacity=_parse_capacity(fields["capacity"]),
            description=fields["description"],
            schedules=slots,
        )

    @staticmethod
    def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> ImportPreview:
        """
        Turn raw rows into candidates. Rows are numbered from 1, the first
        data row after the header.
        """
        preview = ImportPreview()
        for row_number, row in enumerate(rows, start=1):
            outcome = ImportService.normalize_row(row, row_number)
            if isinstance(outcome, DroppedRow):
                preview.dropped.append(outcome)
            else:
                preview.candidates.append(outcome)
        logger.info(
            "Import rows normalized",
            extra={"candidates": len(preview.candidates), "dropped": len(preview.dropped)},
        )
        return preview

    @staticmethod
    async def create_many(
        db,
        candidates: Iterable[CourseCandidate],
        season_id: UUID,
        actor: Principal,
    ) -> BatchResult:
        """Create every candidate independently; one outcome per candidate keyed by title."""
        results = BatchResult()
        for candidate in candidates:
            try:
                course = await CourseService.create_course(db, season_id, candidate, actor)
            except AcademyError as exc:
                logger.warning(
                    "Imported course rejected",
                    extra={"title": candidate.title, "row_number": candidate.row_number, "code": exc.code},
                )
                results.add_failure(candidate.title, exc.code, exc.message)
                continue
            results.add_success(candidate.title, {"course_id": str(course.id)})

        logger.info(
            "Course import finished",
            extra={
                "season_id": str(season_id),
                "succeeded": results.succeeded,
                "failed": results.failed,
                "admin_id": actor.admin_id,
            },
        )
        return results
