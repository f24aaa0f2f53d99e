"""Bulk course import schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from app.models.enums import CourseCategory, CourseLevel
from app.schemas.academic import ScheduleSlot


class CourseCandidate(BaseModel):
    """A spreadsheet row that survived normalization."""
    row_number: int
    title: str
    instructor: str
    category: CourseCategory
    level: CourseLevel
    room: str = ""
    capacity: int = Field(..., gt=0)
    description: str = ""
    schedules: List[ScheduleSlot] = Field(..., min_length=1)


class DroppedRow(BaseModel):
    row_number: int
    reason: str
    title: Optional[str] = None


class ImportPreview(BaseModel):
    candidates: List[CourseCandidate] = Field(default_factory=list)
    dropped: List[DroppedRow] = Field(default_factory=list)

    @computed_field
    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


class ImportCommit(BaseModel):
    season_id: UUID
    candidates: List[CourseCandidate] = Field(..., min_length=1)
