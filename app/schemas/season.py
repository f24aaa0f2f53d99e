"""Season Schemas"""

from datetime import date, datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import SeasonState
from app.schemas.academic import CourseResponse, EnrollmentResponse


class SeasonBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SeasonCreate(SeasonBase):
    is_active: bool = True


class SeasonUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SeasonStats(BaseModel):
    """Snapshot frozen at archival; survives the purge of the season's data."""
    total_courses: int
    total_students: int
    approved_enrollments: int


class SeasonResponse(SeasonBase):
    id: UUID
    state: SeasonState
    is_active: bool
    is_archived: bool
    data_deleted: bool
    archived_at: Optional[datetime] = None
    stats: Optional[SeasonStats] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ArchivedSeasonDetail(BaseModel):
    season: SeasonResponse
    courses: List[CourseResponse] = []
    enrollments: List[EnrollmentResponse] = []


class PurgeCounts(BaseModel):
    courses: int = 0
    enrollments: int = 0
    attendance: int = 0


class ConfirmationRequest(BaseModel):
    """Literal phrase typed by the admin before an irreversible operation."""
    confirmation: str = ""
