from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator
from uuid import UUID
from datetime import datetime

from app.models.enums import DayOfWeek, CourseCategory, CourseLevel, EnrollmentStatus

MAX_PERIOD = 12


class ScheduleSlot(BaseModel):
    """One weekly meeting. Ordering of start/end is checked by the schedule validator."""
    day: DayOfWeek
    start_period: int = Field(..., ge=1, le=MAX_PERIOD)
    end_period: int = Field(..., ge=1, le=MAX_PERIOD)

    model_config = ConfigDict(from_attributes=True)


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    instructor: str = Field(..., min_length=1, max_length=100)
    category: CourseCategory
    level: CourseLevel
    room: str = ""
    capacity: int = Field(..., gt=0)
    description: str = ""

    @field_validator("title", "instructor")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CourseCreate(CourseBase):
    season_id: UUID
    schedules: List[ScheduleSlot] = Field(..., min_length=1)


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    instructor: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[CourseCategory] = None
    level: Optional[CourseLevel] = None
    room: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    schedules: Optional[List[ScheduleSlot]] = Field(None, min_length=1)


class CourseResponse(CourseBase):
    id: UUID
    season_id: UUID
    enrolled: int
    is_active: bool
    schedules: List[ScheduleSlot] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrollmentSubmit(BaseModel):
    """A student's cart: one request per course."""
    student_id: str = Field(..., min_length=1, max_length=100)
    course_ids: List[UUID] = Field(..., min_length=1)


class EnrollmentResponse(BaseModel):
    id: UUID
    student_id: str
    course_id: UUID
    season_id: UUID
    status: EnrollmentStatus
    created_at: datetime
    decided_at: Optional[datetime] = None
    decided_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentReject(BaseModel):
    reason: str = Field(..., max_length=500)


class EnrollmentBatchApprove(BaseModel):
    enrollment_ids: List[UUID] = Field(..., min_length=1)


class EnrollmentWithdraw(BaseModel):
    """The student withdrawing their own request."""
    student_id: str = Field(..., min_length=1, max_length=100)


class CourseSelection(BaseModel):
    """Courses a student is considering together."""
    course_ids: List[UUID] = Field(..., min_length=1)
