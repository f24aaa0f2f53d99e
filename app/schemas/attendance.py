"""Attendance Schemas"""

from datetime import date, datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AttendanceStatus


class AttendanceEntry(BaseModel):
    """One student's mark. A missing status means "not selected" and is skipped."""
    student_id: str = Field(..., min_length=1, max_length=100)
    status: Optional[AttendanceStatus] = None
    note: str = ""


class AttendanceBulkSet(BaseModel):
    session_date: date
    entries: List[AttendanceEntry]


class AttendanceRecordResponse(BaseModel):
    id: UUID
    course_id: UUID
    student_id: str
    session_date: date
    status: AttendanceStatus
    note: str
    checked_by: Optional[UUID] = None
    checked_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceStats(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    total: int = 0
    rate: int = 0
