"""Domain 5: Attendance"""

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Uuid, UniqueConstraint, Text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, enum_column_type
from app.models.enums import AttendanceStatus
from app.utils.time import get_utc_now


class AttendanceRecord(BaseModel):
    """
    Attendance of one student at one session of a course.
    No row means "not recorded", which is different from absent.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("course_id", "student_id", "session_date", name="uq_attendance_course_student_date"),
    )

    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(100), nullable=False, index=True)
    session_date = Column(Date, nullable=False, index=True)
    status = Column(enum_column_type(AttendanceStatus, "attendance_status"), nullable=False)
    note = Column(Text, nullable=False, default="")
    checked_by = Column(Uuid(as_uuid=True), nullable=True)
    checked_at = Column(DateTime, default=get_utc_now, nullable=False)

    course = relationship("Course")

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.student_id} {self.session_date} {self.status}>"
