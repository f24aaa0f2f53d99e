from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, Uuid, Index, CheckConstraint, text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SeasonScopedMixin, CreatedByMixin, enum_column_type
from app.models.enums import DayOfWeek, CourseCategory, CourseLevel, EnrollmentStatus


class Course(BaseModel, SeasonScopedMixin, CreatedByMixin):
    """
    Course offered in a season.
    `enrolled` counts approved enrollments and only moves through the
    conditional increment in EnrollmentService.approve.
    """
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_courses_capacity_positive"),
        CheckConstraint("enrolled >= 0 AND enrolled <= capacity", name="ck_courses_enrolled_within_capacity"),
    )

    title = Column(String(255), nullable=False)
    instructor = Column(String(100), nullable=False)
    category = Column(enum_column_type(CourseCategory, "course_category"), nullable=False, index=True)
    level = Column(enum_column_type(CourseLevel, "course_level"), nullable=False)
    room = Column(String(50), nullable=False, default="")
    capacity = Column(Integer, nullable=False)
    enrolled = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    season = relationship("Season", back_populates="courses")
    schedules = relationship(
        "CourseSchedule",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSchedule.position",
        passive_deletes=True,
    )

    @property
    def seats_left(self) -> int:
        return max(0, self.capacity - self.enrolled)

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.enrolled}/{self.capacity})>"


class CourseSchedule(BaseModel):
    """
    One weekly meeting of a course, in academy periods (1-12).
    """
    __tablename__ = "course_schedules"

    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    day = Column(enum_column_type(DayOfWeek, "day_of_week"), nullable=False)
    start_period = Column(Integer, nullable=False)
    end_period = Column(Integer, nullable=False)

    # Relationships
    course = relationship("Course", back_populates="schedules")

    def __repr__(self) -> str:
        return f"<CourseSchedule {self.day} {self.start_period}~{self.end_period}>"


class Enrollment(BaseModel):
    """
    A student's request to join a course.
    season_id is copied from the course at submission.
    """
    __tablename__ = "enrollments"
    __table_args__ = (
        # At most one pending/approved enrollment per (student, course)
        Index(
            "uq_enrollments_active_student_course",
            "student_id",
            "course_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'approved')"),
            sqlite_where=text("status IN ('pending', 'approved')"),
        ),
        Index("ix_enrollments_status_created_at", "status", "created_at"),
    )

    student_id = Column(String(100), nullable=False, index=True)
    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        enum_column_type(EnrollmentStatus, "enrollment_status"),
        default=EnrollmentStatus.PENDING,
        nullable=False,
    )
    decided_at = Column(DateTime, nullable=True)
    decided_by = Column(Uuid(as_uuid=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    course = relationship("Course")

    @property
    def is_active(self) -> bool:
        return self.status in (EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED)

    def __repr__(self) -> str:
        return f"<Enrollment {self.student_id} -> {self.course_id} ({self.status})>"
