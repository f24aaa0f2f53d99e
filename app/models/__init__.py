"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel, SeasonScopedMixin, CreatedByMixin
from app.models.enums import *
from app.models.admin import Admin
from app.models.season import Season
from app.models.academic import Course, CourseSchedule, Enrollment
from app.models.attendance import AttendanceRecord


__all__ = [
    # Base classes
    "BaseModel",
    "SeasonScopedMixin",
    "CreatedByMixin",

    # Enums
    "AdminRole",
    "SeasonState",
    "DayOfWeek",
    "CourseCategory",
    "CourseLevel",
    "EnrollmentStatus",
    "AttendanceStatus",

    # Administration
    "Admin",

    # Seasons
    "Season",

    # Academic
    "Course",
    "CourseSchedule",
    "Enrollment",

    # Attendance
    "AttendanceRecord",
]
