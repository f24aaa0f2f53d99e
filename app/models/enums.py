"""Centralized Enum Definitions"""

import enum


# Domain 1: Administration
class AdminRole(str, enum.Enum):
    """Administrator roles; superadmin may manage admins and purge data"""
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


# Domain 2: Seasons
class SeasonState(str, enum.Enum):
    """
    Season lifecycle.

    active <-> inactive until archived; archived -> purged is one-way.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"
    PURGED = "purged"


# Domain 3: Courses
class DayOfWeek(str, enum.Enum):
    """Days of the week for schedule slots"""
    MONDAY = "Mon"
    TUESDAY = "Tue"
    WEDNESDAY = "Wed"
    THURSDAY = "Thu"
    FRIDAY = "Fri"
    SATURDAY = "Sat"
    SUNDAY = "Sun"


class CourseCategory(str, enum.Enum):
    """Exam-prep subject areas"""
    KOREAN = "korean"
    MATH = "math"
    ENGLISH = "english"
    SCIENCE = "science"
    SOCIAL = "social"
    MATH_ESSAY = "math_essay"
    HUMANITIES_ESSAY = "humanities_essay"


class CourseLevel(str, enum.Enum):
    """Course difficulty"""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PRACTICE = "practice"


# Domain 4: Enrollment
class EnrollmentStatus(str, enum.Enum):
    """Enrollment request status; everything but pending is terminal"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ACTIVE_ENROLLMENT_STATUSES = (EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED)


# Domain 5: Attendance
class AttendanceStatus(str, enum.Enum):
    """Per-session attendance status"""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
