"""initial academy schema: admins, seasons, courses, schedules, enrollments, attendance

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None

ADMIN_ROLE = sa.Enum("admin", "superadmin", name="admin_role")
SEASON_STATE = sa.Enum("active", "inactive", "archived", "purged", name="season_state")
DAY_OF_WEEK = sa.Enum("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun", name="day_of_week")
COURSE_CATEGORY = sa.Enum(
    "korean", "math", "english", "science", "social", "math_essay", "humanities_essay",
    name="course_category",
)
COURSE_LEVEL = sa.Enum("beginner", "intermediate", "advanced", "practice", name="course_level")
ENROLLMENT_STATUS = sa.Enum("pending", "approved", "rejected", "cancelled", name="enrollment_status")
ATTENDANCE_STATUS = sa.Enum("present", "absent", "late", "excused", name="attendance_status")

ACTIVE_ENROLLMENT = sa.text("status IN ('pending', 'approved')")


def _base_columns():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "admins",
        *_base_columns(),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("login_id", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", ADMIN_ROLE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_id"), "admins", ["id"], unique=False)
    op.create_index(op.f("ix_admins_login_id"), "admins", ["login_id"], unique=True)

    op.create_table(
        "seasons",
        *_base_columns(),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("state", SEASON_STATE, nullable=False),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
        sa.Column("stats_total_courses", sa.Integer(), nullable=True),
        sa.Column("stats_total_students", sa.Integer(), nullable=True),
        sa.Column("stats_approved_enrollments", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_seasons_id"), "seasons", ["id"], unique=False)
    op.create_index(op.f("ix_seasons_state"), "seasons", ["state"], unique=False)

    op.create_table(
        "courses",
        *_base_columns(),
        sa.Column("season_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("instructor", sa.String(100), nullable=False),
        sa.Column("category", COURSE_CATEGORY, nullable=False),
        sa.Column("level", COURSE_LEVEL, nullable=False),
        sa.Column("room", sa.String(50), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("enrolled", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.CheckConstraint("capacity > 0", name="ck_courses_capacity_positive"),
        sa.CheckConstraint("enrolled >= 0 AND enrolled <= capacity", name="ck_courses_enrolled_within_capacity"),
        sa.ForeignKeyConstraint(["season_id"], ["seasons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_courses_id"), "courses", ["id"], unique=False)
    op.create_index(op.f("ix_courses_season_id"), "courses", ["season_id"], unique=False)
    op.create_index(op.f("ix_courses_category"), "courses", ["category"], unique=False)
    op.create_index(op.f("ix_courses_is_active"), "courses", ["is_active"], unique=False)

    op.create_table(
        "course_schedules",
        *_base_columns(),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("day", DAY_OF_WEEK, nullable=False),
        sa.Column("start_period", sa.Integer(), nullable=False),
        sa.Column("end_period", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_course_schedules_id"), "course_schedules", ["id"], unique=False)
    op.create_index(op.f("ix_course_schedules_course_id"), "course_schedules", ["course_id"], unique=False)

    op.create_table(
        "enrollments",
        *_base_columns(),
        sa.Column("student_id", sa.String(100), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("season_id", sa.Uuid(), nullable=False),
        sa.Column("status", ENROLLMENT_STATUS, nullable=False),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.Column("decided_by", sa.Uuid(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["season_id"], ["seasons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_enrollments_id"), "enrollments", ["id"], unique=False)
    op.create_index(op.f("ix_enrollments_student_id"), "enrollments", ["student_id"], unique=False)
    op.create_index(op.f("ix_enrollments_course_id"), "enrollments", ["course_id"], unique=False)
    op.create_index(op.f("ix_enrollments_season_id"), "enrollments", ["season_id"], unique=False)
    op.create_index("ix_enrollments_status_created_at", "enrollments", ["status", "created_at"], unique=False)
    op.create_index(
        "uq_enrollments_active_student_course",
        "enrollments",
        ["student_id", "course_id"],
        unique=True,
        postgresql_where=ACTIVE_ENROLLMENT,
        sqlite_where=ACTIVE_ENROLLMENT,
    )

    op.create_table(
        "attendance_records",
        *_base_columns(),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.String(100), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("status", ATTENDANCE_STATUS, nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("checked_by", sa.Uuid(), nullable=True),
        sa.Column("checked_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("course_id", "student_id", "session_date", name="uq_attendance_course_student_date"),
    )
    op.create_index(op.f("ix_attendance_records_id"), "attendance_records", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_records_course_id"), "attendance_records", ["course_id"], unique=False)
    op.create_index(op.f("ix_attendance_records_student_id"), "attendance_records", ["student_id"], unique=False)
    op.create_index(op.f("ix_attendance_records_session_date"), "attendance_records", ["session_date"], unique=False)


def downgrade() -> None:
    op.drop_table("attendance_records")
    op.drop_index("uq_enrollments_active_student_course", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_table("course_schedules")
    op.drop_table("courses")
    op.drop_table("seasons")
    op.drop_table("admins")

    bind = op.get_bind()
    for enum_type in (
        ATTENDANCE_STATUS, ENROLLMENT_STATUS, COURSE_LEVEL, COURSE_CATEGORY,
        DAY_OF_WEEK, SEASON_STATE, ADMIN_ROLE,
    ):
        enum_type.drop(bind, checkfirst=True)
