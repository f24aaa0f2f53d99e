"""Domain 2: Seasons (academic terms)"""

from typing import Optional

from sqlalchemy import Column, String, Date, DateTime, Integer
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, CreatedByMixin, enum_column_type
from app.models.enums import SeasonState


class Season(BaseModel, CreatedByMixin):
    """
    Academic term. Scopes courses and enrollments.

    The lifecycle is a single closed state rather than independent flags,
    so a purged season is always an archived one. The stats snapshot is
    frozen at archival and outlives the purge of the season's data.
    """
    __tablename__ = "seasons"

    name = Column(String(100), nullable=False)  # e.g., "2026 Winter Intensive"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    state = Column(
        enum_column_type(SeasonState, "season_state"),
        default=SeasonState.ACTIVE,
        nullable=False,
        index=True,
    )
    archived_at = Column(DateTime, nullable=True)

    # Frozen at archival
    stats_total_courses = Column(Integer, nullable=True)
    stats_total_students = Column(Integer, nullable=True)
    stats_approved_enrollments = Column(Integer, nullable=True)

    courses = relationship("Course", back_populates="season", passive_deletes=True)

    @property
    def is_active(self) -> bool:
        """Visible to students"""
        return self.state == SeasonState.ACTIVE

    @property
    def is_archived(self) -> bool:
        return self.state in (SeasonState.ARCHIVED, SeasonState.PURGED)

    @property
    def data_deleted(self) -> bool:
        return self.state == SeasonState.PURGED

    @property
    def stats(self) -> Optional[dict]:
        if self.stats_total_courses is None:
            return None
        return {
            "total_courses": self.stats_total_courses,
            "total_students": self.stats_total_students,
            "approved_enrollments": self.stats_approved_enrollments,
        }

    def __repr__(self) -> str:
        return f"<Season {self.name} ({self.state})>"
