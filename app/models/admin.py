"""Domain 1: Administrators"""

from sqlalchemy import Column, String, Boolean

from app.models.base import BaseModel, CreatedByMixin, enum_column_type
from app.models.enums import AdminRole


class Admin(BaseModel, CreatedByMixin):
    """
    Academy administrator account.
    Superadmins can invite and delete admins and purge data.
    """
    __tablename__ = "admins"

    login_id = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False)
    role = Column(enum_column_type(AdminRole, "admin_role"), default=AdminRole.ADMIN, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def is_superadmin(self) -> bool:
        return self.role == AdminRole.SUPERADMIN

    def __repr__(self) -> str:
        return f"<Admin {self.login_id} ({self.role})>"
