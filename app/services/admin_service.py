"""Admin Service - administrator accounts and authentication"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import Principal, check_superadmin, get_password_hash, verify_password
from app.models.admin import Admin
from app.models.enums import AdminRole
from app.schemas.admin import AdminInvite

logger = logging.getLogger(__name__)


class AdminService:
    @staticmethod
    async def get_by_login_id(db: AsyncSession, login_id: str) -> Optional[Admin]:
        result = await db.execute(select(Admin).where(Admin.login_id == login_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_admin(db: AsyncSession, admin_id: UUID) -> Admin:
        admin = await db.get(Admin, admin_id)
        if admin is None:
            raise NotFoundError(f"Admin {admin_id} not found", admin_id=str(admin_id))
        return admin

    @staticmethod
    async def list_admins(db: AsyncSession) -> List[Admin]:
        result = await db.execute(select(Admin).order_by(Admin.created_at.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def authenticate(db: AsyncSession, login_id: str, password: str) -> Optional[Admin]:
        """
        Authenticate an admin by login id and password.

        Returns:
            Admin if authenticated, None otherwise
        """
        admin = await AdminService.get_by_login_id(db, (login_id or "").strip())
        if not admin:
            return None
        if not verify_password(password, admin.hashed_password):
            return None
        if not admin.is_active:
            return None
        return admin

    @staticmethod
    async def invite_admin(db: AsyncSession, data: AdminInvite, actor: Principal) -> Admin:
        """
        Create another admin account.

        Raises:
            PermissionDeniedError: caller is not a superadmin
            ValidationError: login id already taken
        """
        check_superadmin(actor, "invite admins")
        login_id = data.login_id.strip()
        if await AdminService.get_by_login_id(db, login_id):
            raise ValidationError(f"Login id {login_id} is already in use", login_id=login_id)

        admin = Admin(
            login_id=login_id,
            hashed_password=get_password_hash(data.password),
            display_name=data.display_name.strip(),
            role=data.role,
            is_active=True,
            created_by=actor.admin_id,
        )
        db.add(admin)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationError(f"Login id {login_id} is already in use", login_id=login_id)
        await db.refresh(admin)

        logger.info(
            "Admin invited",
            extra={"new_admin_id": str(admin.id), "role": admin.role.value, "admin_id": actor.admin_id},
        )
        return admin

    @staticmethod
    async def delete_admin(db: AsyncSession, admin_id: UUID, actor: Principal) -> None:
        check_superadmin(actor, "delete admins")
        if admin_id == actor.admin_id:
            raise ValidationError("You cannot delete your own account")
        admin = await AdminService.get_admin(db, admin_id)
        await db.delete(admin)
        await db.commit()
        logger.info("Admin deleted", extra={"deleted_admin_id": str(admin_id), "admin_id": actor.admin_id})

    @staticmethod
    async def ensure_superadmin(
        db: AsyncSession,
        login_id: str,
        password: str,
        display_name: str = "Superadmin",
    ) -> Admin:
        """Create the bootstrap superadmin, or promote and re-key an existing login."""
        admin = await AdminService.get_by_login_id(db, login_id)
        if admin is None:
            admin = Admin(login_id=login_id, display_name=display_name)
            db.add(admin)
        admin.hashed_password = get_password_hash(password)
        admin.role = AdminRole.SUPERADMIN
        admin.is_active = True
        await db.commit()
        await db.refresh(admin)
        logger.info("Superadmin ensured", extra={"login_id": login_id})
        return admin
