"""Admin accounts and collection resets against a real (SQLite) store."""

import pytest

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.core.security import Principal
from app.models.enums import AdminRole, EnrollmentStatus
from app.schemas.admin import AdminInvite
from app.services.admin_service import AdminService
from app.services.course_service import CourseService
from app.services.enrollment_service import EnrollmentService
from app.services.maintenance_service import MaintenanceService
from tests.conftest import SUPERADMIN_LOGIN, SUPERADMIN_PASSWORD, requires_db

pytestmark = requires_db


def _as_principal(admin):
    return Principal(admin_id=admin.id, role=admin.role)


def _invite(login_id="teacher1", role=AdminRole.ADMIN):
    return AdminInvite(login_id=login_id, password="Password123!", display_name="Teacher One", role=role)


@pytest.mark.asyncio
async def test_superadmin_bootstrap_and_login(db, superadmin):
    assert superadmin.role == AdminRole.SUPERADMIN
    assert await AdminService.authenticate(db, SUPERADMIN_LOGIN, SUPERADMIN_PASSWORD) is not None
    assert await AdminService.authenticate(db, SUPERADMIN_LOGIN, "wrong-password") is None
    assert await AdminService.authenticate(db, "nobody", SUPERADMIN_PASSWORD) is None


@pytest.mark.asyncio
async def test_ensure_superadmin_is_idempotent(db, superadmin):
    again = await AdminService.ensure_superadmin(db, SUPERADMIN_LOGIN, "AnotherPassword1")

    assert again.id == superadmin.id
    assert len(await AdminService.list_admins(db)) == 1
    assert await AdminService.authenticate(db, SUPERADMIN_LOGIN, "AnotherPassword1") is not None


@pytest.mark.asyncio
async def test_superadmin_invites_admin(db, superadmin):
    admin = await AdminService.invite_admin(db, _invite(), _as_principal(superadmin))

    assert admin.role == AdminRole.ADMIN
    assert admin.created_by == superadmin.id
    assert await AdminService.authenticate(db, "teacher1", "Password123!") is not None


@pytest.mark.asyncio
async def test_admin_cannot_invite(db, superadmin):
    admin = await AdminService.invite_admin(db, _invite(), _as_principal(superadmin))

    with pytest.raises(PermissionDeniedError):
        await AdminService.invite_admin(db, _invite("teacher2"), _as_principal(admin))


@pytest.mark.asyncio
async def test_login_id_must_be_unique(db, superadmin):
    await AdminService.invite_admin(db, _invite(), _as_principal(superadmin))

    with pytest.raises(ValidationError):
        await AdminService.invite_admin(db, _invite(), _as_principal(superadmin))


@pytest.mark.asyncio
async def test_delete_admin(db, superadmin):
    admin = await AdminService.invite_admin(db, _invite(), _as_principal(superadmin))

    with pytest.raises(ValidationError):
        await AdminService.delete_admin(db, superadmin.id, _as_principal(superadmin))
    with pytest.raises(PermissionDeniedError):
        await AdminService.delete_admin(db, superadmin.id, _as_principal(admin))

    await AdminService.delete_admin(db, admin.id, _as_principal(superadmin))
    assert [a.login_id for a in await AdminService.list_admins(db)] == [SUPERADMIN_LOGIN]


@pytest.mark.asyncio
async def test_reset_courses_takes_dependents_along(db, make_course, principal):
    course = await make_course()
    await EnrollmentService.submit(db, "s-001", course.id)

    preview = await MaintenanceService.reset_preview(db, "courses")
    assert preview == {"enrollments": 1, "attendance": 0, "courses": 1}

    deleted = await MaintenanceService.reset_collection(db, "courses", principal)

    assert deleted == {"enrollments": 1, "attendance": 0, "courses": 1}
    counts = await MaintenanceService.collection_counts(db)
    assert counts == {"enrollments": 0, "attendance": 0, "courses": 0, "seasons": 1}


@pytest.mark.asyncio
async def test_reset_all_keeps_admins(db, superadmin, make_course, principal):
    await make_course()

    deleted = await MaintenanceService.reset_all(db, principal)

    assert deleted["seasons"] == 1
    assert deleted["courses"] == 1
    assert len(await AdminService.list_admins(db)) == 1


@pytest.mark.asyncio
async def test_reset_unknown_collection(db, principal):
    with pytest.raises(ValidationError):
        await MaintenanceService.reset_preview(db, "students")


@pytest.mark.asyncio
async def test_reset_requires_superadmin(db, admin_principal):
    with pytest.raises(PermissionDeniedError):
        await MaintenanceService.reset_collection(db, "enrollments", admin_principal)


@pytest.mark.asyncio
async def test_reset_enrollments_frees_seats(db, make_course, principal):
    course = await make_course(capacity=1)
    first = await EnrollmentService.submit(db, "s-001", course.id)
    await EnrollmentService.approve(db, first.id, principal)

    deleted = await MaintenanceService.reset_collection(db, "enrollments", principal)

    assert deleted == {"enrollments": 1}
    assert (await CourseService.get_course(db, course.id)).enrolled == 0
    late = await EnrollmentService.submit(db, "s-002", course.id)
    approved = await EnrollmentService.approve(db, late.id, principal)
    assert approved.status == EnrollmentStatus.APPROVED
