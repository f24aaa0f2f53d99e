"""Integration tests: season to attendance through the HTTP API."""

import uuid

import pytest
from httpx import AsyncClient

from app.api.v1.endpoints.enrollments import pending_events
from app.services.spreadsheet_service import XLSX_MEDIA_TYPE
from tests.conftest import requires_db

pytestmark = requires_db


async def _create_season(client, api_base, headers):
    resp = await client.post(
        f"{api_base}/seasons",
        json={"name": "2026 Winter", "start_date": "2026-12-01", "end_date": "2027-02-28"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


async def _create_course(client, api_base, headers, season_id, capacity=2, title="Algebra II"):
    resp = await client.post(
        f"{api_base}/courses",
        json={
            "season_id": season_id,
            "title": title,
            "instructor": "Kim",
            "category": "math",
            "level": "advanced",
            "room": "301",
            "capacity": capacity,
            "schedules": [{"day": "Mon", "start_period": 1, "end_period": 2}],
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


async def _submit(client, api_base, student_id, course_ids):
    resp = await client.post(
        f"{api_base}/enrollments",
        json={"student_id": student_id, "course_ids": course_ids},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_enroll_approve_and_take_attendance(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    course_id = await _create_course(async_client, api_base, auth_headers, season_id)

    catalogue = await async_client.get(f"{api_base}/courses", params={"season_id": season_id})
    assert [c["id"] for c in catalogue.json()["data"]] == [course_id]

    submitted = await _submit(async_client, api_base, "s-001", [course_id])
    assert submitted["succeeded"] == 1
    enrollment_id = submitted["items"][0]["data"]["enrollment_id"]

    pending = await async_client.get(f"{api_base}/enrollments/pending", headers=auth_headers)
    assert [e["id"] for e in pending.json()["data"]] == [enrollment_id]

    approved = await async_client.post(f"{api_base}/enrollments/{enrollment_id}/approve", headers=auth_headers)
    assert approved.status_code == 200
    assert approved.json()["data"]["status"] == "approved"

    course = await async_client.get(f"{api_base}/courses/{course_id}")
    assert course.json()["data"]["enrolled"] == 1

    saved = await async_client.put(
        f"{api_base}/attendance/courses/{course_id}",
        json={"session_date": "2026-12-07", "entries": [{"student_id": "s-001", "status": "present"}]},
        headers=auth_headers,
    )
    assert saved.status_code == 200, saved.text

    day = await async_client.get(
        f"{api_base}/attendance/courses/{course_id}", params={"date": "2026-12-07"}, headers=auth_headers
    )
    assert [r["status"] for r in day.json()["data"]] == ["present"]

    stats = await async_client.get(f"{api_base}/attendance/courses/{course_id}/students/s-001/stats")
    assert stats.json()["data"]["rate"] == 100

    export = await async_client.get(f"{api_base}/attendance/courses/{course_id}/export", headers=auth_headers)
    assert export.status_code == 200
    assert export.headers["content-type"] == XLSX_MEDIA_TYPE

    mine = await async_client.get(f"{api_base}/enrollments/students/s-001")
    assert [e["status"] for e in mine.json()["data"]] == ["approved"]


@pytest.mark.asyncio
async def test_domain_errors_use_error_envelope(async_client: AsyncClient, api_base: str, auth_headers: dict):
    missing = await async_client.get(f"{api_base}/courses/{uuid.uuid4()}")
    assert missing.status_code == 404
    body = missing.json()
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"

    season_id = await _create_season(async_client, api_base, auth_headers)
    course_id = await _create_course(async_client, api_base, auth_headers, season_id)
    enrollment_id = (await _submit(async_client, api_base, "s-001", [course_id]))["items"][0]["data"]["enrollment_id"]
    await async_client.post(f"{api_base}/enrollments/{enrollment_id}/approve", headers=auth_headers)

    again = await async_client.post(f"{api_base}/enrollments/{enrollment_id}/approve", headers=auth_headers)
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "NOT_PENDING"

    duplicate = await _submit(async_client, api_base, "s-001", [course_id])
    assert duplicate["failed"] == 1
    assert duplicate["items"][0]["error_code"] == "DUPLICATE_ACTIVE_ENROLLMENT"


@pytest.mark.asyncio
async def test_schedule_conflict_is_a_400(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    resp = await async_client.post(
        f"{api_base}/courses",
        json={
            "season_id": season_id,
            "title": "Overlap",
            "instructor": "Kim",
            "category": "math",
            "level": "beginner",
            "capacity": 5,
            "schedules": [
                {"day": "Mon", "start_period": 1, "end_period": 2},
                {"day": "Mon", "start_period": 2, "end_period": 3},
            ],
        },
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "SCHEDULE_CONFLICT"
    assert resp.json()["error"]["context"]["slot_indices"] == [0, 1]


@pytest.mark.asyncio
async def test_batch_approve_over_capacity(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    course_id = await _create_course(async_client, api_base, auth_headers, season_id, capacity=2)
    ids = []
    for student_id in ("s-001", "s-002", "s-003"):
        submitted = await _submit(async_client, api_base, student_id, [course_id])
        ids.append(submitted["items"][0]["data"]["enrollment_id"])

    resp = await async_client.post(
        f"{api_base}/enrollments/batch-approve", json={"enrollment_ids": ids}, headers=auth_headers
    )

    data = resp.json()["data"]
    assert (data["succeeded"], data["failed"]) == (2, 1)
    assert data["items"][2]["error_code"] == "COURSE_FULL"


@pytest.mark.asyncio
async def test_purge_needs_exact_confirmation(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    course_id = await _create_course(async_client, api_base, auth_headers, season_id)
    await _submit(async_client, api_base, "s-001", [course_id])
    archived = await async_client.post(f"{api_base}/seasons/{season_id}/archive", headers=auth_headers)
    assert archived.json()["data"]["is_archived"] is True

    refused = await async_client.post(
        f"{api_base}/seasons/{season_id}/purge", json={"confirmation": "delete data"}, headers=auth_headers
    )
    assert refused.status_code == 200
    assert refused.json()["data"] == {
        "performed": False,
        "counts": {"courses": 1, "enrollments": 1, "attendance": 0},
    }
    assert (await async_client.get(f"{api_base}/courses/{course_id}")).status_code == 200

    purged = await async_client.post(
        f"{api_base}/seasons/{season_id}/purge", json={"confirmation": "DELETE DATA"}, headers=auth_headers
    )
    assert purged.json()["data"]["performed"] is True
    assert (await async_client.get(f"{api_base}/courses/{course_id}")).status_code == 404

    season = (await async_client.get(f"{api_base}/seasons/{season_id}", headers=auth_headers)).json()["data"]
    assert season["data_deleted"] is True
    assert season["stats"] == {"total_courses": 1, "total_students": 0, "approved_enrollments": 0}


@pytest.mark.asyncio
async def test_import_preview_and_commit(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    csv_content = (
        "강좌명,강사,시간,정원\n"
        "A,Kim,Mon 1~2,10\n"
        ",Lee,Tue 1~2,10\n"
        "C,Park,\"Mon 1~2, Mon 2~3\",10\n"
    ).encode("utf-8")

    preview = await async_client.post(
        f"{api_base}/courses/import/preview",
        files={"file": ("courses.csv", csv_content, "text/csv")},
        headers=auth_headers,
    )
    assert preview.status_code == 200, preview.text
    data = preview.json()["data"]
    assert [c["title"] for c in data["candidates"]] == ["A"]
    assert data["dropped_count"] == 2

    committed = await async_client.post(
        f"{api_base}/courses/import",
        json={"season_id": season_id, "candidates": data["candidates"]},
        headers=auth_headers,
    )
    assert committed.json()["data"]["succeeded"] == 1

    template = await async_client.get(f"{api_base}/courses/import/template", headers=auth_headers)
    assert template.headers["content-type"] == XLSX_MEDIA_TYPE


@pytest.mark.asyncio
async def test_import_rejects_unknown_file_type(async_client: AsyncClient, api_base: str, auth_headers: dict):
    resp = await async_client.post(
        f"{api_base}/courses/import/preview",
        files={"file": ("courses.txt", b"title\nA\n", "text/plain")},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_admin_only_routes(async_client: AsyncClient, api_base: str, auth_headers: dict):
    assert (await async_client.get(f"{api_base}/seasons")).status_code in (401, 403)

    await async_client.post(
        f"{api_base}/admins",
        json={"login_id": "teacher1", "password": "Password123!", "display_name": "Teacher One"},
        headers=auth_headers,
    )
    login = await async_client.post(
        f"{api_base}/auth/login", json={"login_id": "teacher1", "password": "Password123!"}
    )
    teacher_headers = {"Authorization": f"Bearer {login.json()['data']['access_token']}"}

    assert (await async_client.get(f"{api_base}/seasons", headers=teacher_headers)).status_code == 200
    resp = await async_client.post(
        f"{api_base}/maintenance/reset", json={"confirmation": "RESET"}, headers=teacher_headers
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_reset_needs_confirmation(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    await _create_course(async_client, api_base, auth_headers, season_id)

    refused = await async_client.post(
        f"{api_base}/maintenance/reset/courses", json={"confirmation": "reset"}, headers=auth_headers
    )
    assert refused.json()["data"]["performed"] is False
    assert refused.json()["data"]["counts"]["courses"] == 1

    done = await async_client.post(
        f"{api_base}/maintenance/reset/courses", json={"confirmation": "RESET"}, headers=auth_headers
    )
    assert done.json()["data"] == {
        "performed": True,
        "counts": {"enrollments": 0, "attendance": 0, "courses": 1},
    }


@pytest.mark.asyncio
async def test_student_withdraws_own_request(async_client: AsyncClient, api_base: str, auth_headers: dict):
    season_id = await _create_season(async_client, api_base, auth_headers)
    course_id = await _create_course(async_client, api_base, auth_headers, season_id)
    enrollment_id = (await _submit(async_client, api_base, "s-001", [course_id]))["items"][0]["data"]["enrollment_id"]

    other = await async_client.post(
        f"{api_base}/enrollments/{enrollment_id}/withdraw", json={"student_id": "s-002"}
    )
    assert other.status_code == 403
    assert other.json()["error"]["code"] == "PERMISSION_DENIED"

    resp = await async_client.post(
        f"{api_base}/enrollments/{enrollment_id}/withdraw", json={"student_id": "s-001"}
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["status"] == "cancelled"
    assert data["decided_by"] is None
    assert data["cancelled_at"] is not None

    again = await async_client.post(
        f"{api_base}/enrollments/{enrollment_id}/withdraw", json={"student_id": "s-001"}
    )
    assert again.status_code == 409


class _ConnectedRequest:
    async def is_disconnected(self) -> bool:
        return False


@pytest.mark.asyncio
async def test_pending_stream_sends_current_list(session_factory):
    events = pending_events(_ConnectedRequest())

    first = await events.__anext__()
    await events.aclose()

    assert first == "event: pending\ndata: []\n\n"
