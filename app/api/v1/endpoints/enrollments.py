import asyncio
import json
from typing import Any, AsyncIterator, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.v1.endpoints.courses import xlsx_response
from app.config import settings
from app.core.rate_limit import limiter
from app.core.security import Principal
from app.models.enums import EnrollmentStatus
from app.services.course_service import CourseService
from app.services.enrollment_service import EnrollmentService
from app.services.pending_feed import pending_feed
from app.services.spreadsheet_service import ENROLLMENT_EXPORT_COLUMNS, SpreadsheetService
from app.schemas.academic import (
    EnrollmentBatchApprove, EnrollmentReject, EnrollmentResponse, EnrollmentSubmit, EnrollmentWithdraw
)
from app.schemas.responses import BatchResult, SuccessResponse

router = APIRouter()


@router.post("", response_model=SuccessResponse[BatchResult])
@limiter.limit(settings.RATE_LIMIT_SUBMIT)
async def submit_enrollments(
    request: Request,
    submit_in: EnrollmentSubmit,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Student submits a cart. One pending request per course; each course
    succeeds or fails on its own.
    """
    results = await EnrollmentService.submit_many(db, submit_in.student_id, submit_in.course_ids)
    return SuccessResponse(
        data=results,
        message=f"{results.succeeded} requests submitted, {results.failed} failed"
    )


@router.get("", response_model=SuccessResponse[List[EnrollmentResponse]])
async def list_enrollments(
    season_id: Optional[UUID] = None,
    status: Optional[EnrollmentStatus] = None,
    course_id: Optional[UUID] = None,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    enrollments = await EnrollmentService.list_enrollments(
        db, season_id=season_id, status=status, course_id=course_id
    )
    return SuccessResponse(data=enrollments)


@router.get("/pending", response_model=SuccessResponse[List[EnrollmentResponse]])
async def list_pending(
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Pending requests across all courses, oldest first.
    """
    enrollments = await EnrollmentService.list_pending(db)
    return SuccessResponse(data=enrollments)


async def pending_events(request: Request) -> AsyncIterator[str]:
    """Server-sent events: one `pending` event per snapshot, comments as keepalive."""
    subscription = await pending_feed.subscribe()
    try:
        while not await request.is_disconnected():
            try:
                snapshot = await asyncio.wait_for(
                    subscription.__anext__(), timeout=settings.PENDING_FEED_KEEPALIVE_SECONDS
                )
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            except StopAsyncIteration:
                break
            yield f"event: pending\ndata: {json.dumps(snapshot, ensure_ascii=False)}\n\n"
    finally:
        subscription.cancel()


@router.get("/pending/stream")
async def stream_pending(
    request: Request,
    principal: Principal = Depends(deps.get_current_principal)
) -> Any:
    """
    Live pending list. The full list is re-sent after every enrollment change.
    """
    return StreamingResponse(
        pending_events(request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/export")
async def export_enrollments(
    season_id: Optional[UUID] = None,
    status: Optional[EnrollmentStatus] = None,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    enrollments = await EnrollmentService.list_enrollments(db, season_id=season_id, status=status)
    titles = {
        course.id: course.title
        for course in await CourseService.list_courses(db, season_id=season_id)
    }
    rows = [
        {
            "student_id": enrollment.student_id,
            "course": titles.get(enrollment.course_id, ""),
            "status": enrollment.status,
            "created_at": enrollment.created_at,
            "decided_at": enrollment.decided_at,
            "rejection_reason": enrollment.rejection_reason,
        }
        for enrollment in enrollments
    ]
    content = SpreadsheetService.export_rows(rows, ENROLLMENT_EXPORT_COLUMNS, sheet_name="enrollments")
    return xlsx_response(content, "enrollments")


@router.post("/batch-approve", response_model=SuccessResponse[BatchResult])
async def batch_approve(
    batch_in: EnrollmentBatchApprove,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Approve several requests in order. Approvals that went through are kept
    even when later ones fail.
    """
    results = await EnrollmentService.batch_approve(db, batch_in.enrollment_ids, principal)
    return SuccessResponse(
        data=results,
        message=f"{results.succeeded} approved, {results.failed} failed"
    )


@router.get("/students/{student_id}", response_model=SuccessResponse[List[EnrollmentResponse]])
async def list_student_enrollments(
    student_id: str,
    active_only: bool = False,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    A student's own requests, newest first.
    """
    enrollments = await EnrollmentService.list_for_student(db, student_id, active_only=active_only)
    return SuccessResponse(data=enrollments)


@router.get("/courses/{course_id}", response_model=SuccessResponse[List[EnrollmentResponse]])
async def course_roster(
    course_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Pending and approved requests for one course, oldest first.
    """
    await CourseService.get_course(db, course_id)
    enrollments = await EnrollmentService.list_by_course(db, course_id)
    return SuccessResponse(data=enrollments)


@router.post("/{enrollment_id}/approve", response_model=SuccessResponse[EnrollmentResponse])
async def approve_enrollment(
    enrollment_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    enrollment = await EnrollmentService.approve(db, enrollment_id, principal)
    return SuccessResponse(data=enrollment, message="Enrollment approved")


@router.post("/{enrollment_id}/reject", response_model=SuccessResponse[EnrollmentResponse])
async def reject_enrollment(
    enrollment_id: UUID,
    reject_in: EnrollmentReject,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    enrollment = await EnrollmentService.reject(db, enrollment_id, principal, reject_in.reason)
    return SuccessResponse(data=enrollment, message="Enrollment rejected")


@router.post("/{enrollment_id}/cancel", response_model=SuccessResponse[EnrollmentResponse])
async def cancel_enrollment(
    enrollment_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    enrollment = await EnrollmentService.cancel(db, enrollment_id, principal)
    return SuccessResponse(data=enrollment, message="Enrollment cancelled")


@router.post("/{enrollment_id}/withdraw", response_model=SuccessResponse[EnrollmentResponse])
@limiter.limit(settings.RATE_LIMIT_SUBMIT)
async def withdraw_enrollment(
    request: Request,
    enrollment_id: UUID,
    withdraw_in: EnrollmentWithdraw,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Student withdraws their own pending request.
    """
    enrollment = await EnrollmentService.withdraw(db, enrollment_id, withdraw_in.student_id)
    return SuccessResponse(data=enrollment, message="Enrollment withdrawn")
