from datetime import date
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.v1.endpoints.courses import xlsx_response
from app.core.security import Principal
from app.services.attendance_service import AttendanceService
from app.services.course_service import CourseService
from app.services.spreadsheet_service import ATTENDANCE_EXPORT_COLUMNS, SpreadsheetService
from app.schemas.attendance import AttendanceBulkSet, AttendanceRecordResponse, AttendanceStats
from app.schemas.responses import SuccessResponse

router = APIRouter()


@router.get("/courses/{course_id}", response_model=SuccessResponse[List[AttendanceRecordResponse]])
async def get_attendance(
    course_id: UUID,
    session_date: date = Query(..., alias="date"),
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Recorded marks for one session. Students without a mark are not listed.
    """
    records = await AttendanceService.get_for_date(db, course_id, session_date)
    return SuccessResponse(data=records)


@router.put("/courses/{course_id}", response_model=SuccessResponse[List[AttendanceRecordResponse]])
async def save_attendance(
    course_id: UUID,
    attendance_in: AttendanceBulkSet,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Save a session's marks at once. Entries without a status are skipped.
    """
    records = await AttendanceService.bulk_set(
        db, course_id, attendance_in.session_date, attendance_in.entries, principal
    )
    return SuccessResponse(data=records, message="Attendance saved")


@router.get("/courses/{course_id}/stats", response_model=SuccessResponse[AttendanceStats])
async def course_stats(
    course_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    await CourseService.get_course(db, course_id)
    stats = await AttendanceService.stats(db, course_id)
    return SuccessResponse(data=stats)


@router.get("/courses/{course_id}/students/{student_id}/stats", response_model=SuccessResponse[AttendanceStats])
async def student_stats(
    course_id: UUID,
    student_id: str,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    One student's attendance in a course. Open to the student.
    """
    stats = await AttendanceService.student_stats(db, course_id, student_id)
    return SuccessResponse(data=stats)


@router.get("/courses/{course_id}/dates", response_model=SuccessResponse[List[date]])
async def recorded_dates(
    course_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    dates = await AttendanceService.recorded_dates(db, course_id)
    return SuccessResponse(data=dates)


@router.get("/courses/{course_id}/export")
async def export_attendance(
    course_id: UUID,
    student_id: Optional[str] = None,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    await CourseService.get_course(db, course_id)
    records = await AttendanceService.course_records(db, course_id, student_id=student_id)
    rows = [
        {
            "number": number,
            "student_id": record.student_id,
            "session_date": record.session_date,
            "status": record.status,
            "note": record.note,
        }
        for number, record in enumerate(records, start=1)
    ]
    content = SpreadsheetService.export_rows(rows, ATTENDANCE_EXPORT_COLUMNS, sheet_name="attendance")
    return xlsx_response(content, "attendance")
