from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.security import Principal
from app.services.course_service import CourseService
from app.services.import_service import ImportService, format_schedule
from app.services.spreadsheet_service import (
    COURSE_EXPORT_COLUMNS, COURSE_TEMPLATE_COLUMNS, XLSX_MEDIA_TYPE, SpreadsheetService
)
from app.schemas.academic import CourseCreate, CourseResponse, CourseSelection, CourseUpdate
from app.schemas.imports import ImportCommit, ImportPreview
from app.schemas.responses import BatchResult, SuccessResponse
from app.utils.time import get_utc_now

router = APIRouter()


def xlsx_response(content: bytes, filename: str) -> Response:
    stamp = get_utc_now().date().isoformat()
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}_{stamp}.xlsx"'},
    )


@router.get("", response_model=SuccessResponse[List[CourseResponse]])
async def list_courses(
    season_id: Optional[UUID] = None,
    active_only: bool = False,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Course catalogue, newest first. Open to students.
    """
    courses = await CourseService.list_courses(db, season_id=season_id, active_only=active_only)
    return SuccessResponse(data=courses)


@router.post("", response_model=SuccessResponse[CourseResponse])
async def create_course(
    course_in: CourseCreate,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    course = await CourseService.create_course(db, course_in.season_id, course_in, principal)
    return SuccessResponse(data=course, message="Course created successfully")


@router.post("/conflicts", response_model=SuccessResponse[Dict[str, List[str]]])
async def check_conflicts(
    selection: CourseSelection,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Timetable clashes within a student's selection, keyed by course id.
    """
    clashes = await CourseService.cart_conflicts(db, selection.course_ids)
    return SuccessResponse(data=clashes)


@router.get("/export")
async def export_courses(
    season_id: Optional[UUID] = None,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    courses = await CourseService.list_courses(db, season_id=season_id)
    rows = [
        {
            "title": course.title,
            "instructor": course.instructor,
            "category": course.category,
            "level": course.level,
            "schedule": format_schedule(course.schedules),
            "room": course.room,
            "capacity": course.capacity,
            "enrolled": course.enrolled,
        }
        for course in courses
    ]
    content = SpreadsheetService.export_rows(rows, COURSE_EXPORT_COLUMNS, sheet_name="courses")
    return xlsx_response(content, "courses")


@router.get("/import/template")
async def download_import_template(
    principal: Principal = Depends(deps.get_current_principal)
) -> Any:
    content = SpreadsheetService.template(COURSE_TEMPLATE_COLUMNS)
    return xlsx_response(content, "course_import_template")


@router.post("/import/preview", response_model=SuccessResponse[ImportPreview])
async def preview_import(
    file: UploadFile = File(...),
    principal: Principal = Depends(deps.get_current_principal)
) -> Any:
    """
    Parse an uploaded .xlsx/.csv into course candidates without saving anything.
    Dropped rows are listed with their row number and reason.
    """
    content = await file.read()
    rows = SpreadsheetService.parse_file(content, file.filename or "")
    preview = ImportService.normalize_rows(rows)
    return SuccessResponse(
        data=preview,
        message=f"{len(preview.candidates)} courses ready, {preview.dropped_count} rows dropped"
    )


@router.post("/import", response_model=SuccessResponse[BatchResult])
async def commit_import(
    import_in: ImportCommit,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Create the previewed candidates in a season. Each course succeeds or fails on its own.
    """
    results = await ImportService.create_many(db, import_in.candidates, import_in.season_id, principal)
    return SuccessResponse(
        data=results,
        message=f"{results.succeeded} courses created, {results.failed} failed"
    )


@router.get("/{course_id}", response_model=SuccessResponse[CourseResponse])
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    course = await CourseService.get_course(db, course_id)
    return SuccessResponse(data=course)


@router.patch("/{course_id}", response_model=SuccessResponse[CourseResponse])
async def update_course(
    course_id: UUID,
    course_in: CourseUpdate,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    course = await CourseService.update_course(db, course_id, course_in, principal)
    return SuccessResponse(data=course, message="Course updated successfully")


@router.delete("/{course_id}", response_model=SuccessResponse)
async def delete_course(
    course_id: UUID,
    principal: Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Delete a course together with its enrollments and attendance.
    """
    counts = await CourseService.delete_course(db, course_id, principal)
    return SuccessResponse(data=counts, message="Course deleted")
