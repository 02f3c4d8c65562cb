"""
Progress Reports API - CRUD over the report collection

Endpoints for:
- Listing and filtering reports (paginated)
- Creating, updating and deleting reports
- Program sub-mutations keyed by institution / level / programName
- Per-category financial updates and attachment references
- CSV export
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from portal.api.deps import get_report_store, get_analytics_service
from portal.core.config import settings
from portal.core.exceptions import (
    ReportNotFoundError,
    CollegeReportsNotFoundError,
    NoDataToExportError,
)
from portal.core.logging_config import logger
from portal.schemas.progress_report import (
    ReportCreate,
    ReportUpdate,
    ProgramInput,
    ProgramUpdate,
    FinancialCategoryUpdate,
    FinancialAttachmentsInput,
)
from portal.services.analytics_service import AnalyticsService
from portal.services.report_export import build_reports_csv, export_filename
from portal.services.report_store import ProgressReportStore
from portal.utils.pagination import paginate

router = APIRouter(prefix="/reports", tags=["Progress Reports"])


def _success(data: Any, message: Optional[str] = None, count: Optional[int] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if count is not None:
        body["count"] = count
    if message:
        body["message"] = message
    return body


def _program_key(
    institution: str = Query(..., min_length=1),
    level: str = Query(..., min_length=1),
    programName: str = Query(..., min_length=1),
):
    return (institution, level, programName)


# ==================== READS ====================

@router.get("")
async def list_reports(
    collegeId: Optional[str] = None,
    academicYear: Optional[str] = None,
    programName: Optional[str] = None,
    institution: Optional[str] = None,
    level: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    store: ProgressReportStore = Depends(get_report_store),
):
    """List reports; every given filter must match"""
    filters = [
        (collegeId, store.get_by_college),
        (academicYear, store.get_by_academic_year),
        (programName, store.get_by_program_name),
        (institution, store.get_by_institution),
        (level, store.get_by_level),
    ]

    reports: Optional[List[Dict[str, Any]]] = None
    for value, lookup in filters:
        if not value:
            continue
        matches = await lookup(value)
        if reports is None:
            reports = matches
        else:
            ids = {r.get("id") for r in matches}
            reports = [r for r in reports if r.get("id") in ids]

    if reports is None:
        reports = await store.get_all()

    result = paginate(reports, page, page_size, max_page_size=settings.MAX_PAGE_SIZE)
    body = _success(result.pop("items"), count=result["total"])
    body["pagination"] = result
    return body


@router.get("/export/csv")
async def export_reports_csv(store: ProgressReportStore = Depends(get_report_store)):
    """Export all reports to CSV, one row per program"""
    reports = await store.get_all()
    if not reports:
        raise NoDataToExportError()

    logger.info(f"[Reports] Exporting {len(reports)} reports to CSV")
    return StreamingResponse(
        iter([build_reports_csv(reports)]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"}
    )


@router.get("/college/{college_id}")
async def get_college_reports(
    college_id: str,
    store: ProgressReportStore = Depends(get_report_store),
):
    reports = await store.get_by_college(college_id)
    return _success(reports, count=len(reports))


@router.get("/college/{college_id}/summary")
async def get_college_summary(
    college_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Latest report of a college, rolled up by institution and level"""
    summary = await service.get_college_summary(college_id)
    if summary is None:
        raise CollegeReportsNotFoundError(college_id)
    return _success(summary)


@router.get("/year/{academic_year:path}")
async def get_year_reports(
    academic_year: str,
    store: ProgressReportStore = Depends(get_report_store),
):
    reports = await store.get_by_academic_year(academic_year)
    return _success(reports, count=len(reports))


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.get_by_id(report_id)
    if report is None:
        raise ReportNotFoundError(report_id)
    return _success(report)


# ==================== WRITES ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.create(payload.model_dump(exclude_unset=True))
    return _success(report, message="Progress report created successfully")


@router.put("/{report_id}")
async def update_report(
    report_id: str,
    payload: ReportUpdate,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.update(report_id, payload.model_dump(exclude_unset=True))
    return _success(report, message="Progress report updated successfully")


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    store: ProgressReportStore = Depends(get_report_store),
):
    await store.delete(report_id)
    return _success({"id": report_id}, message="Progress report deleted successfully")


@router.post("/{report_id}/programs", status_code=status.HTTP_201_CREATED)
async def add_program(
    report_id: str,
    payload: ProgramInput,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.add_program(report_id, payload.model_dump(exclude_unset=True))
    return _success(report, message="Program added successfully")


@router.patch("/{report_id}/programs")
async def update_program(
    report_id: str,
    payload: ProgramUpdate,
    key: tuple = Depends(_program_key),
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.update_program(report_id, key, payload.model_dump(exclude_unset=True))
    return _success(report, message="Program updated successfully")


@router.delete("/{report_id}/programs")
async def remove_program(
    report_id: str,
    key: tuple = Depends(_program_key),
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.remove_program(report_id, key)
    return _success(report, message="Program removed successfully")


@router.patch("/{report_id}/financial/attachments")
async def update_financial_attachments(
    report_id: str,
    payload: FinancialAttachmentsInput,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.update_financial_attachments(
        report_id, payload.model_dump(exclude_unset=True)
    )
    return _success(report, message="Financial attachments updated successfully")


@router.patch("/{report_id}/financial/{category}")
async def update_financial_category(
    report_id: str,
    category: str,
    payload: FinancialCategoryUpdate,
    store: ProgressReportStore = Depends(get_report_store),
):
    report = await store.update_financial_category(
        report_id, category, payload.model_dump(exclude_unset=True)
    )
    return _success(report, message=f"Financial {category} updated successfully")
