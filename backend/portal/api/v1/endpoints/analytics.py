"""
Analytics API - read-only rollups over every stored report
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from portal.api.deps import get_analytics_service
from portal.core.config import settings
from portal.schemas.progress_report import ProgramSearchParams
from portal.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("")
async def get_analytics(service: AnalyticsService = Depends(get_analytics_service)):
    """Portal-wide totals and distributions, recomputed on every call"""
    return {"success": True, "data": await service.get_analytics()}


@router.get("/financial")
async def get_financial_analytics(
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: AnalyticsService = Depends(get_analytics_service),
):
    top_n = limit or settings.TOP_SPENDING_COLLEGES_LIMIT
    return {"success": True, "data": await service.get_financial_analytics(top_n=top_n)}


@router.get("/programs/search")
async def search_programs(
    institution: Optional[str] = None,
    level: Optional[str] = None,
    programName: Optional[str] = None,
    minStudents: Optional[int] = Query(None, ge=0),
    minPassPercentage: Optional[float] = Query(None, ge=0, le=100),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Flattened program rows matching every given criterion"""
    params = ProgramSearchParams(
        institution=institution,
        level=level,
        programName=programName,
        minStudents=minStudents,
        minPassPercentage=minPassPercentage,
    )
    results = await service.search_programs(params.model_dump(exclude_none=True))
    return {"success": True, "data": results, "count": len(results)}
