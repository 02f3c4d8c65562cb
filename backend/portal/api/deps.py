"""
Shared FastAPI dependencies
"""

from fastapi import Depends, Request

from portal.core.config import settings
from portal.services.report_store import ProgressReportStore
from portal.services.analytics_service import AnalyticsService


def get_report_store(request: Request) -> ProgressReportStore:
    """Store created in the application lifespan"""
    return request.app.state.report_store


def get_analytics_service(
    store: ProgressReportStore = Depends(get_report_store),
) -> AnalyticsService:
    return AnalyticsService(store, slow_threshold_ms=settings.ANALYTICS_SLOW_THRESHOLD_MS)
