from portal.services.report_store import ProgressReportStore
from portal.services.analytics_service import AnalyticsService

__all__ = [
    "ProgressReportStore",
    "AnalyticsService",
]
