# API endpoints
from . import progress_reports, analytics

__all__ = ["progress_reports", "analytics"]
