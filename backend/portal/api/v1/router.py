from fastapi import APIRouter
from portal.api.v1.endpoints import progress_reports, analytics

api_router = APIRouter()

api_router.include_router(progress_reports.router)
api_router.include_router(analytics.router)


# Simple health check endpoint for load balancer
@api_router.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "service": "progress-portal"}
