"""
Admin API endpoints for QRShield.

Includes:
- Reference list inspection
- Metrics and monitoring
"""

from fastapi import APIRouter, Depends

from qrshield.api.security import verify_api_token
from qrshield.schemas.analysis_schemas import ListCheckResponse, ListStatsResponse
from qrshield.services.lists_service import default_lists
from qrshield.utils.logging_config import metrics


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(verify_api_token)],
)


# ============== REFERENCE LISTS ==============


@router.get("/lists")
async def get_lists():
    """Return the reference lists the analyzer is running with."""
    return default_lists.as_dict()


@router.get("/lists/stats", response_model=ListStatsResponse)
async def get_lists_stats():
    """Get sizes of the reference lists."""
    return default_lists.get_stats()


@router.get("/lists/check", response_model=ListCheckResponse)
async def check_url(url: str):
    """Check which reference list, if any, a URL's host belongs to."""
    result = default_lists.check_host(url)
    return ListCheckResponse(
        url=url,
        hostname=result.hostname,
        matched=result.matched,
        list_type=result.list_type.value if result.list_type else None,
        pattern=result.pattern,
    )


# ============== METRICS ==============


@router.get("/metrics")
async def get_metrics():
    """Get current application metrics."""
    return metrics.get_stats()


@router.post("/metrics/reset")
async def reset_metrics():
    """Reset all metrics (use with caution)."""
    metrics.reset()
    return {"message": "Metrics reset"}
