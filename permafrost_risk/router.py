"""
router.py — FastAPI router for the dashboard, region metrics and high-risk endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from permafrost_risk.dashboard_service import (
    build_dashboard,
    get_high_risk_hotspots,
    get_region_metrics,
)
from permafrost_risk.errors import UnknownRegionError
from permafrost_risk.schemas import DashboardResponse, HighRiskResponse, RegionMetricsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Permafrost Risk"])

NO_STORE = "no-store, max-age=0"


def _cache(request: Request):
    return getattr(request.app.state, "response_cache", None)


@router.get("/transparent-dashboard", response_model=DashboardResponse)
async def transparent_dashboard(request: Request, response: Response):
    """
    Every region's temperature, methane, risk score and precision zone,
    each value tagged with where it came from.
    """
    try:
        dashboard = await build_dashboard(cache=_cache(request))
    except Exception as e:
        logger.exception("Dashboard build failed")
        return JSONResponse(
            status_code=500,
            content={"error": f"Dashboard build failed: {e}", "usingFallback": True},
            headers={"Cache-Control": NO_STORE},
        )

    response.headers["Cache-Control"] = NO_STORE
    return dashboard


# Declared before /regions/{region_id}/metrics so "high-risk" is never read as an id
@router.get("/regions/high-risk", response_model=HighRiskResponse)
async def high_risk_hotspots(request: Request, response: Response):
    """Observations in the high methane tier across all regions."""
    try:
        result = await get_high_risk_hotspots(cache=_cache(request))
    except Exception as e:
        logger.error("high_risk_hotspots failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    response.headers["Cache-Control"] = NO_STORE
    logger.info("High-risk hotspots: %d", result.count)
    return result


@router.get("/regions/{region_id}/metrics", response_model=RegionMetricsResponse)
async def region_metrics(region_id: str, request: Request, response: Response):
    """Temperature, observations, risk zone and precision zone for one region."""
    try:
        metrics = await get_region_metrics(region_id, cache=_cache(request))
    except UnknownRegionError as e:
        raise HTTPException(status_code=404, detail=str(e))

    response.headers["Cache-Control"] = NO_STORE
    return metrics
