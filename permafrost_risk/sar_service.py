"""
sar_service.py — Sentinel-1 SAR availability over a region via NASA CMR.

Lists the most recent Sentinel-1 granules (ASF collection) intersecting a
region's bounding box over the last year and reports how much of the
region's footprint they cover. No imagery is downloaded.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

import requests as http_requests
from shapely.geometry import Polygon, box
from shapely.ops import unary_union

from config import (
    DEFAULT_PROVIDER_TIMEOUT_S,
    EARTHDATA_SEARCH_API,
    SAR_COLLECTION_CONCEPT_ID,
    SAR_LOOKBACK_DAYS,
    SAR_PAGE_SIZE,
)
from permafrost_risk.earthdata_service import RequestBudget, earthdata_headers, feed_entries, parse_granule_box
from permafrost_risk.provenance import iso, sentinel1_catalog, unavailable_source, utc_now
from permafrost_risk.regions import Region
from permafrost_risk.schemas import SarCoverage
from permafrost_risk.signals import SignalResult

logger = logging.getLogger(__name__)


def granule_footprint(granule: dict) -> Optional[Polygon]:
    """
    Footprint of a CMR granule.

    ASF publishes "polygons" rings as "lat lon lat lon ..." strings; other
    collections only carry "boxes". Returns None when neither parses.
    """
    polygons = granule.get("polygons")
    if isinstance(polygons, list) and polygons:
        ring = polygons[0][0] if isinstance(polygons[0], list) and polygons[0] else polygons[0]
        try:
            numbers = [float(v) for v in str(ring).split()]
        except ValueError:
            numbers = []
        points = [(lon, lat) for lat, lon in zip(numbers[0::2], numbers[1::2])]
        if len(points) >= 3:
            polygon = Polygon(points)
            return polygon if polygon.is_valid else polygon.buffer(0)

    bbox = parse_granule_box(granule.get("boxes"))
    if bbox is None:
        return None
    return box(bbox.west, bbox.south, bbox.east, bbox.north)


def footprint_coverage_pct(region: Region, footprints: list[Polygon]) -> float:
    """Share of the region's footprint (in planar degrees) covered by the granules."""
    if not footprints:
        return 0.0
    covered = unary_union(footprints).intersection(region.footprint)
    return round(min(100.0, 100.0 * covered.area / region.footprint.area), 1)


def fetch_sar_coverage(
    region: Region,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    token: Optional[str] = None,
    now: Optional[datetime] = None,
    clock: Callable[[], float] = time.monotonic,
) -> SignalResult[SarCoverage]:
    """
    Sentinel-1 coverage for a region over the last year.

    OK          → catalog answered (available=False when it listed nothing)
    UNAVAILABLE → transport failure or timeout

    Raises:
        MalformedResponseError: CMR returned a body that is not the documented shape
    """
    now = now or utc_now()
    budget = RequestBudget(timeout, clock)
    params = {
        "collection_concept_id": SAR_COLLECTION_CONCEPT_ID,
        "bounding_box": region.bbox_param,
        "temporal": f"{iso(now - timedelta(days=SAR_LOOKBACK_DAYS))},{iso(now)}",
        "sort_key": "-start_date",
        "page_size": SAR_PAGE_SIZE,
    }

    try:
        resp = http_requests.get(
            f"{EARTHDATA_SEARCH_API}/granules.json",
            params=params,
            headers=earthdata_headers(token) or {},
            timeout=budget.remaining(),
        )
        granules = feed_entries(resp)
    except http_requests.RequestException as e:
        logger.warning("Sentinel-1 search failed for %s: %s", region.id, e)
        return SignalResult.unavailable(f"Earthdata CMR SAR search failed: {e}")

    footprints = [f for f in (granule_footprint(g) for g in granules) if f is not None and not f.is_empty]
    coverage = SarCoverage(
        available=bool(granules),
        data_count=len(granules),
        latest_date=granules[0].get("time_start") if granules else None,
        footprint_coverage_pct=footprint_coverage_pct(region, footprints),
        data_source=sentinel1_catalog(now),
    )
    logger.info(
        "Sentinel-1 for %s: %d granules, %.1f%% of footprint",
        region.id, coverage.data_count, coverage.footprint_coverage_pct,
    )
    return SignalResult.ok(coverage)


def sar_coverage_for(result: SignalResult[SarCoverage], now: datetime) -> SarCoverage:
    """The reported coverage, or an explicit not-available record with the reason."""
    if result.value is not None:
        return result.value
    return SarCoverage(
        available=False,
        data_count=0,
        footprint_coverage_pct=0.0,
        data_source=unavailable_source("Sentinel-1 SAR catalog", now),
        fallback_reason=result.reason or "Sentinel-1 catalog not reachable",
    )
