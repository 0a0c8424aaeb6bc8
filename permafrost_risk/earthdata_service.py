"""
earthdata_service.py — Sentinel-5P TROPOMI methane granules via NASA CMR.

Searches the Common Metadata Repository for CH4 granules over a region's
bounding box, first over the last 7 days and then over a 30-day retry
window (high-latitude retrievals are sparse). Each granule's concentration
is read from its UMM AdditionalAttributes, or from a "NNNN ppb" phrase in
its summary. Granules without a concentration are not observations.

Every request one search makes shares a single time budget, so a slow CMR
cannot keep a worker thread busy past the caller's timeout.

Requires an Earthdata bearer token (EARTHDATA_TOKEN in .env).
"""

import logging
import math
import os
import re
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

import requests as http_requests
from shapely.geometry import box

from config import (
    DEFAULT_PROVIDER_TIMEOUT_S,
    EARTHDATA_SEARCH_API,
    MAX_GRANULES,
    METHANE_LOOKBACK_DAYS,
    REAL_METHANE_CONFIDENCE,
    S5P_CH4_SHORT_NAMES,
    SUMMARY_METHANE_CONFIDENCE,
)
from permafrost_risk.errors import MalformedResponseError
from permafrost_risk.methane_model import prioritize_observations
from permafrost_risk.provenance import iso, sentinel5p_granule, utc_now
from permafrost_risk.regions import Region
from permafrost_risk.schemas import BoundingBox, MethaneObservation, ObservationMetadata
from permafrost_risk.signals import SignalResult

logger = logging.getLogger(__name__)

PROVIDER = "Earthdata CMR"

_PPB_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:ppbv|ppb)\b", re.IGNORECASE)


def earthdata_headers(token: Optional[str] = None) -> Optional[dict]:
    """Auth headers for CMR, or None when no bearer token is configured."""
    token = token or os.getenv("EARTHDATA_TOKEN")
    if not token:
        return None
    return {
        "Authorization": f"Bearer {token}",
        "Client-Id": os.getenv("EARTHDATA_CLIENT_ID", "permafrost-risk"),
        "User-Agent": "permafrost-risk/1.0",
    }


# ──────────────────────────────────────────────────────────────
# Request budget
# ──────────────────────────────────────────────────────────────

class BudgetSpent(http_requests.Timeout):
    """The provider's overall time budget ran out before the next request."""


class RequestBudget:
    """Wall-clock budget shared by every request of one provider call."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self.deadline = clock() + seconds

    def remaining(self) -> float:
        """Seconds left, used as the next request's timeout."""
        left = self.deadline - self._clock()
        if left <= 0:
            raise BudgetSpent(f"{self.seconds:g}s request budget spent")
        return left


# ──────────────────────────────────────────────────────────────
# Granule parsing helpers
# ──────────────────────────────────────────────────────────────

def parse_granule_box(boxes) -> Optional[BoundingBox]:
    """CMR boxes are "south west north east" strings (space or comma separated)."""
    if isinstance(boxes, list):
        boxes = boxes[0] if boxes else None
    if not boxes:
        return None
    parts = []
    for token in str(boxes).replace(",", " ").split():
        try:
            parts.append(float(token))
        except ValueError:
            continue
    if len(parts) != 4:
        return None
    south, west, north, east = parts
    return BoundingBox(south=south, west=west, north=north, east=east)


def concentration_from_summary(summary: Optional[str]) -> Optional[float]:
    if not summary:
        return None
    match = _PPB_PATTERN.search(str(summary))
    return float(match.group(1)) if match else None


def concentration_from_attributes(attributes: Optional[list]) -> Optional[float]:
    """
    First finite value of the methane/CH4 AdditionalAttribute, if any.

    Raises:
        MalformedResponseError: attributes is not a list of objects
    """
    if attributes is None:
        return None
    if not isinstance(attributes, list):
        raise MalformedResponseError(PROVIDER, "UMM AdditionalAttributes is not a list")

    for attribute in attributes:
        if not isinstance(attribute, dict):
            raise MalformedResponseError(PROVIDER, "UMM AdditionalAttributes entry is not an object")
        name = str(attribute.get("Name") or "").lower()
        description = str(attribute.get("Description") or "").lower()
        if not ("methane" in name or "ch4" in name or "methane" in description):
            continue

        candidates = [
            attribute.get("ParameterRangeEnd"),
            attribute.get("ParameterRangeBegin"),
            attribute.get("ParameterDefault"),
        ]
        for entry in attribute.get("Values") or []:
            candidates.append(entry.get("Value") if isinstance(entry, dict) else entry)

        for value in candidates:
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(number):
                return number
        return None
    return None


def _granule_name(granule: dict, region: Region, index: int) -> str:
    title = str(granule.get("title") or granule.get("producer_granule_id") or "").replace("_", " ").strip()
    return title or f"{region.name} Hotspot {index + 1}"


def _browse_url(granule: dict) -> Optional[str]:
    for link in granule.get("links") or []:
        if isinstance(link, dict) and "browse" in str(link.get("title") or "").lower():
            return link.get("href")
    return None


# ──────────────────────────────────────────────────────────────
# CMR requests
# ──────────────────────────────────────────────────────────────

def feed_entries(resp) -> list[dict]:
    """
    Granule entries of a CMR granules.json response.

    Raises:
        MalformedResponseError: body, feed or entries are not the documented shape
    """
    resp.raise_for_status()
    body = resp.json()
    if not isinstance(body, dict) or "feed" not in body:
        raise MalformedResponseError(PROVIDER, "granule search response has no 'feed'")
    feed = body["feed"]
    if not isinstance(feed, dict):
        raise MalformedResponseError(PROVIDER, "'feed' is not an object")
    entries = feed.get("entry") or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise MalformedResponseError(PROVIDER, "'feed.entry' is not a list of granule objects")
    return entries


def fetch_granule_methane(granule_id: str, headers: dict, budget: RequestBudget) -> Optional[float]:
    """Read the methane attribute from a granule's UMM record (None when the fetch fails)."""
    try:
        resp = http_requests.get(
            f"{EARTHDATA_SEARCH_API}/concepts/{granule_id}.umm_json",
            headers=headers,
            timeout=budget.remaining(),
        )
        resp.raise_for_status()
        body = resp.json()
    except BudgetSpent:
        raise
    except http_requests.RequestException as e:
        logger.warning("Granule metadata fetch failed for %s: %s", granule_id, e)
        return None

    if not isinstance(body, dict):
        raise MalformedResponseError(PROVIDER, f"UMM record for {granule_id} is not an object")
    umm = body.get("umm") or {}
    if not isinstance(umm, dict):
        raise MalformedResponseError(PROVIDER, f"'umm' for {granule_id} is not an object")
    return concentration_from_attributes(umm.get("AdditionalAttributes"))


def search_granules(region: Region, days: int, headers: dict, budget: RequestBudget, now: datetime) -> list[dict]:
    """
    Search CMR for S5P CH4 granules over the last `days` days.

    Short-name variants are tried in turn, then a keyword search. A
    transport error is re-raised only if every query failed; a spent
    budget is re-raised at once.
    """
    start = now - timedelta(days=days)
    base = {
        "bounding_box": region.bbox_param,
        "temporal": f"{iso(start)},{iso(now)}",
        "page_size": 10,
    }
    queries = [{"short_name": name} for name in S5P_CH4_SHORT_NAMES]
    queries.append({"keyword": "TROPOMI CH4 methane", "platform": "Sentinel-5P"})

    last_error = None
    succeeded = 0
    for query in queries:
        try:
            resp = http_requests.get(
                f"{EARTHDATA_SEARCH_API}/granules.json",
                params={**base, **query},
                headers=headers,
                timeout=budget.remaining(),
            )
            entries = feed_entries(resp)
        except BudgetSpent:
            raise
        except http_requests.RequestException as e:
            last_error = e
            continue
        succeeded += 1
        if entries:
            logger.info("CMR: %d granules for %s (%s, %d days)", len(entries), region.id, query, days)
            return entries

    if succeeded == 0 and last_error is not None:
        raise last_error
    return []


def _granule_to_observation(
    region: Region,
    granule: dict,
    index: int,
    headers: dict,
    budget: RequestBudget,
    now: datetime,
) -> Optional[MethaneObservation]:
    granule_id = granule.get("id")
    bbox = parse_granule_box(granule.get("boxes"))
    if bbox is not None:
        center = box(bbox.west, bbox.south, bbox.east, bbox.north).centroid
        lat, lon = center.y, center.x
    else:
        lat, lon = region.lat, region.lon

    concentration = fetch_granule_methane(granule_id, headers, budget) if granule_id else None
    confidence = REAL_METHANE_CONFIDENCE
    if concentration is None:
        concentration = concentration_from_summary(granule.get("summary"))
        confidence = SUMMARY_METHANE_CONFIDENCE

    if concentration is None or concentration <= 0:
        logger.info("Granule %s for %s carries no methane value; skipped", granule_id, region.id)
        return None

    return MethaneObservation(
        id=str(granule_id or granule.get("producer_granule_id") or f"tropomi-{region.id}-{index}"),
        region_id=region.id,
        name=_granule_name(granule, region, index),
        lat=lat,
        lon=lon,
        concentration=round(concentration),
        date=granule.get("time_start") or iso(now),
        source="Sentinel-5P TROPOMI (Earthdata CMR)",
        data_source=sentinel5p_granule(confidence, now),
        confidence=confidence,
        granule_id=granule_id,
        bounding_box=bbox,
        metadata=ObservationMetadata(description=granule.get("summary"), browse_url=_browse_url(granule)),
    )


# ──────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────

def search_methane_granules(
    region: Region,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    token: Optional[str] = None,
    now: Optional[datetime] = None,
    clock: Callable[[], float] = time.monotonic,
) -> SignalResult[list[MethaneObservation]]:
    """
    Real-satellite methane observations for a region.

    `timeout` bounds the whole search, not each request.

    OK          → at least one granule with a concentration, most salient first
    UNAVAILABLE → no token, transport failure, spent budget, or nothing in the 30-day window

    Raises:
        MalformedResponseError: CMR returned a body that is not the documented shape
    """
    now = now or utc_now()
    headers = earthdata_headers(token)
    if headers is None:
        logger.info("Earthdata token not configured; skipping TROPOMI search for %s", region.id)
        return SignalResult.unavailable("Earthdata bearer token not configured on server")

    budget = RequestBudget(timeout, clock)
    granules: list = []
    try:
        for days in METHANE_LOOKBACK_DAYS:
            granules = search_granules(region, days, headers, budget, now)
            if granules:
                break
    except http_requests.RequestException as e:
        logger.warning("Earthdata CMR search failed for %s: %s", region.id, e)
        return SignalResult.unavailable(f"Earthdata CMR request failed: {e}")

    if not granules:
        return SignalResult.unavailable(
            f"No valid Sentinel-5P CH4 retrievals in last {METHANE_LOOKBACK_DAYS[-1]} days for "
            f"{region.name} (solar zenith angle / cloud / snow QA filters)"
        )

    observations = []
    try:
        for index, granule in enumerate(granules[:MAX_GRANULES]):
            observation = _granule_to_observation(region, granule, index, headers, budget, now)
            if observation is not None:
                observations.append(observation)
    except BudgetSpent as e:
        logger.warning("Earthdata budget spent for %s after %d observation(s): %s", region.id, len(observations), e)

    if not observations:
        return SignalResult.unavailable(
            f"{len(granules)} Sentinel-5P granule(s) found for {region.name} but none carried a methane "
            "concentration within the request budget"
        )
    return SignalResult.ok(prioritize_observations(observations))
