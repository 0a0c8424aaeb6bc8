"""
nasa_power_service.py — Temperature signal from the NASA POWER daily API.

Pulls a fixed 3-year trailing window of 2 m air temperature for the region
centre and reduces it to current / anomaly / max / min. The anomaly is
measured against the region's fixed 1991–2020 climatology.

Data source:
    NASA POWER daily point API (free, no key), parameters T2M, T2M_MAX, T2M_MIN
"""

import logging
import math
from datetime import date, timedelta
from typing import Optional

import numpy as np
import requests as http_requests

from config import (
    DEFAULT_PROVIDER_TIMEOUT_S,
    NASA_POWER_API,
    PLAUSIBLE_ANOMALY_ABS_C,
    PLAUSIBLE_TEMP_RANGE_C,
    POWER_MISSING_VALUE,
    TEMPERATURE_WINDOW_YEARS,
)
from permafrost_risk.cache import ResponseCache
from permafrost_risk.errors import MalformedResponseError
from permafrost_risk.reference_tables import CLIMATOLOGY
from permafrost_risk.regions import Region
from permafrost_risk.signals import SignalResult, TemperatureReading

logger = logging.getLogger(__name__)


def temperature_window(today: Optional[date] = None) -> tuple[date, date]:
    """POWER lags by about a day, so the window ends yesterday."""
    today = today or date.today()
    end = today - timedelta(days=1)
    start = end - timedelta(days=365 * TEMPERATURE_WINDOW_YEARS)
    return start, end


def _valid_samples(series, name: str) -> np.ndarray:
    if not isinstance(series, dict):
        raise MalformedResponseError("NASA POWER", f"{name} is not a date → value mapping")
    values = [
        float(v) for v in series.values()
        if isinstance(v, (int, float)) and not isinstance(v, bool)
        and math.isfinite(v) and v > POWER_MISSING_VALUE
    ]
    return np.asarray(values, dtype=float)


def reduce_power_payload(
    region: Region,
    payload: dict,
    period_start: str = "",
    period_end: str = "",
) -> SignalResult[TemperatureReading]:
    """
    Reduce a POWER JSON payload to a TemperatureReading.

    Raises:
        MalformedResponseError: payload lacks properties.parameter.T2M
    """
    properties = payload.get("properties") if isinstance(payload, dict) else None
    parameters = properties.get("parameter") if isinstance(properties, dict) else None
    if not isinstance(parameters, dict) or "T2M" not in parameters:
        raise MalformedResponseError("NASA POWER", "missing properties.parameter.T2M")

    t2m = _valid_samples(parameters["T2M"], "T2M")
    if t2m.size == 0:
        return SignalResult.unavailable("NASA POWER returned no valid T2M samples")

    climatology = CLIMATOLOGY[region.id]
    current = round(float(np.mean(t2m)), 1)
    anomaly = round(current - climatology.mean_c, 1)

    if abs(anomaly) > 3 * climatology.std_dev_c:
        logger.warning(
            "Extreme anomaly for %s: %+.1f°C (>3σ of %.1f°C climatology)",
            region.id, anomaly, climatology.mean_c,
        )

    t2m_max = _valid_samples(parameters.get("T2M_MAX", {}), "T2M_MAX")
    t2m_min = _valid_samples(parameters.get("T2M_MIN", {}), "T2M_MIN")

    reading = TemperatureReading(
        current=current,
        anomaly=anomaly,
        max=round(float(np.max(t2m_max if t2m_max.size else t2m)), 1),
        min=round(float(np.min(t2m_min if t2m_min.size else t2m)), 1),
        samples=int(t2m.size),
        period_start=period_start,
        period_end=period_end,
    )

    low, high = PLAUSIBLE_TEMP_RANGE_C
    if not (low <= current <= high) or abs(anomaly) > PLAUSIBLE_ANOMALY_ABS_C:
        return SignalResult.low_confidence(
            reading,
            f"Implausible NASA POWER values (mean {current}°C, anomaly {anomaly:+.1f}°C)",
        )
    return SignalResult.ok(reading)


def fetch_temperature_signal(
    region: Region,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    cache: Optional[ResponseCache] = None,
    today: Optional[date] = None,
) -> SignalResult[TemperatureReading]:
    """
    Fetch and reduce the POWER time series for a region.

    Transport failures come back as UNAVAILABLE, never as exceptions.
    """
    start, end = temperature_window(today)
    cache_key = ("nasa_power", region.id, start.isoformat(), end.isoformat())
    if cache is not None:
        cached = cache.get(cache_key)
        if cached is not None:
            logger.info("NASA POWER cache hit for %s", region.id)
            return cached

    params = {
        "start": start.strftime("%Y%m%d"),
        "end": end.strftime("%Y%m%d"),
        "latitude": region.lat,
        "longitude": region.lon,
        "community": "AG",
        "parameters": "T2M,T2M_MAX,T2M_MIN",
        "format": "JSON",
    }

    logger.info("Fetching NASA POWER: %s → %s for %s (%.2f, %.2f)", start, end, region.id, region.lat, region.lon)
    try:
        resp = http_requests.get(NASA_POWER_API, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except http_requests.RequestException as e:
        logger.warning("NASA POWER request failed for %s: %s", region.id, e)
        return SignalResult.unavailable(f"NASA POWER request failed: {e}")

    result = reduce_power_payload(region, data, start.isoformat(), end.isoformat())
    logger.info("NASA POWER %s for %s: %s", result.status.value, region.id, result.value)

    if cache is not None and result.is_ok:
        cache.set(cache_key, result)
    return result
