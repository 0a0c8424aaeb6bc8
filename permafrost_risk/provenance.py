"""
provenance.py — Canonical DataSource records for each origin of a value.

Keeping the wording in one place means the UI badge for e.g. "NASA POWER
live" reads the same wherever the value ends up.
"""

from datetime import datetime, timezone
from typing import Optional

from config import (
    CALCULATED_METHANE_CONFIDENCE,
    LIVE_TEMPERATURE_CONFIDENCE,
    SAR_CATALOG_CONFIDENCE,
)
from permafrost_risk.schemas import DataSource, SourceType


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso(ts: datetime) -> str:
    """ISO-8601 UTC timestamp with a trailing Z."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def nasa_power_live(now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.REAL_MEASUREMENT,
        source="NASA POWER API",
        confidence=LIVE_TEMPERATURE_CONFIDENCE,
        last_update=iso(now),
        latency="1-6 hours",
    )


def static_temperature_baseline(source: str, confidence: int, now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.ESTIMATED,
        source=f"Validated Arctic climate baseline ({source})",
        confidence=confidence,
        last_update=iso(now),
        latency="Static baseline",
    )


def sentinel5p_granule(confidence: int, now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.REAL_MEASUREMENT,
        source="Sentinel-5P TROPOMI via NASA Earthdata CMR",
        confidence=confidence,
        last_update=iso(now),
        latency="Orbital revisit (~daily)",
    )


def catalog_calculation(anomaly: float, now: datetime, confidence: int = 88) -> DataSource:
    return DataSource(
        type=SourceType.CALCULATED,
        source="Calculated from temperature anomaly using methane-temperature correlation",
        confidence=confidence,
        last_update=iso(now),
        latency="Real-time calculation",
        algorithm="Catalog site estimate (12 PPB/°C + local factor)",
        qa_flags=[f"Temperature anomaly: {anomaly:.1f}°C"],
    )


def regional_calculation(
    confidence: Optional[int],
    qa_flags: list[str],
    now: datetime,
) -> DataSource:
    return DataSource(
        type=SourceType.CALCULATED,
        source="Calculated from temperature anomaly using permafrost-CH4 correlations (fallback)",
        confidence=confidence if confidence is not None else CALCULATED_METHANE_CONFIDENCE,
        last_update=iso(now),
        latency="Real-time calculation",
        algorithm="Multi-source weighted CH4 estimation model",
        qa_flags=qa_flags,
    )


def risk_algorithm(confidence: int, qa_flags: list[str], now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.ALGORITHMIC,
        source="Multi-factor permafrost vulnerability score (temperature + methane + geography)",
        confidence=confidence,
        last_update=iso(now),
        latency="Real-time calculation",
        algorithm="Banded point score, cutoffs 70/50/30",
        qa_flags=qa_flags,
    )


def sentinel1_catalog(now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.REAL_MEASUREMENT,
        source="Sentinel-1 SAR granule catalog via NASA Earthdata CMR (ASF)",
        confidence=SAR_CATALOG_CONFIDENCE,
        last_update=iso(now),
        latency="Orbital revisit (6-12 days)",
    )


def unavailable_source(label: str, now: datetime) -> DataSource:
    return DataSource(
        type=SourceType.ESTIMATED,
        source=f"{label} unavailable",
        confidence=50,
        last_update=iso(now),
        latency="N/A",
    )
