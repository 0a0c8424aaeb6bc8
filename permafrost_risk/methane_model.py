"""
methane_model.py — Calculated methane estimates used when no satellite
retrieval is available for a region.

Two estimates, both driven by the resolved temperature anomaly:

  1. Catalog hotspots — named permafrost/geological sites, each scaled by a
     local enhancement factor.
  2. Regional estimate — one regional concentration from permafrost,
     wetland and geological factors.

Neither is a measurement; both are tagged CALCULATED.
"""

import logging
import math
from datetime import datetime
from typing import Optional

from config import (
    LIVE_TEMPERATURE_CONFIDENCE,
    METHANE_BACKGROUND_PPB,
    METHANE_FLOOR_PPB,
    METHANE_PPB_PER_DEG_C,
    REGIONAL_METHANE_BASE_PPB,
    REGIONAL_METHANE_BOUNDS_PPB,
)
from permafrost_risk.provenance import catalog_calculation, iso, regional_calculation
from permafrost_risk.reference_tables import (
    DEFAULT_REGIONAL_FACTORS,
    HOTSPOT_CATALOG,
    REGIONAL_FACTORS,
)
from permafrost_risk.regions import Region
from permafrost_risk.schemas import (
    MethaneEstimate,
    MethaneObservation,
    RiskTier,
    SourceType,
    TemperatureSignal,
)

logger = logging.getLogger(__name__)

CATALOG_CONFIDENCE = 88


def prioritize_observations(observations: list[MethaneObservation]) -> list[MethaneObservation]:
    """Highest concentration first; only medium/high sites when there are any."""
    ranked = sorted(observations, key=lambda o: o.concentration, reverse=True)
    salient = [o for o in ranked if o.risk in (RiskTier.MEDIUM, RiskTier.HIGH)]
    return salient or ranked


def top_observation(observations: list[MethaneObservation]) -> Optional[MethaneObservation]:
    """First real measurement, else the highest concentration, else None."""
    for observation in observations:
        if observation.data_source.type is SourceType.REAL_MEASUREMENT:
            return observation
    if not observations:
        return None
    return max(observations, key=lambda o: o.concentration)


# ──────────────────────────────────────────────────────────────
# Catalog hotspots
# ──────────────────────────────────────────────────────────────

def catalog_concentration(anomaly: float, local_factor: float) -> int:
    estimate = METHANE_BACKGROUND_PPB + anomaly * METHANE_PPB_PER_DEG_C + (local_factor - 1) * 100
    return max(METHANE_FLOOR_PPB, round(estimate))


def estimate_catalog_hotspots(
    region: Region,
    anomaly: float,
    now: datetime,
    data_source_confidence: int = CATALOG_CONFIDENCE,
) -> list[MethaneObservation]:
    sites = HOTSPOT_CATALOG.get(region.id, ())
    observations = []
    for index, site in enumerate(sites):
        observations.append(MethaneObservation(
            id=f"calc-{region.id}-{index + 1}",
            region_id=region.id,
            name=site.name,
            lat=site.lat,
            lon=site.lon,
            concentration=catalog_concentration(anomaly, site.local_factor),
            date=iso(now),
            source="Calculated from NASA POWER temperature anomaly",
            data_source=catalog_calculation(anomaly, now, data_source_confidence),
            confidence=data_source_confidence,
        ))
    return prioritize_observations(observations)


# ──────────────────────────────────────────────────────────────
# Regional estimate
# ──────────────────────────────────────────────────────────────

def regional_concentration(region_id: str, anomaly: float) -> int:
    """
    1800 + anomaly·12·permafrost·0.5 + 30·wetland + 25·geological,
    clamped to [1750, 2200] PPB.
    """
    factors = REGIONAL_FACTORS.get(region_id, DEFAULT_REGIONAL_FACTORS)
    estimate = (
        REGIONAL_METHANE_BASE_PPB
        + anomaly * METHANE_PPB_PER_DEG_C * factors.permafrost * 0.5
        + 30 * factors.wetland
        + 25 * factors.geological
    )
    low, high = REGIONAL_METHANE_BOUNDS_PPB
    return round(min(high, max(low, estimate)))


def estimate_regional_methane(
    region: Region,
    temperature: TemperatureSignal,
    now: datetime,
) -> MethaneEstimate:
    anomaly = temperature.temperature.anomaly
    if not math.isfinite(anomaly):
        anomaly = 0.0
    temp_confidence = temperature.temperature.data_source.confidence or LIVE_TEMPERATURE_CONFIDENCE
    confidence = min(88, round(70 + 0.15 * temp_confidence + 15))
    factors = REGIONAL_FACTORS.get(region.id, DEFAULT_REGIONAL_FACTORS)

    concentration = regional_concentration(region.id, anomaly)
    logger.info("Regional CH4 estimate for %s: %d PPB (anomaly %+.1f°C)", region.id, concentration, anomaly)

    qa_flags = [
        f"Temperature anomaly: {anomaly:.1f}°C",
        f"Permafrost factor: {factors.permafrost:.2f}",
        f"Wetland factor: {factors.wetland:.2f}",
        f"Geological factor: {factors.geological:.2f}",
        f"Regional context: {factors.description}",
    ]
    qa_flags.extend(f"Reference: {citation}" for citation in factors.citations)

    return MethaneEstimate(
        concentration=concentration,
        data_source=regional_calculation(confidence, qa_flags, now),
        based_on=f"Temperature anomaly of {anomaly:.1f}°C + regional factors",
        methodology=(
            "NOAA GML Arctic baseline + temperature-driven permafrost emissions "
            "+ wetland and geological contributions"
        ),
    )
