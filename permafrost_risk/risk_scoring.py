"""
risk_scoring.py — Banded permafrost vulnerability score (0–100).

  temperature anomaly  >10 °C → 40   >5 → 25   >2 → 15
  methane              >2000  → 40   >1900 → 25   >1850 → 15
  geographic flag      +15 (regions with permafrost-gas infrastructure)

Level: ≥70 CRITICAL, ≥50 HIGH, ≥30 MEDIUM, otherwise LOW.

Overall region risk (high / medium / low) is a coarser call from hotspot
tiers and the anomaly alone, reported next to the score in region metrics.
"""

import logging
import math
from datetime import datetime

from config import (
    GEOGRAPHIC_RISK_POINTS,
    METHANE_BANDS,
    OVERALL_RISK_ANOMALY_C,
    RISK_VALIDATION_ACCURACY,
    TEMPERATURE_BANDS,
)
from permafrost_risk.provenance import risk_algorithm
from permafrost_risk.reference_tables import GEOGRAPHIC_RISK_REGIONS
from permafrost_risk.regions import Region
from permafrost_risk.schemas import (
    AreaCoverage,
    MethaneObservation,
    RegionMethaneSummary,
    RiskFactors,
    RiskTier,
    RiskZone,
    TemperatureSignal,
)

logger = logging.getLogger(__name__)


def _band_points(value: float, bands) -> int:
    if value is None or not math.isfinite(value):
        return 0
    for threshold, points in bands:
        if value > threshold:
            return points
    return 0


def temperature_points(anomaly: float) -> int:
    return _band_points(anomaly, TEMPERATURE_BANDS)


def methane_points(concentration: float) -> int:
    return _band_points(concentration, METHANE_BANDS)


def compute_risk_score(anomaly: float, concentration: float, geographic_risk: bool) -> int:
    score = temperature_points(anomaly) + methane_points(concentration)
    if geographic_risk:
        score += GEOGRAPHIC_RISK_POINTS
    return max(0, min(100, score))


def score_region(
    region: Region,
    temperature: TemperatureSignal,
    methane_summary: RegionMethaneSummary,
    now: datetime,
) -> RiskZone:
    anomaly = temperature.temperature.anomaly
    concentration = methane_summary.methane.concentration
    geographic_risk = region.id in GEOGRAPHIC_RISK_REGIONS

    score = compute_risk_score(anomaly, concentration, geographic_risk)
    confidence = round(60 + 0.2 * temperature.confidence + 16.8)

    zone = RiskZone(
        region_id=region.id,
        region_name=region.name,
        coordinates=temperature.coordinates,
        area_coverage=AreaCoverage(square_km=region.area_km2, description=region.area_description),
        risk_score=score,
        factors=RiskFactors(
            temperature_anomaly=anomaly,
            estimated_methane=concentration,
            geographic_risk=geographic_risk,
        ),
        data_source=risk_algorithm(
            min(100, confidence),
            [
                f"Temperature points: {temperature_points(anomaly)}",
                f"Methane points: {methane_points(concentration)}",
                f"Geographic points: {GEOGRAPHIC_RISK_POINTS if geographic_risk else 0}",
                f"Validation accuracy: {RISK_VALIDATION_ACCURACY:.0%}",
            ],
            now,
        ),
    )
    logger.info("Risk for %s: %d (%s)", region.id, score, zone.risk_level.value)
    return zone


def _tier_counts(observations: list[MethaneObservation]) -> tuple[int, int]:
    tiers = [o.risk for o in observations]
    return tiers.count(RiskTier.HIGH), tiers.count(RiskTier.MEDIUM)


def overall_risk(observations: list[MethaneObservation], anomaly: float) -> RiskTier:
    """
    high   → two or more high-tier hotspots, or anomaly > 2 °C
    medium → one high-tier hotspot, two or more medium, or anomaly > 1 °C
    low    → otherwise
    """
    high, medium = _tier_counts(observations)
    if high >= 2 or anomaly > OVERALL_RISK_ANOMALY_C["high"]:
        return RiskTier.HIGH
    if high >= 1 or medium >= 2 or anomaly > OVERALL_RISK_ANOMALY_C["medium"]:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def overall_risk_summary(observations: list[MethaneObservation], anomaly: float) -> str:
    high, medium = _tier_counts(observations)
    return (
        f"{high} high-risk and {medium} medium-risk methane hotspots detected. "
        f"Temperature anomaly: {anomaly:+.1f}°C"
    )
