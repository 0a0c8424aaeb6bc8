"""
trust_resolver.py — Decide, per region, which temperature and methane values
are shown and record why.

Pure functions: provider results in, resolved records out. Every fallback
carries a human-readable rationale.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from permafrost_risk.methane_model import (
    estimate_catalog_hotspots,
    estimate_regional_methane,
    top_observation,
)
from permafrost_risk.provenance import nasa_power_live, static_temperature_baseline
from permafrost_risk.reference_tables import CLIMATOLOGY, MIN_TRUSTED_ANOMALY, STATIC_BASELINES
from permafrost_risk.regions import Region
from permafrost_risk.schemas import (
    Coordinates,
    DataIntegrity,
    MethaneEstimate,
    MethaneObservation,
    RegionMethaneData,
    RegionMethaneSummary,
    SourceType,
    TemperatureSignal,
    TemperatureValues,
)
from permafrost_risk.signals import SignalResult, SignalStatus, TemperatureReading

logger = logging.getLogger(__name__)

STATION_PRECISION = "±10 meters"


# ──────────────────────────────────────────────────────────────
# Temperature
# ──────────────────────────────────────────────────────────────

def _fallback_reason(region: Region, result: SignalResult[TemperatureReading]) -> str:
    """Empty string when the live reading can be trusted."""
    reading = result.value
    if result.status is SignalStatus.UNAVAILABLE or reading is None:
        return result.reason or "NASA POWER data unavailable"
    if result.status is SignalStatus.LOW_CONFIDENCE:
        return result.reason or "NASA POWER values failed plausibility checks"
    if reading.anomaly is None or not math.isfinite(reading.anomaly):
        return "NASA POWER anomaly missing or non-finite"

    threshold = MIN_TRUSTED_ANOMALY.get(region.id, 0.0)
    if reading.anomaly < threshold:
        return (
            f"Live anomaly {reading.anomaly:+.1f}°C is below the {threshold:.1f}°C "
            f"trusted minimum for {region.name}"
        )
    return ""


def baseline_temperature(region: Region, now: datetime) -> TemperatureValues:
    baseline = STATIC_BASELINES[region.id]
    climatology = CLIMATOLOGY[region.id]
    return TemperatureValues(
        current=baseline.current_c,
        anomaly=round(baseline.current_c - climatology.mean_c, 1),
        max=baseline.max_c,
        min=baseline.min_c,
        data_source=static_temperature_baseline(baseline.source, baseline.confidence, now),
    )


def resolve_temperature(
    region: Region,
    result: SignalResult[TemperatureReading],
    now: datetime,
) -> TemperatureSignal:
    reason = _fallback_reason(region, result)

    if reason:
        logger.info("Temperature fallback for %s: %s", region.id, reason)
        values = baseline_temperature(region, now)
        integrity = DataIntegrity(
            using_fallback=True,
            rationale=f"Static climate baseline used: {reason}",
        )
    else:
        reading = result.value
        values = TemperatureValues(
            current=reading.current,
            anomaly=reading.anomaly,
            max=reading.max,
            min=reading.min,
            data_source=nasa_power_live(now),
        )
        integrity = DataIntegrity(
            using_fallback=False,
            rationale=(
                f"Live NASA POWER mean of {reading.samples} daily samples "
                f"({reading.period_start} to {reading.period_end})"
            ),
        )

    return TemperatureSignal(
        region_id=region.id,
        region_name=region.name,
        coordinates=Coordinates(lat=region.centroid.y, lon=region.centroid.x, precision=STATION_PRECISION),
        temperature=values,
        confidence=values.data_source.confidence,
        data_integrity=integrity,
    )


# ──────────────────────────────────────────────────────────────
# Methane
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MethaneResolution:
    """Methane outcome for one region: what is shown, and whether it is real."""
    data: RegionMethaneData
    summary: RegionMethaneSummary
    using_fallback: bool
    rationale: str

    @property
    def observations(self) -> list[MethaneObservation]:
        return self.data.hotspots


def resolve_methane(
    region: Region,
    result: SignalResult[list[MethaneObservation]],
    temperature: TemperatureSignal,
    now: datetime,
) -> MethaneResolution:
    """
    Real Sentinel-5P observations win. Otherwise the regional estimate
    supplies the number and the hotspot catalog supplies the sites.
    """
    real = []
    if result.status is not SignalStatus.UNAVAILABLE and result.value:
        real = [o for o in result.value if o.data_source.type is SourceType.REAL_MEASUREMENT]

    if real:
        observations = real
        top = real[0]
        estimate = MethaneEstimate(
            concentration=top.concentration,
            data_source=top.data_source,
            based_on=f"Sentinel-5P TROPOMI granule {top.granule_id or top.id}",
            methodology="Direct satellite retrieval",
        )
        rationale = f"Sentinel-5P TROPOMI observation ({len(real)} granule(s))"
        using_fallback = False
    else:
        reason = result.reason or "no Sentinel-5P observations with a methane value"
        observations = estimate_catalog_hotspots(region, temperature.temperature.anomaly, now)
        estimate = estimate_regional_methane(region, temperature, now)
        rationale = f"Calculated methane estimate: {reason}"
        using_fallback = True
        logger.info("Methane fallback for %s: %s", region.id, reason)

    data = RegionMethaneData(
        region_id=region.id,
        region_name=region.name,
        hotspots=observations,
        using_fallback=using_fallback,
        fallback_reason=rationale if using_fallback else None,
    )
    summary = RegionMethaneSummary(
        region_id=region.id,
        region_name=region.name,
        methane=estimate,
        hotspot=top_observation(observations),
    )
    return MethaneResolution(data=data, summary=summary, using_fallback=using_fallback, rationale=rationale)
