"""
zone_assembler.py — Build the precision zone record shown on the map.

A precision zone is the single per-region view: resolved temperature, the
methane number the risk score used, the most relevant observation and a
combined fallback rationale. A region always yields a zone, even when
every provider failed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from permafrost_risk.provenance import iso
from permafrost_risk.regions import Region
from permafrost_risk.risk_scoring import score_region
from permafrost_risk.schemas import (
    AreaCoverage,
    Coordinates,
    MethaneObservation,
    PrecisionZone,
    RiskZone,
    SourceType,
    TemperatureSignal,
    ZoneMethane,
)
from permafrost_risk.signals import SignalResult, TemperatureReading
from permafrost_risk.trust_resolver import (
    STATION_PRECISION,
    MethaneResolution,
    resolve_methane,
    resolve_temperature,
)

logger = logging.getLogger(__name__)

SATELLITE_PRECISION = "Sentinel-5P footprint centre (~7 km swath)"
CATALOG_PRECISION = "Catalog site coordinate (±1 km)"


@dataclass(frozen=True)
class RegionOutcome:
    """Everything the pipeline derives for one region in one pass."""
    temperature: TemperatureSignal
    methane: MethaneResolution
    risk_zone: RiskZone
    precision_zone: PrecisionZone


def _zone_coordinates(region: Region, top: MethaneObservation) -> Coordinates:
    if top is None:
        return Coordinates(lat=region.centroid.y, lon=region.centroid.x, precision=STATION_PRECISION)
    if top.data_source.type is SourceType.REAL_MEASUREMENT:
        precision = SATELLITE_PRECISION
    else:
        precision = CATALOG_PRECISION
    return Coordinates(lat=top.lat, lon=top.lon, precision=precision)


def assemble_precision_zone(
    region: Region,
    temperature: TemperatureSignal,
    methane: MethaneResolution,
    risk_zone: RiskZone,
    now: datetime,
) -> PrecisionZone:
    top = methane.summary.hotspot
    estimate = methane.summary.methane

    reasons = []
    if temperature.data_integrity.using_fallback:
        reasons.append(temperature.data_integrity.rationale)
    if methane.using_fallback:
        reasons.append(methane.rationale)

    return PrecisionZone(
        zone_id=f"zone-{region.id}",
        region_id=region.id,
        region_name=region.name,
        label=f"{top.name if top else region.name} ({risk_zone.risk_level.value})",
        coordinates=_zone_coordinates(region, top),
        area_coverage=AreaCoverage(square_km=region.area_km2, description=region.area_description),
        temperature=temperature.temperature,
        methane=ZoneMethane(
            concentration=estimate.concentration,
            unit=estimate.unit,
            data_source=estimate.data_source,
            last_observation=top.date if top else iso(now),
        ),
        hotspot=top,
        using_fallback=bool(reasons),
        fallback_reason="; ".join(reasons) or None,
    )


def assemble_region(
    region: Region,
    temperature_result: SignalResult[TemperatureReading],
    methane_result: SignalResult[list[MethaneObservation]],
    now: datetime,
) -> RegionOutcome:
    """Resolve, score and assemble one region from its provider results."""
    temperature = resolve_temperature(region, temperature_result, now)
    methane = resolve_methane(region, methane_result, temperature, now)
    risk_zone = score_region(region, temperature, methane.summary, now)
    zone = assemble_precision_zone(region, temperature, methane, risk_zone, now)
    return RegionOutcome(temperature=temperature, methane=methane, risk_zone=risk_zone, precision_zone=zone)


def full_fallback_zone(region: Region, reason: str, now: datetime) -> RegionOutcome:
    """The all-fallback zone and its companion records for a failed region."""
    logger.info("Full fallback for %s: %s", region.id, reason)
    unavailable = SignalResult.unavailable(reason)
    return assemble_region(region, unavailable, unavailable, now)
