"""
dashboard_service.py — Fan out over every region, run both providers,
resolve, score, assemble, and roll the results into one dashboard payload.

Concurrency:
    Regions run concurrently (asyncio.gather). Within a region the NASA
    POWER and Earthdata calls run concurrently in worker threads, each
    bounded by a timeout. Methane resolution waits on the resolved
    temperature because the calculated estimate is driven by its anomaly.

Failure model:
    - Transport failures / timeouts → UNAVAILABLE → resolver fallback.
    - MalformedResponseError or any other provider exception → logged
      with traceback, listed in `errors`, the region degrades to a full
      fallback zone. Other regions carry on.
    - The Earthdata search spends one time budget across all its chained
      requests, so a timed-out worker thread stops issuing requests.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Callable, Iterable, Optional

from config import (
    CALCULATED_METHANE_CONFIDENCE,
    DEFAULT_PROVIDER_TIMEOUT_S,
    FALLBACK_TEMPERATURE_CONFIDENCE,
    LIVE_TEMPERATURE_CONFIDENCE,
    REAL_METHANE_CONFIDENCE,
    RISK_LEVEL_CONFIDENCE,
)
from permafrost_risk.cache import ResponseCache
from permafrost_risk.earthdata_service import search_methane_granules
from permafrost_risk.errors import MalformedResponseError
from permafrost_risk.nasa_power_service import fetch_temperature_signal
from permafrost_risk.provenance import iso, utc_now
from permafrost_risk.regions import Region, all_regions, get_region
from permafrost_risk.risk_scoring import overall_risk, overall_risk_summary
from permafrost_risk.sar_service import fetch_sar_coverage, sar_coverage_for
from permafrost_risk.schemas import (
    ConfidenceRollup,
    Connectivity,
    Coverage,
    DashboardResponse,
    DataLayers,
    DataTransparency,
    HighRiskHotspot,
    HighRiskResponse,
    RegionError,
    RegionMetricsResponse,
    RiskAssessment,
    RiskLevel,
    RiskSummary,
    RiskTier,
)
from permafrost_risk.signals import SignalResult, SignalStatus
from permafrost_risk.zone_assembler import RegionOutcome, assemble_region, full_fallback_zone

logger = logging.getLogger(__name__)

Fetcher = Callable[[Region], SignalResult]


@dataclass(frozen=True)
class RegionRun:
    """One region's outcome plus what the providers reported this pass."""
    region: Region
    outcome: RegionOutcome
    temperature_status: SignalStatus
    methane_status: SignalStatus
    error: Optional[RegionError] = None


# ──────────────────────────────────────────────────────────────
# Per-region pipeline
# ──────────────────────────────────────────────────────────────

async def _call_provider(fetch: Fetcher, region: Region, provider: str, timeout: float) -> SignalResult:
    """Run a blocking provider in a worker thread; a timeout becomes UNAVAILABLE."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(fetch, region), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %.1fs for %s", provider, timeout, region.id)
        return SignalResult.unavailable(f"{provider} timed out after {timeout:g}s")


def _failed_run(region: Region, reason: str, error: Exception, now: datetime) -> RegionRun:
    return RegionRun(
        region=region,
        outcome=full_fallback_zone(region, reason, now),
        temperature_status=SignalStatus.UNAVAILABLE,
        methane_status=SignalStatus.UNAVAILABLE,
        error=RegionError(region_id=region.id, error=str(error)),
    )


async def _run_region(
    region: Region,
    fetch_temperature: Fetcher,
    fetch_methane: Fetcher,
    timeout: float,
    now: datetime,
) -> RegionRun:
    try:
        temperature_result, methane_result = await asyncio.gather(
            _call_provider(fetch_temperature, region, "NASA POWER", timeout),
            _call_provider(fetch_methane, region, "Earthdata CMR", timeout),
        )
        outcome = assemble_region(region, temperature_result, methane_result, now)
    except MalformedResponseError as e:
        logger.exception("Contract error while processing %s", region.id)
        return _failed_run(region, f"Provider contract error: {e}", e, now)
    except Exception as e:
        # One region's provider bug must not take down the others
        logger.exception("Unexpected provider failure while processing %s", region.id)
        return _failed_run(region, f"Provider failure: {e}", e, now)

    return RegionRun(
        region=region,
        outcome=outcome,
        temperature_status=temperature_result.status,
        methane_status=methane_result.status,
    )


def _default_fetchers(
    fetch_temperature: Optional[Fetcher],
    fetch_methane: Optional[Fetcher],
    timeout: float,
    now: datetime,
    cache: Optional[ResponseCache],
) -> tuple[Fetcher, Fetcher]:
    if fetch_temperature is None:
        fetch_temperature = partial(fetch_temperature_signal, timeout=timeout, cache=cache, today=now.date())
    if fetch_methane is None:
        fetch_methane = partial(search_methane_granules, timeout=timeout, now=now)
    return fetch_temperature, fetch_methane


async def _run_all(
    regions: list[Region],
    fetch_temperature: Optional[Fetcher],
    fetch_methane: Optional[Fetcher],
    timeout: float,
    now: datetime,
    cache: Optional[ResponseCache],
) -> list[RegionRun]:
    fetch_temperature, fetch_methane = _default_fetchers(fetch_temperature, fetch_methane, timeout, now, cache)
    return list(await asyncio.gather(*(
        _run_region(region, fetch_temperature, fetch_methane, timeout, now)
        for region in regions
    )))


# ──────────────────────────────────────────────────────────────
# Roll-ups
# ──────────────────────────────────────────────────────────────

def _provider_state(statuses: list[SignalStatus]) -> str:
    return "connected" if any(s is not SignalStatus.UNAVAILABLE for s in statuses) else "unavailable"


def connectivity_for(runs: list[RegionRun]) -> Connectivity:
    nasa_power = _provider_state([r.temperature_status for r in runs])
    earthdata = _provider_state([r.methane_status for r in runs])
    connected = [nasa_power, earthdata].count("connected")
    status = {2: "live", 1: "partial"}.get(connected, "offline")
    return Connectivity(nasa_power=nasa_power, earthdata=earthdata, status=status)


def risk_summary(runs: list[RegionRun]) -> RiskSummary:
    levels = [r.outcome.risk_zone.risk_level for r in runs]
    return RiskSummary(
        critical=levels.count(RiskLevel.CRITICAL),
        high=levels.count(RiskLevel.HIGH),
        medium=levels.count(RiskLevel.MEDIUM),
        low=levels.count(RiskLevel.LOW),
    )


def data_transparency(runs: list[RegionRun]) -> DataTransparency:
    live_temperature = any(not r.outcome.temperature.data_integrity.using_fallback for r in runs)
    real_methane = any(not r.outcome.methane.using_fallback for r in runs)

    real_sources = []
    if live_temperature:
        real_sources.append("NASA POWER API (2 m air temperature)")
    if real_methane:
        real_sources.append("Sentinel-5P TROPOMI CH4 via NASA Earthdata CMR")

    calculated = []
    if any(r.outcome.temperature.data_integrity.using_fallback for r in runs):
        calculated.append("Static temperature baselines (NOAA Arctic Report Card)")
    if any(r.outcome.methane.using_fallback for r in runs):
        calculated.append("Methane concentrations from temperature anomaly and regional factors")
    calculated.append("Risk scores (banded temperature + methane + geography)")

    return DataTransparency(
        real_data_sources=real_sources,
        calculated_estimates=calculated,
        update_frequency="On request; provider responses cached for 15 minutes",
        confidence=ConfidenceRollup(
            temperature=LIVE_TEMPERATURE_CONFIDENCE if live_temperature else FALLBACK_TEMPERATURE_CONFIDENCE,
            methane=REAL_METHANE_CONFIDENCE if real_methane else CALCULATED_METHANE_CONFIDENCE,
            risk_level=RISK_LEVEL_CONFIDENCE,
        ),
    )


def coverage_for(runs: list[RegionRun]) -> Coverage:
    real = sum(1 for r in runs if not r.outcome.methane.using_fallback)
    return Coverage(
        regions_with_real_methane=real,
        regions_with_live_temperature=sum(
            1 for r in runs if not r.outcome.temperature.data_integrity.using_fallback
        ),
        total_regions=len(runs),
        fallback_regions=len(runs) - real,
    )


def compose_dashboard(runs: list[RegionRun], now: datetime) -> DashboardResponse:
    outcomes = [r.outcome for r in runs]
    return DashboardResponse(
        connectivity=connectivity_for(runs),
        real_temperature_data=[o.temperature for o in outcomes],
        real_methane_hotspots=[o.methane.data for o in outcomes],
        region_methane_summary=[o.methane.summary for o in outcomes],
        calculated_methane_estimates=[o.methane.summary for o in outcomes if o.methane.using_fallback],
        algorithmic_risk_assessment=RiskAssessment(
            zones=[o.risk_zone for o in outcomes],
            summary=risk_summary(runs),
        ),
        precision_zones=[o.precision_zone for o in outcomes],
        data_transparency=data_transparency(runs),
        coverage=coverage_for(runs),
        errors=[r.error for r in runs if r.error is not None],
        last_updated=iso(now),
    )


# ──────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────

async def build_dashboard(
    regions: Optional[Iterable[Region]] = None,
    *,
    fetch_temperature: Optional[Fetcher] = None,
    fetch_methane: Optional[Fetcher] = None,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    now: Optional[datetime] = None,
    cache: Optional[ResponseCache] = None,
) -> DashboardResponse:
    """
    Run the whole pipeline once and return the dashboard payload.

    `fetch_temperature` / `fetch_methane` take a Region and return a
    SignalResult; they default to the NASA POWER and Earthdata providers.
    """
    now = now or utc_now()
    regions = list(regions) if regions is not None else all_regions()
    logger.info("Building dashboard for %d regions", len(regions))

    runs = await _run_all(regions, fetch_temperature, fetch_methane, timeout, now, cache)
    dashboard = compose_dashboard(runs, now)

    logger.info(
        "Dashboard ready: %d/%d regions with real methane, %d errors",
        dashboard.coverage.regions_with_real_methane,
        dashboard.coverage.total_regions,
        len(dashboard.errors),
    )
    return dashboard


async def _sar_signal(fetch_sar: Fetcher, region: Region, timeout: float) -> SignalResult:
    """SAR coverage is supplementary: any failure is reported, never raised."""
    try:
        return await _call_provider(fetch_sar, region, "Sentinel-1 catalog", timeout)
    except Exception as e:
        logger.exception("Sentinel-1 coverage failed for %s", region.id)
        return SignalResult.unavailable(f"Sentinel-1 catalog failure: {e}")


async def get_region_metrics(
    region_id: str,
    *,
    fetch_temperature: Optional[Fetcher] = None,
    fetch_methane: Optional[Fetcher] = None,
    fetch_sar: Optional[Fetcher] = None,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    now: Optional[datetime] = None,
    cache: Optional[ResponseCache] = None,
) -> RegionMetricsResponse:
    """
    Single-region pipeline plus Sentinel-1 coverage and the overall risk call.

    Raises:
        UnknownRegionError: region_id is not in the registry
    """
    region = get_region(region_id)
    now = now or utc_now()
    if fetch_sar is None:
        fetch_sar = partial(fetch_sar_coverage, timeout=timeout, now=now)

    (run,), sar_result = await asyncio.gather(
        _run_all([region], fetch_temperature, fetch_methane, timeout, now, cache),
        _sar_signal(fetch_sar, region, timeout),
    )
    outcome = run.outcome
    sar = sar_coverage_for(sar_result, now)
    observations = outcome.methane.observations
    anomaly = outcome.temperature.temperature.anomaly

    return RegionMetricsResponse(
        region_id=region.id,
        region_name=region.name,
        cities=list(region.cities),
        overall_risk=overall_risk(observations, anomaly),
        summary=overall_risk_summary(observations, anomaly),
        temperature=outcome.temperature,
        methane=outcome.methane.data,
        methane_summary=outcome.methane.summary,
        risk_zone=outcome.risk_zone,
        precision_zone=outcome.precision_zone,
        sar_coverage=sar,
        data_layers=DataLayers(
            sar=sar.available,
            climate=not outcome.temperature.data_integrity.using_fallback,
            methane=not outcome.methane.using_fallback,
        ),
    )


async def get_high_risk_hotspots(
    *,
    fetch_temperature: Optional[Fetcher] = None,
    fetch_methane: Optional[Fetcher] = None,
    timeout: float = DEFAULT_PROVIDER_TIMEOUT_S,
    now: Optional[datetime] = None,
    cache: Optional[ResponseCache] = None,
) -> HighRiskResponse:
    """Every observation in the high methane tier, highest concentration first."""
    now = now or utc_now()
    runs = await _run_all(all_regions(), fetch_temperature, fetch_methane, timeout, now, cache)
    zones = [
        HighRiskHotspot.model_validate({
            **observation.model_dump(exclude={"risk"}),
            "region_name": run.region.name,
        })
        for run in runs
        for observation in run.outcome.methane.observations
        if observation.risk is RiskTier.HIGH
    ]
    zones.sort(key=lambda o: o.concentration, reverse=True)
    return HighRiskResponse(count=len(zones), zones=zones)
