"""Shared fixtures for the permafrost risk tests."""

import sys
import os
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from permafrost_risk.provenance import iso, sentinel5p_granule
from permafrost_risk.schemas import MethaneObservation
from permafrost_risk.signals import SignalResult, TemperatureReading

FIXED_NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def power_payload():
    """Build a NASA POWER daily-point payload from plain value lists."""
    def _build(t2m, t2m_max=None, t2m_min=None):
        def series(values):
            return {f"2026{i:04d}": v for i, v in enumerate(values, start=101)}

        parameter = {"T2M": series(t2m)}
        if t2m_max is not None:
            parameter["T2M_MAX"] = series(t2m_max)
        if t2m_min is not None:
            parameter["T2M_MIN"] = series(t2m_min)
        return {"type": "Feature", "properties": {"parameter": parameter}}
    return _build


def make_reading(anomaly=10.0, current=-6.0):
    return TemperatureReading(
        current=current,
        anomaly=anomaly,
        max=5.0,
        min=-40.0,
        samples=1095,
        period_start="2023-10-15",
        period_end="2026-10-14",
    )


def make_observation(region_id, concentration, now=FIXED_NOW, granule_id="G100-LPCLOUD", lat=70.0, lon=-150.0):
    return MethaneObservation(
        id=granule_id,
        region_id=region_id,
        name=f"S5P CH4 {granule_id}",
        lat=lat,
        lon=lon,
        concentration=concentration,
        date=iso(now),
        source="Sentinel-5P TROPOMI (Earthdata CMR)",
        data_source=sentinel5p_granule(90, now),
        confidence=90,
        granule_id=granule_id,
    )


@pytest.fixture
def live_reading():
    return make_reading


@pytest.fixture
def real_observation():
    return make_observation


@pytest.fixture
def live_temperature_fetcher():
    """Every region reports a trusted +10 °C anomaly."""
    def _fetch(region):
        return SignalResult.ok(make_reading(anomaly=10.0))
    return _fetch


@pytest.fixture
def unavailable_fetcher():
    def _fetch(region):
        return SignalResult.unavailable("provider offline")
    return _fetch
