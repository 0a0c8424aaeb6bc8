"""Tests for the trust/fallback resolver."""

import math

import pytest

from permafrost_risk.regions import get_region
from permafrost_risk.schemas import SourceType
from permafrost_risk.signals import SignalResult
from permafrost_risk.trust_resolver import resolve_methane, resolve_temperature

ALASKA = get_region("alaska")


class TestResolveTemperature:
    def test_small_anomaly_uses_baseline(self, live_reading, now):
        signal = resolve_temperature(ALASKA, SignalResult.ok(live_reading(anomaly=1.2)), now)
        assert signal.temperature.anomaly == pytest.approx(13.2)
        assert signal.temperature.current == -3.3
        assert signal.temperature.data_source.type is SourceType.ESTIMATED
        assert signal.confidence == 88
        assert signal.data_integrity.using_fallback is True
        assert "below" in signal.data_integrity.rationale

    def test_trusted_anomaly_is_live(self, live_reading, now):
        signal = resolve_temperature(ALASKA, SignalResult.ok(live_reading(anomaly=8.0)), now)
        assert signal.temperature.anomaly == 8.0
        assert signal.temperature.data_source.type is SourceType.REAL_MEASUREMENT
        assert signal.temperature.data_source.source == "NASA POWER API"
        assert signal.confidence == 95
        assert signal.data_integrity.using_fallback is False
        assert signal.data_integrity.rationale

    def test_threshold_itself_is_trusted(self, live_reading, now):
        signal = resolve_temperature(ALASKA, SignalResult.ok(live_reading(anomaly=7.0)), now)
        assert signal.data_integrity.using_fallback is False

    def test_unavailable_carries_reason(self, now):
        signal = resolve_temperature(ALASKA, SignalResult.unavailable("NASA POWER request failed: 503"), now)
        assert signal.data_integrity.using_fallback is True
        assert "503" in signal.data_integrity.rationale

    def test_low_confidence_falls_back(self, live_reading, now):
        result = SignalResult.low_confidence(live_reading(anomaly=40.0), "Implausible NASA POWER values")
        signal = resolve_temperature(ALASKA, result, now)
        assert signal.data_integrity.using_fallback is True
        assert "Implausible" in signal.data_integrity.rationale

    def test_non_finite_anomaly_falls_back(self, live_reading, now):
        signal = resolve_temperature(ALASKA, SignalResult.ok(live_reading(anomaly=math.nan)), now)
        assert signal.data_integrity.using_fallback is True
        assert signal.temperature.anomaly == pytest.approx(13.2)

    @pytest.mark.parametrize("region_id, anomaly", [
        ("siberia", 13.7),
        ("alaska", 13.2),
        ("canada", 12.0),
        ("greenland", 10.7),
    ])
    def test_static_baselines(self, region_id, anomaly, now):
        signal = resolve_temperature(get_region(region_id), SignalResult.unavailable("offline"), now)
        assert signal.temperature.anomaly == pytest.approx(anomaly)

    def test_station_coordinates(self, now):
        signal = resolve_temperature(ALASKA, SignalResult.unavailable("offline"), now)
        assert (signal.coordinates.lat, signal.coordinates.lon) == (70.2, -148.8)
        assert signal.coordinates.precision == "±10 meters"


class TestResolveMethane:
    def _temperature(self, now):
        return resolve_temperature(ALASKA, SignalResult.unavailable("offline"), now)

    def test_real_observation_wins(self, real_observation, now):
        obs = [real_observation("alaska", 2065, granule_id="G1"), real_observation("alaska", 1880, granule_id="G2")]
        resolution = resolve_methane(ALASKA, SignalResult.ok(obs), self._temperature(now), now)

        assert resolution.using_fallback is False
        assert resolution.data.fallback_reason is None
        assert resolution.summary.methane.concentration == 2065
        assert resolution.summary.methane.based_on == "Sentinel-5P TROPOMI granule G1"
        assert resolution.summary.methane.methodology == "Direct satellite retrieval"
        assert resolution.summary.hotspot.granule_id == "G1"
        assert resolution.observations == obs

    def test_unavailable_uses_regional_estimate(self, now):
        result = SignalResult.unavailable("Earthdata bearer token not configured on server")
        resolution = resolve_methane(ALASKA, result, self._temperature(now), now)

        assert resolution.using_fallback is True
        assert resolution.summary.methane.concentration == 1974
        assert resolution.summary.methane.data_source.type is SourceType.CALCULATED
        assert "token" in resolution.rationale
        assert resolution.data.fallback_reason == resolution.rationale
        assert all(o.data_source.type is SourceType.CALCULATED for o in resolution.observations)
        assert resolution.summary.hotspot.concentration == 2028

    def test_empty_ok_result_falls_back(self, now):
        resolution = resolve_methane(ALASKA, SignalResult.ok([]), self._temperature(now), now)
        assert resolution.using_fallback is True
        assert resolution.rationale
