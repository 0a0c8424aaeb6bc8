"""Tests for the NASA POWER temperature provider."""

from datetime import date, timedelta
from unittest import mock

import pytest
import requests

from permafrost_risk.cache import ResponseCache
from permafrost_risk.errors import MalformedResponseError
from permafrost_risk.nasa_power_service import (
    fetch_temperature_signal,
    reduce_power_payload,
    temperature_window,
)
from permafrost_risk.regions import get_region
from permafrost_risk.signals import SignalStatus

ALASKA = get_region("alaska")


def _response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestTemperatureWindow:
    def test_ends_yesterday(self):
        start, end = temperature_window(date(2026, 10, 17))
        assert end == date(2026, 10, 16)
        assert end - start == timedelta(days=3 * 365)


class TestReducePayload:
    def test_anomaly_against_climatology(self, power_payload):
        result = reduce_power_payload(ALASKA, power_payload([-3.0, -3.6]))
        assert result.status is SignalStatus.OK
        assert result.value.current == pytest.approx(-3.3)
        assert result.value.anomaly == pytest.approx(13.2)
        assert result.value.samples == 2

    def test_missing_samples_skipped(self, power_payload):
        result = reduce_power_payload(ALASKA, power_payload([-999.0, -4.0, -999.0]))
        assert result.value.current == -4.0
        assert result.value.samples == 1

    def test_max_min_from_extremes(self, power_payload):
        payload = power_payload([-5.0, -6.0], t2m_max=[4.0, 7.5], t2m_min=[-30.0, -41.2])
        result = reduce_power_payload(ALASKA, payload)
        assert result.value.max == 7.5
        assert result.value.min == -41.2

    def test_max_min_fall_back_to_t2m(self, power_payload):
        result = reduce_power_payload(ALASKA, power_payload([-5.0, -2.0]))
        assert result.value.max == -2.0
        assert result.value.min == -5.0

    def test_no_valid_samples_unavailable(self, power_payload):
        result = reduce_power_payload(ALASKA, power_payload([-999.0, -999.0]))
        assert result.status is SignalStatus.UNAVAILABLE
        assert result.value is None

    def test_implausible_values_low_confidence(self, power_payload):
        result = reduce_power_payload(ALASKA, power_payload([60.0]))
        assert result.status is SignalStatus.LOW_CONFIDENCE
        assert "Implausible" in result.reason
        assert result.value.current == 60.0

    def test_missing_t2m_is_contract_error(self):
        with pytest.raises(MalformedResponseError, match="T2M"):
            reduce_power_payload(ALASKA, {"properties": {"parameter": {}}})

    def test_non_dict_properties_is_contract_error(self):
        with pytest.raises(MalformedResponseError):
            reduce_power_payload(ALASKA, {"properties": "oops"})


class TestFetchTemperatureSignal:
    @mock.patch("permafrost_risk.nasa_power_service.http_requests.get")
    def test_request_parameters(self, mock_get, power_payload):
        mock_get.return_value = _response(power_payload([-3.3]))
        fetch_temperature_signal(ALASKA, timeout=5, today=date(2026, 10, 17))

        _, kwargs = mock_get.call_args
        assert kwargs["timeout"] == 5
        params = kwargs["params"]
        assert params["end"] == "20261016"
        assert params["latitude"] == 70.2
        assert params["longitude"] == -148.8
        assert params["parameters"] == "T2M,T2M_MAX,T2M_MIN"

    @mock.patch("permafrost_risk.nasa_power_service.http_requests.get")
    def test_transport_error_unavailable(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("connection refused")
        result = fetch_temperature_signal(ALASKA)
        assert result.status is SignalStatus.UNAVAILABLE
        assert result.reason.startswith("NASA POWER request failed")

    @mock.patch("permafrost_risk.nasa_power_service.http_requests.get")
    def test_http_error_unavailable(self, mock_get):
        resp = mock.Mock()
        resp.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        mock_get.return_value = resp
        assert fetch_temperature_signal(ALASKA).status is SignalStatus.UNAVAILABLE

    @mock.patch("permafrost_risk.nasa_power_service.http_requests.get")
    def test_cache_reused(self, mock_get, power_payload):
        mock_get.return_value = _response(power_payload([-3.3]))
        cache = ResponseCache(ttl_s=60)
        first = fetch_temperature_signal(ALASKA, cache=cache, today=date(2026, 10, 17))
        second = fetch_temperature_signal(ALASKA, cache=cache, today=date(2026, 10, 17))
        assert first == second
        assert mock_get.call_count == 1

    @mock.patch("permafrost_risk.nasa_power_service.http_requests.get")
    def test_failures_not_cached(self, mock_get):
        mock_get.side_effect = requests.Timeout("read timed out")
        cache = ResponseCache(ttl_s=60)
        fetch_temperature_signal(ALASKA, cache=cache)
        assert len(cache) == 0


class TestResponseCache:
    def test_entries_expire(self):
        clock = [0.0]
        cache = ResponseCache(ttl_s=10, clock=lambda: clock[0])
        cache.set("k", 1)
        assert cache.get("k") == 1
        clock[0] = 10.0
        assert cache.get("k") is None
        assert len(cache) == 0
