"""Tests for the Sentinel-1 coverage lookup against NASA CMR."""

import itertools
from unittest import mock

import pytest
import requests

from permafrost_risk.errors import MalformedResponseError
from permafrost_risk.regions import get_region
from permafrost_risk.sar_service import (
    fetch_sar_coverage,
    footprint_coverage_pct,
    granule_footprint,
    sar_coverage_for,
)
from permafrost_risk.schemas import SourceType
from permafrost_risk.signals import SignalResult, SignalStatus

ALASKA = get_region("alaska")

# West half of the Alaska bbox, then a quarter of the east half
WEST_HALF = {"id": "S1A-1", "time_start": "2026-10-12T05:00:00Z", "boxes": ["68.0 -166.0 72.0 -153.5"]}
EAST_STRIP = {
    "id": "S1A-2",
    "time_start": "2026-10-01T05:00:00Z",
    "polygons": [["68.0 -153.5 68.0 -141.0 70.0 -141.0 70.0 -153.5 68.0 -153.5"]],
}


def _response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestFootprints:
    def test_polygon_ring_is_lat_lon(self):
        footprint = granule_footprint(EAST_STRIP)
        assert footprint.bounds == (-153.5, 68.0, -141.0, 70.0)

    def test_box_when_no_polygon(self):
        assert granule_footprint(WEST_HALF).bounds == (-166.0, 68.0, -153.5, 72.0)

    def test_unparseable_granule(self):
        assert granule_footprint({"id": "x", "polygons": [["not numbers"]]}) is None
        assert granule_footprint({"id": "x"}) is None

    def test_union_clipped_to_region(self):
        footprints = [granule_footprint(WEST_HALF), granule_footprint(EAST_STRIP), granule_footprint(WEST_HALF)]
        assert footprint_coverage_pct(ALASKA, footprints) == 75.0

    def test_no_footprints(self):
        assert footprint_coverage_pct(ALASKA, []) == 0.0


class TestFetchSarCoverage:
    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_coverage_from_catalog(self, mock_get, monkeypatch, now):
        monkeypatch.delenv("EARTHDATA_TOKEN", raising=False)
        mock_get.return_value = _response({"feed": {"entry": [WEST_HALF, EAST_STRIP]}})

        result = fetch_sar_coverage(ALASKA, now=now)

        assert result.status is SignalStatus.OK
        coverage = result.value
        assert coverage.available is True
        assert coverage.data_count == 2
        assert coverage.latest_date == "2026-10-12T05:00:00Z"
        assert coverage.footprint_coverage_pct == 75.0
        assert coverage.data_source.type is SourceType.REAL_MEASUREMENT

        _, kwargs = mock_get.call_args
        assert kwargs["params"]["collection_concept_id"] == "C1214470488-ASF"
        assert kwargs["params"]["bounding_box"] == "-166,68,-141,72"
        assert kwargs["params"]["temporal"] == "2025-10-15T12:00:00Z,2026-10-15T12:00:00Z"
        assert kwargs["params"]["sort_key"] == "-start_date"
        assert kwargs["headers"] == {}

    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_token_sent_when_configured(self, mock_get, now):
        mock_get.return_value = _response({"feed": {"entry": []}})
        fetch_sar_coverage(ALASKA, token="abc", now=now)
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer abc"

    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_empty_catalog_is_a_real_answer(self, mock_get, now):
        mock_get.return_value = _response({"feed": {"entry": []}})
        result = fetch_sar_coverage(ALASKA, now=now)
        assert result.status is SignalStatus.OK
        assert result.value.available is False
        assert result.value.data_count == 0
        assert result.value.latest_date is None

    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_transport_error_unavailable(self, mock_get, now):
        mock_get.side_effect = requests.ConnectionError("ASF unreachable")
        result = fetch_sar_coverage(ALASKA, now=now)
        assert result.status is SignalStatus.UNAVAILABLE
        assert "ASF unreachable" in result.reason

    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_spent_budget_sends_nothing(self, mock_get, now):
        clock = itertools.count(0, 30).__next__
        result = fetch_sar_coverage(ALASKA, timeout=20, now=now, clock=clock)
        assert result.status is SignalStatus.UNAVAILABLE
        assert "budget" in result.reason
        mock_get.assert_not_called()

    @mock.patch("permafrost_risk.sar_service.http_requests.get")
    def test_malformed_feed_raises(self, mock_get, now):
        mock_get.return_value = _response({"feed": {"entry": "S1A"}})
        with pytest.raises(MalformedResponseError):
            fetch_sar_coverage(ALASKA, now=now)


class TestSarCoverageFor:
    def test_unavailable_becomes_explicit_record(self, now):
        coverage = sar_coverage_for(SignalResult.unavailable("Earthdata CMR SAR search failed: 503"), now)
        assert coverage.available is False
        assert coverage.footprint_coverage_pct == 0.0
        assert coverage.fallback_reason == "Earthdata CMR SAR search failed: 503"
        assert coverage.data_source.type is SourceType.ESTIMATED
        assert coverage.data_source.source == "Sentinel-1 SAR catalog unavailable"
