"""Tests for the calculated methane estimates."""

import pytest

from permafrost_risk.methane_model import (
    catalog_concentration,
    estimate_catalog_hotspots,
    estimate_regional_methane,
    prioritize_observations,
    regional_concentration,
    top_observation,
)
from permafrost_risk.regions import Region, get_region
from permafrost_risk.schemas import RiskTier, SourceType
from permafrost_risk.signals import SignalResult
from permafrost_risk.trust_resolver import resolve_temperature

ALASKA = get_region("alaska")


class TestCatalogHotspots:
    def test_concentration_formula(self):
        # 1850 + 13.2 * 12 + 0.2 * 100
        assert catalog_concentration(13.2, 1.2) == 2028

    def test_concentration_floor(self):
        assert catalog_concentration(-20.0, 1.0) == 1750

    def test_sorted_and_calculated(self, now):
        hotspots = estimate_catalog_hotspots(ALASKA, 13.2, now)
        assert [h.concentration for h in hotspots] == [2028, 2018, 2008]
        assert hotspots[0].name == "North Slope Permafrost"
        for h in hotspots:
            assert h.data_source.type is SourceType.CALCULATED
            assert h.confidence == 88
            assert h.region_id == "alaska"

    def test_only_salient_sites_returned(self, now):
        hotspots = estimate_catalog_hotspots(ALASKA, 0.0, now)
        assert [h.concentration for h in hotspots] == [1870, 1860]
        assert all(h.risk is RiskTier.MEDIUM for h in hotspots)

    def test_full_list_when_nothing_salient(self, now):
        hotspots = estimate_catalog_hotspots(ALASKA, -5.0, now)
        assert len(hotspots) == 3
        assert all(h.risk is RiskTier.LOW for h in hotspots)

    def test_unknown_catalog_entry_empty(self, now):
        nowhere = Region(id="nowhere", name="Nowhere", lat=0.0, lon=0.0, bbox=(0, 0, 1, 1))
        assert estimate_catalog_hotspots(nowhere, 5.0, now) == []


class TestRegionalEstimate:
    def test_alaska_formula(self):
        # 1800 + 13.2 * 12 * 1.3 * 0.5 + 30 * 1.2 + 25 * 1.4
        assert regional_concentration("alaska", 13.2) == 1974

    def test_clamped_high(self):
        assert regional_concentration("siberia", 50.0) == 2200

    def test_clamped_low(self):
        assert regional_concentration("greenland", -30.0) == 1750

    def test_default_factors(self):
        assert regional_concentration("nowhere", 0.0) == 1855

    def test_estimate_record(self, now):
        temperature = resolve_temperature(ALASKA, SignalResult.unavailable("offline"), now)
        estimate = estimate_regional_methane(ALASKA, temperature, now)
        assert estimate.concentration == 1974
        assert estimate.based_on == "Temperature anomaly of 13.2°C + regional factors"
        assert estimate.data_source.type is SourceType.CALCULATED
        assert estimate.data_source.confidence == 88
        assert any(flag.startswith("Reference:") for flag in estimate.data_source.qa_flags)


class TestSelection:
    def test_prioritize_descending(self, real_observation):
        ranked = prioritize_observations([
            real_observation("alaska", 1900, granule_id="a"),
            real_observation("alaska", 2100, granule_id="b"),
        ])
        assert [o.granule_id for o in ranked] == ["b", "a"]

    def test_top_prefers_real_measurement(self, real_observation, now):
        calculated = estimate_catalog_hotspots(ALASKA, 30.0, now)
        real = real_observation("alaska", 1870)
        assert top_observation(calculated + [real]) is real

    def test_top_highest_calculated(self, now):
        calculated = estimate_catalog_hotspots(ALASKA, 13.2, now)
        assert top_observation(list(reversed(calculated))).concentration == 2028

    def test_top_empty(self):
        assert top_observation([]) is None


@pytest.mark.parametrize("region_id", ["siberia", "alaska", "canada", "greenland"])
def test_every_region_has_catalog_sites(region_id, now):
    assert estimate_catalog_hotspots(get_region(region_id), 10.0, now)
