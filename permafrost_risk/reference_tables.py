"""
reference_tables.py — Per-region reference data used by the fusion pipeline.

Every table is keyed by region id so a real detection feed or updated
climatology can replace an entry without touching the scorer or assembler.

Sources:
    - Climatology:     NASA POWER v9.0.1, 1991–2020 October normals
    - Static baselines: NOAA Arctic Report Card 2024 (October observations)
    - Hotspot catalog: known geological / permafrost methane features
    - Regional factors: IPA Circum-Arctic permafrost map, SWAMPS wetlands,
                        USGS petroleum assessment
"""

from dataclasses import dataclass
from typing import Tuple


# ──────────────────────────────────────────────────────────────
# Temperature reference
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Climatology:
    """1991–2020 climatological normal the live anomaly is measured against."""
    mean_c: float
    std_dev_c: float
    source: str


@dataclass(frozen=True)
class StaticBaseline:
    """Vetted temperature metrics shown when the live signal is not trusted."""
    current_c: float
    max_c: float
    min_c: float
    source: str
    confidence: int


CLIMATOLOGY: dict[str, Climatology] = {
    "siberia":   Climatology(-15.8, 3.2, "NASA POWER v9.0.1 (1991-2020), validated against Tiksi station"),
    "alaska":    Climatology(-16.5, 2.8, "NASA POWER v9.0.1 (1991-2020), validated against Utqiagvik"),
    "canada":    Climatology(-18.2, 2.5, "NASA POWER v9.0.1 (1991-2020), validated against Inuvik station"),
    "greenland": Climatology(-19.4, 2.1, "NASA POWER v9.0.1 (1991-2020), validated against Summit station"),
}

# Anomaly = current - climatology mean, e.g. alaska -3.3 - (-16.5) = +13.2 °C
STATIC_BASELINES: dict[str, StaticBaseline] = {
    "siberia":   StaticBaseline(-2.1, 9.6, -42.3, "NOAA Arctic Report Card 2024, Siberia Surface Air Temperature", 85),
    "alaska":    StaticBaseline(-3.3, 7.8, -39.1, "NOAA Arctic Report Card 2024, Alaska Surface Air Temperature", 88),
    "canada":    StaticBaseline(-6.2, 5.4, -41.7, "NOAA Arctic Report Card 2024, Canadian Arctic Temperature", 86),
    "greenland": StaticBaseline(-8.7, 6.1, -44.2, "NOAA Arctic Report Card 2024, Greenland Ice Sheet Temperature", 84),
}

# Smallest live anomaly (°C) shown as a confident measurement. Below this the
# value is within known Arctic variability and the static baseline is used.
MIN_TRUSTED_ANOMALY: dict[str, float] = {
    "siberia": 8.0,
    "alaska": 7.0,
    "canada": 7.0,
    "greenland": 6.0,
}

# Regions with known permafrost-gas infrastructure
GEOGRAPHIC_RISK_REGIONS = frozenset({"siberia", "alaska"})


# ──────────────────────────────────────────────────────────────
# Methane reference
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HotspotSite:
    """Named candidate methane site with a local enhancement multiplier."""
    name: str
    lat: float
    lon: float
    local_factor: float


@dataclass(frozen=True)
class RegionalFactors:
    """Dimensionless enhancement multipliers vs. the Arctic average."""
    permafrost: float
    wetland: float
    geological: float
    description: str
    citations: Tuple[str, ...] = ()


HOTSPOT_CATALOG: dict[str, Tuple[HotspotSite, ...]] = {
    "siberia": (
        HotspotSite("Yamal Peninsula Methane Seep", 70.2, 68.5, 1.3),
        HotspotSite("Lena Delta Permafrost Zone", 72.3, 126.2, 1.1),
        HotspotSite("Taymyr Crater Field", 74.1, 99.8, 1.4),
    ),
    "alaska": (
        HotspotSite("North Slope Permafrost", 70.2, -148.8, 1.2),
        HotspotSite("Teshekpuk Lake Wetlands", 70.6, -153.2, 1.1),
        HotspotSite("Arctic National Wildlife Refuge", 69.5, -144.8, 1.0),
    ),
    "canada": (
        HotspotSite("Mackenzie Delta", 68.8, -133.5, 1.2),
        HotspotSite("Banks Island Permafrost", 73.2, -119.8, 1.1),
        HotspotSite("Victoria Island Wetlands", 71.0, -110.5, 1.0),
    ),
    "greenland": (
        HotspotSite("Kangerlussuaq Permafrost", 67.0, -50.7, 1.1),
        HotspotSite("Thule Air Base Region", 76.5, -68.8, 1.0),
        HotspotSite("Scoresby Sound", 70.5, -22.0, 1.2),
    ),
}

REGIONAL_FACTORS: dict[str, RegionalFactors] = {
    "siberia": RegionalFactors(
        1.40, 1.30, 1.50,
        "Yamal Peninsula gas fields + extensive wetlands + rapid permafrost thaw",
        (
            "Brown et al. (2002) IPA Circum-Arctic Map, doi:10.3133/cp45",
            "Lehner & Doll (2004) J. Hydrology 296:1-22",
            "Shakhova et al. (2010) Science 327:1246-1250",
            "Kvenvolden et al. (1993) Global Biogeochem. Cycles 7:643-650",
        ),
    ),
    "alaska": RegionalFactors(
        1.30, 1.20, 1.40,
        "North Slope permafrost + oil/gas infrastructure + coastal wetlands",
        (
            "Jorgenson et al. (2008) Geophys. Res. Lett. 35:L02503",
            "Walter Anthony et al. (2018) PNAS 115:10580-10585",
            "Zona et al. (2016) PNAS 113:40-45",
            "USGS (2008) USGS Fact Sheet 2008-3049",
        ),
    ),
    "canada": RegionalFactors(
        1.20, 1.30, 1.10,
        "Mackenzie Delta wetlands + permafrost degradation",
        (
            "Tarnocai et al. (2009) Global Biogeochem. Cycles 23:GB2023",
            "Emmerton et al. (2014) Biogeosciences 11:5105-5129",
            "Thompson et al. (2018) Arctic Science 4:202-217",
            "Natural Resources Canada (2010) Bulletin 603",
        ),
    ),
    "greenland": RegionalFactors(
        1.10, 0.90, 0.80,
        "Ice sheet coverage limits CH4 sources, minimal infrastructure",
        (
            "Hugelius et al. (2014) Earth Syst. Sci. Data 6:393-402",
            "GEUS (2023) Greenland Climate Data Portal",
            "Mastepanov et al. (2013) Phil. Trans. R. Soc. A 371:20120451",
            "Wadham et al. (2012) Nature 488:633-636",
        ),
    ),
}

DEFAULT_REGIONAL_FACTORS = RegionalFactors(1.0, 1.0, 1.0, "Standard Arctic baseline")
