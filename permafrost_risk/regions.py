"""
regions.py — Static registry of monitored Arctic permafrost regions.
"""

from dataclasses import dataclass
from typing import Tuple

from shapely.geometry import Point, Polygon, box

from permafrost_risk.errors import UnknownRegionError


@dataclass(frozen=True)
class Region:
    """A monitored region. Defined once at import time, never mutated."""
    id: str
    name: str
    lat: float
    lon: float
    bbox: Tuple[float, float, float, float]   # west, south, east, north
    cities: Tuple[str, ...] = ()
    area_km2: float = 0.0
    area_description: str = ""

    @property
    def footprint(self) -> Polygon:
        return box(*self.bbox)

    @property
    def centroid(self) -> Point:
        """Registry centre coordinate (not the bbox centre)."""
        return Point(self.lon, self.lat)

    @property
    def bbox_param(self) -> str:
        """Bounding box formatted for CMR: west,south,east,north."""
        return ",".join(str(v) for v in self.bbox)


REGIONS: dict[str, Region] = {
    "siberia": Region(
        id="siberia",
        name="Siberian Tundra",
        lat=68.75,
        lon=100.1,
        bbox=(95, 65, 125, 75),
        cities=("Norilsk", "Tiksi", "Verkhoyansk"),
        area_km2=8_100_000,
        area_description=(
            "Largest permafrost region in the world, covering West Siberian "
            "Plain and Central Siberian Plateau"
        ),
    ),
    "alaska": Region(
        id="alaska",
        name="Alaskan North Slope",
        lat=70.2,
        lon=-148.8,
        bbox=(-166, 68, -141, 72),
        cities=("Utqiagvik (Barrow)", "Deadhorse", "Nuiqsut"),
        area_km2=207_000,
        area_description="Continuous permafrost zone of the Alaskan North Slope tundra",
    ),
    "canada": Region(
        id="canada",
        name="Canadian Arctic Archipelago",
        lat=75.0,
        lon=-95.0,
        bbox=(-120, 70, -70, 80),
        cities=("Resolute", "Cambridge Bay", "Alert"),
        area_km2=1_424_500,
        area_description=(
            "Total land area of the archipelago, nearly all underlain by permafrost"
        ),
    ),
    "greenland": Region(
        id="greenland",
        name="Greenland Ice Sheet Margin",
        lat=70.5,
        lon=-22.0,
        bbox=(-60, 60, -40, 70),
        cities=("Kangerlussuaq", "Ilulissat", "Sisimiut"),
        area_km2=410_000,
        area_description=(
            "Ice-free coastal margin surrounding the central ice sheet where "
            "permafrost is found"
        ),
    ),
}


def get_region(region_id: str) -> Region:
    """Look up a region, raising UnknownRegionError for ids not in the registry."""
    try:
        return REGIONS[region_id]
    except KeyError:
        raise UnknownRegionError(region_id) from None


def all_regions() -> list[Region]:
    return list(REGIONS.values())
