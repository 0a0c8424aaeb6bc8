"""
schemas.py — Pydantic models for every record the pipeline emits.

All models are frozen (records are derived views, rebuilt on every pass)
and serialise to camelCase JSON for the dashboard and report consumers.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from config import METHANE_THRESHOLDS_PPB, RISK_LEVEL_CUTOFFS


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ─── Enumerations ─────────────────────────────────────────────

class SourceType(str, Enum):
    REAL_MEASUREMENT = "REAL_MEASUREMENT"
    CALCULATED = "CALCULATED"
    ESTIMATED = "ESTIMATED"
    ALGORITHMIC = "ALGORITHMIC"


class RiskTier(str, Enum):
    """Methane concentration tier of a single observation."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def for_concentration(cls, ppb: float) -> "RiskTier":
        """
        low    → ppb ≤ background (1850)
        medium → background < ppb ≤ high (2050)
        high   → ppb > high
        """
        if ppb > METHANE_THRESHOLDS_PPB["high"]:
            return cls.HIGH
        if ppb > METHANE_THRESHOLDS_PPB["background"]:
            return cls.MEDIUM
        return cls.LOW


class RiskLevel(str, Enum):
    """Regional risk classification derived from the risk score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def for_score(cls, score: int) -> "RiskLevel":
        for cutoff, level in RISK_LEVEL_CUTOFFS:
            if score >= cutoff:
                return cls(level)
        return cls.LOW


# ─── Provenance ───────────────────────────────────────────────

class DataSource(CamelModel):
    """Provenance attached to every numeric value the service exposes."""
    type: SourceType
    source: str
    confidence: int = Field(ge=0, le=100)
    last_update: str
    latency: str
    algorithm: Optional[str] = None
    qa_flags: list[str] = []


class Coordinates(CamelModel):
    lat: float
    lon: float
    precision: str


class AreaCoverage(CamelModel):
    square_km: float
    description: str


# ─── Temperature ──────────────────────────────────────────────

class TemperatureValues(CamelModel):
    current: float
    anomaly: float
    max: float
    min: float
    data_source: DataSource


class DataIntegrity(CamelModel):
    using_fallback: bool
    rationale: str


class TemperatureSignal(CamelModel):
    region_id: str
    region_name: str
    coordinates: Coordinates
    temperature: TemperatureValues
    confidence: int
    data_integrity: DataIntegrity


# ─── Methane ──────────────────────────────────────────────────

class BoundingBox(CamelModel):
    south: float
    west: float
    north: float
    east: float


class ObservationMetadata(CamelModel):
    description: Optional[str] = None
    browse_url: Optional[str] = None


class MethaneObservation(CamelModel):
    id: str
    region_id: str
    name: str
    lat: float
    lon: float
    concentration: float
    unit: str = "PPB"
    date: str
    source: str
    data_source: DataSource
    confidence: int
    granule_id: Optional[str] = None
    bounding_box: Optional[BoundingBox] = None
    metadata: Optional[ObservationMetadata] = None

    @computed_field
    @property
    def risk(self) -> RiskTier:
        return RiskTier.for_concentration(self.concentration)


class RegionMethaneData(CamelModel):
    region_id: str
    region_name: str
    hotspots: list[MethaneObservation]
    using_fallback: bool
    fallback_reason: Optional[str] = None


class MethaneEstimate(CamelModel):
    concentration: float
    unit: str = "PPB"
    data_source: DataSource
    based_on: str
    methodology: str


class RegionMethaneSummary(CamelModel):
    region_id: str
    region_name: str
    methane: MethaneEstimate
    hotspot: Optional[MethaneObservation] = None


# ─── Risk ─────────────────────────────────────────────────────

class RiskFactors(CamelModel):
    temperature_anomaly: float
    estimated_methane: float
    geographic_risk: bool


class RiskZone(CamelModel):
    region_id: str
    region_name: str
    coordinates: Coordinates
    area_coverage: Optional[AreaCoverage] = None
    risk_score: int = Field(ge=0, le=100)
    factors: RiskFactors
    data_source: DataSource

    @computed_field(alias="riskLevel")
    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel.for_score(self.risk_score)


class RiskSummary(CamelModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class RiskAssessment(CamelModel):
    zones: list[RiskZone]
    summary: RiskSummary


# ─── Precision zone ───────────────────────────────────────────

class ZoneMethane(CamelModel):
    concentration: float
    unit: str = "PPB"
    data_source: DataSource
    last_observation: str

    @computed_field
    @property
    def risk(self) -> RiskTier:
        return RiskTier.for_concentration(self.concentration)


class PrecisionZone(CamelModel):
    zone_id: str
    region_id: str
    region_name: str
    label: str
    coordinates: Coordinates
    area_coverage: Optional[AreaCoverage] = None
    temperature: TemperatureValues
    methane: ZoneMethane
    hotspot: Optional[MethaneObservation] = None
    using_fallback: bool
    fallback_reason: Optional[str] = None

    @model_validator(mode="after")
    def _fallback_needs_reason(self):
        if self.using_fallback and not self.fallback_reason:
            raise ValueError(f"Zone {self.zone_id} uses fallback without a rationale")
        return self


# ─── SAR coverage ─────────────────────────────────────────────

class SarCoverage(CamelModel):
    """Sentinel-1 granule availability over a region's footprint."""
    available: bool
    data_count: int
    latest_date: Optional[str] = None
    footprint_coverage_pct: float = Field(ge=0, le=100)
    coverage: str = "Sentinel-1 C-band SAR"
    resolution: str = "10m x 10m"
    polarization: str = "VV+VH"
    data_source: DataSource
    fallback_reason: Optional[str] = None


class DataLayers(CamelModel):
    sar: bool
    climate: bool
    methane: bool


# ─── Dashboard payload ────────────────────────────────────────

class ConfidenceRollup(CamelModel):
    temperature: int
    methane: int
    risk_level: int


class DataTransparency(CamelModel):
    real_data_sources: list[str]
    calculated_estimates: list[str]
    update_frequency: str
    confidence: ConfidenceRollup


class Coverage(CamelModel):
    regions_with_real_methane: int
    regions_with_live_temperature: int
    total_regions: int
    fallback_regions: int

    @model_validator(mode="after")
    def _counts_add_up(self):
        if self.regions_with_real_methane + self.fallback_regions != self.total_regions:
            raise ValueError("Methane coverage counts do not add up to total regions")
        return self


class Connectivity(CamelModel):
    nasa_power: str
    earthdata: str
    status: str


class RegionError(CamelModel):
    region_id: str
    error: str


class DashboardResponse(CamelModel):
    connectivity: Connectivity
    real_temperature_data: list[TemperatureSignal]
    real_methane_hotspots: list[RegionMethaneData]
    region_methane_summary: list[RegionMethaneSummary]
    calculated_methane_estimates: list[RegionMethaneSummary]
    algorithmic_risk_assessment: RiskAssessment
    precision_zones: list[PrecisionZone]
    data_transparency: DataTransparency
    coverage: Coverage
    errors: list[RegionError] = []
    last_updated: str


class RegionMetricsResponse(CamelModel):
    region_id: str
    region_name: str
    cities: list[str] = []
    overall_risk: RiskTier
    summary: str
    temperature: TemperatureSignal
    methane: RegionMethaneData
    methane_summary: RegionMethaneSummary
    risk_zone: RiskZone
    precision_zone: PrecisionZone
    sar_coverage: SarCoverage
    data_layers: DataLayers


class HighRiskHotspot(MethaneObservation):
    """A high-tier observation tagged with the name of its region."""
    region_name: str


class HighRiskResponse(CamelModel):
    count: int
    zones: list[HighRiskHotspot]
