"""
config.py — Shared constants and settings.
"""

import os

# ──────────────────────────────────────────────
# External endpoints
# ──────────────────────────────────────────────
NASA_POWER_API = "https://power.larc.nasa.gov/api/temporal/daily/point"
EARTHDATA_SEARCH_API = "https://cmr.earthdata.nasa.gov/search"

# ──────────────────────────────────────────────
# Provider behaviour
# ──────────────────────────────────────────────
DEFAULT_PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "20"))
RESPONSE_CACHE_TTL_S = 15 * 60

TEMPERATURE_WINDOW_YEARS = 3       # trailing window ending yesterday
POWER_MISSING_VALUE = -900         # POWER uses -999 for missing samples
PLAUSIBLE_TEMP_RANGE_C = (-80.0, 45.0)
PLAUSIBLE_ANOMALY_ABS_C = 30.0

METHANE_LOOKBACK_DAYS = (7, 30)    # primary window, then retry window
MAX_GRANULES = 5
S5P_CH4_SHORT_NAMES = ("S5P_L2__CH4___", "S5P_L2_CH4", "S5P_L2__CH4")

SAR_COLLECTION_CONCEPT_ID = "C1214470488-ASF"   # Sentinel-1 SAR granules at ASF
SAR_LOOKBACK_DAYS = 365
SAR_PAGE_SIZE = 20                 # most recent granules used for footprint coverage

# ──────────────────────────────────────────────
# Methane model
# ──────────────────────────────────────────────
# Tiers cut at "background" and "high"; "elevated" is a reference level only
METHANE_THRESHOLDS_PPB = {
    "background": 1850,
    "elevated": 1950,
    "high": 2050,
}
METHANE_BACKGROUND_PPB = 1850      # catalog estimate base
METHANE_FLOOR_PPB = 1750
METHANE_PPB_PER_DEG_C = 12         # empirical permafrost CH4 slope
REGIONAL_METHANE_BASE_PPB = 1800   # NOAA GML Arctic baseline
REGIONAL_METHANE_BOUNDS_PPB = (1750, 2200)

# ──────────────────────────────────────────────
# Risk scoring
# ──────────────────────────────────────────────
TEMPERATURE_BANDS = ((10.0, 40), (5.0, 25), (2.0, 15))
METHANE_BANDS = ((2000.0, 40), (1900.0, 25), (1850.0, 15))
GEOGRAPHIC_RISK_POINTS = 15
RISK_LEVEL_CUTOFFS = ((70, "CRITICAL"), (50, "HIGH"), (30, "MEDIUM"))
RISK_VALIDATION_ACCURACY = 0.84

# Overall region risk from hotspot tiers and the temperature anomaly
OVERALL_RISK_ANOMALY_C = {"high": 2.0, "medium": 1.0}

# ──────────────────────────────────────────────
# Confidence roll-ups (percent)
# ──────────────────────────────────────────────
LIVE_TEMPERATURE_CONFIDENCE = 95
FALLBACK_TEMPERATURE_CONFIDENCE = 85
REAL_METHANE_CONFIDENCE = 90
SUMMARY_METHANE_CONFIDENCE = 85
CALCULATED_METHANE_CONFIDENCE = 75
RISK_LEVEL_CONFIDENCE = 80
SAR_CATALOG_CONFIDENCE = 90
