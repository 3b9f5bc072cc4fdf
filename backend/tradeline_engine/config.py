"""
Tradeline Engine - Configuration

Environment-backed settings, read once at import.
"""
import logging
import os
from types import MappingProxyType
from typing import List, Mapping

from .models.ssot import Bureau, QualityThresholds

logger = logging.getLogger(__name__)


def env_str(name: str, default: str) -> str:
    """Fetch a string environment variable."""
    return os.getenv(name, default)


def env_float(name: str, default: float) -> float:
    """Parse a float environment variable."""
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={val!r}; using {default}")
        return default


def env_list(name: str, default: List[str]) -> List[str]:
    """Parse a comma-separated list environment variable."""
    val = os.getenv(name)
    if val is None:
        return default
    parts = [p.strip() for p in val.split(",") if p.strip()]
    return parts or default


ENGINE_VERSION = env_str("TRADELINE_ENGINE_VERSION", "v1.0.0")
LOG_LEVEL = env_str("TRADELINE_LOG_LEVEL", "INFO").upper()
CORS_ALLOW_ORIGINS = env_list("TRADELINE_CORS_ORIGINS", ["*"])


# =============================================================================
# QUALITY GATE THRESHOLDS
# =============================================================================

# Equifax is the primary, fully supported bureau.
PRIMARY_BUREAU = Bureau.EQUIFAX

PRIMARY_THRESHOLDS = QualityThresholds(
    coverage_percent=env_float("TRADELINE_PRIMARY_COVERAGE_MIN", 70),
    numeric_exact_percent=env_float("TRADELINE_PRIMARY_NUMERIC_MIN", 60),
    categorical_date_percent=env_float("TRADELINE_PRIMARY_CATEGORICAL_MIN", 60),
)

# Experian and TransUnion parsing is in beta; their bar is stricter than the primary one.
BETA_THRESHOLDS = QualityThresholds(
    coverage_percent=env_float("TRADELINE_BETA_COVERAGE_MIN", 80),
    numeric_exact_percent=env_float("TRADELINE_BETA_NUMERIC_MIN", 95),
    categorical_date_percent=env_float("TRADELINE_BETA_CATEGORICAL_MIN", 95),
)

BUREAU_THRESHOLDS: Mapping[Bureau, QualityThresholds] = MappingProxyType({
    Bureau.EQUIFAX: PRIMARY_THRESHOLDS,
    Bureau.EXPERIAN: BETA_THRESHOLDS,
    Bureau.TRANSUNION: BETA_THRESHOLDS,
})


def thresholds_for(bureau: Bureau) -> QualityThresholds:
    """Thresholds for a bureau; bureaus without an entry use the primary bar."""
    return BUREAU_THRESHOLDS.get(Bureau.coerce(bureau), PRIMARY_THRESHOLDS)
