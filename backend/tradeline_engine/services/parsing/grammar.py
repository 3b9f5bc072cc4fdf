"""
Tradeline Engine - Field Grammar

Regex extractors for the typed fields of a bureau account record. Each
extractor takes a free-text fragment and returns a ScoredValue, or None when
nothing matches.

Confidences are FIXED per grammar, not computed. The quality gate thresholds
(0.90 numeric, 0.75 categorical/date) are calibrated against these exact
values.
"""
from __future__ import annotations
import math
import re
from typing import Optional

from ...models.ssot import ScoredValue


# =============================================================================
# CONSTANTS
# =============================================================================

MONEY_CONFIDENCE = 0.95
MONTH_ISO_CONFIDENCE = 0.90
MONTH_NAME_CONFIDENCE = 0.80
STATUS_CONFIDENCE = 0.80
OWNERSHIP_CONFIDENCE = 0.90

# Grouped form ("2,450.00") must carry at least one comma group, otherwise a
# bare "2450" would stop after three digits.
MONEY_RE = re.compile(r"\$?\s*(-?(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)(?:\.[0-9]{2})?)")
MONTH_RE = re.compile(
    r"(?:(\d{4})[-/](\d{2}))|(?:(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s*(\d{4}))",
    re.IGNORECASE,
)
STATUS_RE = re.compile(r"(open|closed|paid|charge ?off|delinquent|current|late)", re.IGNORECASE)
OWNERSHIP_RE = re.compile(r"(individual|joint|authorized user|business)", re.IGNORECASE)

MONTH_TO_NUM = {
    "jan": "01", "feb": "02", "mar": "03", "apr": "04", "may": "05", "jun": "06",
    "jul": "07", "aug": "08", "sep": "09", "oct": "10", "nov": "11", "dec": "12",
}


def _normalize_keyword(text: str) -> str:
    return re.sub(r"\s+", "_", text).lower()


# =============================================================================
# EXTRACTORS
# =============================================================================

def parse_money(text: str) -> Optional[ScoredValue]:
    """Parse "$1,234.56" / "1234" style amounts."""
    match = MONEY_RE.search(text or "")
    if not match:
        return None

    cleaned = re.sub(r"[$,\s]", "", match.group(1))
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return ScoredValue(value=value, confidence=MONEY_CONFIDENCE)


def parse_month(text: str) -> Optional[ScoredValue]:
    """Parse "2024-01", "2024/01" or "January 2024" into "YYYY-MM"."""
    match = MONTH_RE.search(text or "")
    if not match:
        return None

    year, month, month_name, named_year = match.groups()
    if year and month:
        return ScoredValue(value=f"{year}-{month}", confidence=MONTH_ISO_CONFIDENCE)

    if month_name and named_year:
        month_num = MONTH_TO_NUM.get(month_name[:3].lower())
        if not month_num:
            return None
        return ScoredValue(value=f"{named_year}-{month_num}", confidence=MONTH_NAME_CONFIDENCE)

    return None


def parse_status(text: str) -> Optional[ScoredValue]:
    """Parse an account status keyword ("Open", "Charge Off" -> "charge_off")."""
    match = STATUS_RE.search(text or "")
    if not match:
        return None
    return ScoredValue(value=_normalize_keyword(match.group(1)), confidence=STATUS_CONFIDENCE)


def parse_ownership(text: str) -> Optional[ScoredValue]:
    """Parse responsibility ("Authorized User" -> "authorized_user")."""
    match = OWNERSHIP_RE.search(text or "")
    if not match:
        return None
    return ScoredValue(value=_normalize_keyword(match.group(1)), confidence=OWNERSHIP_CONFIDENCE)
