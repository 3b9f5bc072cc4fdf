"""
Tradeline Engine - Odds and EV Primitives

Pure, deterministic functions over fixed lookup tables:
- APR clamping and estimation by product type and score band
- Utilization brackets
- Success odds per (score band, utilization bracket)
- Expected savings per remediation action
- Pessimistic/optimistic scenario bounds (one score-band tier down/up)

Degenerate inputs (non-positive balances, probabilities, months) yield 0.
The only raising path is clamp_apr on a non-finite APR.
"""
from __future__ import annotations
import math
from types import MappingProxyType
from typing import Callable, Mapping, Tuple

from ...models.ev_models import ProductType, ScoreBand, UtilizationBracket


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_APR = 9.99
MAX_APR = 34.99
LATE_PENALTY = 0.45
MIN_PAYMENT_FLOOR = 25
MIN_PAYMENT_RATIO = 0.02

# Upper bound (inclusive, percent) of each bracket, in order
UTILIZATION_BRACKETS: Tuple[Tuple[float, UtilizationBracket], ...] = (
    (9, UtilizationBracket.UNDER_10),
    (29, UtilizationBracket.UNDER_30),
    (49, UtilizationBracket.UNDER_50),
    (79, UtilizationBracket.UNDER_80),
    (math.inf, UtilizationBracket.OVER_80),
)

UTILIZATION_ORDER: Tuple[UtilizationBracket, ...] = tuple(label for _, label in UTILIZATION_BRACKETS)

SCORE_BAND_ADJUSTMENTS: Mapping[ScoreBand, float] = MappingProxyType({
    ScoreBand.EXCELLENT: -0.05,
    ScoreBand.VERY_GOOD: -0.03,
    ScoreBand.GOOD: -0.015,
    ScoreBand.FAIR: 0.01,
    ScoreBand.POOR: 0.03,
    ScoreBand.UNKNOWN: 0.02,
})

PRODUCT_APR_BASELINE: Mapping[ProductType, float] = MappingProxyType({
    ProductType.CREDIT_CARD: 24.99,
    ProductType.CHARGE_CARD: 23.5,
    ProductType.PERSONAL_LOAN: 18.99,
    ProductType.AUTO_LOAN: 9.5,
    ProductType.STUDENT_LOAN: 7.1,
    ProductType.MORTGAGE: 6.5,
    ProductType.HOME_EQUITY: 8.2,
    ProductType.SECURED_CARD: 26.99,
    ProductType.OTHER: 19.99,
})

DELTA_APR_TABLE: Mapping[ScoreBand, float] = MappingProxyType({
    ScoreBand.EXCELLENT: 8,
    ScoreBand.VERY_GOOD: 6,
    ScoreBand.GOOD: 4,
    ScoreBand.FAIR: 3,
    ScoreBand.POOR: 2,
    ScoreBand.UNKNOWN: 3.5,
})

OddsTable = Mapping[ScoreBand, Mapping[UtilizationBracket, float]]


def _odds_table(rows) -> OddsTable:
    """rows: band -> odds in UTILIZATION_ORDER."""
    return MappingProxyType({
        band: MappingProxyType(dict(zip(UTILIZATION_ORDER, odds)))
        for band, odds in rows.items()
    })


APR_REDUCTION_ODDS_TABLE: OddsTable = _odds_table({
    ScoreBand.EXCELLENT: (0.85, 0.78, 0.62, 0.44, 0.22),
    ScoreBand.VERY_GOOD: (0.8, 0.7, 0.53, 0.35, 0.18),
    ScoreBand.GOOD: (0.7, 0.58, 0.42, 0.26, 0.12),
    ScoreBand.FAIR: (0.55, 0.4, 0.25, 0.15, 0.06),
    ScoreBand.POOR: (0.35, 0.22, 0.12, 0.05, 0.02),
    ScoreBand.UNKNOWN: (0.45, 0.32, 0.18, 0.11, 0.05),
})

BALANCE_TRANSFER_ODDS_TABLE: OddsTable = _odds_table({
    ScoreBand.EXCELLENT: (0.75, 0.68, 0.55, 0.36, 0.18),
    ScoreBand.VERY_GOOD: (0.7, 0.6, 0.46, 0.3, 0.15),
    ScoreBand.GOOD: (0.6, 0.5, 0.35, 0.22, 0.1),
    ScoreBand.FAIR: (0.45, 0.32, 0.2, 0.12, 0.04),
    ScoreBand.POOR: (0.28, 0.18, 0.1, 0.03, 0.01),
    ScoreBand.UNKNOWN: (0.38, 0.26, 0.15, 0.08, 0.03),
})

# Tier order for scenario shifts; UNKNOWN shifts as FAIR
SCORE_BAND_ORDER: Tuple[ScoreBand, ...] = (
    ScoreBand.POOR, ScoreBand.FAIR, ScoreBand.GOOD, ScoreBand.VERY_GOOD, ScoreBand.EXCELLENT,
)


# =============================================================================
# APR
# =============================================================================

def to_cents(value: float) -> float:
    return round(value, 2)


def clamp_probability(value: float) -> float:
    return min(1.0, max(0.0, value))


def clamp_apr(apr: float) -> float:
    """Round to cents and clamp into [MIN_APR, MAX_APR]."""
    if apr is None or not math.isfinite(apr):
        raise ValueError("APR must be a finite number")
    return min(MAX_APR, max(MIN_APR, to_cents(apr)))


def estimate_apr(product_type: ProductType, score_band: ScoreBand) -> float:
    """Product baseline adjusted by the score band's percentage, clamped."""
    base = PRODUCT_APR_BASELINE.get(product_type, PRODUCT_APR_BASELINE[ProductType.OTHER])
    adjustment = SCORE_BAND_ADJUSTMENTS.get(score_band, 0)
    return clamp_apr(base + base * adjustment)


def util_bracket(util_percent: float) -> UtilizationBracket:
    if util_percent is None or not math.isfinite(util_percent) or util_percent < 0:
        return UtilizationBracket.UNDER_10
    for upper, label in UTILIZATION_BRACKETS:
        if util_percent <= upper:
            return label
    return UtilizationBracket.OVER_80


def bump_bracket(bracket: UtilizationBracket) -> UtilizationBracket:
    """One notch worse, saturating at OVER_80."""
    index = UTILIZATION_ORDER.index(bracket)
    return UTILIZATION_ORDER[min(index + 1, len(UTILIZATION_ORDER) - 1)]


def min_payment(balance: float, apr: float) -> float:
    if balance <= 0:
        return 0
    raw = balance * MIN_PAYMENT_RATIO + balance * (apr / 100) / 12
    return max(MIN_PAYMENT_FLOOR, math.ceil(raw))


def expected_monthly_savings(balance: float, current_apr: float, band: ScoreBand) -> float:
    """Monthly interest saved if the APR moved by the band's adjustment."""
    if balance <= 0:
        return 0
    new_apr = clamp_apr(current_apr + current_apr * SCORE_BAND_ADJUSTMENTS[band])
    return to_cents(balance * (current_apr - new_apr) / 12 / 100)


# =============================================================================
# ODDS
# =============================================================================

def lookup_odds(table: OddsTable, score_band: ScoreBand, bracket: UtilizationBracket) -> float:
    row = table.get(score_band) or table[ScoreBand.UNKNOWN]
    return row.get(bracket, row[UtilizationBracket.OVER_80])


def apr_reduction_odds(score_band: ScoreBand, bracket: UtilizationBracket, any_60d_late: bool) -> float:
    base = lookup_odds(APR_REDUCTION_ODDS_TABLE, score_band, bracket)
    return clamp_probability(base * LATE_PENALTY if any_60d_late else base)


def balance_transfer_odds(score_band: ScoreBand, bracket: UtilizationBracket, any_60d_late: bool) -> float:
    base = lookup_odds(BALANCE_TRANSFER_ODDS_TABLE, score_band, bracket)
    return clamp_probability(base * LATE_PENALTY if any_60d_late else base)


# =============================================================================
# EXPECTED VALUE
# =============================================================================

def ev_late_fee(p_refund: float, fee_amount: float) -> float:
    if p_refund <= 0 or fee_amount <= 0:
        return 0
    return to_cents(clamp_probability(p_refund) * fee_amount)


def _ev_rate_delta(p: float, delta_apr: float, avg_balance: float, months_active: float) -> float:
    if p <= 0 or delta_apr <= 0 or avg_balance <= 0 or months_active <= 0:
        return 0
    monthly_savings = (delta_apr / 100 / 12) * avg_balance
    return to_cents(clamp_probability(p) * monthly_savings * months_active)


def ev_penalty_apr(p_reversion: float, delta_apr: float, avg_balance: float, months_active: float) -> float:
    return _ev_rate_delta(p_reversion, delta_apr, avg_balance, months_active)


def ev_apr_reduction(p_success: float, delta_apr: float, avg_balance: float, months_active: float) -> float:
    return _ev_rate_delta(p_success, delta_apr, avg_balance, months_active)


def ev_balance_transfer(
    p_approval: float,
    apr_src: float,
    amount_transferred: float,
    fee_rate: float,
    months_active: float,
) -> float:
    """Interest avoided at 0% minus the transfer fee, floored at 0, times odds."""
    if p_approval <= 0 or apr_src <= 0 or amount_transferred <= 0 or fee_rate < 0 or months_active <= 0:
        return 0
    interest_savings = (apr_src / 100 / 12) * amount_transferred * months_active
    net_savings = interest_savings - amount_transferred * fee_rate
    if net_savings <= 0:
        return 0
    return to_cents(clamp_probability(p_approval) * net_savings)


def scenario_bounds(score_band: ScoreBand, lookup: Callable[[ScoreBand], float]) -> Tuple[float, float]:
    """
    (lookup(one tier worse), lookup(one tier better)), saturating at the ends.

    Returned as computed; low <= high is not enforced.
    """
    effective = score_band if score_band in SCORE_BAND_ORDER else ScoreBand.FAIR
    index = SCORE_BAND_ORDER.index(effective)
    down = SCORE_BAND_ORDER[max(0, index - 1)]
    up = SCORE_BAND_ORDER[min(len(SCORE_BAND_ORDER) - 1, index + 1)]
    return lookup(down), lookup(up)
