"""Tradeline Engine - Expected-Value Engine

Odds tables and EV primitives, the action planner, the manual-edit overlay
and the paydown simulator.
"""
from .odds import (
    MIN_APR,
    MAX_APR,
    APR_REDUCTION_ODDS_TABLE,
    BALANCE_TRANSFER_ODDS_TABLE,
    DELTA_APR_TABLE,
    PRODUCT_APR_BASELINE,
    SCORE_BAND_ADJUSTMENTS,
    to_cents,
    clamp_apr,
    estimate_apr,
    util_bracket,
    bump_bracket,
    min_payment,
    expected_monthly_savings,
    apr_reduction_odds,
    balance_transfer_odds,
    ev_late_fee,
    ev_penalty_apr,
    ev_apr_reduction,
    ev_balance_transfer,
    scenario_bounds,
)
from .planner import EvPlanner, build_ev_plan, analyze
from .overlay import build_accounts_from_review, build_analyze_input
from .paydown import simulate_paydown, ev_paydown

__all__ = [
    "MIN_APR",
    "MAX_APR",
    "APR_REDUCTION_ODDS_TABLE",
    "BALANCE_TRANSFER_ODDS_TABLE",
    "DELTA_APR_TABLE",
    "PRODUCT_APR_BASELINE",
    "SCORE_BAND_ADJUSTMENTS",
    "to_cents",
    "clamp_apr",
    "estimate_apr",
    "util_bracket",
    "bump_bracket",
    "min_payment",
    "expected_monthly_savings",
    "apr_reduction_odds",
    "balance_transfer_odds",
    "ev_late_fee",
    "ev_penalty_apr",
    "ev_apr_reduction",
    "ev_balance_transfer",
    "scenario_bounds",
    "EvPlanner",
    "build_ev_plan",
    "analyze",
    "build_accounts_from_review",
    "build_analyze_input",
    "simulate_paydown",
    "ev_paydown",
]
