"""
Tradeline Engine - EV Action Planner

Turns user-confirmed accounts (AnalyzeInput) into a ranked list of remediation
actions with expected savings, odds and scenario ranges.

This engine is:
- Deterministic: same input = same actions, same order
- Read-only: never mutates the input accounts
- Conservative: missing credit limits worsen the utilization bracket and
  halve every savings figure

Actions with no positive expected savings are dropped. The rest are sorted
by savings (descending), then score impact (high > medium > low).
"""
from __future__ import annotations
import logging
import math
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from ...config import ENGINE_VERSION
from ...models.ev_models import (
    AccountStatus, Action, ActionMetadata, ActionType, AnalysisAudit, AnalyzeAccount,
    AnalyzeFlags, AnalyzeInput, AnalyzeOutput, EvPlan, PlanWarning, ProductType,
    ScenarioRange, ScoreBand, ScoreImpact, UtilizationBracket, WarningLevel,
)
from .odds import (
    DELTA_APR_TABLE, apr_reduction_odds, balance_transfer_odds, bump_bracket, clamp_apr,
    estimate_apr, ev_apr_reduction, ev_balance_transfer, ev_late_fee, ev_penalty_apr,
    scenario_bounds, to_cents, util_bracket,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

REVOLVING_PRODUCTS = frozenset({
    ProductType.CREDIT_CARD,
    ProductType.CHARGE_CARD,
    ProductType.SECURED_CARD,
})

UTILIZATION_LABELS: Mapping[UtilizationBracket, str] = MappingProxyType({
    UtilizationBracket.UNDER_10: "<10%",
    UtilizationBracket.UNDER_30: "10–30%",
    UtilizationBracket.UNDER_50: "30–50%",
    UtilizationBracket.UNDER_80: "50–80%",
    UtilizationBracket.OVER_80: ">80%",
})

LATE_FEE_REFUND_PROB: Mapping[ScoreBand, float] = MappingProxyType({
    ScoreBand.EXCELLENT: 0.85,
    ScoreBand.VERY_GOOD: 0.78,
    ScoreBand.GOOD: 0.65,
    ScoreBand.FAIR: 0.45,
    ScoreBand.POOR: 0.32,
    ScoreBand.UNKNOWN: 0.5,
})

SCORE_IMPACT_PRIORITY: Mapping[ScoreImpact, int] = MappingProxyType({
    ScoreImpact.HIGH: 0,
    ScoreImpact.MEDIUM: 1,
    ScoreImpact.LOW: 2,
})

DEFAULT_UTILIZATION_PERCENT = 50
MISSING_LIMIT_RATIO = 0.3
MISSING_LIMIT_HAIRCUT = 0.5

APR_REDUCTION_MONTHS = 6
BALANCE_TRANSFER_SHARE = 0.7
BALANCE_TRANSFER_CAP = 5000
BALANCE_TRANSFER_FEE_RATE = 0.03
BALANCE_TRANSFER_MONTHS = 2.67
LATE_FEE_AMOUNT = 40
LATE_FEE_60D_FACTOR = 0.6
PENALTY_APR_MONTHS = 1
PENALTY_APR_MIN_DELTA = 6
PENALTY_APR_EXTRA_DELTA = 4
PENALTY_APR_ODDS_FACTOR = 0.8


def usd(value: float) -> str:
    """Whole-dollar currency string, e.g. "$3,500"."""
    return f"${value:,.0f}"


def percent(probability: float) -> int:
    """Whole percent, halves rounded up."""
    return int(math.floor(probability * 100 + 0.5))


def delta_apr_for(band: ScoreBand) -> float:
    return DELTA_APR_TABLE.get(band, DELTA_APR_TABLE[ScoreBand.UNKNOWN])


def is_revolving(account: AnalyzeAccount) -> bool:
    return account.product_type in REVOLVING_PRODUCTS and account.status is AccountStatus.OPEN


def account_apr(account: AnalyzeAccount, band: ScoreBand) -> float:
    """Reported APR when positive, otherwise the product/band estimate."""
    if account.apr and account.apr > 0:
        return clamp_apr(account.apr)
    return estimate_apr(account.product_type, band)


# =============================================================================
# AGGREGATION
# =============================================================================

@dataclass
class RevolvingProfile:
    """Balance aggregates over open revolving accounts."""
    total_balance: float = 0.0
    known_limit_balance: float = 0.0
    known_limits: float = 0.0
    missing_limit_balance: float = 0.0
    weighted_apr: float = 0.0
    utilization: UtilizationBracket = UtilizationBracket.UNDER_50
    haircut: float = 1.0

    @property
    def missing_ratio(self) -> float:
        if self.total_balance <= 0:
            return 0
        return self.missing_limit_balance / self.total_balance

    @property
    def limits_mostly_missing(self) -> bool:
        return self.missing_ratio > MISSING_LIMIT_RATIO


def build_revolving_profile(accounts: List[AnalyzeAccount], band: ScoreBand) -> RevolvingProfile:
    revolving = [account for account in accounts if is_revolving(account)]
    profile = RevolvingProfile()

    for account in revolving:
        balance = max(0, account.balance)
        limit = account.credit_limit if account.credit_limit is not None else account.high_credit
        profile.total_balance += balance
        if limit and limit > 0:
            profile.known_limits += limit
            profile.known_limit_balance += balance
        else:
            profile.missing_limit_balance += balance

    if profile.known_limits > 0:
        util_percent = profile.known_limit_balance / profile.known_limits * 100
    else:
        util_percent = DEFAULT_UTILIZATION_PERCENT
    profile.utilization = util_bracket(util_percent)

    if profile.limits_mostly_missing:
        profile.utilization = bump_bracket(profile.utilization)
        profile.haircut = MISSING_LIMIT_HAIRCUT

    if profile.total_balance > 0:
        weighted = sum(account_apr(account, band) * max(0, account.balance) for account in revolving)
        profile.weighted_apr = weighted / profile.total_balance

    return profile


# =============================================================================
# ACTION BUILDERS
# =============================================================================

def _scenario(band: ScoreBand, compute: Callable[[ScoreBand], float]) -> ScenarioRange:
    low, high = scenario_bounds(band, lambda b: to_cents(compute(b)))
    return ScenarioRange(low=to_cents(low), high=to_cents(high))


class EvPlanner:
    """Builds the EV action plan for one AnalyzeInput."""

    def __init__(self, analyze_input: AnalyzeInput):
        self.input = analyze_input
        self.flags = analyze_input.flags or AnalyzeFlags()
        self.band = analyze_input.user.score_band or ScoreBand.UNKNOWN
        self.late = bool(self.flags.any_60d_late)
        self.profile = build_revolving_profile(analyze_input.accounts, self.band)

    def plan(self) -> EvPlan:
        candidates = [
            self.apr_reduction_action(),
            self.balance_transfer_action(),
        ]
        if self.flags.late_fee_last_two_statements:
            candidates.append(self.late_fee_action())
        if self.flags.penalty_apr_active:
            candidates.append(self.penalty_apr_action())

        actions = sort_actions([action for action in candidates if action is not None])
        warnings = self.warnings()

        logger.info(
            f"Planned {len(actions)} actions (band={self.band.value}, "
            f"utilization={self.profile.utilization.value}, haircut={self.profile.haircut}, "
            f"warnings={[w.code for w in warnings]})"
        )
        return EvPlan(actions=actions, warnings=warnings)

    def warnings(self) -> List[PlanWarning]:
        warnings = []
        if self.profile.total_balance <= 0:
            warnings.append(PlanWarning(
                code="no_revolving_balances",
                message="No revolving balances detected; action values may be limited.",
                level=WarningLevel.WARNING,
            ))
        if self.profile.limits_mostly_missing:
            warnings.append(PlanWarning(
                code="missing_limits",
                message=(
                    "More than 30% of balances are missing credit limits. "
                    "Savings estimates include a 50% haircut."
                ),
                level=WarningLevel.WARNING,
            ))
        return warnings

    def apr_reduction_action(self) -> Optional[Action]:
        profile = self.profile
        if profile.total_balance <= 0:
            return None

        def compute(band: ScoreBand) -> float:
            p = apr_reduction_odds(band, profile.utilization, self.late)
            return ev_apr_reduction(p, delta_apr_for(band), profile.total_balance,
                                    APR_REDUCTION_MONTHS) * profile.haircut

        probability = apr_reduction_odds(self.band, profile.utilization, self.late)
        savings = to_cents(compute(self.band))
        if savings <= 0:
            return None

        label = UTILIZATION_LABELS.get(profile.utilization, "unknown")
        return Action(
            id="action-apr-reduction",
            type=ActionType.APR_REDUCTION,
            title="Request an APR reduction",
            summary=(
                f"Call your issuer and ask for a lower rate. With {label} utilization, "
                f"success is around {percent(probability)}%."
            ),
            estimated_savings_usd=savings,
            probability_of_success=round(probability, 3),
            scenario_range=_scenario(self.band, compute),
            next_steps=[
                "Call the customer service number on the back of the card.",
                "Ask for a rate review citing on-time history and utilization plans.",
                "Escalate to a supervisor if the first rep cannot assist.",
            ],
            tags=["apr", "phone-call"],
            metadata=ActionMetadata(
                cash_needed_usd=0,
                time_to_effect_months=APR_REDUCTION_MONTHS,
                score_impact=ScoreImpact.MEDIUM,
                why_this=[
                    f"About {usd(profile.total_balance)} in revolving balances.",
                    f"Utilization bracket {label}.",
                    f"Estimated savings assumes {percent(probability)}% success for your profile.",
                ],
            ),
        )

    def balance_transfer_action(self) -> Optional[Action]:
        profile = self.profile
        if profile.total_balance <= 0 or profile.weighted_apr <= 0:
            return None

        amount = min(profile.total_balance * BALANCE_TRANSFER_SHARE, BALANCE_TRANSFER_CAP)
        if amount <= 0:
            return None

        def compute(band: ScoreBand) -> float:
            p = balance_transfer_odds(band, profile.utilization, self.late)
            return ev_balance_transfer(p, profile.weighted_apr, amount, BALANCE_TRANSFER_FEE_RATE,
                                       BALANCE_TRANSFER_MONTHS) * profile.haircut

        probability = balance_transfer_odds(self.band, profile.utilization, self.late)
        savings = to_cents(compute(self.band))
        if savings <= 0:
            return None

        fee = to_cents(amount * BALANCE_TRANSFER_FEE_RATE)
        return Action(
            id="action-balance-transfer",
            type=ActionType.BALANCE_TRANSFER,
            title="Move balances to a 0% promo card",
            summary="Shift high-interest balances to a 0% offer for ~3 months of runway.",
            estimated_savings_usd=savings,
            probability_of_success=round(probability, 3),
            scenario_range=_scenario(self.band, compute),
            next_steps=[
                "Compare balance transfer offers with $0 intro APR.",
                "Confirm the transfer fee and promo length before applying.",
                "Schedule payoff reminders before the promo expires.",
            ],
            tags=["balance-transfer"],
            metadata=ActionMetadata(
                cash_needed_usd=fee,
                time_to_effect_months=round(BALANCE_TRANSFER_MONTHS),
                score_impact=ScoreImpact.HIGH,
                why_this=[
                    f"Transferring about {usd(amount)} at 0% saves interest immediately.",
                    f"We assumed a 3% transfer fee ({usd(fee)}).",
                    f"Success odds roughly {percent(probability)}% given your utilization.",
                ],
            ),
        )

    def _late_fee_probability(self, band: ScoreBand) -> float:
        base = LATE_FEE_REFUND_PROB.get(band, LATE_FEE_REFUND_PROB[ScoreBand.UNKNOWN])
        return base * LATE_FEE_60D_FACTOR if self.late else base

    def late_fee_action(self) -> Optional[Action]:
        def compute(band: ScoreBand) -> float:
            return ev_late_fee(self._late_fee_probability(band), LATE_FEE_AMOUNT)

        probability = self._late_fee_probability(self.band)
        savings = to_cents(compute(self.band))
        if savings <= 0:
            return None

        return Action(
            id="action-late-fee",
            type=ActionType.LATE_FEE_REVERSAL,
            title="Ask for a late-fee refund",
            summary="Call and request a goodwill credit for the most recent late fee.",
            estimated_savings_usd=savings,
            probability_of_success=round(min(1, probability), 3),
            scenario_range=_scenario(self.band, compute),
            next_steps=[
                "Call the issuer and cite your history of on-time payments.",
                "Explain the late payment was an exception and request a courtesy credit.",
                "Confirm the refund posts before ending the call.",
            ],
            tags=["late-fee", "phone-call"],
            metadata=ActionMetadata(
                cash_needed_usd=0,
                time_to_effect_months=0.25,
                score_impact=ScoreImpact.LOW,
                why_this=[
                    "Issuers often waive one late fee every 12 months.",
                    f"Projected refund {usd(savings)} with ~{percent(probability)}% odds.",
                    "A successful refund resets penalty clocks for future goodwill credits.",
                ],
            ),
        )

    def penalty_apr_action(self) -> Optional[Action]:
        profile = self.profile
        if profile.total_balance <= 0:
            return None

        def delta_for(band: ScoreBand) -> float:
            return max(PENALTY_APR_MIN_DELTA, delta_apr_for(band) + PENALTY_APR_EXTRA_DELTA)

        def probability_for(band: ScoreBand) -> float:
            return apr_reduction_odds(band, profile.utilization, self.late) * PENALTY_APR_ODDS_FACTOR

        def compute(band: ScoreBand) -> float:
            return ev_penalty_apr(probability_for(band), delta_for(band), profile.total_balance,
                                  PENALTY_APR_MONTHS) * profile.haircut

        probability = probability_for(self.band)
        delta = delta_for(self.band)
        savings = to_cents(compute(self.band))
        if savings <= 0:
            return None

        return Action(
            id="action-penalty-apr",
            type=ActionType.PENALTY_APR_REDUCTION,
            title="Reverse the penalty APR",
            summary="Call the issuer, make the minimum payment, and request the original APR.",
            estimated_savings_usd=savings,
            probability_of_success=round(min(1, probability), 3),
            scenario_range=_scenario(self.band, compute),
            next_steps=[
                "Bring the account current before calling.",
                "Ask the retention team to restore the pre-penalty APR.",
                "Request written confirmation of the rate change.",
            ],
            tags=["penalty-apr", "phone-call"],
            metadata=ActionMetadata(
                cash_needed_usd=0,
                time_to_effect_months=PENALTY_APR_MONTHS,
                score_impact=ScoreImpact.MEDIUM,
                why_this=[
                    f"Penalty APR reversal saves about {usd(savings)} this month.",
                    f"Delta APR assumed {delta:.1f}%.",
                    f"Success odds roughly {percent(probability)}% with quick follow-up.",
                ],
            ),
        )


def _impact_rank(action: Action) -> int:
    impact = action.metadata.score_impact if action.metadata else None
    return SCORE_IMPACT_PRIORITY[impact or ScoreImpact.MEDIUM]


def sort_actions(actions: List[Action]) -> List[Action]:
    return sorted(actions, key=lambda action: (-action.estimated_savings_usd, _impact_rank(action)))


def build_ev_plan(analyze_input: AnalyzeInput) -> EvPlan:
    """Convenience function to build the action plan."""
    return EvPlanner(analyze_input).plan()


def analyze(analyze_input: AnalyzeInput) -> AnalyzeOutput:
    """Build the plan and stamp it with an audit record."""
    started = time.perf_counter()
    plan = build_ev_plan(analyze_input)
    compute_ms = int((time.perf_counter() - started) * 1000)

    return AnalyzeOutput(
        actions=plan.actions,
        warnings=plan.warnings,
        audit=AnalysisAudit(
            engine_version=ENGINE_VERSION,
            compute_ms=compute_ms,
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc).isoformat(),
        ),
    )
