"""
EV planner tests.

Reference profile (score band "good"):
- Card A: $2,000 balance, $10,000 limit, 22% APR
- Card B: $1,000 balance, $5,000 limit, APR estimated (24.62%)

20% utilization puts the profile in the 10-30% bracket. Savings figures
below are worked from the odds tables by hand.
"""
import math

import pytest

from tradeline_engine.config import ENGINE_VERSION
from tradeline_engine.models import (
    ActionType, AnalysisInputError, AnalyzeAccount, AnalyzeFlags, AnalyzeInput, AnalyzeUser,
    ProductType, ScenarioRange, ScoreBand, ScoreImpact, UtilizationBracket,
)
from tradeline_engine.services.ev import EvPlanner, analyze, build_ev_plan
from tradeline_engine.services.ev.planner import build_revolving_profile, percent, usd


def reference_accounts():
    return [
        AnalyzeAccount(id="card-a", creditor_name="Card A", balance=2000,
                       credit_limit=10000, apr=22),
        AnalyzeAccount(id="card-b", creditor_name="Card B", balance=1000,
                       credit_limit=5000),
    ]


def make_input(accounts=None, band=ScoreBand.GOOD, **flags) -> AnalyzeInput:
    return AnalyzeInput(
        user=AnalyzeUser(id="user-1", score_band=band),
        accounts=reference_accounts() if accounts is None else accounts,
        flags=AnalyzeFlags(**flags),
    )


def action_of(plan, action_type):
    return next(action for action in plan.actions if action.type is action_type)


# =============================================================================
# TEST: FORMATTING HELPERS
# =============================================================================

class TestFormatting:
    def test_usd(self):
        assert usd(3000) == "$3,000"
        assert usd(2100.4) == "$2,100"

    def test_percent_rounds_half_up(self):
        assert percent(0.58) == 58
        assert percent(0.125) == 13
        assert percent(0.464) == 46


# =============================================================================
# TEST: REVOLVING PROFILE
# =============================================================================

class TestRevolvingProfile:
    """Aggregation over open revolving accounts."""

    def test_reference_profile(self):
        profile = build_revolving_profile(reference_accounts(), ScoreBand.GOOD)
        assert profile.total_balance == 3000
        assert profile.known_limits == 15000
        assert profile.utilization is UtilizationBracket.UNDER_30
        assert profile.haircut == 1.0
        assert profile.weighted_apr == pytest.approx((22 * 2000 + 24.62 * 1000) / 3000)

    def test_non_revolving_and_closed_ignored(self):
        accounts = reference_accounts() + [
            AnalyzeAccount(id="auto", creditor_name="Auto", balance=15000,
                           product_type=ProductType.AUTO_LOAN),
            AnalyzeAccount(id="old", creditor_name="Old Card", balance=800,
                           credit_limit=1000, status="closed"),
        ]
        profile = build_revolving_profile(accounts, ScoreBand.GOOD)
        assert profile.total_balance == 3000

    def test_high_credit_stands_in_for_limit(self):
        accounts = [AnalyzeAccount(id="a", creditor_name="A", balance=500, high_credit=1000)]
        profile = build_revolving_profile(accounts, ScoreBand.GOOD)
        assert profile.utilization is UtilizationBracket.UNDER_80
        assert not profile.limits_mostly_missing

    def test_missing_limits_bump_bracket_and_haircut(self):
        accounts = [
            AnalyzeAccount(id="a", creditor_name="A", balance=2000),
            AnalyzeAccount(id="b", creditor_name="B", balance=1000),
        ]
        profile = build_revolving_profile(accounts, ScoreBand.GOOD)
        assert profile.missing_ratio == 1
        assert profile.utilization is UtilizationBracket.OVER_80
        assert profile.haircut == 0.5


# =============================================================================
# TEST: ACTIONS
# =============================================================================

class TestAprReduction:
    def test_savings_and_odds(self):
        action = action_of(build_ev_plan(make_input()), ActionType.APR_REDUCTION)
        assert action.estimated_savings_usd == pytest.approx(34.8)
        assert action.probability_of_success == 0.58
        assert action.scenario_range == ScenarioRange(low=18.0, high=63.0)

    def test_explanations(self):
        action = action_of(build_ev_plan(make_input()), ActionType.APR_REDUCTION)
        assert action.summary == (
            "Call your issuer and ask for a lower rate. With 10–30% utilization, "
            "success is around 58%."
        )
        assert action.metadata.why_this == [
            "About $3,000 in revolving balances.",
            "Utilization bracket 10–30%.",
            "Estimated savings assumes 58% success for your profile.",
        ]
        assert action.metadata.score_impact is ScoreImpact.MEDIUM
        assert action.metadata.time_to_effect_months == 6


class TestBalanceTransfer:
    def test_savings_and_fee(self):
        action = action_of(build_ev_plan(make_input()), ActionType.BALANCE_TRANSFER)
        assert action.estimated_savings_usd == pytest.approx(21.94)
        assert action.probability_of_success == 0.5
        assert action.metadata.cash_needed_usd == pytest.approx(63.0)
        assert action.metadata.time_to_effect_months == 3
        assert action.metadata.why_this[0] == "Transferring about $2,100 at 0% saves interest immediately."
        assert action.metadata.why_this[1] == "We assumed a 3% transfer fee ($63)."


class TestFlaggedActions:
    def test_late_fee(self):
        plan = build_ev_plan(make_input(late_fee_last_two_statements=True))
        action = action_of(plan, ActionType.LATE_FEE_REVERSAL)
        assert action.estimated_savings_usd == pytest.approx(26.0)
        assert action.scenario_range == ScenarioRange(low=18.0, high=31.2)
        assert action.metadata.why_this[1] == "Projected refund $26 with ~65% odds."

    def test_penalty_apr(self):
        plan = build_ev_plan(make_input(penalty_apr_active=True))
        action = action_of(plan, ActionType.PENALTY_APR_REDUCTION)
        assert action.estimated_savings_usd == pytest.approx(9.28)
        assert action.metadata.why_this[1] == "Delta APR assumed 8.0%."

    def test_unflagged_actions_absent(self):
        types = {action.type for action in build_ev_plan(make_input()).actions}
        assert types == {ActionType.APR_REDUCTION, ActionType.BALANCE_TRANSFER}

    def test_sixty_day_late_lowers_every_estimate(self):
        clean = build_ev_plan(make_input(late_fee_last_two_statements=True))
        late = build_ev_plan(make_input(late_fee_last_two_statements=True, any_60d_late=True))
        clean_by_type = {a.type: a.estimated_savings_usd for a in clean.actions}
        for action in late.actions:
            assert action.estimated_savings_usd < clean_by_type[action.type]


# =============================================================================
# TEST: PLAN
# =============================================================================

class TestPlan:
    def test_sorted_by_savings(self):
        plan = build_ev_plan(make_input(late_fee_last_two_statements=True, penalty_apr_active=True))
        assert [a.estimated_savings_usd for a in plan.actions] == pytest.approx([34.8, 26.0, 21.94, 9.28])
        assert plan.warnings == []

    def test_missing_limits_warning_and_haircut(self):
        accounts = [
            AnalyzeAccount(id="a", creditor_name="A", balance=2000),
            AnalyzeAccount(id="b", creditor_name="B", balance=1000),
        ]
        plan = build_ev_plan(make_input(accounts))
        assert [w.code for w in plan.warnings] == ["missing_limits"]
        apr = action_of(plan, ActionType.APR_REDUCTION)
        # 0.12 odds * $10/month * 6 months, halved
        assert apr.estimated_savings_usd == pytest.approx(3.6)

    def test_no_revolving_balances(self):
        accounts = [AnalyzeAccount(id="auto", creditor_name="Auto", balance=9000,
                                   product_type=ProductType.AUTO_LOAN)]
        plan = build_ev_plan(make_input(accounts, late_fee_last_two_statements=True,
                                        penalty_apr_active=True))
        assert [w.code for w in plan.warnings] == ["no_revolving_balances"]
        assert [a.type for a in plan.actions] == [ActionType.LATE_FEE_REVERSAL]

    def test_empty_input(self):
        plan = build_ev_plan(make_input([]))
        assert plan.actions == []
        assert [w.code for w in plan.warnings] == ["no_revolving_balances"]

    def test_every_action_positive_and_bounded(self):
        for band in ScoreBand:
            plan = build_ev_plan(make_input(band=band, late_fee_last_two_statements=True,
                                            penalty_apr_active=True, any_60d_late=True))
            for action in plan.actions:
                assert action.estimated_savings_usd > 0
                assert 0 <= action.probability_of_success <= 1

    def test_deterministic(self):
        first = build_ev_plan(make_input(penalty_apr_active=True))
        second = build_ev_plan(make_input(penalty_apr_active=True))
        assert first == second

    def test_input_not_mutated(self):
        analyze_input = make_input()
        build_ev_plan(analyze_input)
        assert analyze_input.accounts == reference_accounts()

    def test_planner_exposes_profile(self):
        planner = EvPlanner(make_input())
        assert planner.band is ScoreBand.GOOD
        assert planner.profile.total_balance == 3000


class TestInvalidInput:
    @pytest.mark.parametrize("apr", [math.inf, math.nan])
    def test_non_finite_apr_rejected(self, apr):
        with pytest.raises(AnalysisInputError, match="apr must be a finite number"):
            AnalyzeAccount(id="a", creditor_name="A", balance=100, credit_limit=1000, apr=apr)

    def test_non_finite_limit_rejected(self):
        with pytest.raises(AnalysisInputError):
            AnalyzeAccount(id="a", creditor_name="A", balance=100, credit_limit=math.nan)

    def test_negative_balance_rejected(self):
        with pytest.raises(AnalysisInputError):
            AnalyzeAccount(id="a", creditor_name="A", balance=-1)

    def test_unknown_score_band_rejected(self):
        with pytest.raises(AnalysisInputError):
            AnalyzeUser(id="u", score_band="stellar")


class TestAnalyze:
    def test_audit_stamp(self):
        output = analyze(make_input())
        assert output.audit.engine_version == ENGINE_VERSION
        assert output.audit.compute_ms >= 0
        assert output.audit.run_id
        assert output.audit.generated_at.endswith("+00:00")
        assert len(output.actions) == 2

    def test_run_ids_unique(self):
        assert analyze(make_input()).audit.run_id != analyze(make_input()).audit.run_id
