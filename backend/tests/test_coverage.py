"""
Quality gate tests: Gate B, the three metrics, bureau thresholds.
"""
from dataclasses import FrozenInstanceError

import pytest

from tradeline_engine.config import BETA_THRESHOLDS, PRIMARY_THRESHOLDS, thresholds_for
from tradeline_engine.models import Bureau, BureauAccount, ParsedAccount, QualityThresholds
from tradeline_engine.services.parsing import parse_equifax_text
from tradeline_engine.services.quality import (
    CoverageEvaluator,
    analyze_bureau_document,
    analyze_equifax_document,
    compute_bureau_metrics,
    evaluate,
    has_gate_b_fields,
    tag_accounts,
)


def make_account(**overrides) -> ParsedAccount:
    values = dict(
        name="Test Card",
        balance=1000.0, balance_confidence=0.95,
        credit_limit=5000.0, credit_limit_confidence=0.95,
        high_credit=5200.0, high_credit_confidence=0.95,
        status="open", status_confidence=0.80,
        ownership="individual", ownership_confidence=0.90,
        open_date="2019-04", open_date_confidence=0.90,
        reported_date="2024-01", reported_date_confidence=0.90,
    )
    values.update(overrides)
    return ParsedAccount(**values)


# =============================================================================
# TEST: GATE B
# =============================================================================

class TestGateB:
    """Balance, limit-or-high-credit and status must all be confident."""

    def test_complete_account_passes(self):
        assert has_gate_b_fields(make_account())

    def test_high_credit_substitutes_for_limit(self):
        assert has_gate_b_fields(make_account(credit_limit=None, credit_limit_confidence=None))

    def test_missing_both_limits_fails(self):
        account = make_account(credit_limit=None, credit_limit_confidence=None,
                               high_credit=None, high_credit_confidence=None)
        assert not has_gate_b_fields(account)

    def test_missing_balance_fails(self):
        assert not has_gate_b_fields(make_account(balance=None, balance_confidence=None))

    def test_missing_status_fails(self):
        assert not has_gate_b_fields(make_account(status=None, status_confidence=None))

    def test_unrecorded_confidence_counts_as_confident(self):
        account = make_account(balance_confidence=None, status_confidence=None)
        assert has_gate_b_fields(account)

    def test_low_numeric_confidence_fails(self):
        assert not has_gate_b_fields(make_account(balance_confidence=0.85))

    def test_low_status_confidence_fails(self):
        assert not has_gate_b_fields(make_account(status_confidence=0.7))

    def test_zero_balance_is_a_value(self):
        assert has_gate_b_fields(make_account(balance=0.0))


# =============================================================================
# TEST: METRICS
# =============================================================================

class TestMetrics:
    """Coverage, numeric-exact and categorical/date percentages."""

    def test_no_accounts_all_zero(self):
        metrics = compute_bureau_metrics([])
        assert metrics.coverage_percent == 0
        assert metrics.numeric_exact_percent == 0
        assert metrics.categorical_date_percent == 0

    def test_complete_accounts_all_hundred(self):
        metrics = compute_bureau_metrics([make_account(), make_account(name="Other")])
        assert metrics.coverage_percent == 100
        assert metrics.numeric_exact_percent == 100
        assert metrics.categorical_date_percent == 100

    def test_rounded_to_two_decimals(self):
        accounts = [
            make_account(),
            make_account(high_credit=None, high_credit_confidence=None),
            make_account(balance=None, balance_confidence=None, ownership=None,
                         ownership_confidence=None),
        ]
        metrics = compute_bureau_metrics(accounts)
        assert metrics.coverage_percent == 66.67
        assert metrics.numeric_exact_percent == 77.78
        assert metrics.categorical_date_percent == 91.67

    def test_metrics_stay_in_range(self, equifax_low_coverage_text):
        metrics = compute_bureau_metrics(parse_equifax_text(equifax_low_coverage_text).accounts)
        for value in (metrics.coverage_percent, metrics.numeric_exact_percent,
                      metrics.categorical_date_percent):
            assert 0 <= value <= 100

    def test_pass_fixture_metrics(self, equifax_pass_text):
        metrics = compute_bureau_metrics(parse_equifax_text(equifax_pass_text).accounts)
        assert metrics.coverage_percent > 70
        assert metrics.numeric_exact_percent > 80
        assert metrics.categorical_date_percent > 70


# =============================================================================
# TEST: THRESHOLDS AND REVIEW ROUTING
# =============================================================================

class TestBureauEvaluation:
    """requires_manual_review follows the bureau's thresholds."""

    def test_equifax_pass_needs_no_review(self, equifax_pass_text):
        evaluation = analyze_equifax_document(equifax_pass_text)
        assert evaluation.bureau is Bureau.EQUIFAX
        assert evaluation.requires_manual_review is False
        assert evaluation.accounts_needing_review == []
        assert len(evaluation.accounts) == 2
        assert len(evaluation.inquiries) == 2

    def test_low_coverage_requires_review(self, equifax_low_coverage_text):
        evaluation = analyze_equifax_document(equifax_low_coverage_text)
        assert evaluation.requires_manual_review is True
        assert [a.name for a in evaluation.accounts_needing_review] == [
            "Wells Fargo Active Cash", "Bank of America Travel",
        ]
        assert evaluation.metrics.coverage_percent == 33.33

    def test_experian_beta_pass(self, experian_beta_pass_text):
        evaluation = analyze_bureau_document(Bureau.EXPERIAN, experian_beta_pass_text)
        assert evaluation.thresholds == BETA_THRESHOLDS
        assert evaluation.requires_manual_review is False

    def test_transunion_beta_fail(self, transunion_beta_fail_text):
        evaluation = analyze_bureau_document(Bureau.TRANSUNION, transunion_beta_fail_text)
        assert evaluation.metrics.coverage_percent == 100
        assert evaluation.requires_manual_review is True

    def test_any_metric_below_bar_requires_review(self, transunion_beta_fail_text):
        """Numeric clears the primary bar, categorical/date does not."""
        evaluation = analyze_bureau_document(Bureau.EQUIFAX, transunion_beta_fail_text)
        assert evaluation.metrics.numeric_exact_percent == 66.67
        assert evaluation.metrics.numeric_exact_percent >= PRIMARY_THRESHOLDS.numeric_exact_percent
        assert evaluation.metrics.categorical_date_percent == 50
        assert evaluation.requires_manual_review is True

    def test_empty_parse_requires_review(self):
        evaluation = evaluate(Bureau.EQUIFAX, [])
        assert evaluation.requires_manual_review is True

    def test_threshold_is_inclusive(self):
        thresholds = QualityThresholds(100, 100, 100)
        evaluation = CoverageEvaluator(thresholds).evaluate(Bureau.EQUIFAX, [make_account()])
        assert evaluation.requires_manual_review is False

    def test_bureau_given_as_text(self, experian_beta_pass_text):
        evaluation = analyze_bureau_document("Experian", experian_beta_pass_text)
        assert evaluation.bureau is Bureau.EXPERIAN


class TestThresholdConfig:
    """Threshold lookup per bureau."""

    def test_primary_and_beta_defaults(self):
        assert thresholds_for(Bureau.EQUIFAX) == QualityThresholds(70, 60, 60)
        assert thresholds_for(Bureau.EXPERIAN) == QualityThresholds(80, 95, 95)
        assert thresholds_for(Bureau.TRANSUNION) == QualityThresholds(80, 95, 95)

    def test_unknown_bureau_uses_primary(self):
        assert thresholds_for(Bureau.UNKNOWN) == PRIMARY_THRESHOLDS
        assert thresholds_for("somewhere-else") == PRIMARY_THRESHOLDS


class TestTagAccounts:
    """Parsed accounts become merge input."""

    def test_tags_bureau_and_keeps_values(self, equifax_pass_text):
        parsed = parse_equifax_text(equifax_pass_text).accounts
        tagged = tag_accounts(Bureau.EQUIFAX, parsed)
        assert all(isinstance(a, BureauAccount) for a in tagged)
        assert all(a.bureau is Bureau.EQUIFAX for a in tagged)
        assert tagged[0].name == parsed[0].name
        assert tagged[0].balance_confidence == parsed[0].balance_confidence

    def test_bureau_account_is_immutable(self):
        account = tag_accounts(Bureau.EXPERIAN, [make_account()])[0]
        with pytest.raises(FrozenInstanceError):
            account.balance = 1
