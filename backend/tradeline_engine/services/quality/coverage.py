"""
Tradeline Engine - Coverage Evaluator

Scores a bureau's ParseResult and decides whether the user must review it by
hand. Output is BureauEvaluation (SSOT #2).

Gate B (minimum fields per account):
- a confident balance
- a confident credit limit OR high credit
- a confident status

A confidence that was never recorded counts as confident; a recorded one must
reach the field's bar.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ...config import thresholds_for
from ...models.ssot import (
    Bureau, BureauAccount, BureauEvaluation, BureauMetrics, FieldKind, ParsedAccount,
    QualityThresholds,
)
from ..parsing import parse_bureau_text

logger = logging.getLogger(__name__)


NUMERIC_CONFIDENCE_MIN = 0.90
CATEGORICAL_CONFIDENCE_MIN = 0.75
DATE_CONFIDENCE_MIN = 0.75


@dataclass(frozen=True)
class FieldDescriptor:
    """One scored field on ParsedAccount and the bar its confidence must reach."""
    field: str
    confidence_field: str
    kind: FieldKind
    threshold: float

    def value(self, account: ParsedAccount):
        return getattr(account, self.field)

    def confidence(self, account: ParsedAccount) -> Optional[float]:
        return getattr(account, self.confidence_field)

    def is_confident(self, account: ParsedAccount) -> bool:
        """Value present (numeric for numeric fields) and confidence absent or >= bar."""
        value = self.value(account)
        if self.kind is FieldKind.NUMERIC:
            present = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            present = bool(value)
        if not present:
            return False
        confidence = self.confidence(account)
        return confidence is None or confidence >= self.threshold


def _descriptor(name: str, kind: FieldKind, threshold: float) -> FieldDescriptor:
    return FieldDescriptor(name, f"{name}_confidence", kind, threshold)


BALANCE = _descriptor("balance", FieldKind.NUMERIC, NUMERIC_CONFIDENCE_MIN)
CREDIT_LIMIT = _descriptor("credit_limit", FieldKind.NUMERIC, NUMERIC_CONFIDENCE_MIN)
HIGH_CREDIT = _descriptor("high_credit", FieldKind.NUMERIC, NUMERIC_CONFIDENCE_MIN)
STATUS = _descriptor("status", FieldKind.CATEGORICAL, CATEGORICAL_CONFIDENCE_MIN)
OWNERSHIP = _descriptor("ownership", FieldKind.CATEGORICAL, CATEGORICAL_CONFIDENCE_MIN)
OPEN_DATE = _descriptor("open_date", FieldKind.DATE, DATE_CONFIDENCE_MIN)
REPORTED_DATE = _descriptor("reported_date", FieldKind.DATE, DATE_CONFIDENCE_MIN)

NUMERIC_FIELDS = (BALANCE, CREDIT_LIMIT, HIGH_CREDIT)
CATEGORICAL_DATE_FIELDS = (STATUS, OWNERSHIP, OPEN_DATE, REPORTED_DATE)


def _percent(hits: int, total: int) -> float:
    return round(hits / (total or 1) * 100, 2)


def has_gate_b_fields(account: ParsedAccount) -> bool:
    return (
        BALANCE.is_confident(account)
        and (CREDIT_LIMIT.is_confident(account) or HIGH_CREDIT.is_confident(account))
        and STATUS.is_confident(account)
    )


def count_confident(accounts: Iterable[ParsedAccount], descriptors: Sequence[FieldDescriptor]) -> int:
    return sum(
        1
        for account in accounts
        for descriptor in descriptors
        if descriptor.is_confident(account)
    )


def compute_bureau_metrics(accounts: Sequence[ParsedAccount]) -> BureauMetrics:
    """All three metrics are 0 when there are no accounts."""
    total = len(accounts)
    gate_b_hits = sum(1 for account in accounts if has_gate_b_fields(account))

    return BureauMetrics(
        coverage_percent=_percent(gate_b_hits, total),
        numeric_exact_percent=_percent(
            count_confident(accounts, NUMERIC_FIELDS), total * len(NUMERIC_FIELDS)
        ),
        categorical_date_percent=_percent(
            count_confident(accounts, CATEGORICAL_DATE_FIELDS), total * len(CATEGORICAL_DATE_FIELDS)
        ),
    )


class CoverageEvaluator:
    """
    Applies the quality gate for one bureau.

    requires_manual_review is True iff any metric falls below its threshold.
    """

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        self._thresholds = thresholds

    def evaluate(self, bureau: Bureau, accounts: Sequence[ParsedAccount], inquiries=None) -> BureauEvaluation:
        bureau = Bureau.coerce(bureau)
        thresholds = self._thresholds or thresholds_for(bureau)
        accounts = list(accounts)

        metrics = compute_bureau_metrics(accounts)
        needing_review = [account for account in accounts if not has_gate_b_fields(account)]
        requires_review = not metrics.meets(thresholds)

        logger.info(
            f"Quality gate for {bureau.value}: coverage={metrics.coverage_percent} "
            f"numeric={metrics.numeric_exact_percent} "
            f"categorical_date={metrics.categorical_date_percent} "
            f"review={requires_review} ({len(needing_review)}/{len(accounts)} accounts flagged)"
        )

        return BureauEvaluation(
            bureau=bureau,
            accounts=accounts,
            inquiries=list(inquiries or []),
            metrics=metrics,
            thresholds=thresholds,
            requires_manual_review=requires_review,
            accounts_needing_review=needing_review,
        )


def evaluate(bureau: Bureau, accounts: Sequence[ParsedAccount]) -> BureauEvaluation:
    """Evaluate parsed accounts against the bureau's configured thresholds."""
    return CoverageEvaluator().evaluate(bureau, accounts)


def analyze_bureau_document(bureau: Bureau, text: str) -> BureauEvaluation:
    """Parse one bureau document and run the quality gate on the result."""
    parsed = parse_bureau_text(text)
    return CoverageEvaluator().evaluate(bureau, parsed.accounts, parsed.inquiries)


def analyze_equifax_document(text: str) -> BureauEvaluation:
    return analyze_bureau_document(Bureau.EQUIFAX, text)


def tag_accounts(bureau: Bureau, accounts: Iterable[ParsedAccount]) -> List[BureauAccount]:
    """Tag parsed accounts with their bureau for the merge engine."""
    return [BureauAccount.from_parsed(bureau, account) for account in accounts]
