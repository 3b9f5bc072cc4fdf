"""
Tradeline Engine - Cross-Bureau Merge

Collapses the same tradeline reported by several bureaus into one
ReviewAccount (SSOT #3).

Accounts are grouped by normalized name. Each field is resolved on its own:
the most recently reported value wins; when several bureaus share the latest
reported month the field's tie strategy decides. Every losing value that
differs from the winner is kept on a ConflictEntry.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ...models.ssot import (
    Bureau, BureauAccount, ConflictEntry, ConflictField, ConflictResolution, FieldSnapshot,
    MergeResult, ReviewAccount, SourceAccountSnapshot, TieStrategy,
)

logger = logging.getLogger(__name__)


UNKNOWN_ACCOUNT_KEY = "unknown_account"
REPORTED_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{2}))?")

# Field -> tie strategy among snapshots sharing the latest reported month
FIELD_TIE_STRATEGIES: Tuple[Tuple[ConflictField, TieStrategy], ...] = (
    (ConflictField.BALANCE, TieStrategy.MAX),
    (ConflictField.CREDIT_LIMIT, TieStrategy.MIN),
    (ConflictField.HIGH_CREDIT, TieStrategy.MAX),
    (ConflictField.STATUS, TieStrategy.NONE),
    (ConflictField.OWNERSHIP, TieStrategy.NONE),
    (ConflictField.OPEN_DATE, TieStrategy.NONE),
    (ConflictField.REPORTED_DATE, TieStrategy.NONE),
)

TIE_RESOLUTIONS = {
    TieStrategy.MAX: ConflictResolution.TIE_BALANCE,
    TieStrategy.MIN: ConflictResolution.TIE_LIMIT,
}


# =============================================================================
# HELPERS
# =============================================================================

def normalize_account_key(name: Optional[str]) -> str:
    """Lowercase the name and replace every non [a-z0-9] character with "_"."""
    key = re.sub(r"[^a-z0-9]", "_", (name or "").strip().lower())
    return key or UNKNOWN_ACCOUNT_KEY


def reported_date_score(reported_date: Optional[str]) -> int:
    """year * 12 + month; month defaults to 1; 0 when absent or unparseable."""
    if not reported_date:
        return 0
    match = REPORTED_DATE_RE.match(reported_date)
    if not match:
        return 0
    year = int(match.group(1))
    month = int(match.group(2)) if match.group(2) else 1
    return year * 12 + month


def collect_snapshots(accounts: Sequence[BureauAccount], field: ConflictField) -> List[FieldSnapshot]:
    return [
        FieldSnapshot(bureau=account.bureau, value=getattr(account, field.value),
                      reported_date=account.reported_date)
        for account in accounts
        if getattr(account, field.value) is not None
    ]


def rank_snapshots(entries: Sequence[FieldSnapshot]) -> List[FieldSnapshot]:
    """Newest reported first; equal dates keep input order."""
    return sorted(entries, key=lambda entry: reported_date_score(entry.reported_date), reverse=True)


def choose_snapshot(
    entries: Sequence[FieldSnapshot],
    strategy: TieStrategy,
) -> Tuple[Optional[FieldSnapshot], Optional[ConflictResolution]]:
    """
    Pick the winning snapshot for one field.

    Candidates are ranked by reported_date_score, keeping input order among
    equal scores. With a single latest candidate, or strategy NONE, the first
    latest candidate wins ("latest"). MAX/MIN keep the first strictly
    larger/smaller value among the tied candidates.
    """
    if not entries:
        return None, None

    ranked = rank_snapshots(entries)
    top_score = reported_date_score(ranked[0].reported_date)
    top = [entry for entry in ranked if reported_date_score(entry.reported_date) == top_score]

    if len(top) == 1 or strategy is TieStrategy.NONE:
        return top[0], ConflictResolution.LATEST

    chosen = top[0]
    for candidate in top[1:]:
        if strategy is TieStrategy.MAX and candidate.value > chosen.value:
            chosen = candidate
        elif strategy is TieStrategy.MIN and candidate.value < chosen.value:
            chosen = candidate
    return chosen, TIE_RESOLUTIONS[strategy]


def source_snapshot(account: BureauAccount) -> SourceAccountSnapshot:
    return SourceAccountSnapshot(
        bureau=account.bureau,
        reported_date=account.reported_date,
        balance=account.balance,
        credit_limit=account.credit_limit,
        high_credit=account.high_credit,
        ownership=account.ownership,
        status=account.status,
        open_date=account.open_date,
    )


# =============================================================================
# MERGE ENGINE
# =============================================================================

@dataclass
class _ResolvedGroup:
    account: ReviewAccount
    conflicts: List[ConflictEntry]


class CrossBureauMerger:
    """
    Merge engine over BureauAccounts.

    Groups are processed in sorted key order so ids ("<key>-<index>") and the
    conflict list are reproducible for the same input order.
    """

    def merge(self, accounts: Sequence[BureauAccount]) -> MergeResult:
        groups: Dict[str, List[BureauAccount]] = {}
        for account in accounts:
            groups.setdefault(normalize_account_key(account.name), []).append(account)

        result = MergeResult()
        for index, key in enumerate(sorted(groups)):
            resolved = self._merge_group(f"{key}-{index}", groups[key])
            result.conflicts.extend(resolved.conflicts)
            if resolved.account.is_authorized_user:
                result.excluded_accounts.append(resolved.account)
            else:
                result.merged_accounts.append(resolved.account)

        logger.info(
            f"Merged {len(accounts)} bureau accounts into {len(groups)} groups: "
            f"{len(result.merged_accounts)} kept, {len(result.excluded_accounts)} excluded "
            f"(authorized user), {len(result.conflicts)} conflicts"
        )
        return result

    def _merge_group(self, account_id: str, group: List[BureauAccount]) -> _ResolvedGroup:
        name = group[0].name
        bureaus: List[Bureau] = []
        for account in group:
            if account.bureau not in bureaus:
                bureaus.append(account.bureau)

        resolved: Dict[str, object] = {}
        conflicts: List[ConflictEntry] = []
        for field, strategy in FIELD_TIE_STRATEGIES:
            entries = collect_snapshots(group, field)
            chosen, resolution = choose_snapshot(entries, strategy)
            if chosen is None:
                continue
            resolved[field.value] = chosen.value

            others = tuple(
                entry for entry in rank_snapshots(entries)
                if entry is not chosen and entry.value != chosen.value
            )
            if others:
                logger.debug(f"{name}: {field.value} conflict resolved by {resolution.value}")
                conflicts.append(ConflictEntry(
                    account_name=name,
                    field=field,
                    chosen=chosen,
                    others=others,
                    resolution=resolution,
                ))

        account = ReviewAccount(
            id=account_id,
            name=name,
            bureaus=tuple(bureaus),
            source_accounts=tuple(source_snapshot(account) for account in group),
            **resolved,
        )
        return _ResolvedGroup(account=account, conflicts=conflicts)


def merge_cross_bureau_accounts(accounts: Sequence[BureauAccount]) -> MergeResult:
    """Convenience function to merge bureau accounts."""
    return CrossBureauMerger().merge(accounts)


merge = merge_cross_bureau_accounts
