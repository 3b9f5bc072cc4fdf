"""Tradeline Engine - Cross-Bureau Merge

This layer merges BureauAccounts and outputs MergeResult (SSOT #3).
"""
from .cross_bureau import (
    CrossBureauMerger,
    FIELD_TIE_STRATEGIES,
    normalize_account_key,
    reported_date_score,
    choose_snapshot,
    rank_snapshots,
    merge_cross_bureau_accounts,
    merge,
)

__all__ = [
    "CrossBureauMerger",
    "FIELD_TIE_STRATEGIES",
    "normalize_account_key",
    "reported_date_score",
    "choose_snapshot",
    "rank_snapshots",
    "merge_cross_bureau_accounts",
    "merge",
]
