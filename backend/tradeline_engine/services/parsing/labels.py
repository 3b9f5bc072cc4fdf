"""
Tradeline Engine - Label Normalizer

Maps free-text field labels ("Acct Status", "Balance Due") to canonical keys.

Lookup order:
1. Exact match of the lowercased, trimmed label against every synonym.
2. Substring fallback: the first canonical key (by ascending priority) that
   has a synonym contained in the label.

Synonyms flagged exact_only never take part in the fallback; they are short
words that also occur inside other keys' labels.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class LabelKey(str, Enum):
    ACCOUNT_NAME = "account_name"
    BALANCE = "balance"
    CREDIT_LIMIT = "credit_limit"
    HIGH_CREDIT = "high_credit"
    STATUS = "status"
    OWNERSHIP = "ownership"
    OPEN_DATE = "open_date"
    REPORTED_DATE = "reported_date"
    ACCOUNT_TYPE = "account_type"
    INQUIRY_DATE = "inquiry_date"
    INQUIRY_CREDITOR = "inquiry_creditor"
    INQUIRY_TYPE = "inquiry_type"


@dataclass(frozen=True)
class LabelSynonyms:
    key: LabelKey
    priority: int
    synonyms: Tuple[str, ...]
    exact_only: Tuple[str, ...] = ()


SYNONYM_TABLE: Tuple[LabelSynonyms, ...] = (
    LabelSynonyms(LabelKey.ACCOUNT_NAME, 0,
                  ("account name", "acct name", "name of account"), exact_only=("account",)),
    LabelSynonyms(LabelKey.BALANCE, 1,
                  ("balance", "current balance", "balance due", "amount owed", "owed")),
    LabelSynonyms(LabelKey.CREDIT_LIMIT, 2,
                  ("credit limit", "limit", "credit line", "credit_limit")),
    LabelSynonyms(LabelKey.HIGH_CREDIT, 3,
                  ("high credit", "high balance", "highest balance", "original amount", "high")),
    LabelSynonyms(LabelKey.STATUS, 4,
                  ("status", "account status", "acct status", "payment status", "condition")),
    LabelSynonyms(LabelKey.OWNERSHIP, 5,
                  ("ownership", "responsibility", "owner", "account owner", "ecoa")),
    LabelSynonyms(LabelKey.OPEN_DATE, 6,
                  ("date opened", "open date", "opened", "date open")),
    LabelSynonyms(LabelKey.REPORTED_DATE, 7,
                  ("date reported", "reported", "last reported", "reported date", "as of",
                   "date updated", "last updated")),
    LabelSynonyms(LabelKey.ACCOUNT_TYPE, 8,
                  ("account type", "type of account", "loan type")),
    LabelSynonyms(LabelKey.INQUIRY_DATE, 9,
                  ("inquiry date", "date of inquiry", "date")),
    LabelSynonyms(LabelKey.INQUIRY_CREDITOR, 10,
                  ("creditor", "creditor name", "inquirer", "company")),
    LabelSynonyms(LabelKey.INQUIRY_TYPE, 11,
                  ("type", "inquiry type")),
)


class LabelNormalizer:
    """Resolves raw labels against a synonym table."""

    def __init__(self, table: Tuple[LabelSynonyms, ...] = SYNONYM_TABLE):
        self._entries = tuple(sorted(table, key=lambda entry: entry.priority))
        self._index: Dict[str, LabelKey] = {}
        for entry in self._entries:
            for synonym in entry.synonyms + entry.exact_only:
                # First (highest-priority) owner of a synonym keeps it
                self._index.setdefault(synonym.lower(), entry.key)

    def normalize(self, label: str) -> Optional[LabelKey]:
        normalized = (label or "").strip().lower()
        if not normalized:
            return None

        direct = self._index.get(normalized)
        if direct:
            return direct

        for entry in self._entries:
            if any(synonym in normalized for synonym in entry.synonyms):
                return entry.key
        return None


_default_normalizer = LabelNormalizer()


def normalize_label(label: str) -> Optional[LabelKey]:
    """Normalize a label with the default synonym table."""
    return _default_normalizer.normalize(label)
