"""
Tradeline Engine - Single Source of Truth Models

These models are the ONLY data structures passed between pipeline stages:
- Parser → ParseResult (ParsedAccount / ParsedInquiry)
- Quality gate → BureauEvaluation
- Merge engine → MergeResult (ReviewAccount / ConflictEntry)

Parsed and merged records are frozen once created. User corrections never
mutate them; they flow through the ManualEdit overlay (see ev_models).
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Tuple, Union


# =============================================================================
# ENUMS
# =============================================================================

class Bureau(str, Enum):
    EQUIFAX = "equifax"
    EXPERIAN = "experian"
    TRANSUNION = "transunion"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Bureau":
        """Map free text to a Bureau, falling back to UNKNOWN."""
        if isinstance(value, Bureau):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class Ownership(str, Enum):
    """Responsibility for a tradeline (ECOA-style)."""
    INDIVIDUAL = "individual"
    JOINT = "joint"
    AUTHORIZED_USER = "authorized_user"
    BUSINESS = "business"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Ownership":
        if isinstance(value, Ownership):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class ConflictField(str, Enum):
    BALANCE = "balance"
    CREDIT_LIMIT = "credit_limit"
    HIGH_CREDIT = "high_credit"
    STATUS = "status"
    OWNERSHIP = "ownership"
    OPEN_DATE = "open_date"
    REPORTED_DATE = "reported_date"


class ConflictResolution(str, Enum):
    LATEST = "latest"
    TIE_BALANCE = "tie_balance"
    TIE_LIMIT = "tie_limit"


class TieStrategy(str, Enum):
    """How to pick among snapshots that share the latest reported date."""
    MAX = "max"
    MIN = "min"
    NONE = "none"


class FieldKind(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"


FieldValue = Union[str, float, None]


# =============================================================================
# SSOT #1: PARSE RESULT (Output of Parsing Layer)
# =============================================================================

@dataclass(frozen=True)
class ScoredValue:
    """A grammar match: the normalized value plus a fixed confidence."""
    value: Union[str, float]
    confidence: float


@dataclass(frozen=True)
class ParsedAccount:
    """
    One account chunk as extracted from bureau text.

    Every *_confidence field is set only when its paired value is set.
    raw_lines keeps the source lines for audit.
    """
    name: str = "Unknown account"
    raw_lines: Tuple[str, ...] = ()

    balance: Optional[float] = None
    balance_confidence: Optional[float] = None
    credit_limit: Optional[float] = None
    credit_limit_confidence: Optional[float] = None
    high_credit: Optional[float] = None
    high_credit_confidence: Optional[float] = None

    status: Optional[str] = None
    status_confidence: Optional[float] = None
    ownership: Optional[str] = None
    ownership_confidence: Optional[float] = None

    # Month precision, "YYYY-MM"
    open_date: Optional[str] = None
    open_date_confidence: Optional[float] = None
    reported_date: Optional[str] = None
    reported_date_confidence: Optional[float] = None

    def __post_init__(self):
        for value_field in SCORED_ACCOUNT_FIELDS:
            if getattr(self, value_field) is None and getattr(self, f"{value_field}_confidence") is not None:
                raise ValueError(f"{value_field}_confidence set without {value_field}")


SCORED_ACCOUNT_FIELDS: Tuple[str, ...] = (
    "balance", "credit_limit", "high_credit",
    "status", "ownership", "open_date", "reported_date",
)


@dataclass(frozen=True)
class ParsedInquiry:
    """A hard/soft pull listed in the inquiries section."""
    creditor: str = "Unknown"
    date: Optional[str] = None
    date_confidence: Optional[float] = None
    type: Optional[str] = None


@dataclass
class ParseResult:
    accounts: List[ParsedAccount] = field(default_factory=list)
    inquiries: List[ParsedInquiry] = field(default_factory=list)


# =============================================================================
# SSOT #2: QUALITY GATE (Output of Coverage Evaluator)
# =============================================================================

@dataclass(frozen=True)
class QualityThresholds:
    """Minimum metric values (percent) a bureau parse must reach to skip review."""
    coverage_percent: float
    numeric_exact_percent: float
    categorical_date_percent: float


@dataclass(frozen=True)
class BureauMetrics:
    coverage_percent: float = 0.0
    numeric_exact_percent: float = 0.0
    categorical_date_percent: float = 0.0

    def meets(self, thresholds: QualityThresholds) -> bool:
        return (
            self.coverage_percent >= thresholds.coverage_percent
            and self.numeric_exact_percent >= thresholds.numeric_exact_percent
            and self.categorical_date_percent >= thresholds.categorical_date_percent
        )


@dataclass
class BureauEvaluation:
    """Parse result of one bureau document plus its quality verdict."""
    bureau: Bureau
    accounts: List[ParsedAccount]
    inquiries: List[ParsedInquiry]
    metrics: BureauMetrics
    thresholds: QualityThresholds
    requires_manual_review: bool
    accounts_needing_review: List[ParsedAccount] = field(default_factory=list)


# =============================================================================
# SSOT #3: CROSS-BUREAU MERGE (Output of Merge Engine)
# =============================================================================

@dataclass(frozen=True)
class BureauAccount(ParsedAccount):
    """A ParsedAccount tagged with the bureau that reported it. Merge input only."""
    bureau: Bureau = Bureau.UNKNOWN

    @classmethod
    def from_parsed(cls, bureau: Bureau, account: ParsedAccount) -> "BureauAccount":
        values = {f.name: getattr(account, f.name) for f in fields(ParsedAccount)}
        return cls(bureau=Bureau.coerce(bureau), **values)


@dataclass(frozen=True)
class FieldSnapshot:
    bureau: Bureau
    value: FieldValue
    reported_date: Optional[str] = None


@dataclass(frozen=True)
class SourceAccountSnapshot:
    """Raw per-bureau values kept on a ReviewAccount for provenance."""
    bureau: Bureau
    reported_date: Optional[str] = None
    balance: Optional[float] = None
    credit_limit: Optional[float] = None
    high_credit: Optional[float] = None
    ownership: Optional[str] = None
    status: Optional[str] = None
    open_date: Optional[str] = None


@dataclass(frozen=True)
class ReviewAccount:
    """
    One logical tradeline after cross-bureau merge.

    bureaus preserves first-encounter order; compare as a set.
    """
    id: str
    name: str
    bureaus: Tuple[Bureau, ...] = ()
    ownership: Optional[str] = None
    status: Optional[str] = None
    balance: Optional[float] = None
    credit_limit: Optional[float] = None
    high_credit: Optional[float] = None
    open_date: Optional[str] = None
    reported_date: Optional[str] = None
    source_accounts: Tuple[SourceAccountSnapshot, ...] = ()

    @property
    def ownership_kind(self) -> Ownership:
        return Ownership.coerce(self.ownership)

    @property
    def is_authorized_user(self) -> bool:
        return self.ownership_kind is Ownership.AUTHORIZED_USER


@dataclass(frozen=True)
class ConflictEntry:
    """Bureaus disagreed on a field; records the winner and every differing value."""
    account_name: str
    field: ConflictField
    chosen: FieldSnapshot
    others: Tuple[FieldSnapshot, ...]
    resolution: ConflictResolution


@dataclass
class MergeResult:
    merged_accounts: List[ReviewAccount] = field(default_factory=list)
    excluded_accounts: List[ReviewAccount] = field(default_factory=list)
    conflicts: List[ConflictEntry] = field(default_factory=list)
