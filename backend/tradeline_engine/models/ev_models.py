"""
Tradeline Engine - Expected-Value Data Models

Inputs and outputs of the EV planner and paydown simulator.

AnalyzeInput is built from user-confirmed ReviewAccounts (merge output plus
the ManualEdit overlay). Actions are created fresh per request and never
persisted by the core.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Type, TypeVar

from .ssot import Bureau, Ownership


class AnalysisInputError(ValueError):
    """Raised when analysis input is structurally invalid."""
    pass


# =============================================================================
# ENUMS
# =============================================================================

class ScoreBand(str, Enum):
    UNKNOWN = "unknown"
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class UtilizationBracket(str, Enum):
    UNDER_10 = "under_10"
    UNDER_30 = "under_30"
    UNDER_50 = "under_50"
    UNDER_80 = "under_80"
    OVER_80 = "over_80"


class ProductType(str, Enum):
    CREDIT_CARD = "credit_card"
    CHARGE_CARD = "charge_card"
    PERSONAL_LOAN = "personal_loan"
    AUTO_LOAN = "auto_loan"
    STUDENT_LOAN = "student_loan"
    MORTGAGE = "mortgage"
    HOME_EQUITY = "home_equity"
    SECURED_CARD = "secured_card"
    OTHER = "other"


class AccountStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    PAID = "paid"
    DELINQUENT = "delinquent"
    CHARGED_OFF = "charged_off"
    COLLECTION = "collection"
    UNKNOWN = "unknown"


class PaymentStatus(str, Enum):
    CURRENT = "current"
    LATE_30 = "late_30"
    LATE_60 = "late_60"
    LATE_90_PLUS = "late_90_plus"
    DEROGATORY = "derogatory"
    UNKNOWN = "unknown"


class LimitSource(str, Enum):
    REPORTED_LIMIT = "reported_limit"
    HIGH_CREDIT_PROXY = "high_credit_proxy"
    UNKNOWN = "unknown"


class AprSource(str, Enum):
    REPORTED = "reported"
    ESTIMATED = "estimated"
    NONE = "none"
    UNKNOWN = "unknown"


class ActionType(str, Enum):
    APR_REDUCTION = "apr_reduction"
    BALANCE_TRANSFER = "balance_transfer"
    LATE_FEE_REVERSAL = "late_fee_reversal"
    PENALTY_APR_REDUCTION = "penalty_apr_reduction"
    PAY_DOWN = "pay_down"
    DISPUTE = "dispute"
    EDUCATION = "education"


class ScoreImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WarningLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class PaydownStrategy(str, Enum):
    PROPORTIONAL = "proportional"
    AVALANCHE = "avalanche"


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value, field_name: str) -> E:
    """Convert a raw value into enum_cls or raise AnalysisInputError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise AnalysisInputError(f"Invalid {field_name}: {value!r}")


# =============================================================================
# ANALYSIS INPUT
# =============================================================================

@dataclass
class AnalyzeUser:
    id: str
    score_band: ScoreBand = ScoreBand.UNKNOWN
    email: Optional[str] = None
    self_reported_score: Optional[int] = None

    def __post_init__(self):
        self.score_band = coerce_enum(ScoreBand, self.score_band, "score_band")


@dataclass
class AnalyzeAccount:
    """A user-confirmed tradeline, ready for EV computation."""
    id: str
    creditor_name: str
    balance: float
    bureau: Bureau = Bureau.UNKNOWN
    product_type: ProductType = ProductType.CREDIT_CARD
    ownership: Ownership = Ownership.UNKNOWN
    status: AccountStatus = AccountStatus.OPEN
    payment_status: PaymentStatus = PaymentStatus.UNKNOWN
    credit_limit: Optional[float] = None
    high_credit: Optional[float] = None
    limit_source: LimitSource = LimitSource.UNKNOWN
    apr: Optional[float] = None
    apr_source: AprSource = AprSource.UNKNOWN
    open_date: Optional[str] = None
    last_delinquency_date: Optional[str] = None
    reported_month: Optional[str] = None
    dispute_candidate: bool = False
    dispute_reasons: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.bureau = coerce_enum(Bureau, self.bureau, "bureau")
        self.product_type = coerce_enum(ProductType, self.product_type, "product_type")
        self.ownership = coerce_enum(Ownership, self.ownership, "ownership")
        self.status = coerce_enum(AccountStatus, self.status, "status")
        self.payment_status = coerce_enum(PaymentStatus, self.payment_status, "payment_status")
        self.limit_source = coerce_enum(LimitSource, self.limit_source, "limit_source")
        self.apr_source = coerce_enum(AprSource, self.apr_source, "apr_source")

        if self.balance is None or not math.isfinite(self.balance) or self.balance < 0:
            raise AnalysisInputError(f"Invalid balance for {self.creditor_name}: {self.balance!r}")
        for name in ("credit_limit", "high_credit", "apr"):
            value = getattr(self, name)
            if value is None:
                continue
            if not math.isfinite(value):
                raise AnalysisInputError(f"{name} must be a finite number for {self.creditor_name}")
            if value < 0:
                raise AnalysisInputError(f"{name} must be non-negative for {self.creditor_name}")


@dataclass
class AnalyzeFlags:
    any_60d_late: bool = False
    late_fee_last_two_statements: bool = False
    penalty_apr_active: bool = False


@dataclass
class AnalyzeMeta:
    source: Optional[str] = None        # upload | manual | reanalysis
    bureaus: List[Bureau] = field(default_factory=list)
    generated_at: Optional[str] = None
    version: Optional[str] = None


@dataclass
class AnalyzeInput:
    user: AnalyzeUser
    accounts: List[AnalyzeAccount] = field(default_factory=list)
    inquiries: List[Dict[str, str]] = field(default_factory=list)
    meta: Optional[AnalyzeMeta] = None
    flags: AnalyzeFlags = field(default_factory=AnalyzeFlags)


@dataclass
class ManualEdit:
    """User correction for one merged account, keyed by account name."""
    id: str
    product_type: str = ""
    status: str = ""
    balance: Optional[float] = None
    credit_limit: Optional[float] = None
    high_credit: Optional[float] = None


# =============================================================================
# ANALYSIS OUTPUT
# =============================================================================

@dataclass(frozen=True)
class ScenarioRange:
    low: float
    high: float


@dataclass
class ActionMetadata:
    cash_needed_usd: Optional[float] = None
    time_to_effect_months: Optional[float] = None
    score_impact: Optional[ScoreImpact] = None
    why_this: List[str] = field(default_factory=list)


@dataclass
class Action:
    id: str
    type: ActionType
    title: str
    summary: str
    estimated_savings_usd: float
    probability_of_success: Optional[float] = None
    scenario_range: Optional[ScenarioRange] = None
    next_steps: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    metadata: Optional[ActionMetadata] = None


@dataclass(frozen=True)
class PlanWarning:
    code: str
    message: str
    level: WarningLevel = WarningLevel.WARNING


@dataclass
class EvPlan:
    actions: List[Action] = field(default_factory=list)
    warnings: List[PlanWarning] = field(default_factory=list)


@dataclass(frozen=True)
class AnalysisAudit:
    engine_version: str
    compute_ms: int
    run_id: Optional[str] = None
    generated_at: Optional[str] = None


@dataclass
class AnalyzeOutput:
    actions: List[Action]
    warnings: List[PlanWarning]
    audit: AnalysisAudit


# =============================================================================
# PAYDOWN
# =============================================================================

@dataclass
class PaydownAccount:
    id: str
    balance: float
    apr: float

    def __post_init__(self):
        for name in ("balance", "apr"):
            value = getattr(self, name)
            if value is None or not math.isfinite(value):
                raise AnalysisInputError(f"{name} must be a finite number for {self.id}")


@dataclass
class PaydownPlan:
    accounts: List[PaydownAccount]
    surplus: float
    months: int
    strategy: PaydownStrategy = PaydownStrategy.PROPORTIONAL
    lump_sum: Optional[float] = None

    def __post_init__(self):
        self.strategy = coerce_enum(PaydownStrategy, self.strategy, "strategy")


@dataclass
class PaydownResult:
    interest_paid: float
    balances: Dict[str, float] = field(default_factory=dict)
