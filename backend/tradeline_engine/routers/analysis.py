"""
Tradeline Engine - Analysis API Router

Thin HTTP surface over the pipeline. Nothing is persisted; every request is
computed from its body alone.
"""
from __future__ import annotations
import logging
from dataclasses import asdict
from enum import Enum
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..models import (
    AnalyzeAccount, AnalyzeFlags, AnalyzeInput, AnalyzeMeta, AnalyzeUser, Bureau,
    BureauAccount, PaydownAccount, PaydownPlan,
)
from ..services.ev import analyze, ev_paydown, simulate_paydown
from ..services.merge import merge_cross_bureau_accounts
from ..services.quality import analyze_bureau_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class DocumentRequest(BaseModel):
    bureau: str = "equifax"
    text: str = ""


class BureauAccountPayload(BaseModel):
    bureau: str = "unknown"
    name: str = "Unknown account"
    raw_lines: List[str] = []
    balance: Optional[float] = Field(default=None, ge=0)
    balance_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    credit_limit: Optional[float] = Field(default=None, ge=0)
    credit_limit_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    high_credit: Optional[float] = Field(default=None, ge=0)
    high_credit_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    status: Optional[str] = None
    status_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    ownership: Optional[str] = None
    ownership_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    open_date: Optional[str] = None
    open_date_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    reported_date: Optional[str] = None
    reported_date_confidence: Optional[float] = Field(default=None, ge=0, le=1)


class MergeRequest(BaseModel):
    accounts: List[BureauAccountPayload] = []


class UserPayload(BaseModel):
    id: str
    score_band: str = "unknown"
    email: Optional[str] = None
    self_reported_score: Optional[int] = None


class AccountPayload(BaseModel):
    id: str
    creditor_name: str
    balance: float
    bureau: str = "unknown"
    product_type: str = "credit_card"
    ownership: str = "unknown"
    status: str = "open"
    payment_status: str = "unknown"
    credit_limit: Optional[float] = None
    high_credit: Optional[float] = None
    limit_source: str = "unknown"
    apr: Optional[float] = None
    apr_source: str = "unknown"
    open_date: Optional[str] = None
    last_delinquency_date: Optional[str] = None
    reported_month: Optional[str] = None
    dispute_candidate: bool = False
    dispute_reasons: List[str] = []
    tags: List[str] = []


class FlagsPayload(BaseModel):
    any_60d_late: bool = False
    late_fee_last_two_statements: bool = False
    penalty_apr_active: bool = False


class MetaPayload(BaseModel):
    source: Optional[str] = None
    bureaus: List[str] = []
    generated_at: Optional[str] = None
    version: Optional[str] = None


class AnalyzeRequest(BaseModel):
    user: UserPayload
    accounts: List[AccountPayload] = []
    inquiries: List[Dict[str, str]] = []
    meta: Optional[MetaPayload] = None
    flags: FlagsPayload = Field(default_factory=FlagsPayload)


class PaydownAccountPayload(BaseModel):
    id: str
    balance: float
    apr: float


class PaydownPlanPayload(BaseModel):
    accounts: List[PaydownAccountPayload]
    surplus: float
    months: int = Field(ge=0)
    strategy: str = "proportional"
    lump_sum: Optional[float] = None


class PaydownRequest(BaseModel):
    baseline: PaydownPlanPayload
    alternative: PaydownPlanPayload
    avalanche: PaydownPlanPayload


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def serialize(result) -> dict:
    """Convert a result dataclass to a JSON-serializable dict."""
    def convert(obj):
        if isinstance(obj, dict):
            return {k: convert(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [convert(i) for i in obj]
        elif isinstance(obj, Enum):
            return obj.value
        return obj
    return convert(asdict(result))


def invalid_request(error: Exception) -> HTTPException:
    logger.warning(f"Rejected analysis request: {error}")
    return HTTPException(status_code=400, detail={"code": "invalid_request", "message": str(error)})


def to_bureau_account(payload: BureauAccountPayload) -> BureauAccount:
    values = payload.model_dump()
    values["bureau"] = Bureau.coerce(values["bureau"])
    values["raw_lines"] = tuple(values["raw_lines"])
    return BureauAccount(**values)


def to_analyze_input(request: AnalyzeRequest) -> AnalyzeInput:
    meta = None
    if request.meta is not None:
        meta_values = request.meta.model_dump()
        meta_values["bureaus"] = [Bureau.coerce(b) for b in meta_values["bureaus"]]
        meta = AnalyzeMeta(**meta_values)

    return AnalyzeInput(
        user=AnalyzeUser(**request.user.model_dump()),
        accounts=[AnalyzeAccount(**account.model_dump()) for account in request.accounts],
        inquiries=list(request.inquiries),
        meta=meta,
        flags=AnalyzeFlags(**request.flags.model_dump()),
    )


def to_paydown_plan(payload: PaydownPlanPayload) -> PaydownPlan:
    return PaydownPlan(
        accounts=[PaydownAccount(**account.model_dump()) for account in payload.accounts],
        surplus=payload.surplus,
        months=payload.months,
        strategy=payload.strategy,
        lump_sum=payload.lump_sum,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/documents")
async def analyze_document(request: DocumentRequest):
    """Parse one bureau document and run the quality gate."""
    if not request.text.strip():
        raise HTTPException(
            status_code=400,
            detail={"code": "bad_request", "message": "Document text is required"},
        )

    evaluation = analyze_bureau_document(Bureau.coerce(request.bureau), request.text)
    return serialize(evaluation)


@router.post("/merge")
async def merge_accounts(request: MergeRequest):
    """Merge bureau-tagged accounts into review accounts with conflicts."""
    try:
        accounts = [to_bureau_account(account) for account in request.accounts]
    except ValueError as e:
        raise invalid_request(e)

    return serialize(merge_cross_bureau_accounts(accounts))


@router.post("/plan")
async def plan_actions(request: AnalyzeRequest):
    """Compute the EV action plan for confirmed accounts."""
    try:
        output = analyze(to_analyze_input(request))
    except ValueError as e:
        raise invalid_request(e)

    return serialize(output)


@router.post("/paydown")
async def compare_paydown(request: PaydownRequest):
    """Simulate the baseline and two alternative plans and report the best saving."""
    try:
        baseline = to_paydown_plan(request.baseline)
        alternative = to_paydown_plan(request.alternative)
        avalanche = to_paydown_plan(request.avalanche)
    except ValueError as e:
        raise invalid_request(e)

    return {
        "baseline": serialize(simulate_paydown(baseline)),
        "alternative": serialize(simulate_paydown(alternative)),
        "avalanche": serialize(simulate_paydown(avalanche)),
        "ev_paydown": ev_paydown(alternative, baseline, avalanche),
    }
