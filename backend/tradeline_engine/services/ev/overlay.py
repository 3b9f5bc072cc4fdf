"""
Tradeline Engine - Manual Edit Overlay

Applies user corrections (ManualEdit) on top of merged ReviewAccounts and
builds the AnalyzeInput for the planner. ReviewAccounts are never mutated;
each call produces fresh AnalyzeAccounts.
"""
from __future__ import annotations
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from ...models.ev_models import (
    AccountStatus, AnalyzeAccount, AnalyzeInput, AnalyzeMeta, AnalyzeUser, AprSource,
    LimitSource, ManualEdit, PaymentStatus, ProductType, ScoreBand,
)
from ...models.ssot import Bureau, BureauAccount, Ownership, ReviewAccount

logger = logging.getLogger(__name__)


LOCAL_USER_ID = "local-user"
ANALYZE_INPUT_VERSION = "1.0"

# First keyword contained in the edit text wins
PRODUCT_KEYWORDS = (
    ("charge", ProductType.CHARGE_CARD),
    ("install", ProductType.PERSONAL_LOAN),
    ("auto", ProductType.AUTO_LOAN),
    ("mortgage", ProductType.MORTGAGE),
    ("home", ProductType.HOME_EQUITY),
    ("secured", ProductType.SECURED_CARD),
)


def normalize_product_type(value: Optional[str]) -> ProductType:
    normalized = (value or "").strip().lower()
    if not normalized:
        return ProductType.CREDIT_CARD
    for keyword, product in PRODUCT_KEYWORDS:
        if keyword in normalized:
            return product
    return ProductType.CREDIT_CARD


def normalize_status(value: Optional[str]) -> AccountStatus:
    """"current" and anything unrecognized map to OPEN."""
    normalized = re.sub(r"\s+", "_", (value or "").strip().lower())
    if not normalized or normalized == "current":
        return AccountStatus.OPEN
    try:
        return AccountStatus(normalized)
    except ValueError:
        return AccountStatus.OPEN


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def limit_source_for(credit_limit: Optional[float], high_credit: Optional[float]) -> LimitSource:
    if credit_limit:
        return LimitSource.REPORTED_LIMIT
    if high_credit:
        return LimitSource.HIGH_CREDIT_PROXY
    return LimitSource.UNKNOWN


def build_account(account: ReviewAccount, edit: Optional[ManualEdit] = None) -> AnalyzeAccount:
    balance = _first_set(edit.balance if edit else None, account.balance, 0)
    credit_limit = _first_set(edit.credit_limit if edit else None, account.credit_limit)
    high_credit = _first_set(edit.high_credit if edit else None, account.high_credit)
    status = (edit.status if edit else None) or account.status
    ownership = account.ownership_kind

    return AnalyzeAccount(
        id=account.id,
        bureau=account.bureaus[0] if len(account.bureaus) == 1 else Bureau.UNKNOWN,
        creditor_name=account.name,
        product_type=normalize_product_type(edit.product_type if edit else None),
        ownership=ownership,
        status=normalize_status(status),
        payment_status=PaymentStatus.CURRENT,
        balance=balance,
        credit_limit=credit_limit,
        high_credit=high_credit,
        limit_source=limit_source_for(credit_limit, high_credit),
        apr=None,
        apr_source=AprSource.UNKNOWN,
        open_date=account.open_date,
        reported_month=account.reported_date,
        tags=["joint"] if ownership is Ownership.JOINT else [],
    )


def build_accounts_from_review(
    merged: Sequence[ReviewAccount],
    edits: Iterable[ManualEdit] = (),
) -> List[AnalyzeAccount]:
    """Map merged accounts to AnalyzeAccounts; edits match on name, case-insensitively."""
    edits_by_name: Dict[str, ManualEdit] = {edit.id.lower(): edit for edit in edits}
    accounts = [build_account(account, edits_by_name.get(account.name.lower())) for account in merged]
    applied = sum(1 for account in merged if account.name.lower() in edits_by_name)
    logger.debug(f"Built {len(accounts)} analyze accounts ({applied} with manual edits)")
    return accounts


def build_analyze_input(
    merged: Sequence[ReviewAccount],
    edits: Iterable[ManualEdit] = (),
    bureau_accounts: Iterable[BureauAccount] = (),
) -> AnalyzeInput:
    """Wrap the overlay output with a local user of unknown score band."""
    bureaus: List[Bureau] = []
    sources = [account.bureau for account in bureau_accounts]
    sources.extend(bureau for account in merged for bureau in account.bureaus)
    for bureau in sources:
        if bureau not in bureaus:
            bureaus.append(bureau)

    return AnalyzeInput(
        user=AnalyzeUser(id=LOCAL_USER_ID, score_band=ScoreBand.UNKNOWN),
        accounts=build_accounts_from_review(merged, edits),
        inquiries=[],
        meta=AnalyzeMeta(
            source="upload",
            bureaus=bureaus,
            generated_at=datetime.now(timezone.utc).isoformat(),
            version=ANALYZE_INPUT_VERSION,
        ),
    )
