"""
Tradeline Engine - Paydown Simulator

Month-by-month amortization of a fixed monthly surplus across accounts.

Strategies:
- PROPORTIONAL: surplus split by each positive balance's share of the total
- AVALANCHE: highest APR first, each account paid in full before the next

Each month interest accrues on the average of the opening and closing balance
and is added back onto the balance.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from ...models.ev_models import PaydownAccount, PaydownPlan, PaydownResult, PaydownStrategy
from .odds import to_cents

logger = logging.getLogger(__name__)


def sort_accounts(accounts: Sequence[PaydownAccount], strategy: PaydownStrategy) -> List[PaydownAccount]:
    if strategy is PaydownStrategy.AVALANCHE:
        return sorted(accounts, key=lambda account: -account.apr)
    return sorted(accounts, key=lambda account: account.balance)


def proportional_payments(accounts: Sequence[PaydownAccount], surplus: float) -> Dict[str, float]:
    positive = [account for account in accounts if account.balance > 0]
    total = sum(account.balance for account in positive)
    return {
        account.id: (account.balance / total * surplus) if total else 0
        for account in positive
    }


def avalanche_payments(accounts: Sequence[PaydownAccount], surplus: float) -> Dict[str, float]:
    """Pay accounts in the given order; surplus left over lands on the last one."""
    payments: Dict[str, float] = {}
    remaining = surplus
    for account in accounts:
        if remaining <= 0 or account.balance <= 0:
            payments[account.id] = 0
            continue
        pay = min(account.balance, remaining)
        payments[account.id] = pay
        remaining -= pay

    if remaining > 0 and accounts:
        last = accounts[-1]
        payments[last.id] = payments.get(last.id, 0) + remaining
    return payments


def monthly_payments(ordered: Sequence[PaydownAccount], surplus: float,
                     strategy: PaydownStrategy) -> Dict[str, float]:
    if strategy is PaydownStrategy.PROPORTIONAL:
        return proportional_payments(ordered, surplus)
    return avalanche_payments(ordered, surplus)


def apply_lump_sum(accounts: List[PaydownAccount], lump_sum: Optional[float],
                   strategy: PaydownStrategy) -> None:
    if not lump_sum or lump_sum <= 0:
        return
    if strategy is PaydownStrategy.PROPORTIONAL:
        allocations = proportional_payments(accounts, lump_sum)
    else:
        allocations = avalanche_payments(sort_accounts(accounts, PaydownStrategy.AVALANCHE), lump_sum)
    for account in accounts:
        account.balance = max(0, account.balance - allocations.get(account.id, 0))


def simulate_paydown(plan: PaydownPlan) -> PaydownResult:
    """Run the plan on copies of its accounts; the plan itself is left untouched."""
    accounts = [replace(account) for account in plan.accounts]
    total_interest = 0.0

    apply_lump_sum(accounts, plan.lump_sum, plan.strategy)

    for _ in range(plan.months):
        ordered = sort_accounts(accounts, plan.strategy)
        payments = monthly_payments(ordered, plan.surplus, plan.strategy)
        for account in ordered:
            previous = account.balance
            closing = max(0, previous - payments.get(account.id, 0))
            interest = (account.apr / 100 / 12) * ((previous + closing) / 2)
            total_interest += interest
            account.balance = closing + interest

    result = PaydownResult(
        interest_paid=to_cents(total_interest),
        balances={account.id: to_cents(account.balance) for account in accounts},
    )
    logger.debug(
        f"Simulated {plan.strategy.value} paydown over {plan.months} months: "
        f"interest={result.interest_paid}"
    )
    return result


def ev_paydown(three_month: PaydownPlan, baseline: PaydownPlan, avalanche: PaydownPlan) -> float:
    """Best interest saving of the two alternatives against the baseline, floored at 0."""
    baseline_total = simulate_paydown(baseline).interest_paid
    savings_three_month = baseline_total - simulate_paydown(three_month).interest_paid
    savings_avalanche = baseline_total - simulate_paydown(avalanche).interest_paid
    return to_cents(max(0, max(savings_three_month, savings_avalanche)))
