"""Pure aggregations over a ledger snapshot.

A snapshot is any sequence of objects exposing ``id``, ``type``,
``amount_cents``, ``date``, ``category_name`` and ``category_emoji`` (ORM
``Transaction`` rows in practice). Nothing here touches the database, so every
function returns the same output for the same snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from categories import Category
from errors import ValidationError
from models import Transaction, TransactionType
from money import MAX_AMOUNT_CENTS, to_cents

MONTH_LABELS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


@dataclass(frozen=True)
class HighestSpend:
    category: Category
    amount_cents: int
    transaction_id: int


@dataclass(frozen=True)
class GoalProgress:
    goal_cents: int
    current_savings_cents: int
    percent: float
    status: str

    @property
    def achieved(self) -> bool:
        return self.status == "achieved"


@dataclass(frozen=True)
class LedgerSummary:
    income_cents: int
    expense_cents: int
    balance_cents: int
    savings_cents: int
    monthly_net_cents: list[int]
    spending_by_category: list[dict[str, object]] = field(default_factory=list)
    income_by_category: list[dict[str, object]] = field(default_factory=list)
    highest_spend: Optional[HighestSpend] = None
    transaction_count: int = 0


def _total(snapshot: Sequence[Transaction], txn_type: TransactionType) -> int:
    return sum(txn.amount_cents for txn in snapshot if txn.type == txn_type)


def _signed(txn: Transaction) -> int:
    if txn.type == TransactionType.income:
        return txn.amount_cents
    return -txn.amount_cents


def balance(snapshot: Sequence[Transaction]) -> int:
    return sum(_signed(txn) for txn in snapshot)


def total_savings(snapshot: Sequence[Transaction]) -> int:
    income = _total(snapshot, TransactionType.income)
    expense = _total(snapshot, TransactionType.expense)
    return income - expense


def monthly_series(snapshot: Sequence[Transaction]) -> list[int]:
    """Net amount per calendar month, January first, with all years folded."""
    buckets = [0] * 12
    for txn in snapshot:
        buckets[txn.date.month - 1] += _signed(txn)
    return buckets


def category_totals(
    snapshot: Sequence[Transaction],
    transaction_type: TransactionType = TransactionType.expense,
) -> list[dict[str, object]]:
    totals: dict[str, int] = {}
    categories: dict[str, Category] = {}
    for txn in snapshot:
        if txn.type != transaction_type:
            continue
        category = Category(txn.category_name, txn.category_emoji)
        totals[category.key] = totals.get(category.key, 0) + txn.amount_cents
        categories[category.key] = category

    grand_total = sum(totals.values())
    breakdown = []
    for key in sorted(totals, key=lambda k: (-totals[k], k)):
        amount = totals[key]
        breakdown.append(
            {
                "key": key,
                "name": categories[key].name,
                "emoji": categories[key].emoji,
                "amount_cents": amount,
                "percent": (amount / grand_total * 100) if grand_total else 0,
            }
        )
    return breakdown


def highest_spend(snapshot: Sequence[Transaction]) -> Optional[HighestSpend]:
    expenses = [txn for txn in snapshot if txn.type == TransactionType.expense]
    if not expenses:
        return None
    # Largest amount wins; ties go to the earliest date, then the oldest row.
    top = min(expenses, key=lambda txn: (-txn.amount_cents, txn.date, txn.id or 0))
    return HighestSpend(
        category=Category(top.category_name, top.category_emoji),
        amount_cents=top.amount_cents,
        transaction_id=top.id,
    )


def goal_progress(goal: Decimal, income_cents: int, expense_cents: int) -> GoalProgress:
    goal_cents = to_cents(goal) if 0 < goal * 100 <= MAX_AMOUNT_CENTS else 0
    if goal_cents <= 0:
        raise ValidationError("Please enter a valid goal amount")
    current = max(0, income_cents - expense_cents)
    percent = min(100.0, current / goal_cents * 100)
    status = "achieved" if percent >= 100 else "in_progress"
    return GoalProgress(
        goal_cents=goal_cents,
        current_savings_cents=current,
        percent=percent,
        status=status,
    )


def summarize(snapshot: Sequence[Transaction]) -> LedgerSummary:
    income = _total(snapshot, TransactionType.income)
    expense = _total(snapshot, TransactionType.expense)
    return LedgerSummary(
        income_cents=income,
        expense_cents=expense,
        balance_cents=balance(snapshot),
        savings_cents=total_savings(snapshot),
        monthly_net_cents=monthly_series(snapshot),
        spending_by_category=category_totals(snapshot, TransactionType.expense),
        income_by_category=category_totals(snapshot, TransactionType.income),
        highest_spend=highest_spend(snapshot),
        transaction_count=len(snapshot),
    )
