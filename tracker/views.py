"""Filtered views and summary statistics over an expense collection.

Everything here is a pure function of its inputs: the collection passed in is
never mutated and identical inputs always produce identical views.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence

from .models import Expense, amount_to_json

__all__ = ["ExpenseView", "Totals", "category_breakdown", "compute_view", "filter_expenses", "summarize"]

ZERO = Decimal("0")


@dataclass(frozen=True)
class Totals:
    total: Decimal = ZERO
    count: int = 0
    average: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": amount_to_json(self.total),
            "count": self.count,
            "average": amount_to_json(self.average),
        }


@dataclass(frozen=True)
class ExpenseView:
    rows: List[Expense] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    category_breakdown: Dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [expense.to_dict() for expense in self.rows],
            "totals": self.totals.to_dict(),
            "category_breakdown": {
                category: amount_to_json(amount)
                for category, amount in self.category_breakdown.items()
            },
        }


def filter_expenses(expenses: Iterable[Expense], query: str = "", month: str = "") -> List[Expense]:
    """Return the records matching both the text query and the month."""
    needle = (query or "").strip().lower()
    month = (month or "").strip()

    def matches(expense: Expense) -> bool:
        if needle and needle not in expense.description.lower() and needle not in expense.category.lower():
            return False
        if month and expense.month != month:
            return False
        return True

    return list(filter(matches, expenses))


def summarize(expenses: Sequence[Expense]) -> Totals:
    total = sum((expense.amount for expense in expenses), start=ZERO)
    count = len(expenses)
    average = total / count if count else ZERO
    return Totals(total=total, count=count, average=average)


def category_breakdown(expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    """Sum amounts per category, keyed in first-seen order."""
    breakdown: Dict[str, Decimal] = {}
    for expense in expenses:
        breakdown[expense.category] = breakdown.get(expense.category, ZERO) + expense.amount
    return breakdown


def compute_view(expenses: Sequence[Expense], query: str = "", month: str = "") -> ExpenseView:
    """Derive table rows, headline totals and the category breakdown.

    Totals cover the filtered rows only while a month is selected; without a
    month they cover every record, whatever the text query. The breakdown
    always follows the filtered rows.
    """
    records = list(expenses)
    rows = filter_expenses(records, query, month)
    base = rows if (month or "").strip() else records
    return ExpenseView(
        rows=rows,
        totals=summarize(base),
        category_breakdown=category_breakdown(rows),
    )
