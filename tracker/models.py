"""Data models for the expense tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Union

from .validators import parse_amount

__all__ = ["Expense", "amount_to_json"]


def amount_to_json(amount: Decimal) -> Union[int, float]:
    """Return a JSON number for a Decimal amount, integral values as ints."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: Decimal
    category: str
    date: str

    @property
    def month(self) -> str:
        """Year-month prefix (``YYYY-MM``) of the ISO date."""
        return self.date[:7]

    def fields(self) -> Dict[str, Any]:
        """Editable fields keyed by their payload names."""
        return {
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
            "date": self.date,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to its wire form; ``desc`` carries the description."""
        return {
            "id": self.id,
            "desc": self.description,
            "amount": amount_to_json(self.amount),
            "category": self.category,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from its wire form, rejecting invalid amounts."""
        return cls(
            id=str(data["id"]),
            description=str(data["desc"]),
            amount=parse_amount(data["amount"], "amount"),
            category=str(data["category"]),
            date=str(data["date"]),
        )
