"""JSON export and import of whole expense collections."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional, Set, Tuple, Union
from uuid import uuid4

from .config import EXPORT_PREFIX
from .exceptions import ImportFormatError, ValidationError
from .models import Expense
from .validators import parse_amount

__all__ = [
    "ImportReport",
    "NormalizedCandidate",
    "export_filename",
    "export_payload",
    "normalize_candidate",
    "normalize_candidates",
    "parse_import_payload",
]


@dataclass(frozen=True)
class NormalizedCandidate:
    """Outcome of normalising one import candidate: an expense or a reason."""

    index: int
    expense: Optional[Expense] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.expense is not None


@dataclass
class ImportReport:
    accepted: List[Expense] = field(default_factory=list)
    rejected: List[Tuple[int, str]] = field(default_factory=list)


def normalize_candidate(index: int, raw: object, seen_ids: Set[str]) -> NormalizedCandidate:
    """Coerce a loosely-typed record into an Expense.

    An existing ``id`` is kept so that re-importing an export does not change
    identities; ids missing or already used in the batch get a fresh uuid.
    """
    if not isinstance(raw, Mapping):
        return NormalizedCandidate(index, reason="record is not an object")

    description = raw.get("desc") or raw.get("description")
    if not description:
        return NormalizedCandidate(index, reason="missing desc")
    raw_amount = raw.get("amount")
    if not raw_amount:
        return NormalizedCandidate(index, reason="missing amount")
    if not raw.get("category"):
        return NormalizedCandidate(index, reason="missing category")
    if not raw.get("date"):
        return NormalizedCandidate(index, reason="missing date")

    try:
        amount = parse_amount(raw_amount, "amount")
    except ValidationError as exc:
        return NormalizedCandidate(index, reason=str(exc))

    expense_id = str(raw["id"]) if raw.get("id") else ""
    if not expense_id or expense_id in seen_ids:
        expense_id = str(uuid4())
    seen_ids.add(expense_id)

    return NormalizedCandidate(
        index,
        expense=Expense(
            id=expense_id,
            description=str(description),
            amount=amount,
            category=str(raw["category"]),
            date=str(raw["date"]),
        ),
    )


def normalize_candidates(candidates: object) -> ImportReport:
    if not isinstance(candidates, (list, tuple)):
        raise ImportFormatError("Import payload must be a JSON array of expenses")

    report = ImportReport()
    seen_ids: Set[str] = set()
    for index, raw in enumerate(candidates):
        outcome = normalize_candidate(index, raw, seen_ids)
        if outcome.accepted:
            report.accepted.append(outcome.expense)
        else:
            report.rejected.append((index, outcome.reason or "invalid record"))
    return report


def parse_import_payload(text: Union[str, bytes]) -> List[Any]:
    """Parse import file content, insisting on a JSON array."""
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ImportFormatError("Import file is not valid JSON") from exc
    if not isinstance(payload, list):
        raise ImportFormatError("Import payload must be a JSON array of expenses")
    return payload


def export_payload(expenses: Iterable[Expense]) -> str:
    return json.dumps([expense.to_dict() for expense in expenses], indent=2, ensure_ascii=False)


def export_filename(on: Optional[date] = None) -> str:
    """File name for an export taken on ``on`` (defaults to today, UTC)."""
    on = on or datetime.now(timezone.utc).date()
    return f"{EXPORT_PREFIX}_{on.isoformat()}.json"
