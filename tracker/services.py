"""Framework-agnostic business services for the expense tracker."""

from __future__ import annotations

import threading
from typing import Dict, List, Mapping, Optional, Union
from uuid import uuid4

from .config import STORAGE_KEY
from .exceptions import PersistenceError, RecordNotFoundError
from .logging_setup import get_logger
from .models import Expense
from .storage import ExpenseStore, JSONStorage
from .transfer import ImportReport, export_payload, normalize_candidates, parse_import_payload
from .validators import (
    CATEGORY_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    parse_amount,
    validate_date,
    validate_required_str,
)
from .views import ExpenseView, compute_view

logger = get_logger(__name__)


class ExpenseService:
    """Owns the expense collection and mediates persistence.

    Every mutation writes the full post-mutation snapshot once. The snapshot is
    saved before it replaces the in-memory collection, so a failed write
    leaves both untouched.
    """

    def __init__(
        self,
        storage: JSONStorage,
        key: str = STORAGE_KEY,
        *,
        store: Optional[ExpenseStore] = None,
    ) -> None:
        self._store = store or ExpenseStore(storage, key)
        self._expenses: Dict[str, Expense] = {}
        self._lock = threading.RLock()
        self.reload()  # Hydrate in-memory cache from persistence on construction.

    # Public API -----------------------------------------------------------
    def add(self, payload: Mapping[str, object]) -> Expense:
        with self._lock:
            data = self._validate_payload(_payload_fields(payload))
            expense = Expense(**data)
            records = dict(self._expenses)
            records[expense.id] = expense
            self._commit(records)
        logger.info("Added expense %s", expense.id)
        return expense

    def update(self, expense_id: str, payload: Mapping[str, object]) -> Expense:
        """Replace every field of an expense; all four fields are required."""
        with self._lock:
            existing = self._get_or_raise(expense_id)
            data = self._validate_payload(_payload_fields(payload), current=existing)
            updated = Expense(**data)
            records = dict(self._expenses)
            records[expense_id] = updated  # Existing key keeps its position.
            self._commit(records)
        logger.info("Updated expense %s", expense_id)
        return updated

    def remove(self, expense_id: str) -> None:
        with self._lock:
            if expense_id not in self._expenses:
                return
            records = {key: value for key, value in self._expenses.items() if key != expense_id}
            self._commit(records)
        logger.info("Removed expense %s", expense_id)

    def clear(self) -> None:
        with self._lock:
            self._commit({})
        logger.info("Cleared all expenses")

    def replace_all(self, candidates: object) -> ImportReport:
        """Replace the collection with the normalised import candidates."""
        report = normalize_candidates(candidates)
        with self._lock:
            self._commit({expense.id: expense for expense in report.accepted})
        for index, reason in report.rejected:
            logger.warning("Skipped import record %d: %s", index, reason)
        logger.info(
            "Imported %d expenses (%d skipped)", len(report.accepted), len(report.rejected)
        )
        return report

    def import_json(self, text: Union[str, bytes]) -> ImportReport:
        return self.replace_all(parse_import_payload(text))

    def export_json(self) -> str:
        return export_payload(self.list())

    def get(self, expense_id: str) -> Expense:
        """Return an expense or raise if it does not exist."""
        return self._get_or_raise(expense_id)

    def list(self) -> List[Expense]:
        with self._lock:
            return list(self._expenses.values())

    def compute_view(self, query: str = "", month: str = "") -> ExpenseView:
        return compute_view(self.list(), query, month)

    def reload(self) -> None:
        """Load existing expenses from persistence."""
        with self._lock:
            self._expenses = {expense.id: expense for expense in self._store.load()}

    # Internal helpers -----------------------------------------------------
    def _commit(self, records: Dict[str, Expense]) -> None:
        try:
            self._store.save(records.values())
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving expenses") from exc
        self._expenses = records

    def _get_or_raise(self, expense_id: str) -> Expense:
        try:
            return self._expenses[expense_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Expense {expense_id} not found") from exc

    def _validate_payload(
        self, payload: Mapping[str, object], *, current: Optional[Expense] = None
    ) -> Dict[str, object]:
        return {
            "id": current.id if current else str(uuid4()),
            "description": validate_required_str(
                payload.get("description"), "description", DESCRIPTION_MAX_LENGTH
            ),
            "amount": parse_amount(payload.get("amount"), "amount"),
            "category": validate_required_str(
                payload.get("category"), "category", CATEGORY_MAX_LENGTH
            ),
            "date": validate_date(payload.get("date"), "date"),
        }


def _payload_fields(payload: Mapping[str, object]) -> Dict[str, object]:
    """Accept the wire name ``desc`` as an alias of ``description``."""
    fields = dict(payload)
    if "desc" in fields:
        fields.setdefault("description", fields["desc"])
        del fields["desc"]
    fields.pop("id", None)
    return fields


def merge_changes(existing: Expense, changes: Mapping[str, object]) -> Dict[str, object]:
    """Full update payload: ``changes`` laid over the fields of ``existing``."""
    return {**existing.fields(), **_payload_fields(changes)}
