"""Persistence utilities for the expense tracker core services."""

from __future__ import annotations

import json
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import STORAGE_KEY
from .exceptions import PersistenceError, ValidationError
from .logging_setup import get_logger
from .models import Expense

logger = get_logger(__name__)


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes.

    Each resource is one slot: a file under ``base_path`` holding a JSON array.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {self._base_path}") from exc

    def load(self, resource: str) -> List[Any]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring corrupted JSON data in %s", path)
            return []
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            logger.warning("Ignoring non-list payload in %s", path)
            return []
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2)
                handle.flush()
            # Readers only ever see the previous or the new snapshot.
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path


class ExpenseStore:
    """The durable slot holding the whole expense collection."""

    def __init__(self, storage: JSONStorage, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def resource(self) -> str:
        return f"{self._key}.json"

    def load(self) -> List[Expense]:
        """Return the stored collection; missing or corrupt data yields ``[]``."""
        raw_records = self._storage.load(self.resource)
        try:
            return [Expense.from_dict(payload) for payload in raw_records]
        except (KeyError, TypeError, InvalidOperation, ValidationError) as exc:
            logger.warning("Discarding malformed expense snapshot in %s: %r", self.resource, exc)
            return []

    def save(self, records: Iterable[Expense]) -> None:
        self._storage.save(self.resource, [expense.to_dict() for expense in records])
