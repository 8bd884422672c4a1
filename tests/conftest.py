"""Shared fixtures: every test gets its own data directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from tracker.services import ExpenseService
from tracker.storage import JSONStorage


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def storage(data_dir: Path) -> JSONStorage:
    return JSONStorage(data_dir)


@pytest.fixture
def service(storage: JSONStorage) -> ExpenseService:
    return ExpenseService(storage)


@pytest.fixture
def coffee_and_bus(service: ExpenseService):
    coffee = service.add({"description": "Coffee", "amount": 50, "category": "Food", "date": "2024-01-05"})
    bus = service.add({"description": "Bus", "amount": 20, "category": "Transport", "date": "2024-02-01"})
    return coffee, bus
