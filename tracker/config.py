"""Environment-driven settings for the expense tracker."""

from __future__ import annotations

import os
from pathlib import Path

DATA_DIR = Path(os.getenv("EXPENSE_TRACKER_DATA_DIR", "data"))

# Name of the durable slot holding the serialised collection.
STORAGE_KEY = os.getenv("EXPENSE_TRACKER_STORAGE_KEY", "expenses_v1")

LOG_LEVEL = os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "WARNING")

EXPORT_PREFIX = "expenses"
