"""Core business logic package for the expense tracker."""

from .models import Expense
from .services import ExpenseService
from .storage import ExpenseStore, JSONStorage
from .transfer import ImportReport, export_filename
from .views import ExpenseView, Totals, compute_view
from .exceptions import ImportFormatError, PersistenceError, RecordNotFoundError, ValidationError

__all__ = [
    "Expense",
    "ExpenseService",
    "ExpenseStore",
    "ExpenseView",
    "ImportReport",
    "JSONStorage",
    "Totals",
    "compute_view",
    "export_filename",
    "ImportFormatError",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
]
