"""Console interface for the expense tracker."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from tracker.config import DATA_DIR
from tracker.exceptions import ImportFormatError, PersistenceError, RecordNotFoundError, ValidationError
from tracker.logging_setup import configure_logging
from tracker.models import Expense
from tracker.services import ExpenseService, merge_changes
from tracker.storage import JSONStorage
from tracker.transfer import export_filename
from tracker.validators import validate_month
from tracker.views import ExpenseView


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


def _parse_month(value: str) -> str:
    try:
        return validate_month(value)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _load_service(data_dir: Path) -> ExpenseService:
    return ExpenseService(JSONStorage(data_dir))


def _format_expense(expense: Expense) -> str:
    return f"[{expense.id}] {expense.date}  {expense.description}  ({expense.category})  {expense.amount:.2f}"


def _format_view(view: ExpenseView) -> str:
    lines = [_format_expense(expense) for expense in view.rows] or ["No expenses found."]
    totals = view.totals
    lines.append("")
    lines.append(f"Total: {totals.total:.2f} | Count: {totals.count} | Average: {totals.average:.2f}")
    if view.category_breakdown:
        lines.append("By category:")
        for category, amount in view.category_breakdown.items():
            lines.append(f"  {category}: {amount:.2f}")
    return "\n".join(lines)


def handle_command(args: argparse.Namespace, service: ExpenseService) -> int:
    if args.command == "add":
        expense = service.add(
            {
                "description": args.description,
                "amount": args.amount,
                "category": args.category,
                "date": args.date,
            }
        )
        print("Expense added:\n" + _format_expense(expense))
    elif args.command == "edit":
        changes = {
            "description": args.description,
            "amount": args.amount,
            "category": args.category,
            "date": args.date,
        }
        cleaned = {k: v for k, v in changes.items() if v is not None}
        expense = service.update(args.id, merge_changes(service.get(args.id), cleaned))
        print("Expense updated:\n" + _format_expense(expense))
    elif args.command == "delete":
        service.remove(args.id)
        print(f"Expense {args.id} deleted.")
    elif args.command == "clear":
        if not args.yes:
            answer = input("This will delete ALL expenses. Continue? [y/N] ")
            if answer.strip().lower() not in {"y", "yes"}:
                print("Aborted.")
                return 1
        service.clear()
        print("All expenses deleted.")
    elif args.command == "list":
        print(_format_view(service.compute_view(args.query, args.month)))
    elif args.command == "export":
        output = args.output or Path(export_filename())
        output.write_text(service.export_json() + "\n", encoding="utf-8")
        print(f"Exported {len(service.list())} expenses to {output}")
    elif args.command == "import":
        # Read the whole file before touching the collection.
        text = args.file.read_text(encoding="utf-8")
        report = service.import_json(text)
        print(f"Imported {len(report.accepted)} expenses ({len(report.rejected)} skipped).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default=DATA_DIR,
        type=Path,
        help=f"Directory to store JSON data (default: {DATA_DIR})",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Add a new expense")
    add.add_argument("description")
    add.add_argument("amount", type=_parse_amount)
    add.add_argument("category")
    add.add_argument("date", help="ISO date, YYYY-MM-DD")

    edit = subparsers.add_parser("edit", help="Edit an existing expense")
    edit.add_argument("id")
    edit.add_argument("--description")
    edit.add_argument("--amount", type=_parse_amount)
    edit.add_argument("--category")
    edit.add_argument("--date")

    delete = subparsers.add_parser("delete", help="Delete an expense")
    delete.add_argument("id")

    clear = subparsers.add_parser("clear", help="Delete every expense")
    clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    listing = subparsers.add_parser("list", help="List expenses with totals and breakdown")
    listing.add_argument("--query", default="", help="Match description or category")
    listing.add_argument("--month", default="", type=_parse_month, help="YYYY-MM")

    export = subparsers.add_parser("export", help="Write all expenses to a JSON file")
    export.add_argument("--output", type=Path)

    import_ = subparsers.add_parser("import", help="Replace all expenses from a JSON file")
    import_.add_argument("file", type=Path)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    try:
        service = _load_service(args.data_dir)
        return handle_command(args, service)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except ImportFormatError as exc:
        print(f"Import error: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"File error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
