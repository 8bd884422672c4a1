"""Flask REST API exposing the expense tracker services."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from tracker.config import DATA_DIR
from tracker.exceptions import ImportFormatError, PersistenceError, RecordNotFoundError, ValidationError
from tracker.services import ExpenseService, merge_changes
from tracker.storage import JSONStorage
from tracker.transfer import export_filename
from tracker.validators import validate_month


def create_app(data_dir: Optional[Path] = None) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("EXPENSE_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("EXPENSE_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    storage = JSONStorage(Path(data_dir or DATA_DIR))
    expense_service = ExpenseService(storage)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(ImportFormatError)
    def handle_import_error(exc: ImportFormatError):
        return _handle_error(exc, 400, "Import error")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    @app.get("/expenses")
    def list_expenses():
        return _success({"items": [expense.to_dict() for expense in expense_service.list()]})

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        expense = expense_service.add(payload)
        return _success(expense.to_dict(), 201)

    @app.delete("/expenses")
    def clear_expenses():
        expense_service.clear()
        return _success({}, 204)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        expense = expense_service.get(expense_id)
        return _success(expense.to_dict())

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        payload = _json_body()
        existing = expense_service.get(expense_id)
        expense = expense_service.update(expense_id, merge_changes(existing, payload))
        return _success(expense.to_dict())

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        expense_service.remove(expense_id)
        return _success({}, 204)

    @app.get("/view")
    def view():
        query = request.args.get("query", "")
        month = validate_month(request.args.get("month"))
        return _success(expense_service.compute_view(query, month).to_dict())

    @app.get("/export")
    def export():
        return Response(
            expense_service.export_json(),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    @app.post("/import")
    def import_expenses():
        # The whole body is read before the collection is replaced.
        report = expense_service.import_json(request.get_data())
        return _success(
            {
                "imported": len(report.accepted),
                "skipped": [{"index": index, "reason": reason} for index, reason in report.rejected],
            }
        )

    return app
