"""Flask REST API exposing the expense store, summaries and monthly reports."""

from __future__ import annotations

import io
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from expense_core.aggregation import (
    available_periods,
    category_totals,
    dashboard_summary,
    filter_by_month,
    month_totals,
    recent,
    total_amount,
)
from expense_core.categories import DEFAULT_REGISTRY, CategoryRegistry
from expense_core.config import Settings
from expense_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from expense_core.models import Expense
from expense_core.reports import generate_monthly_report
from expense_core.storage import FileStorage
from expense_core.store import ExpenseStore
from expense_core.validators import parse_amount, validate_month_name, validate_year


def create_app(
    data_dir: Optional[Path] = None,
    *,
    settings: Optional[Settings] = None,
    store: Optional[ExpenseStore] = None,
    registry: CategoryRegistry = DEFAULT_REGISTRY,
    today: Optional[Callable[[], date]] = None,
) -> Flask:
    app = Flask(__name__)

    settings = (settings or Settings.from_env()).with_data_dir(data_dir)
    if settings.is_development:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": list(settings.allowed_origins)}}, supports_credentials=True)
    else:
        CORS(app)

    if store is None:
        store = ExpenseStore(FileStorage(settings.data_dir), settings.storage_slot)
    app.extensions["expense_store"] = store
    today = today or date.today

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

    def _check_form_amount(payload: Dict[str, Any]) -> None:
        # Entry forms reject negative amounts; the store itself only needs a finite number.
        if "amount" in payload:
            parse_amount(payload["amount"], "amount", allow_negative=False)

    def _expense_view(expense: Expense) -> Dict[str, Any]:
        category = registry.resolve(expense.category)
        return {
            **expense.to_dict(),
            "category_name": category.name,
            "category_icon": category.icon,
        }

    def _write_status() -> bool:
        if not store.persisted:
            app.logger.warning("Change was not persisted: %s", store.last_write_error)
        return store.persisted

    def _get_or_raise(expense_id: str) -> Expense:
        expense = store.get(expense_id)
        if expense is None:
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        return expense

    @app.get("/categories")
    def list_categories():
        return _success({"items": [category.to_dict() for category in registry]})

    @app.get("/expenses")
    def list_expenses():
        result = store.load()
        expenses = result.expenses
        month = request.args.get("month")
        year = request.args.get("year")
        if month or year:
            expenses = filter_by_month(expenses, validate_month_name(month), validate_year(year))
        return _success({
            "items": [_expense_view(expense) for expense in expenses],
            "total": f"{total_amount(expenses):.2f}",
            "load_status": result.status.value,
        })

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        _check_form_amount(payload)
        expense = store.create(store.validate_draft(payload))
        return _success({**_expense_view(expense), "persisted": _write_status()}, 201)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        return _success(_expense_view(_get_or_raise(expense_id)))

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        payload = _json_body()
        _check_form_amount(payload)
        updated = store.apply_changes(_get_or_raise(expense_id), payload)
        if not store.update(expense_id, payload):
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        return _success({**_expense_view(updated), "persisted": _write_status()})

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        if not store.delete(expense_id):
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        response = app.make_response(_success({}, 204))
        response.headers["X-Persisted"] = "true" if _write_status() else "false"
        return response

    @app.get("/summary")
    def summary():
        expenses = store.list()
        return _success({
            **dashboard_summary(expenses, today()).to_dict(),
            "recent": [_expense_view(expense) for expense in recent(expenses)],
        })

    @app.get("/charts")
    def charts():
        expenses = store.list()
        return _success({
            "categories": [entry.to_dict() for entry in category_totals(expenses, registry)],
            "months": [entry.to_dict() for entry in month_totals(expenses)],
        })

    @app.get("/reports/periods")
    def report_periods():
        return _success({"items": [period.to_dict() for period in available_periods(store.list())]})

    @app.get("/reports/<month>/<year>")
    def export_report(month: str, year: str):
        document = generate_monthly_report(
            store.list(),
            validate_month_name(month),
            validate_year(year),
            registry=registry,
            currency_symbol=settings.currency_symbol,
        )
        app.logger.info("Exporting %s (%d page(s))", document.filename, document.page_count)
        response = send_file(
            io.BytesIO(document.content),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=document.filename,
        )
        response.headers["X-Report-Pages"] = str(document.page_count)
        return response

    return app
