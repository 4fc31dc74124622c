from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth
from ..services import reporting_service
from ..services.record_store import StoreUnavailableError
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/report")


@reports_bp.get("/daily")
@require_auth
def daily_report():
    """Daily summary for ?date=YYYY-MM-DD (default today, UTC)."""
    try:
        report = reporting_service.daily_report(g.current_user.id, request.args.get("date"))
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except StoreUnavailableError:
        current_app.logger.warning("Record store unavailable for daily report")
        return jsonify({"error": "Record store unavailable"}), 503


@reports_bp.get("/aggregate")
@require_auth
def aggregate_report():
    """Per-day summaries and period totals for ?from=...&to=... (inclusive)."""
    try:
        report = reporting_service.range_report(
            g.current_user.id,
            request.args.get("from"),
            request.args.get("to"),
        )
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except StoreUnavailableError:
        current_app.logger.warning("Record store unavailable for range report")
        return jsonify({"error": "Record store unavailable"}), 503
