# Overview: Flask API routes for retail sales and hotel bills; parses input and returns JSON responses.

"""
Sales API routes

Creating a sale runs the day's stock check first; a sale that would sell
more kg than were purchased that day gets 409 with the remaining stock in
"details" (unless ALLOW_OVERSELL is configured).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import sales_service
from ..services.record_store import StoreUnavailableError
from ..services.sales_service import InsufficientStockError
from ..validation import NotFoundError, ValidationError, parse_date_param


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


# ---------------------------------------------------------------------------
# Retail
# ---------------------------------------------------------------------------

@sales_bp.get("/retail")
@require_auth
def list_retail_sales_route():
    try:
        sales = sales_service.list_retail_sales(
            g.current_user.id,
            day=parse_date_param(request.args.get("date")),
        )
        return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@sales_bp.post("/retail")
@require_auth
def create_retail_sale_route():
    """
    Record a walk-in sale.

    Request body: quantity_kg, rate_per_kg (required); meat_type,
    product_cut, customer_note, date (optional).
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.create_retail_sale(user_id=g.current_user.id, payload=data)
        return jsonify(sale.to_dict()), 201

    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreUnavailableError:
        current_app.logger.warning("Record store unavailable during stock check")
        return jsonify({"error": "Record store unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to create retail sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/retail/<int:sale_id>")
@require_auth
def get_retail_sale_route(sale_id: int):
    try:
        sale = sales_service.get_retail_sale(sale_id, user_id=g.current_user.id)
        return jsonify(sale.to_dict())
    except NotFoundError:
        return jsonify({"error": "Retail sale not found"}), 404


@sales_bp.delete("/retail/<int:sale_id>")
@require_auth
def delete_retail_sale_route(sale_id: int):
    try:
        sales_service.delete_retail_sale(sale_id, user_id=g.current_user.id)
        return jsonify({"message": "Retail sale deleted"}), 200
    except NotFoundError:
        return jsonify({"error": "Retail sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete retail sale")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Hotel bills
# ---------------------------------------------------------------------------

@sales_bp.get("/hotel")
@require_auth
def list_hotel_sales_route():
    """
    List hotel bills.

    Query parameters:
    - date: calendar day (YYYY-MM-DD)
    - hotel_id: only this hotel's bills
    - is_paid: "true" / "false"
    """
    is_paid = request.args.get("is_paid")
    if is_paid is not None:
        is_paid = is_paid.lower() == "true"

    try:
        sales = sales_service.list_hotel_sales(
            g.current_user.id,
            day=parse_date_param(request.args.get("date")),
            hotel_id=request.args.get("hotel_id", type=int),
            is_paid=is_paid,
        )
        return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@sales_bp.post("/hotel")
@require_auth
def create_hotel_sale_route():
    """
    Record a hotel bill.

    Request body:
    {
        "hotel_id": 3,              // or "hotel_name"
        "bill_number": "B-101",     // optional, generated if absent
        "is_paid": false,           // optional
        "date": "2024-05-01",       // optional, default today (UTC)
        "items": [
            {"meat_type": "chicken", "product_cut": "breast",
             "quantity_kg": "10", "rate_per_kg": "260"}
        ]
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.create_hotel_sale(user_id=g.current_user.id, payload=data)
        return jsonify(sale.to_dict()), 201

    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreUnavailableError:
        current_app.logger.warning("Record store unavailable during stock check")
        return jsonify({"error": "Record store unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to create hotel sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/hotel/<int:sale_id>")
@require_auth
def get_hotel_sale_route(sale_id: int):
    try:
        sale = sales_service.get_hotel_sale(sale_id, user_id=g.current_user.id)
        return jsonify(sale.to_dict())
    except NotFoundError:
        return jsonify({"error": "Hotel sale not found"}), 404


@sales_bp.patch("/hotel/<int:sale_id>/paid")
@require_auth
def set_hotel_sale_paid_route(sale_id: int):
    """Request body: {"is_paid": true}"""
    data = request.get_json(silent=True) or {}
    is_paid = data.get("is_paid", True)
    if not isinstance(is_paid, bool):
        return jsonify({"error": "is_paid must be a boolean"}), 400

    try:
        sale = sales_service.set_hotel_sale_paid(sale_id, user_id=g.current_user.id, is_paid=is_paid)
        return jsonify(sale.to_dict())
    except NotFoundError:
        return jsonify({"error": "Hotel sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to update hotel sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/hotel/<int:sale_id>")
@require_auth
def delete_hotel_sale_route(sale_id: int):
    try:
        sales_service.delete_hotel_sale(sale_id, user_id=g.current_user.id)
        return jsonify({"message": "Hotel sale deleted"}), 200
    except NotFoundError:
        return jsonify({"error": "Hotel sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete hotel sale")
        return jsonify({"error": "Internal server error"}), 500
