# Overview: Flask API routes for purchases; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import purchase_service
from ..validation import NotFoundError, ValidationError, parse_date_param


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
def list_purchases_route():
    """
    List purchases.

    Query parameters:
    - date: calendar day (YYYY-MM-DD)
    - vendor_id: only this vendor's purchases
    """
    try:
        purchases = purchase_service.list_purchases(
            g.current_user.id,
            day=parse_date_param(request.args.get("date")),
            vendor_id=request.args.get("vendor_id", type=int),
        )
        return jsonify({"items": [p.to_dict() for p in purchases], "count": len(purchases)})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@purchases_bp.post("")
@require_auth
def create_purchase_route():
    """
    Record a purchase; the vendor's balance grows by quantity_kg * rate_per_kg.

    Request body:
    {
        "vendor_id": 1,            // required
        "quantity_kg": "12.5",     // required
        "rate_per_kg": "180",      // required
        "meat_type": "chicken",    // optional, default chicken
        "product_cut": "whole",    // optional, default whole
        "date": "2024-05-01"       // optional, default today (UTC)
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        purchase = purchase_service.create_purchase(user_id=g.current_user.id, payload=data)
        return jsonify(purchase.to_dict()), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:purchase_id>")
@require_auth
def get_purchase_route(purchase_id: int):
    try:
        purchase = purchase_service.get_purchase(purchase_id, user_id=g.current_user.id)
        return jsonify(purchase.to_dict())
    except NotFoundError:
        return jsonify({"error": "Purchase not found"}), 404


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
def delete_purchase_route(purchase_id: int):
    try:
        purchase_service.delete_purchase(purchase_id, user_id=g.current_user.id)
        return jsonify({"message": "Purchase deleted"}), 200

    except NotFoundError:
        return jsonify({"error": "Purchase not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete purchase")
        return jsonify({"error": "Internal server error"}), 500
