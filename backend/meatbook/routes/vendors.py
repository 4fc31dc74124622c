# Overview: Flask API routes for vendors and vendor payments; parses input and returns JSON responses.

"""
Vendor Routes

All routes require authentication and are scoped to the current user.
A vendor's balance is read-only here: it moves only through purchases
and payments.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import vendor_service
from ..validation import ConflictError, NotFoundError, ValidationError, parse_date_param


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


# ---------------------------------------------------------------------------
# Vendor payments
# ---------------------------------------------------------------------------

@vendors_bp.get("/payments")
@require_auth
def list_payments_route():
    """
    List vendor payments.

    Query parameters:
    - vendor_id: only this vendor's payments
    - date: only payments on this calendar day (YYYY-MM-DD)
    """
    try:
        day = parse_date_param(request.args.get("date"))
        payments = vendor_service.list_vendor_payments(
            g.current_user.id,
            vendor_id=request.args.get("vendor_id", type=int),
            day=day,
        )
        return jsonify({"items": [p.to_dict() for p in payments], "count": len(payments)})

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@vendors_bp.post("/payments")
@require_auth
def create_payment_route():
    """
    Record a payment to a vendor; the vendor's balance drops by amount.

    Request body:
    {
        "vendor_id": 1,       // required
        "amount": "2500.00",  // required, > 0
        "notes": "...",       // optional
        "date": "2024-05-01"  // optional, defaults to today (UTC)
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        payment = vendor_service.create_vendor_payment(
            user_id=g.current_user.id,
            vendor_id=data.get("vendor_id"),
            amount=data.get("amount"),
            notes=data.get("notes"),
            day=data.get("date"),
        )
        return jsonify(payment.to_dict()), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create vendor payment")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/payments/<int:payment_id>")
@require_auth
def get_payment_route(payment_id: int):
    try:
        payment = vendor_service.get_vendor_payment(payment_id, user_id=g.current_user.id)
        return jsonify(payment.to_dict())
    except NotFoundError:
        return jsonify({"error": "Vendor payment not found"}), 404


@vendors_bp.delete("/payments/<int:payment_id>")
@require_auth
def delete_payment_route(payment_id: int):
    """Delete a payment; its amount is added back to the vendor's balance."""
    try:
        vendor_service.delete_vendor_payment(payment_id, user_id=g.current_user.id)
        return jsonify({"message": "Vendor payment deleted"}), 200

    except NotFoundError:
        return jsonify({"error": "Vendor payment not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete vendor payment")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------

@vendors_bp.get("")
@require_auth
def list_vendors_route():
    """
    List vendors for the current user.

    Query parameters:
    - search: matches name or phone
    """
    vendors = vendor_service.list_vendors(g.current_user.id, search=request.args.get("search"))
    return jsonify({"items": [v.to_dict() for v in vendors], "count": len(vendors)})


@vendors_bp.post("")
@require_auth
def create_vendor_route():
    """
    Create a new vendor.

    Request body:
    {
        "name": "Vendor Name",          // required
        "phone": "...",                 // required
        "notes": "...",                 // optional
        "specializations": ["chicken"]  // optional
    }

    Returns:
        Created Vendor object (balance "0.00")
    """
    data = request.get_json(silent=True) or {}

    try:
        vendor = vendor_service.create_vendor(
            user_id=g.current_user.id,
            name=data.get("name"),
            phone=data.get("phone"),
            notes=data.get("notes"),
            specializations=data.get("specializations"),
        )
        return jsonify(vendor.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create vendor")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/<int:vendor_id>")
@require_auth
def get_vendor_route(vendor_id: int):
    try:
        vendor = vendor_service.get_vendor(vendor_id, user_id=g.current_user.id)
        return jsonify(vendor.to_dict())
    except NotFoundError:
        return jsonify({"error": "Vendor not found"}), 404


@vendors_bp.put("/<int:vendor_id>")
@require_auth
def update_vendor_route(vendor_id: int):
    """
    Update a vendor.

    Request body: any of name, phone, notes, specializations.
    """
    data = request.get_json(silent=True) or {}

    try:
        vendor = vendor_service.update_vendor(vendor_id, user_id=g.current_user.id, payload=data)
        return jsonify(vendor.to_dict())

    except NotFoundError:
        return jsonify({"error": "Vendor not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update vendor")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.delete("/<int:vendor_id>")
@require_auth
def delete_vendor_route(vendor_id: int):
    """Delete a vendor that has no purchases or payments."""
    try:
        vendor_service.delete_vendor(vendor_id, user_id=g.current_user.id)
        return jsonify({"message": "Vendor deleted"}), 200

    except NotFoundError:
        return jsonify({"error": "Vendor not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete vendor")
        return jsonify({"error": "Internal server error"}), 500
