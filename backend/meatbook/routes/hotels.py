# Overview: Flask API routes for hotels (wholesale customers).

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import hotel_service
from ..validation import ConflictError, NotFoundError, ValidationError


hotels_bp = Blueprint("hotels", __name__, url_prefix="/api/hotels")


@hotels_bp.get("")
@require_auth
def list_hotels_route():
    hotels = hotel_service.list_hotels(g.current_user.id)
    return jsonify({"items": [h.to_dict() for h in hotels], "count": len(hotels)})


@hotels_bp.post("")
@require_auth
def create_hotel_route():
    data = request.get_json(silent=True) or {}
    try:
        hotel = hotel_service.create_hotel(user_id=g.current_user.id, payload=data)
        return jsonify(hotel.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create hotel")
        return jsonify({"error": "Internal server error"}), 500


@hotels_bp.get("/<int:hotel_id>")
@require_auth
def get_hotel_route(hotel_id: int):
    try:
        hotel = hotel_service.get_hotel(hotel_id, user_id=g.current_user.id)
        return jsonify(hotel.to_dict())
    except NotFoundError:
        return jsonify({"error": "Hotel not found"}), 404


@hotels_bp.put("/<int:hotel_id>")
@require_auth
def update_hotel_route(hotel_id: int):
    data = request.get_json(silent=True) or {}
    try:
        hotel = hotel_service.update_hotel(hotel_id, user_id=g.current_user.id, payload=data)
        return jsonify(hotel.to_dict())
    except NotFoundError:
        return jsonify({"error": "Hotel not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update hotel")
        return jsonify({"error": "Internal server error"}), 500


@hotels_bp.delete("/<int:hotel_id>")
@require_auth
def delete_hotel_route(hotel_id: int):
    try:
        hotel_service.delete_hotel(hotel_id, user_id=g.current_user.id)
        return jsonify({"message": "Hotel deleted"}), 200
    except NotFoundError:
        return jsonify({"error": "Hotel not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete hotel")
        return jsonify({"error": "Internal server error"}), 500
