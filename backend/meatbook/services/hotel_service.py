# Overview: Service-layer operations for hotels (wholesale customers).

from __future__ import annotations

from ..extensions import db
from ..models import Hotel, HotelSale
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, validate_payload


class HotelNotFoundError(NotFoundError):
    """Raised when a hotel is not found."""
    pass


class HotelInUseError(ConflictError):
    """Raised when deleting a hotel that still has bills."""
    pass


HOTEL_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "address", "notes"},
    required_on_create={"name"},
)


def get_hotel(hotel_id: int, *, user_id: int | None = None) -> Hotel:
    query = db.session.query(Hotel).filter(Hotel.id == hotel_id)
    if user_id is not None:
        query = query.filter(Hotel.user_id == user_id)
    hotel = query.first()
    if not hotel:
        raise HotelNotFoundError(f"Hotel {hotel_id} not found")
    return hotel


def list_hotels(user_id: int) -> list[Hotel]:
    return db.session.query(Hotel).filter(Hotel.user_id == user_id).order_by(Hotel.name.asc()).all()


def create_hotel(*, user_id: int, payload: dict) -> Hotel:
    patch = validate_payload(model=Hotel, payload=payload, policy=HOTEL_POLICY, partial=False)
    hotel = Hotel(user_id=user_id, **patch)
    db.session.add(hotel)
    db.session.commit()
    return hotel


def update_hotel(hotel_id: int, *, user_id: int, payload: dict) -> Hotel:
    patch = validate_payload(model=Hotel, payload=payload, policy=HOTEL_POLICY, partial=True)
    hotel = get_hotel(hotel_id, user_id=user_id)
    for key, value in patch.items():
        setattr(hotel, key, value)
    db.session.commit()
    return hotel


def delete_hotel(hotel_id: int, *, user_id: int) -> None:
    hotel = get_hotel(hotel_id, user_id=user_id)
    bills = db.session.query(HotelSale).filter_by(hotel_id=hotel.id).count()
    if bills:
        raise HotelInUseError(f"Hotel {hotel_id} has {bills} bills")
    db.session.delete(hotel)
    db.session.commit()
