"""
Shared-ride listings: multi-seat offers that passengers book seats on.

``availableSeats`` is only ever written inside a transaction that also
validates it, so concurrent bookings cannot oversell a listing. Listings
written before that rule may carry a stale counter; ``reconcile_available_seats``
repairs it from ``totalSeats`` and the bookings already recorded.
"""
import logging
from datetime import datetime

from firebase_admin import firestore

from errors import BadRequestError, NotFoundError, SeatsUnavailableError
from services import payload
from services.store import (
    BOOKINGS,
    DESCENDING,
    SHARED_RIDES,
    field_equals,
    get_document,
    now,
    stream_documents,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("driverName", "vehicle", "pickupLocation", "destinationLocation", "time", "duration", "price")
SEAT_FIELDS = ("availableSeats", "totalSeats")
PROTECTED_FIELDS = ("id", "bookings", "postedDate")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int(value, default: int | None = None) -> int | None:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_datetime(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def booked_seats(listing: dict) -> int:
    bookings = listing.get("bookings") if isinstance(listing.get("bookings"), list) else []
    return sum(_to_int(booking.get("seatsBooked"), 0) for booking in bookings if isinstance(booking, dict))


def validate_seats(available_seats: int | None, total_seats: int | None):
    if available_seats is None or total_seats is None:
        raise BadRequestError("Invalid seat configuration")
    if available_seats > total_seats or available_seats < 0 or total_seats < 0:
        raise BadRequestError("Invalid seat configuration")


def new_listing_document(raw: dict) -> dict:
    """Normalize a flattened or nested listing payload into the stored shape."""
    fields = payload.extract(raw, payload.SHARED_RIDE_RULES)
    total_seats = _to_int(fields["totalSeats"], 0)
    available_seats = _to_int(fields["availableSeats"], total_seats)
    return {
        "driverName": fields["driverName"] or "",
        "driverImage": fields["driverImage"] or "/images/default-driver.jpg",
        "vehicle": fields["vehicle"] or "",
        "pickupLocation": fields["pickupLocation"] or "",
        "destinationLocation": fields["destinationLocation"] or "",
        "time": fields["time"] or "",
        "duration": fields["duration"] or "",
        "passengers": str(fields["passengers"]) if fields["passengers"] is not None else "1",
        "luggage": fields["luggage"] or "0",
        "handCarry": fields["handCarry"] or "0",
        "totalSeats": total_seats,
        "availableSeats": available_seats,
        "price": fields["price"] if fields["price"] is not None else "",
        "frequency": fields["frequency"] or "one-time",
        "postedDate": _to_datetime(raw.get("postedDate")) or now(),
        "pickupDate": _to_datetime(fields["pickupDate"]),
        "rawPayload": raw.get("rawPayload") or raw,
        "status": raw.get("status") or "active",
        "bookings": [],
    }


def create_listing(db, raw: dict) -> dict:
    document = new_listing_document(raw)
    if not all(document[name] for name in REQUIRED_FIELDS) or not document["totalSeats"]:
        raise BadRequestError("Missing required fields")
    validate_seats(document["availableSeats"], document["totalSeats"])

    ride_ref = db.collection(SHARED_RIDES).document()
    ride_ref.set(document)
    logger.info(f"Shared ride {ride_ref.id} posted by {document['driverName']}")
    return {"id": ride_ref.id, **document}


def list_listings(db) -> list[dict]:
    return stream_documents(db.collection(SHARED_RIDES).order_by("postedDate", direction=DESCENDING))


def search_by_pickup(db, location: str, limit: int = 10) -> list[dict]:
    """Active listings whose pickup location starts with `location`."""
    query = (
        db.collection(SHARED_RIDES)
        .where(filter=firestore.FieldFilter("pickupLocation", ">=", location))
        .where(filter=firestore.FieldFilter("pickupLocation", "<=", location + "\uf8ff"))
        .where(filter=field_equals("status", "active"))
        .order_by("pickupLocation")
        .order_by("postedDate", direction=DESCENDING)
        .limit(limit)
    )
    return stream_documents(query)


def get_listing_or_404(db, ride_id: str) -> dict:
    listing = get_document(db, SHARED_RIDES, ride_id)
    if not listing:
        raise NotFoundError("Shared ride not found")
    return listing


@firestore.transactional
def _apply_listing_update(transaction, ride_ref, updates: dict) -> dict:
    snapshot = ride_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError("Shared ride not found")
    listing = snapshot.to_dict()
    if any(field in updates for field in SEAT_FIELDS):
        available = _to_int(updates.get("availableSeats", listing.get("availableSeats")))
        total = _to_int(updates.get("totalSeats", listing.get("totalSeats")))
        validate_seats(available, total)
        # seats already booked are never handed out again
        booked = booked_seats(listing)
        if total < booked or available > total - booked:
            raise BadRequestError("Invalid seat configuration")
    transaction.update(ride_ref, updates)
    return {"id": ride_ref.id, **listing, **updates}


def update_listing(db, ride_id: str, updates: dict) -> dict:
    updates = {key: value for key, value in updates.items() if key not in PROTECTED_FIELDS}
    for field in SEAT_FIELDS:
        if field in updates:
            updates[field] = _to_int(updates[field])
    updates["updatedAt"] = now()
    ride_ref = db.collection(SHARED_RIDES).document(ride_id)
    return _apply_listing_update(db.transaction(), ride_ref, updates)


def delete_listing(db, ride_id: str):
    get_listing_or_404(db, ride_id)
    db.collection(SHARED_RIDES).document(ride_id).delete()


def reconcile_available_seats(listing: dict, ride_id: str) -> int | None:
    """
    Seats that can still be booked on a listing, or None if it cannot be told.

    The stored counter is compared with totalSeats minus the seats already
    booked. A higher inferred value means the counter is stale and wins; a
    lower one is kept as stored, since seats may have been withheld on purpose.
    """
    total_seats = listing.get("totalSeats")
    if not _is_number(total_seats):
        total_seats = (listing.get("seats") or {}).get("total")
    if not _is_number(total_seats):
        total_seats = None

    booked = booked_seats(listing)
    inferred = max(0, int(total_seats) - booked) if total_seats is not None else None

    stored = listing.get("availableSeats")
    if _is_number(stored):
        stored = int(stored)
        if inferred is None or inferred == stored:
            return stored
        if inferred > stored:
            logger.warning(f"Available seats mismatch for ride {ride_id}: stored={stored}, "
                           f"inferred={inferred} (totalSeats={total_seats} booked={booked}). Using inferred.")
            return inferred
        logger.warning(f"Available seats mismatch for ride {ride_id}: stored={stored}, "
                       f"inferred={inferred}. Keeping stored.")
        return stored

    if inferred is not None:
        logger.warning(f"Normalized availableSeats for ride {ride_id} from totalSeats ({total_seats}) "
                       f"and bookings ({booked}) => {inferred}")
    return inferred


@firestore.transactional
def _book_seats(transaction, ride_ref, booking: dict) -> dict:
    snapshot = ride_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError("Shared ride not found")
    listing = snapshot.to_dict()

    available = reconcile_available_seats(listing, ride_ref.id)
    if available is None:
        logger.error(f"Unable to determine available seats for ride {ride_ref.id}")
        raise SeatsUnavailableError()
    if booking["seatsBooked"] > available:
        logger.warning(f"Requested {booking['seatsBooked']} seats but only {available} "
                       f"available for ride {ride_ref.id}")
        raise SeatsUnavailableError()

    bookings = listing.get("bookings") if isinstance(listing.get("bookings"), list) else []
    transaction.update(ride_ref, {
        "availableSeats": max(0, available - booking["seatsBooked"]),
        "bookings": [*bookings, booking],
        "updatedAt": now(),
    })
    return booking


def book_seat(db, ride_id: str, passenger_name: str, passenger_phone: str, seats_booked: int = 1) -> dict:
    """Book seats on a listing; raises SeatsUnavailableError when too few remain."""
    booking = {
        "id": db.collection(BOOKINGS).document().id,
        "rideId": ride_id,
        "passengerName": passenger_name,
        "passengerPhone": passenger_phone,
        "seatsBooked": int(seats_booked or 1),
        "bookingDate": now(),
        "status": "confirmed",
    }
    ride_ref = db.collection(SHARED_RIDES).document(ride_id)
    booking = _book_seats(db.transaction(), ride_ref, booking)
    logger.info(f"Booked {booking['seatsBooked']} seat(s) on shared ride {ride_id}")
    return booking
