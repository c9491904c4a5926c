import logging

from errors import BadRequestError
from services import booking_service, payload, ride_service, user_service
from services.cascade import Cascade
from services.store import RIDES, field_equals, sort_key_timestamp, stream_documents

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("passengerName", "passengerPhone", "pickupLocation", "destination")
PROTECTED_FIELDS = ("id", "rideType", "createdAt", "passengerId")


def _passenger_count(value) -> int:
    try:
        count = int(float(value))
    except (TypeError, ValueError):
        return 1
    return count or 1


def create_private_ride(db, raw: dict) -> dict:
    fields = payload.extract(raw, payload.PRIVATE_RIDE_RULES)
    if not all(fields[name] for name in REQUIRED_FIELDS):
        raise BadRequestError("Required fields missing")

    passenger = user_service.find_or_create_user(db, fields["passengerName"], fields["passengerPhone"])
    ride = ride_service.create_ride(db, {
        "passengerId": passenger["id"],
        "pickupLocation": fields["pickupLocation"],
        "destination": fields["destination"],
        "pickupAddress": fields["pickupAddress"],
        "destinationAddress": fields["destinationAddress"],
        "rideType": "private",
        "passengers": _passenger_count(fields["passengers"]),
        "notes": fields["notes"],
        "rawPayload": raw,
    })
    booking = booking_service.create_booking(db, ride["id"], passenger["id"])
    logger.info(f"Private ride {ride['id']} created for {passenger['id']}")
    return {"ride": ride, "booking": booking, "passenger": passenger}


def list_private_rides(db, limit: int = 50) -> list[dict]:
    # Sorted here rather than with order_by to avoid a composite index on (rideType, createdAt)
    query = db.collection(RIDES).where(filter=field_equals("rideType", "private")).limit(limit)
    rides = stream_documents(query)
    rides.sort(key=lambda ride: sort_key_timestamp(ride.get("createdAt")), reverse=True)
    return rides


def _get_private_ride(db, ride_id: str) -> dict:
    ride = ride_service.get_ride_or_404(db, ride_id)
    if ride.get("rideType") != "private":
        raise BadRequestError("Ride is not a private ride")
    return ride


def update_private_ride(db, ride_id: str, updates: dict) -> dict:
    ride = _get_private_ride(db, ride_id)
    updates = {key: value for key, value in updates.items() if key not in PROTECTED_FIELDS}
    return ride_service.update_ride(db, ride, updates)


def delete_private_ride(db, ride_id: str) -> dict:
    _get_private_ride(db, ride_id)
    ride_service.delete_ride(db, ride_id)

    cascade = Cascade(f"private ride {ride_id} deleted")
    cascade.run("remove booking", booking_service.delete_for_ride, db, ride_id)
    return cascade.attach({})
