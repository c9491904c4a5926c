"""Ride requests, matching and the ride lifecycle."""
import logging
from typing import NamedTuple

from firebase_admin import firestore

from errors import BadRequestError, InvalidTransitionError, NotFoundError
from services import booking_service, geo, user_service
from services.cascade import Cascade
from services.store import (
    ASCENDING,
    DESCENDING,
    RIDES,
    field_equals,
    field_in,
    get_document,
    now,
    stream_documents,
)

logger = logging.getLogger(__name__)

DEFAULT_PENDING_RADIUS_KM = 10
DEFAULT_SHARED_RADIUS_KM = 5
DEFAULT_MAX_PASSENGERS = 4

TERMINAL_STATES = {"completed", "cancelled"}


class Transition(NamedTuple):
    allowed_from: frozenset
    target: str
    timestamp_field: str
    error: str
    show_status: bool = True


TRANSITIONS = {
    "accept": Transition(frozenset({"pending"}), "accepted", "acceptedTime",
                         "Ride is not available for acceptance", show_status=False),
    "start": Transition(frozenset({"accepted"}), "in_progress", "pickupTime", "Ride cannot be started"),
    "complete": Transition(frozenset({"in_progress"}), "completed", "completedTime", "Ride cannot be completed"),
    "cancel": Transition(frozenset({"pending", "accepted", "in_progress"}), "cancelled", "cancelledTime",
                         "Ride cannot be cancelled"),
}


def new_ride_document(data: dict) -> dict:
    timestamp = now()
    ride_type = data.get("rideType")
    document = {
        "passengerId": data.get("passengerId"),
        "driverId": data.get("driverId"),
        "pickupLocation": data.get("pickupLocation"),
        "destination": data.get("destination"),
        "pickupAddress": data.get("pickupAddress") or "",
        "destinationAddress": data.get("destinationAddress") or "",
        "rideType": ride_type,
        "status": "pending",
        "fare": data.get("fare"),
        "estimatedDuration": data.get("estimatedDuration"),
        "estimatedDistance": data.get("estimatedDistance"),
        "actualDuration": None,
        "actualDistance": None,
        "paymentMethod": data.get("paymentMethod"),
        "paymentStatus": "pending",
        "scheduledTime": data.get("scheduledTime"),
        "pickupTime": None,
        "completedTime": None,
        "passengers": data.get("passengers") or 1,
        "notes": data.get("notes") or "",
        "rating": None,
        "feedback": "",
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    if data.get("rawPayload") is not None:
        document["rawPayload"] = data["rawPayload"]
    if ride_type == "shared":
        document["maxPassengers"] = data.get("maxPassengers") or DEFAULT_MAX_PASSENGERS
        document["currentPassengers"] = data.get("currentPassengers") or 0
        document["sharedRidePassengers"] = data.get("sharedRidePassengers") or []
    return document


def create_ride(db, data: dict) -> dict:
    ride_ref = db.collection(RIDES).document()
    document = new_ride_document(data)
    ride_ref.set(document)
    return {"id": ride_ref.id, **document}


def request_ride(db, request: dict) -> dict:
    """Register the passenger if needed, then create the ride and its booking."""
    passenger = user_service.find_or_create_user(db, request["passengerName"], request["passengerPhone"])
    ride_data = {key: value for key, value in request.items() if key not in ("passengerName", "passengerPhone")}
    ride = create_ride(db, {**ride_data, "passengerId": passenger["id"]})
    booking = booking_service.create_booking(db, ride["id"], passenger["id"])
    logger.info(f"Ride {ride['id']} requested by {passenger['id']}")
    return {"ride": ride, "booking": booking, "passenger": passenger}


def get_ride(db, ride_id: str) -> dict | None:
    return get_document(db, RIDES, ride_id)


def get_ride_or_404(db, ride_id: str) -> dict:
    ride = get_ride(db, ride_id)
    if not ride:
        raise NotFoundError("Ride not found")
    return ride


def get_ride_details(db, ride_id: str) -> dict:
    ride = get_ride_or_404(db, ride_id)
    passenger = user_service.get_user(db, ride["passengerId"]) if ride.get("passengerId") else None
    driver = user_service.get_user(db, ride["driverId"]) if ride.get("driverId") else None
    return {"ride": ride, "passenger": passenger, "driver": driver}


def list_rides(db, status: str | None = None, ride_type: str | None = None, limit: int = 20) -> list[dict]:
    query = db.collection(RIDES)
    if status:
        query = query.where(filter=field_equals("status", status))
    if ride_type:
        query = query.where(filter=field_equals("rideType", ride_type))
    return stream_documents(query.order_by("createdAt", direction=DESCENDING).limit(limit))


def rides_for_user(db, user_id: str, as_driver: bool = False, limit: int = 10) -> list[dict]:
    field = "driverId" if as_driver else "passengerId"
    query = (
        db.collection(RIDES)
        .where(filter=field_equals(field, user_id))
        .order_by("createdAt", direction=DESCENDING)
        .limit(limit)
    )
    return stream_documents(query)


def find_pending_rides(db, location: dict | None = None, radius_km: float = DEFAULT_PENDING_RADIUS_KM) -> list[dict]:
    """Pending rides, oldest first; nearest first when a driver location is given."""
    query = (
        db.collection(RIDES)
        .where(filter=field_equals("status", "pending"))
        .order_by("createdAt", direction=ASCENDING)
    )
    rides = stream_documents(query)
    if location is None:
        return rides
    return geo.within_radius(rides, location, radius_km, location_of=lambda ride: ride.get("pickupLocation"))


def find_shared_matches(db, pickup: dict, destination: dict, radius_km: float = DEFAULT_SHARED_RADIUS_KM) -> list[dict]:
    """Open shared rides whose pickup and destination both lie within radius_km of the request."""
    query = (
        db.collection(RIDES)
        .where(filter=field_equals("rideType", "shared"))
        .where(filter=field_in("status", ["pending", "accepted"]))
    )
    matches = []
    for ride in stream_documents(query):
        current = ride.get("currentPassengers") or 0
        maximum = ride.get("maxPassengers") or DEFAULT_MAX_PASSENGERS
        if current >= maximum:
            continue
        pickup_distance = geo.distance_between(pickup, ride.get("pickupLocation"))
        dest_distance = geo.distance_between(destination, ride.get("destination"))
        if pickup_distance is None or dest_distance is None:
            continue
        if pickup_distance <= radius_km and dest_distance <= radius_km:
            matches.append({**ride, "pickupDistance": pickup_distance, "destDistance": dest_distance})
    matches.sort(key=lambda match: match["pickupDistance"])
    return matches


def update_ride(db, ride: dict, updates: dict) -> dict:
    updates = {**updates, "updatedAt": now()}
    db.collection(RIDES).document(ride["id"]).update(updates)
    return {**ride, **updates}


def delete_ride(db, ride_id: str):
    db.collection(RIDES).document(ride_id).delete()


def check_transition(ride: dict, action: str) -> Transition:
    rule = TRANSITIONS[action]
    status = ride.get("status")
    if status not in rule.allowed_from:
        message = f"{rule.error}. Current status: {status}" if rule.show_status else rule.error
        raise InvalidTransitionError(message)
    return rule


def transition(db, ride: dict, action: str, extra: dict | None = None) -> dict:
    """Move a ride along the lifecycle, stamping the matching timestamp field."""
    rule = check_transition(ride, action)
    updates = {**(extra or {}), "status": rule.target, rule.timestamp_field: now()}
    updated = update_ride(db, ride, updates)
    logger.info(f"Ride {ride['id']}: {ride.get('status')} -> {rule.target}")
    return updated


def accept_ride(db, ride_id: str, driver_name: str, driver_phone: str, vehicle_info: dict | None = None) -> dict:
    ride = get_ride_or_404(db, ride_id)
    check_transition(ride, "accept")
    driver = user_service.find_or_create_user(
        db, driver_name, driver_phone, role="driver", vehicleInfo=vehicle_info or {}, isOnline=True
    )
    ride = transition(db, ride, "accept", {"driverId": driver["id"]})

    cascade = Cascade(f"ride {ride_id} accepted")
    cascade.run("assign driver to booking", booking_service.assign_driver, db, ride_id, driver["id"])
    return cascade.attach({"ride": ride, "driver": driver})


def start_ride(db, ride_id: str) -> dict:
    ride = get_ride_or_404(db, ride_id)
    return {"ride": transition(db, ride, "start")}


def complete_ride(db, ride_id: str, actual_distance=None, actual_duration=None, fare=None) -> dict:
    ride = get_ride_or_404(db, ride_id)
    ride = transition(db, ride, "complete", {
        "actualDistance": actual_distance,
        "actualDuration": actual_duration,
        "fare": fare,
    })

    cascade = Cascade(f"ride {ride_id} completed")
    cascade.run("complete booking", booking_service.complete_booking, db, ride_id)
    return cascade.attach({"ride": ride})


def cancel_ride(db, ride_id: str, reason: str | None = None, cancelled_by: str = "system") -> dict:
    ride = get_ride_or_404(db, ride_id)
    ride = transition(db, ride, "cancel", {"cancellationReason": reason})

    cascade = Cascade(f"ride {ride_id} cancelled")
    cascade.run("cancel booking", booking_service.cancel_booking, db, ride_id, reason, cancelled_by)
    return cascade.attach({"ride": ride})


def rate_ride(db, ride_id: str, rating: int, feedback: str | None = None) -> dict:
    ride = get_ride_or_404(db, ride_id)
    if ride.get("status") != "completed":
        raise BadRequestError("You can only rate completed rides")
    return update_ride(db, ride, {"rating": rating, "feedback": feedback or ""})


@firestore.transactional
def _add_shared_passenger(transaction, ride_ref, passenger_entry: dict) -> dict:
    snapshot = ride_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError("Ride not found")
    ride = snapshot.to_dict()
    if ride.get("rideType") != "shared":
        raise BadRequestError("This is not a shared ride")

    current = ride.get("currentPassengers") or 0
    maximum = ride.get("maxPassengers") or DEFAULT_MAX_PASSENGERS
    if current >= maximum:
        raise BadRequestError("Ride is full")

    updates = {
        "sharedRidePassengers": [*(ride.get("sharedRidePassengers") or []), passenger_entry],
        "currentPassengers": current + 1,
        "updatedAt": now(),
    }
    transaction.update(ride_ref, updates)
    return {"id": ride_ref.id, **ride, **updates}


def join_shared_ride(db, ride_id: str, passenger_name: str, passenger_phone: str,
                     pickup_location: dict | None = None, destination: dict | None = None) -> dict:
    """Add a passenger to a shared ride without exceeding its capacity."""
    ride = get_ride_or_404(db, ride_id)
    if ride.get("rideType") != "shared":
        raise BadRequestError("This is not a shared ride")

    passenger = user_service.find_or_create_user(db, passenger_name, passenger_phone)
    entry = {
        "passengerId": passenger["id"],
        "pickupLocation": pickup_location,
        "destination": destination,
        "joinedAt": now(),
    }
    ride_ref = db.collection(RIDES).document(ride_id)
    ride = _add_shared_passenger(db.transaction(), ride_ref, entry)
    logger.info(f"Passenger {passenger['id']} joined shared ride {ride_id}")
    return {"ride": ride, "passenger": passenger}
