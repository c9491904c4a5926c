import logging

from errors import NotFoundError
from services import booking_service, payload, user_service
from services.cascade import Cascade
from services.store import DESCENDING, PERSONAL_BOOKINGS, now, snapshot_to_dict, stream_documents, without_none

logger = logging.getLogger(__name__)


def _find_or_register_passenger(db, phone: str, name: str | None) -> dict | None:
    passenger = user_service.find_by_phone(db, phone)
    if not passenger and name:
        passenger = user_service.create_user(db, {"name": name, "phoneNumber": phone, "role": "passenger"})
    return passenger


def create_personal_ride(db, raw: dict, user_id: str | None = None) -> dict:
    """
    Store a personal ride request exactly as the client sent it.

    Only the phone number is needed to link the request to a passenger; a
    passenger is registered when the payload also names them. Failing to
    resolve the passenger never blocks storing the request.
    """
    fields = payload.extract(raw, payload.PERSONAL_RIDE_RULES)
    phone = payload.personal_ride_phone(raw)

    cascade = Cascade("personal booking")
    passenger = None
    if phone:
        passenger = cascade.run("find or create passenger", _find_or_register_passenger,
                                db, phone, fields["passengerName"])

    document = without_none({
        "rideType": raw.get("rideType") or "personal",
        "passengerId": passenger["id"] if passenger else fields["passengerId"] or user_id,
        "rawPayload": raw,
        "pickupLocation": fields["pickupLocation"],
        "destination": fields["destination"],
        "notes": fields["notes"],
        "createdAt": now(),
    })
    _, doc_ref = db.collection(PERSONAL_BOOKINGS).add(document)
    personal_booking = {"id": doc_ref.id, **document}

    booking = None
    if passenger:
        booking = cascade.run("create booking", booking_service.create_booking, db, doc_ref.id, passenger["id"])
        personal_booking["customer"] = {
            "id": passenger["id"],
            "fullName": passenger.get("name") or "",
            "email": passenger.get("email"),
            "phone": passenger.get("phoneNumber"),
        }

    logger.info(f"Personal booking {doc_ref.id} stored")
    return cascade.attach({"bookingRecord": booking, "personalBooking": personal_booking, "passenger": passenger})


def list_personal_rides(db, limit: int = 50) -> list[dict]:
    query = db.collection(PERSONAL_BOOKINGS).order_by("createdAt", direction=DESCENDING).limit(limit)
    return stream_documents(query)


def update_personal_ride(db, ride_id: str, updates: dict) -> dict:
    doc_ref = db.collection(PERSONAL_BOOKINGS).document(ride_id)
    if not doc_ref.get().exists:
        raise NotFoundError("Personal booking not found")
    updates = {key: value for key, value in updates.items() if key != "id"}
    doc_ref.update({**updates, "updatedAt": now()})
    return snapshot_to_dict(doc_ref.get())


def delete_personal_ride(db, ride_id: str) -> dict:
    doc_ref = db.collection(PERSONAL_BOOKINGS).document(ride_id)
    if not doc_ref.get().exists:
        raise NotFoundError("Personal booking not found")
    doc_ref.delete()

    cascade = Cascade(f"personal booking {ride_id} deleted")
    cascade.run("remove booking", booking_service.delete_for_ride, db, ride_id)
    return cascade.attach({})
