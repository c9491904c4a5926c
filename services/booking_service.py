import random
import time

from services.store import BOOKINGS, field_equals, now, readable_id, stream_documents


def generate_booking_number() -> str:
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"BK{timestamp}{random.randint(0, 999):03d}"


def create_booking(db, ride_id: str, passenger_id: str, booking_type: str = "immediate", **extra) -> dict:
    booking_ref = db.collection(BOOKINGS).document(readable_id())
    timestamp = now()
    document = {
        "rideId": ride_id,
        "passengerId": passenger_id,
        "driverId": None,
        "bookingNumber": generate_booking_number(),
        "status": "confirmed",
        "bookingType": booking_type,
        "paymentDetails": {},
        "cancellationReason": None,
        "cancellationFee": 0,
        "specialRequests": extra.get("specialRequests", ""),
        "promoCode": extra.get("promoCode"),
        "discount": extra.get("discount", 0),
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    booking_ref.set(document)
    return {"id": booking_ref.id, **document}


def find_by_ride_id(db, ride_id: str) -> dict | None:
    query = db.collection(BOOKINGS).where(filter=field_equals("rideId", ride_id)).limit(1)
    bookings = stream_documents(query)
    return bookings[0] if bookings else None


def update_booking(db, booking: dict, updates: dict) -> dict:
    updates = {**updates, "updatedAt": now()}
    db.collection(BOOKINGS).document(booking["id"]).update(updates)
    return {**booking, **updates}


def assign_driver(db, ride_id: str, driver_id: str) -> dict | None:
    booking = find_by_ride_id(db, ride_id)
    if booking:
        return update_booking(db, booking, {"driverId": driver_id})
    return None


def complete_booking(db, ride_id: str, payment_details: dict | None = None) -> dict | None:
    booking = find_by_ride_id(db, ride_id)
    if booking:
        return update_booking(db, booking, {
            "status": "completed",
            "paymentDetails": {**booking.get("paymentDetails", {}), **(payment_details or {})},
            "completedAt": now(),
        })
    return None


def cancel_booking(db, ride_id: str, reason: str | None, cancelled_by: str, cancellation_fee: float = 0) -> dict | None:
    booking = find_by_ride_id(db, ride_id)
    if booking:
        return update_booking(db, booking, {
            "status": "cancelled",
            "cancellationReason": reason,
            "cancellationFee": cancellation_fee,
            "cancelledBy": cancelled_by,
            "cancelledAt": now(),
        })
    return None


def delete_for_ride(db, ride_id: str) -> bool:
    booking = find_by_ride_id(db, ride_id)
    if not booking:
        return False
    db.collection(BOOKINGS).document(booking["id"]).delete()
    return True
