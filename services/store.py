"""Shared helpers for reading and writing Firestore documents."""
import random
import time
from datetime import datetime, timezone

from firebase_admin import firestore

USERS = "users"
RIDES = "rides"
BOOKINGS = "bookings"
PAYMENTS = "payments"
VEHICLES = "vehicles"
SHARED_RIDES = "sharedRides"
PERSONAL_BOOKINGS = "personalbooking"
REVIEWS = "reviews"
SETTINGS = "settings"

DESCENDING = firestore.Query.DESCENDING
ASCENDING = firestore.Query.ASCENDING


def now() -> datetime:
    return datetime.now(timezone.utc)


def field_equals(field: str, value):
    return firestore.FieldFilter(field, "==", value)


def field_in(field: str, values: list):
    return firestore.FieldFilter(field, "in", values)


def snapshot_to_dict(snapshot) -> dict:
    """Document data with its key under `id`."""
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


def get_document(db, collection: str, document_id: str) -> dict | None:
    snapshot = db.collection(collection).document(document_id).get()
    if not snapshot.exists:
        return None
    return snapshot_to_dict(snapshot)


def stream_documents(query) -> list[dict]:
    return [snapshot_to_dict(snapshot) for snapshot in query.stream()]


def without_none(data: dict) -> dict:
    """Drop keys whose value is None; Firestore would store them as nulls."""
    return {key: value for key, value in data.items() if value is not None}


def readable_id(prefix: str = "STSL") -> str:
    """Human-readable document key, e.g. STSL-1718000000000-4821."""
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(1000, 9999)}"


def sort_key_timestamp(value) -> float:
    """Sort key for timestamps that may be datetimes, ISO strings or missing."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, str):
        try:
            return sort_key_timestamp(datetime.fromisoformat(value))
        except ValueError:
            return 0
    return 0
