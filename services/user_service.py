import logging

from errors import ApiError, NotFoundError
from services import geo
from services.store import USERS, field_equals, get_document, now, stream_documents

logger = logging.getLogger(__name__)

DEFAULT_DRIVER_RADIUS_KM = 10


def new_user_document(user_data: dict) -> dict:
    """Fill in the defaults every stored user carries."""
    timestamp = now()
    role = user_data.get("role") or "passenger"
    document = {
        "name": user_data.get("name", ""),
        "phoneNumber": user_data.get("phoneNumber"),
        "email": user_data.get("email"),
        "role": role,
        "rating": user_data.get("rating", 0),
        "totalRides": user_data.get("totalRides", 0),
        "isActive": user_data.get("isActive", True),
        "isVerified": user_data.get("isVerified", False),
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    for key in ("firstName", "lastName"):
        if user_data.get(key):
            document[key] = user_data[key]
    if role == "driver":
        document["vehicleInfo"] = user_data.get("vehicleInfo") or {}
        document["isOnline"] = bool(user_data.get("isOnline", False))
        document["currentLocation"] = user_data.get("currentLocation")
        document["documentsVerified"] = user_data.get("documentsVerified", False)
    return document


def create_user(db, user_data: dict, user_id: str | None = None) -> dict:
    """Save a new user document, keyed by user_id (e.g. a Firebase uid) or a generated key."""
    try:
        users_ref = db.collection(USERS)
        user_ref = users_ref.document(user_id) if user_id else users_ref.document()
        document = new_user_document(user_data)
        user_ref.set(document)
    except Exception as exc:
        raise ApiError(f"Error creating user: {exc}")
    logger.info(f"User created: {user_ref.id} ({document['role']})")
    return {"id": user_ref.id, **document}


def get_user(db, user_id: str) -> dict | None:
    return get_document(db, USERS, user_id)


def get_user_or_404(db, user_id: str, message: str = "User not found") -> dict:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError(message)
    return user


def get_driver_or_404(db, driver_id: str) -> dict:
    driver = get_user(db, driver_id)
    if not driver or driver.get("role") != "driver":
        raise NotFoundError("Driver not found")
    return driver


def find_by_phone(db, phone_number: str) -> dict | None:
    query = db.collection(USERS).where(filter=field_equals("phoneNumber", phone_number)).limit(1)
    users = stream_documents(query)
    return users[0] if users else None


def find_by_email(db, email: str) -> dict | None:
    query = db.collection(USERS).where(filter=field_equals("email", email)).limit(1)
    users = stream_documents(query)
    return users[0] if users else None


def find_or_create_user(db, name: str, phone_number: str, role: str = "passenger", **extra) -> dict:
    """Look a user up by phone number, registering them on first contact."""
    user = find_by_phone(db, phone_number)
    if user:
        return user
    return create_user(db, {"name": name, "phoneNumber": phone_number, "role": role, **extra})


def update_user(db, user_id: str, updates: dict) -> dict:
    user_ref = db.collection(USERS).document(user_id)
    snapshot = user_ref.get()
    if not snapshot.exists:
        raise NotFoundError("User not found")
    updates = {**updates, "updatedAt": now()}
    user_ref.update(updates)
    return {"id": user_id, **snapshot.to_dict(), **updates}


def update_location(db, user_id: str, latitude: float, longitude: float) -> dict:
    return update_user(db, user_id, {
        "currentLocation": {
            "latitude": float(latitude),
            "longitude": float(longitude),
            "updatedAt": now(),
        }
    })


def list_drivers(db, is_online: bool | None = None, limit: int = 20) -> list[dict]:
    query = db.collection(USERS).where(filter=field_equals("role", "driver"))
    if is_online is not None:
        query = query.where(filter=field_equals("isOnline", is_online))
    return stream_documents(query.limit(limit))


def find_nearby_drivers(db, location: dict, radius_km: float = DEFAULT_DRIVER_RADIUS_KM) -> list[dict]:
    """Online, active drivers within radius_km of location, nearest first."""
    query = (
        db.collection(USERS)
        .where(filter=field_equals("role", "driver"))
        .where(filter=field_equals("isOnline", True))
        .where(filter=field_equals("isActive", True))
    )
    return geo.within_radius(
        stream_documents(query),
        location,
        radius_km,
        location_of=lambda driver: driver.get("currentLocation"),
    )


def user_stats(user: dict) -> dict:
    stats = {
        "totalRides": user.get("totalRides", 0),
        "rating": user.get("rating", 0),
        "memberSince": user.get("createdAt"),
        "isVerified": user.get("isVerified", False),
        "isActive": user.get("isActive", True),
    }
    if user.get("role") == "driver":
        stats["isOnline"] = user.get("isOnline", False)
        stats["documentsVerified"] = user.get("documentsVerified", False)
        stats["vehicleInfo"] = user.get("vehicleInfo")
    return stats


def deactivate_user(db, user_id: str, reason: str | None = None) -> dict:
    return update_user(db, user_id, {
        "isActive": False,
        "deactivationReason": reason,
        "deactivatedAt": now(),
    })


def reactivate_user(db, user_id: str) -> dict:
    return update_user(db, user_id, {
        "isActive": True,
        "deactivationReason": None,
        "deactivatedAt": None,
        "reactivatedAt": now(),
    })
