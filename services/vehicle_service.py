"""Vehicle catalog. Listings are filtered and sorted in memory; the collection is small."""
import logging

from errors import BadRequestError, NotFoundError
from services.store import VEHICLES, get_document, now, readable_id, snapshot_to_dict, sort_key_timestamp

logger = logging.getLogger(__name__)

DEFAULTS = {
    "passengers": "4",
    "luggage": "2",
    "handCarry": "2",
    "image": "/images/default-vehicle.jpg",
    "gradient": "bg-gradient-to-br from-blue-400 to-blue-600",
    "buttonColor": "bg-blue-600 hover:bg-blue-700",
}


def normalize_features(features) -> list[str]:
    if isinstance(features, list):
        return [feature for feature in features if isinstance(feature, str) and feature.strip()]
    if isinstance(features, str):
        return [features]
    return []


def _capacity(vehicle: dict) -> int:
    try:
        return int(vehicle.get("passengers"))
    except (TypeError, ValueError):
        return 0


def _active_vehicles(db) -> list[dict]:
    vehicles = [snapshot_to_dict(snapshot) for snapshot in db.collection(VEHICLES).stream()]
    vehicles = [vehicle for vehicle in vehicles if vehicle.get("status") != "deleted"]
    vehicles.sort(key=lambda vehicle: sort_key_timestamp(vehicle.get("createdAt")), reverse=True)
    return vehicles


def list_vehicles(db) -> list[dict]:
    return _active_vehicles(db)


def list_available(db) -> list[dict]:
    return [vehicle for vehicle in _active_vehicles(db) if vehicle.get("isAvailable") is True]


def list_by_passengers(db, min_passengers: int) -> list[dict]:
    """Available vehicles seating at least min_passengers, smallest first."""
    if min_passengers < 1:
        raise BadRequestError("Invalid passenger count")
    vehicles = [vehicle for vehicle in list_available(db) if _capacity(vehicle) >= min_passengers]
    # stable sort keeps newest first within each capacity
    vehicles.sort(key=_capacity)
    return vehicles


def search_vehicles(db, term: str, limit: int = 10) -> list[dict]:
    term = term.lower()
    matches = []
    for vehicle in _active_vehicles(db):
        name_match = term in (vehicle.get("name") or "").lower()
        feature_match = any(term in str(feature).lower() for feature in vehicle.get("features") or [])
        if name_match or feature_match:
            matches.append(vehicle)
    return matches[:limit]


def get_vehicle_or_404(db, vehicle_id: str) -> dict:
    vehicle = get_document(db, VEHICLES, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def create_vehicle(db, data: dict) -> dict:
    if not data.get("name") or not data.get("price") or not data.get("passengers"):
        raise BadRequestError("Name, price, and passenger capacity are required")

    document = {
        "name": data["name"],
        "price": data["price"],
        **{field: data.get(field) or default for field, default in DEFAULTS.items()},
        "features": normalize_features(data.get("features")),
        "status": "active",
        "isAvailable": data.get("isAvailable", True),
        "createdAt": now(),
    }
    vehicle_ref = db.collection(VEHICLES).document(readable_id())
    vehicle_ref.set(document)
    logger.info(f"Vehicle {vehicle_ref.id} created: {document['name']}")
    return {"id": vehicle_ref.id, **document}


def update_vehicle(db, vehicle_id: str, updates: dict) -> dict:
    get_vehicle_or_404(db, vehicle_id)
    updates = {key: value for key, value in updates.items() if key not in ("id", "createdAt")}
    if "features" in updates:
        updates["features"] = normalize_features(updates["features"])
    db.collection(VEHICLES).document(vehicle_id).update({**updates, "updatedAt": now()})
    return get_vehicle_or_404(db, vehicle_id)


def update_availability(db, vehicle_id: str, is_available: bool) -> dict:
    return update_vehicle(db, vehicle_id, {"isAvailable": is_available})


def delete_vehicle(db, vehicle_id: str):
    get_vehicle_or_404(db, vehicle_id)
    db.collection(VEHICLES).document(vehicle_id).update({"status": "deleted", "deletedAt": now()})
    logger.info(f"Vehicle {vehicle_id} deleted")
