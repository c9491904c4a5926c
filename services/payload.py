"""
Ordered extraction rules for loosely shaped client payloads.

Clients send the same logical value in different places (``passengerPhone``,
``passenger.phone``, ``contact.phone``...). Each endpoint declares, per
logical field, the key paths to try in priority order; the first acceptable
value wins.
"""
from typing import Any, Callable, Sequence

KeyPath = tuple[str, ...]
Rules = dict[str, Sequence[KeyPath]]


def present(value: Any) -> bool:
    return value is not None


def non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def walk(payload: Any, keys: KeyPath) -> Any:
    current = payload
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def resolve(payload: dict, paths: Sequence[KeyPath], accept: Callable[[Any], bool] = present) -> Any:
    for keys in paths:
        value = walk(payload, keys)
        if accept(value):
            return value
    return None


def extract(payload: dict, rules: Rules, accept: Callable[[Any], bool] = present) -> dict:
    return {field: resolve(payload, paths, accept) for field, paths in rules.items()}


PRIVATE_RIDE_RULES: Rules = {
    "passengerName": [("passengerName",), ("passenger", "name"), ("passenger", "fullName")],
    "passengerPhone": [("passengerPhone",), ("passenger", "phone"), ("passenger", "phoneNumber")],
    "pickupLocation": [("pickupLocation",), ("pickup", "location"), ("pickup", "coords")],
    "destination": [("destination", "location"), ("destination", "coords"), ("destination",)],
    "pickupAddress": [("pickupAddress",), ("pickup", "address")],
    "destinationAddress": [("destinationAddress",), ("destination", "address")],
    "passengers": [("passengers",), ("passenger", "count")],
    "notes": [("notes",), ("meta", "notes")],
}

PERSONAL_RIDE_PHONE_RULES: Sequence[KeyPath] = [
    ("phone",), ("passenger", "phone"), ("passengerPhone",), ("contact", "phone"),
]

PERSONAL_RIDE_RULES: Rules = {
    "passengerName": [("passenger", "name"), ("passenger", "fullName")],
    "passengerId": [("passengerId",), ("passenger", "id")],
    "pickupLocation": [("pickup", "location"), ("pickupLocation",)],
    "destination": [("destination", "location"), ("destination",)],
    "notes": [("notes",), ("meta", "notes")],
}

SHARED_RIDE_RULES: Rules = {
    "driverName": [("driverName",), ("driver", "name")],
    "driverImage": [("driverImage",), ("driver", "image")],
    "vehicle": [("vehicle",), ("vehicleType",)],
    "pickupLocation": [("pickupLocation",), ("pickup", "location")],
    "destinationLocation": [("destinationLocation",), ("destination", "location")],
    "time": [("time",)],
    "duration": [("duration",)],
    "passengers": [("passengers",), ("seats", "total")],
    "luggage": [("luggage",)],
    "handCarry": [("handCarry",)],
    "totalSeats": [("totalSeats",), ("seats", "total")],
    "availableSeats": [("availableSeats",), ("seats", "available")],
    "price": [("price",)],
    "frequency": [("frequency",)],
    "pickupDate": [("pickupDate",), ("date",), ("rawPayload", "date")],
}


def personal_ride_phone(payload: dict) -> str | None:
    phone = resolve(payload, PERSONAL_RIDE_PHONE_RULES, accept=non_blank_string)
    return phone.strip() if phone else None
