import logging
from datetime import datetime, timezone

import pytest

from errors import SeatsUnavailableError
from services import shared_ride_service
from services.shared_ride_service import reconcile_available_seats


def listing_payload(**overrides):
    payload = {
        "driverName": "Sunil",
        "vehicle": "Toyota KDH",
        "pickupLocation": "Colombo Fort",
        "destinationLocation": "Kandy",
        "time": "08:30",
        "duration": "3h",
        "price": "2500",
        "totalSeats": 4,
        "availableSeats": 4,
    }
    payload.update(overrides)
    return payload


def seed_listing(db, ride_id, **fields):
    document = {
        "driverName": "Sunil",
        "pickupLocation": "Colombo Fort",
        "status": "active",
        "totalSeats": 4,
        "availableSeats": 4,
        "bookings": [],
        "postedDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
        **fields,
    }
    db.collection("sharedRides").document(ride_id).set(document)


def test_create_flattened_listing(client):
    response = client.post("/api/shared-rides", json=listing_payload(availableSeats=3))

    assert response.status_code == 201
    ride = response.json()["data"]["ride"]
    assert ride["id"]
    assert ride["status"] == "active"
    assert ride["totalSeats"] == 4
    assert ride["availableSeats"] == 3
    assert ride["bookings"] == []
    assert ride["frequency"] == "one-time"
    assert ride["driverImage"] == "/images/default-driver.jpg"
    assert ride["rawPayload"]["driverName"] == "Sunil"


def test_create_nested_listing(client):
    response = client.post("/api/shared-rides", json={
        "driver": {"name": "Sunil", "image": "/images/sunil.jpg"},
        "vehicleType": "Van",
        "pickup": {"location": "Galle"},
        "destination": {"location": "Matara"},
        "time": "09:00",
        "duration": "1h",
        "price": 900,
        "seats": {"total": 6},
    })

    assert response.status_code == 201
    ride = response.json()["data"]["ride"]
    assert ride["driverName"] == "Sunil"
    assert ride["driverImage"] == "/images/sunil.jpg"
    assert ride["vehicle"] == "Van"
    assert ride["pickupLocation"] == "Galle"
    assert ride["destinationLocation"] == "Matara"
    assert ride["totalSeats"] == 6
    assert ride["availableSeats"] == 6


def test_create_requires_fields(client):
    payload = listing_payload()
    del payload["driverName"]
    response = client.post("/api/shared-rides", json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields"


def test_create_rejects_more_available_than_total(client):
    response = client.post("/api/shared-rides", json=listing_payload(availableSeats=5))
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid seat configuration"


def test_list_newest_first(client, db):
    seed_listing(db, "old", postedDate=datetime(2024, 1, 1, tzinfo=timezone.utc))
    seed_listing(db, "new", postedDate=datetime(2024, 2, 1, tzinfo=timezone.utc))

    data = client.get("/api/shared-rides").json()["data"]

    assert data["count"] == 2
    assert [ride["id"] for ride in data["rides"]] == ["new", "old"]


def test_search_by_pickup_prefix(client, db):
    seed_listing(db, "fort", pickupLocation="Colombo Fort")
    seed_listing(db, "wella", pickupLocation="Colombo Wellawatte")
    seed_listing(db, "kandy", pickupLocation="Kandy")
    seed_listing(db, "closed", pickupLocation="Colombo Pettah", status="completed")

    data = client.get("/api/shared-rides/search", params={"location": "Colombo"}).json()["data"]

    assert data["searchLocation"] == "Colombo"
    assert [ride["id"] for ride in data["rides"]] == ["fort", "wella"]


def test_search_requires_location(client):
    response = client.get("/api/shared-rides/search")
    assert response.status_code == 400
    assert response.json()["message"] == "Pickup location is required"


def test_get_unknown_listing(client):
    response = client.get("/api/shared-rides/nope")
    assert response.status_code == 404
    assert response.json()["message"] == "Shared ride not found"


def test_update_listing(client, db):
    seed_listing(db, "r1")

    response = client.put("/api/shared-rides/r1", json={
        "price": "3000", "availableSeats": "2", "bookings": ["ignored"], "id": "other",
    })

    assert response.status_code == 200
    ride = response.json()["data"]["ride"]
    assert ride["id"] == "r1"
    assert ride["price"] == "3000"
    assert ride["availableSeats"] == 2
    assert ride["bookings"] == []


def test_update_rejects_invalid_seats(client, db):
    seed_listing(db, "r1")

    response = client.put("/api/shared-rides/r1", json={"totalSeats": 2})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid seat configuration"
    assert shared_ride_service.get_listing_or_404(db, "r1")["totalSeats"] == 4


def test_update_cannot_release_booked_seats(client, db):
    seed_listing(db, "r1", totalSeats=4, availableSeats=1, bookings=[{"id": "b0", "seatsBooked": 3}])

    response = client.put("/api/shared-rides/r1", json={"availableSeats": 4})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid seat configuration"

    response = client.post("/api/shared-rides/r1/book", json={
        "passengerName": "Amaya", "passengerPhone": "+94771234567", "seatsBooked": 4,
    })
    assert response.status_code == 400

    listing = shared_ride_service.get_listing_or_404(db, "r1")
    assert listing["availableSeats"] == 1
    assert sum(booking["seatsBooked"] for booking in listing["bookings"]) <= listing["totalSeats"]


def test_update_total_seats_respects_bookings(client, db):
    seed_listing(db, "r1", totalSeats=4, availableSeats=1, bookings=[{"id": "b0", "seatsBooked": 3}])

    response = client.put("/api/shared-rides/r1", json={"totalSeats": 2, "availableSeats": 0})
    assert response.status_code == 400

    response = client.put("/api/shared-rides/r1", json={"totalSeats": 6, "availableSeats": 3})
    assert response.status_code == 200
    assert response.json()["data"]["ride"]["availableSeats"] == 3


def test_update_unknown_listing(client):
    response = client.put("/api/shared-rides/missing", json={"price": "1"})
    assert response.status_code == 404


def test_delete_listing(client, db):
    seed_listing(db, "r1")
    assert client.delete("/api/shared-rides/r1").status_code == 200
    assert client.get("/api/shared-rides/r1").status_code == 404
    assert client.delete("/api/shared-rides/r1").status_code == 404


def test_booking_decrements_seats(client, db):
    seed_listing(db, "r1", totalSeats=3, availableSeats=3)

    response = client.post("/api/shared-rides/r1/book", json={
        "passengerName": "Amaya", "passengerPhone": "+94771234567", "seatsBooked": 2,
    })

    assert response.status_code == 201
    booking = response.json()["data"]["booking"]
    assert booking["rideId"] == "r1"
    assert booking["seatsBooked"] == 2
    assert booking["status"] == "confirmed"
    listing = shared_ride_service.get_listing_or_404(db, "r1")
    assert listing["availableSeats"] == 1
    assert [entry["id"] for entry in listing["bookings"]] == [booking["id"]]


def test_booking_more_seats_than_available_changes_nothing(client, db):
    existing = {"id": "b0", "seatsBooked": 3}
    seed_listing(db, "r1", totalSeats=4, availableSeats=1, bookings=[existing])

    response = client.post("/api/shared-rides/r1/book", json={
        "passengerName": "Amaya", "passengerPhone": "+94771234567", "seatsBooked": 2,
    })

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No seats available"}
    listing = shared_ride_service.get_listing_or_404(db, "r1")
    assert listing["availableSeats"] == 1
    assert listing["bookings"] == [existing]

    response = client.post("/api/shared-rides/r1/book", json={
        "passengerName": "Amaya", "passengerPhone": "+94771234567",
    })
    assert response.status_code == 201
    assert shared_ride_service.get_listing_or_404(db, "r1")["availableSeats"] == 0


def test_booking_unknown_listing(client):
    response = client.post("/api/shared-rides/missing/book", json={"passengerName": "A", "passengerPhone": "+1"})
    assert response.status_code == 404


def test_booking_repairs_stale_counter(db):
    seed_listing(db, "r1", totalSeats=4, availableSeats=0, bookings=[{"seatsBooked": 1}])

    shared_ride_service.book_seat(db, "r1", "Amaya", "+94771234567", 2)

    listing = shared_ride_service.get_listing_or_404(db, "r1")
    assert listing["availableSeats"] == 1
    assert len(listing["bookings"]) == 2


def test_concurrent_booking_of_last_seat(db):
    seed_listing(db, "r1", totalSeats=1, availableSeats=1)

    def competing_booking(reference):
        db.after_transactional_read = None
        shared_ride_service.book_seat(db, "r1", "First", "+94770000001")

    db.after_transactional_read = competing_booking

    with pytest.raises(SeatsUnavailableError):
        shared_ride_service.book_seat(db, "r1", "Second", "+94770000002")

    listing = shared_ride_service.get_listing_or_404(db, "r1")
    assert listing["availableSeats"] == 0
    assert [booking["passengerName"] for booking in listing["bookings"]] == ["First"]
    assert db.commits == 1


def test_reconcile_keeps_matching_counter():
    listing = {"totalSeats": 4, "availableSeats": 3, "bookings": [{"seatsBooked": 1}]}
    assert reconcile_available_seats(listing, "r1") == 3


def test_reconcile_prefers_higher_inferred_value(caplog):
    listing = {"totalSeats": 4, "availableSeats": 0, "bookings": [{"seatsBooked": 1}]}
    with caplog.at_level(logging.WARNING):
        assert reconcile_available_seats(listing, "r1") == 3
    assert "Using inferred" in caplog.text


def test_reconcile_keeps_stored_when_inferred_is_lower():
    listing = {"totalSeats": 4, "availableSeats": 3, "bookings": [{"seatsBooked": 2}]}
    assert reconcile_available_seats(listing, "r1") == 3


def test_reconcile_infers_missing_counter():
    assert reconcile_available_seats({"totalSeats": 4, "bookings": [{"seatsBooked": "2"}]}, "r1") == 2
    assert reconcile_available_seats({"seats": {"total": 3}}, "r1") == 3
    assert reconcile_available_seats({"totalSeats": 2, "bookings": [{"seatsBooked": 5}]}, "r1") == 0


def test_reconcile_unknown_without_any_counts():
    assert reconcile_available_seats({"bookings": []}, "r1") is None
    assert reconcile_available_seats({"availableSeats": 2}, "r1") == 2
