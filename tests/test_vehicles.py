from datetime import datetime, timedelta, timezone

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def seed_vehicle(db, vehicle_id, minutes=0, **fields):
    document = {
        "name": vehicle_id.title(),
        "price": "100",
        "passengers": "4",
        "features": [],
        "status": "active",
        "isAvailable": True,
        "createdAt": BASE + timedelta(minutes=minutes),
        **fields,
    }
    db.collection("vehicles").document(vehicle_id).set(document)


def ids(response):
    return [vehicle["id"] for vehicle in response.json()["data"]["vehicles"]]


def test_create_vehicle_with_defaults(client):
    response = client.post("/api/vehicles", json={
        "name": "Mini Van", "price": "150", "passengers": "7", "features": ["AC", "", 3],
    })

    assert response.status_code == 201
    vehicle = response.json()["data"]["vehicle"]
    assert vehicle["id"].startswith("STSL-")
    assert vehicle["luggage"] == "2"
    assert vehicle["image"] == "/images/default-vehicle.jpg"
    assert vehicle["features"] == ["AC"]
    assert vehicle["status"] == "active"
    assert vehicle["isAvailable"] is True

    fetched = client.get(f"/api/vehicles/{vehicle['id']}").json()["data"]["vehicle"]
    assert fetched["name"] == "Mini Van"


def test_create_vehicle_requires_fields(client):
    response = client.post("/api/vehicles", json={"name": "Car"})
    assert response.status_code == 400
    assert response.json()["message"] == "Name, price, and passenger capacity are required"


def test_single_feature_string_becomes_list(client):
    response = client.post("/api/vehicles", json={"name": "Car", "price": 10, "passengers": 4, "features": "WiFi"})
    assert response.json()["data"]["vehicle"]["features"] == ["WiFi"]


def test_list_excludes_deleted_newest_first(client, db):
    seed_vehicle(db, "old", minutes=0)
    seed_vehicle(db, "new", minutes=5)
    seed_vehicle(db, "gone", minutes=10, status="deleted")

    response = client.get("/api/vehicles")

    assert ids(response) == ["new", "old"]
    assert response.json()["data"]["count"] == 2


def test_available_vehicles(client, db):
    seed_vehicle(db, "free")
    seed_vehicle(db, "busy", isAvailable=False)
    assert ids(client.get("/api/vehicles/available")) == ["free"]


def test_by_passengers_sorted_by_capacity(client, db):
    seed_vehicle(db, "van", minutes=0, passengers="8")
    seed_vehicle(db, "car", minutes=1, passengers="4")
    seed_vehicle(db, "suv", minutes=2, passengers="6")
    seed_vehicle(db, "bike", minutes=3, passengers="1")
    seed_vehicle(db, "newvan", minutes=4, passengers="8")

    response = client.get("/api/vehicles/by-passengers", params={"passengers": "4"})

    assert ids(response) == ["car", "suv", "newvan", "van"]
    assert response.json()["data"]["minPassengers"] == 4


def test_by_passengers_validation(client):
    response = client.get("/api/vehicles/by-passengers")
    assert response.json()["message"] == "Passenger count is required"

    response = client.get("/api/vehicles/by-passengers", params={"passengers": "many"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid passenger count"

    response = client.get("/api/vehicles/by-passengers", params={"passengers": "0"})
    assert response.json()["message"] == "Invalid passenger count"


def test_search_matches_name_or_feature(client, db):
    seed_vehicle(db, "sedan", minutes=0, name="Comfort Sedan", features=["AC"])
    seed_vehicle(db, "van", minutes=1, name="Family Van", features=["Child seat", "ac vents"])
    seed_vehicle(db, "tuk", minutes=2, name="Tuk Tuk")

    response = client.get("/api/vehicles/search", params={"q": "AC"})

    assert ids(response) == ["van", "sedan"]
    assert response.json()["data"]["searchQuery"] == "AC"


def test_search_requires_query(client):
    response = client.get("/api/vehicles/search")
    assert response.status_code == 400
    assert response.json()["message"] == "Search query is required"


def test_update_vehicle_keeps_id_and_created_at(client, db):
    seed_vehicle(db, "car")

    response = client.put("/api/vehicles/car", json={"price": "120", "id": "other", "features": "Music"})

    vehicle = response.json()["data"]["vehicle"]
    assert vehicle["id"] == "car"
    assert vehicle["price"] == "120"
    assert vehicle["features"] == ["Music"]
    assert vehicle["updatedAt"]


def test_availability_toggle(client, db):
    seed_vehicle(db, "car")

    response = client.patch("/api/vehicles/car/availability", json={})
    assert response.status_code == 400
    assert response.json()["message"] == "Availability status is required"

    response = client.patch("/api/vehicles/car/availability", json={"isAvailable": False})
    assert response.json()["data"]["vehicle"]["isAvailable"] is False
    assert ids(client.get("/api/vehicles/available")) == []


def test_delete_is_soft(client, db):
    seed_vehicle(db, "car")

    response = client.delete("/api/vehicles/car")

    assert response.status_code == 200
    assert db.collection("vehicles").document("car").get().to_dict()["status"] == "deleted"
    assert ids(client.get("/api/vehicles")) == []


def test_unknown_vehicle(client):
    assert client.get("/api/vehicles/nope").status_code == 404
    assert client.put("/api/vehicles/nope", json={"price": 1}).status_code == 404
    assert client.delete("/api/vehicles/nope").json()["message"] == "Vehicle not found"
