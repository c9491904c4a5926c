from fastapi import APIRouter, Body, Depends, Query

from dependencies import get_db
from errors import BadRequestError
from models import AvailabilityUpdate
from responses import envelope
from services import vehicle_service

router = APIRouter()


def _listing(vehicles: list[dict], **extra) -> dict:
    return {"vehicles": vehicles, "count": len(vehicles), **extra}


@router.get("")
async def list_vehicles(db=Depends(get_db)):
    return envelope(_listing(vehicle_service.list_vehicles(db)))


@router.get("/available")
async def available_vehicles(db=Depends(get_db)):
    return envelope(_listing(vehicle_service.list_available(db)))


@router.get("/search")
async def search_vehicles(q: str | None = None, limit: int = Query(10, ge=1, le=100), db=Depends(get_db)):
    if not q:
        raise BadRequestError("Search query is required")
    return envelope(_listing(vehicle_service.search_vehicles(db, q, limit), searchQuery=q))


@router.get("/by-passengers")
async def vehicles_by_passengers(passengers: str | None = None, db=Depends(get_db)):
    if not passengers:
        raise BadRequestError("Passenger count is required")
    try:
        min_passengers = int(passengers)
    except ValueError:
        raise BadRequestError("Invalid passenger count")
    vehicles = vehicle_service.list_by_passengers(db, min_passengers)
    return envelope(_listing(vehicles, minPassengers=min_passengers))


@router.get("/{vehicle_id}")
async def get_vehicle(vehicle_id: str, db=Depends(get_db)):
    return envelope({"vehicle": vehicle_service.get_vehicle_or_404(db, vehicle_id)})


@router.post("", status_code=201)
async def create_vehicle(payload: dict = Body(...), db=Depends(get_db)):
    vehicle = vehicle_service.create_vehicle(db, payload)
    return envelope({"vehicle": vehicle}, "Vehicle created successfully")


@router.put("/{vehicle_id}")
async def update_vehicle(vehicle_id: str, updates: dict = Body(...), db=Depends(get_db)):
    vehicle = vehicle_service.update_vehicle(db, vehicle_id, updates)
    return envelope({"vehicle": vehicle}, "Vehicle updated successfully")


@router.patch("/{vehicle_id}/availability")
async def update_availability(vehicle_id: str, request: AvailabilityUpdate, db=Depends(get_db)):
    if request.isAvailable is None:
        raise BadRequestError("Availability status is required")
    vehicle = vehicle_service.update_availability(db, vehicle_id, request.isAvailable)
    return envelope({"vehicle": vehicle}, "Vehicle availability updated successfully")


@router.delete("/{vehicle_id}")
async def delete_vehicle(vehicle_id: str, db=Depends(get_db)):
    vehicle_service.delete_vehicle(db, vehicle_id)
    return envelope(message="Vehicle deleted successfully")
