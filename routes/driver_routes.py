import logging

from fastapi import APIRouter, Body, Depends, Query, status

from dependencies import get_db
from errors import BadRequestError
from models import DriverRegistration, LocationUpdate, OnlineStatusUpdate
from responses import envelope
from services import user_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_driver(request: DriverRegistration, db=Depends(get_db)):
    if user_service.find_by_phone(db, request.phoneNumber):
        raise BadRequestError("Driver already exists with this phone number")
    driver = user_service.create_user(db, {
        "name": request.name,
        "phoneNumber": request.phoneNumber,
        "role": "driver",
        "vehicleInfo": request.vehicleInfo or {},
        "isOnline": False,
    })
    logger.info(f"Driver registered: {driver['id']}")
    return envelope({"driver": driver}, "Driver registered successfully")


@router.get("")
async def list_drivers(isOnline: bool | None = None, limit: int = Query(20, ge=1, le=100), db=Depends(get_db)):
    drivers = user_service.list_drivers(db, isOnline, limit)
    return envelope({"drivers": drivers})


@router.get("/nearby")
async def nearby_drivers(lat: float = Query(ge=-90, le=90), lng: float = Query(ge=-180, le=180),
                         radius: float = Query(10, ge=0.1, le=100), db=Depends(get_db)):
    drivers = user_service.find_nearby_drivers(db, {"latitude": lat, "longitude": lng}, radius)
    return envelope({"drivers": drivers})


@router.get("/{driver_id}")
async def get_driver(driver_id: str, db=Depends(get_db)):
    return envelope({"driver": user_service.get_driver_or_404(db, driver_id)})


@router.put("/{driver_id}/location")
async def update_location(driver_id: str, request: LocationUpdate, db=Depends(get_db)):
    user_service.get_driver_or_404(db, driver_id)
    driver = user_service.update_location(db, driver_id, request.latitude, request.longitude)
    return envelope({"driver": driver}, "Location updated successfully")


@router.put("/{driver_id}/status")
async def update_status(driver_id: str, request: OnlineStatusUpdate, db=Depends(get_db)):
    user_service.get_driver_or_404(db, driver_id)
    driver = user_service.update_user(db, driver_id, {"isOnline": request.isOnline})
    return envelope({"driver": driver}, f"Driver is now {'online' if request.isOnline else 'offline'}")


@router.put("/{driver_id}/vehicle")
async def update_vehicle(driver_id: str, vehicle_info: dict = Body(...), db=Depends(get_db)):
    user_service.get_driver_or_404(db, driver_id)
    driver = user_service.update_user(db, driver_id, {"vehicleInfo": vehicle_info})
    return envelope({"driver": driver}, "Vehicle information updated successfully")
