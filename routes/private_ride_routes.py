from fastapi import APIRouter, Body, Depends, Query

from dependencies import get_db
from responses import envelope
from services import private_ride_service

router = APIRouter()


@router.post("", status_code=201)
async def create_private_ride(payload: dict = Body(...), db=Depends(get_db)):
    result = private_ride_service.create_private_ride(db, payload)
    return envelope(result, "Private ride created")


@router.get("")
async def list_private_rides(limit: int = Query(50, ge=1, le=500), db=Depends(get_db)):
    rides = private_ride_service.list_private_rides(db, limit)
    return envelope({"rides": rides, "count": len(rides)})


@router.put("/{ride_id}")
async def update_private_ride(ride_id: str, updates: dict = Body(...), db=Depends(get_db)):
    ride = private_ride_service.update_private_ride(db, ride_id, updates)
    return envelope({"ride": ride}, "Private ride updated")


@router.delete("/{ride_id}")
async def delete_private_ride(ride_id: str, db=Depends(get_db)):
    result = private_ride_service.delete_private_ride(db, ride_id)
    return envelope(result or None, "Private ride deleted")
