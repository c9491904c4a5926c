from fastapi import APIRouter, Body, Depends, Query

from dependencies import get_db, optional_authenticate
from responses import envelope
from services import personal_ride_service

router = APIRouter()


@router.post("", status_code=201)
async def create_personal_ride(payload: dict = Body(...), claims: dict | None = Depends(optional_authenticate),
                               db=Depends(get_db)):
    result = personal_ride_service.create_personal_ride(db, payload, claims["userId"] if claims else None)
    return envelope(result, "Personal booking created")


@router.get("")
async def list_personal_rides(limit: int = Query(50, ge=1, le=500), db=Depends(get_db)):
    rides = personal_ride_service.list_personal_rides(db, limit)
    return envelope({"rides": rides, "count": len(rides)})


@router.put("/{ride_id}")
async def update_personal_ride(ride_id: str, updates: dict = Body(...), db=Depends(get_db)):
    booking = personal_ride_service.update_personal_ride(db, ride_id, updates)
    return envelope({"booking": booking}, "Personal booking updated")


@router.delete("/{ride_id}")
async def delete_personal_ride(ride_id: str, db=Depends(get_db)):
    result = personal_ride_service.delete_personal_ride(db, ride_id)
    return envelope(result or None, "Personal booking deleted")
