from fastapi import APIRouter, Body, Depends, Query

from dependencies import get_db
from errors import BadRequestError
from models import BookSeatRequest
from responses import envelope
from services import shared_ride_service

router = APIRouter()


@router.get("")
async def list_shared_rides(db=Depends(get_db)):
    rides = shared_ride_service.list_listings(db)
    return envelope({"rides": rides, "count": len(rides)})


@router.get("/search")
async def search_shared_rides(location: str | None = None, limit: int = Query(10, ge=1, le=100),
                              db=Depends(get_db)):
    if not location:
        raise BadRequestError("Pickup location is required")
    rides = shared_ride_service.search_by_pickup(db, location, limit)
    return envelope({"rides": rides, "count": len(rides), "searchLocation": location})


@router.get("/{ride_id}")
async def get_shared_ride(ride_id: str, db=Depends(get_db)):
    return envelope({"ride": shared_ride_service.get_listing_or_404(db, ride_id)})


@router.post("", status_code=201)
async def create_shared_ride(payload: dict = Body(...), db=Depends(get_db)):
    ride = shared_ride_service.create_listing(db, payload)
    return envelope({"ride": ride}, "Shared ride created successfully")


@router.put("/{ride_id}")
async def update_shared_ride(ride_id: str, updates: dict = Body(...), db=Depends(get_db)):
    ride = shared_ride_service.update_listing(db, ride_id, updates)
    return envelope({"ride": ride}, "Shared ride updated successfully")


@router.delete("/{ride_id}")
async def delete_shared_ride(ride_id: str, db=Depends(get_db)):
    shared_ride_service.delete_listing(db, ride_id)
    return envelope(message="Shared ride deleted successfully")


@router.post("/{ride_id}/book", status_code=201)
async def book_seat(ride_id: str, request: BookSeatRequest, db=Depends(get_db)):
    booking = shared_ride_service.book_seat(
        db, ride_id, request.passengerName, request.passengerPhone, request.seatsBooked
    )
    return envelope({"booking": booking}, "Seat booked successfully")
