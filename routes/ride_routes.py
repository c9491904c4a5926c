from fastapi import APIRouter, Depends, Query

from dependencies import authenticate, get_db, optional_authenticate
from models import (
    AcceptRideRequest,
    CancelRideRequest,
    CompleteRideRequest,
    JoinSharedRideRequest,
    RateRideRequest,
    RideRequest,
)
from responses import envelope
from services import ride_service

router = APIRouter()


@router.post("", status_code=201)
async def create_ride(request: RideRequest, db=Depends(get_db)):
    result = ride_service.request_ride(db, request.model_dump())
    return envelope(result, "Ride created successfully")


@router.get("")
async def list_rides(status: str | None = None, rideType: str | None = None,
                     limit: int = Query(20, ge=1, le=100), db=Depends(get_db)):
    return envelope({"rides": ride_service.list_rides(db, status, rideType, limit)})


@router.get("/pending")
async def pending_rides(lat: float | None = Query(None, ge=-90, le=90), lng: float | None = Query(None, ge=-180, le=180),
                        radius: float = Query(ride_service.DEFAULT_PENDING_RADIUS_KM, ge=0.1, le=100),
                        db=Depends(get_db)):
    location = {"latitude": lat, "longitude": lng} if lat is not None and lng is not None else None
    return envelope({"rides": ride_service.find_pending_rides(db, location, radius)})


@router.get("/shared")
async def shared_rides(pickupLat: float = Query(ge=-90, le=90), pickupLng: float = Query(ge=-180, le=180),
                       destLat: float = Query(ge=-90, le=90), destLng: float = Query(ge=-180, le=180),
                       radius: float = Query(ride_service.DEFAULT_SHARED_RADIUS_KM, ge=0.1, le=100),
                       db=Depends(get_db)):
    matches = ride_service.find_shared_matches(
        db,
        {"latitude": pickupLat, "longitude": pickupLng},
        {"latitude": destLat, "longitude": destLng},
        radius,
    )
    return envelope({"sharedRides": matches})


@router.get("/history")
async def ride_history(limit: int = Query(10, ge=1, le=100), claims: dict = Depends(authenticate),
                       db=Depends(get_db)):
    rides = ride_service.rides_for_user(db, claims["userId"], as_driver=claims.get("role") == "driver", limit=limit)
    return envelope({"rides": rides})


@router.get("/{ride_id}")
async def get_ride(ride_id: str, db=Depends(get_db)):
    return envelope(ride_service.get_ride_details(db, ride_id))


@router.post("/{ride_id}/accept")
async def accept_ride(ride_id: str, request: AcceptRideRequest, db=Depends(get_db)):
    result = ride_service.accept_ride(db, ride_id, request.driverName, request.driverPhone, request.vehicleInfo)
    return envelope(result, "Ride accepted successfully")


@router.post("/{ride_id}/start")
async def start_ride(ride_id: str, db=Depends(get_db)):
    return envelope(ride_service.start_ride(db, ride_id), "Ride started successfully")


@router.post("/{ride_id}/complete")
async def complete_ride(ride_id: str, request: CompleteRideRequest | None = None, db=Depends(get_db)):
    request = request or CompleteRideRequest()
    result = ride_service.complete_ride(db, ride_id, request.actualDistance, request.actualDuration, request.fare)
    return envelope(result, "Ride completed successfully")


@router.post("/{ride_id}/cancel")
async def cancel_ride(ride_id: str, request: CancelRideRequest | None = None,
                      claims: dict | None = Depends(optional_authenticate), db=Depends(get_db)):
    reason = request.reason if request else None
    cancelled_by = claims["userId"] if claims else "system"
    return envelope(ride_service.cancel_ride(db, ride_id, reason, cancelled_by), "Ride cancelled successfully")


@router.post("/{ride_id}/rate")
async def rate_ride(ride_id: str, request: RateRideRequest, db=Depends(get_db)):
    ride = ride_service.rate_ride(db, ride_id, request.rating, request.feedback)
    return envelope({"ride": ride}, "Ride rated successfully")


@router.post("/{ride_id}/join")
async def join_shared_ride(ride_id: str, request: JoinSharedRideRequest, db=Depends(get_db)):
    result = ride_service.join_shared_ride(
        db,
        ride_id,
        request.passengerName,
        request.passengerPhone,
        request.pickupLocation.model_dump() if request.pickupLocation else None,
        request.destination.model_dump() if request.destination else None,
    )
    return envelope(result, "Successfully joined shared ride")
