from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from dependencies import authenticate, current_user, get_db, require_active_driver, require_driver
from errors import BadRequestError
from models import DeactivateRequest, LocationUpdate, OnlineStatusUpdate, VehicleInfo
from responses import envelope
from services import upload_service, user_service

router = APIRouter()

PROTECTED_PROFILE_FIELDS = (
    "id", "role", "isVerified", "isActive", "createdAt", "documentsVerified", "rating", "totalRides",
)


@router.get("/profile")
async def get_profile(user: dict = Depends(current_user)):
    return envelope({"user": user})


@router.put("/profile")
async def update_profile(updates: dict = Body(...), user: dict = Depends(current_user), db=Depends(get_db)):
    updates = {key: value for key, value in updates.items() if key not in PROTECTED_PROFILE_FIELDS}
    updated = user_service.update_user(db, user["id"], updates)
    return envelope({"user": updated}, "Profile updated successfully")


@router.get("/stats")
async def get_stats(user: dict = Depends(current_user)):
    return envelope({"stats": user_service.user_stats(user)})


@router.post("/deactivate")
async def deactivate(request: DeactivateRequest | None = None, user: dict = Depends(current_user), db=Depends(get_db)):
    user_service.deactivate_user(db, user["id"], request.reason if request else None)
    return envelope(message="Account deactivated successfully")


@router.post("/reactivate")
async def reactivate(claims: dict = Depends(authenticate), db=Depends(get_db)):
    # deactivated accounts must still reach this endpoint
    user_service.reactivate_user(db, claims["userId"])
    return envelope(message="Account reactivated successfully")


@router.post("/profile-picture")
async def upload_profile_picture(profilePicture: UploadFile | None = File(None),
                                 user: dict = Depends(current_user), db=Depends(get_db)):
    if profilePicture is None:
        raise BadRequestError("No file uploaded")
    url = await upload_service.save_image(profilePicture, "profiles")
    updated = user_service.update_user(db, user["id"], {"profilePicture": url})
    return envelope({"user": updated}, "Profile picture uploaded successfully")


@router.put("/location")
async def update_location(request: LocationUpdate, user: dict = Depends(require_driver), db=Depends(get_db)):
    updated = user_service.update_location(db, user["id"], request.latitude, request.longitude)
    return envelope({"user": updated}, "Location updated successfully")


@router.put("/online-status")
async def update_online_status(request: OnlineStatusUpdate, user: dict = Depends(require_active_driver),
                               db=Depends(get_db)):
    updated = user_service.update_user(db, user["id"], {"isOnline": request.isOnline})
    return envelope({"user": updated}, f"Driver is now {'online' if request.isOnline else 'offline'}")


@router.put("/vehicle")
async def update_vehicle_info(request: VehicleInfo, user: dict = Depends(require_driver), db=Depends(get_db)):
    updated = user_service.update_user(db, user["id"], {"vehicleInfo": request.model_dump()})
    return envelope({"user": updated}, "Vehicle information updated successfully")


@router.get("/nearby-drivers")
async def nearby_drivers(lat: float = Query(ge=-90, le=90), lng: float = Query(ge=-180, le=180),
                         radius: float = Query(10, ge=0.1, le=100),
                         claims: dict = Depends(authenticate), db=Depends(get_db)):
    drivers = user_service.find_nearby_drivers(db, {"latitude": lat, "longitude": lng}, radius)
    return envelope({"drivers": drivers})
