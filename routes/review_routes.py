from fastapi import APIRouter, Body, Depends, Query

from dependencies import authenticate, get_db, optional_authenticate
from responses import envelope
from services import review_service

router = APIRouter()


@router.post("", status_code=201)
async def create_review(payload: dict = Body(...), claims: dict | None = Depends(optional_authenticate),
                        db=Depends(get_db)):
    if claims and "userId" not in payload:
        payload = {**payload, "userId": claims["userId"]}
    return envelope(review_service.create_review(db, payload))


@router.get("")
async def list_reviews(rideId: str | None = None, limit: int = Query(100, ge=1, le=500), db=Depends(get_db)):
    reviews = review_service.list_reviews(db, rideId, limit)
    return envelope({"reviews": reviews, "count": len(reviews)})


@router.delete("/{review_id}")
async def delete_review(review_id: str, claims: dict = Depends(authenticate), db=Depends(get_db)):
    review_service.delete_review(db, review_id)
    return envelope(message="Review deleted")
