from errors import NotFoundError
from services.store import DESCENDING, REVIEWS, field_equals, now, without_none


def create_review(db, raw: dict) -> dict:
    """Persist the whole client payload, stamped with its key and creation time."""
    review_ref = db.collection(REVIEWS).document()
    review = without_none({**raw, "id": review_ref.id, "createdAt": now()})
    review_ref.set(review)
    return review


def list_reviews(db, ride_id: str | None = None, limit: int = 100) -> list[dict]:
    query = db.collection(REVIEWS)
    if ride_id:
        query = query.where(filter=field_equals("rideId", ride_id))
    query = query.order_by("createdAt", direction=DESCENDING).limit(limit)
    return [snapshot.to_dict() for snapshot in query.stream()]


def delete_review(db, review_id: str):
    review_ref = db.collection(REVIEWS).document(review_id)
    if not review_ref.get().exists:
        raise NotFoundError("Review not found")
    review_ref.delete()
