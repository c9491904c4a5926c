import logging

from errors import BadRequestError, ForbiddenError, NotFoundError
from services.store import DESCENDING, PAYMENTS, field_equals, get_document, now, stream_documents

logger = logging.getLogger(__name__)


def new_payment_document(data: dict) -> dict:
    timestamp = now()
    return {
        "rideId": data.get("rideId"),
        "bookingId": data.get("bookingId"),
        "passengerId": data.get("passengerId"),
        "driverId": data.get("driverId"),
        "amount": data.get("amount"),
        "currency": data.get("currency") or "usd",
        "method": data.get("method"),
        "status": data.get("status") or "pending",
        "transactionId": data.get("transactionId"),
        "stripePaymentIntentId": data.get("stripePaymentIntentId"),
        "refundAmount": 0,
        "refundReason": None,
        "failureReason": None,
        "processingFee": data.get("processingFee", 0),
        "tip": data.get("tip", 0),
        "discount": data.get("discount", 0),
        "paidAt": None,
        "refundedAt": None,
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }


def create_payment(db, data: dict) -> dict:
    payment_ref = db.collection(PAYMENTS).document()
    document = new_payment_document(data)
    payment_ref.set(document)
    return {"id": payment_ref.id, **document}


def get_payment_or_404(db, payment_id: str) -> dict:
    payment = get_document(db, PAYMENTS, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def get_payment_for_user(db, payment_id: str, user_id: str) -> dict:
    payment = get_payment_or_404(db, payment_id)
    if user_id not in (payment.get("passengerId"), payment.get("driverId")):
        raise ForbiddenError("You are not authorized to view this payment")
    return payment


def find_by_intent_id(db, intent_id: str) -> dict | None:
    query = db.collection(PAYMENTS).where(filter=field_equals("stripePaymentIntentId", intent_id)).limit(1)
    payments = stream_documents(query)
    return payments[0] if payments else None


def payment_history(db, user_id: str, as_driver: bool = False, limit: int = 10) -> list[dict]:
    field = "driverId" if as_driver else "passengerId"
    query = (
        db.collection(PAYMENTS)
        .where(filter=field_equals(field, user_id))
        .order_by("createdAt", direction=DESCENDING)
        .limit(limit)
    )
    return stream_documents(query)


def update_payment(db, payment: dict, updates: dict) -> dict:
    updates = {**updates, "updatedAt": now()}
    db.collection(PAYMENTS).document(payment["id"]).update(updates)
    return {**payment, **updates}


def mark_completed(db, payment: dict, transaction_id: str | None = None) -> dict:
    updates = {"status": "completed", "paidAt": now()}
    if transaction_id:
        updates["transactionId"] = transaction_id
    return update_payment(db, payment, updates)


def mark_failed(db, payment: dict, reason: str) -> dict:
    return update_payment(db, payment, {"status": "failed", "failureReason": reason})


def create_intent(db, gateway, user_id: str, amount: float, ride_id: str,
                  currency: str = "usd", metadata: dict | None = None) -> dict:
    if not amount or not ride_id:
        raise BadRequestError("Amount and ride ID are required")
    intent = gateway.create_intent(amount, currency, {"rideId": ride_id, "passengerId": user_id, **(metadata or {})})
    payment = create_payment(db, {
        "rideId": ride_id,
        "passengerId": user_id,
        "amount": amount,
        "currency": currency,
        "method": "card",
        "status": "pending",
        "stripePaymentIntentId": intent["id"],
    })
    return {"clientSecret": intent["client_secret"], "paymentId": payment["id"]}


def confirm_payment(db, payment_id: str, transaction_id: str | None = None) -> dict:
    payment = get_payment_or_404(db, payment_id)
    payment = mark_completed(db, payment, transaction_id)
    logger.info(f"Payment {payment_id} confirmed")
    return payment


def refund_payment(db, gateway, payment_id: str, amount: float | None = None, reason: str | None = None) -> dict:
    payment = get_payment_or_404(db, payment_id)
    if payment.get("status") != "completed":
        raise BadRequestError("Only completed payments can be refunded")

    if payment.get("method") == "card" and payment.get("stripePaymentIntentId"):
        gateway.refund(payment["stripePaymentIntentId"], amount)

    payment = update_payment(db, payment, {
        "status": "refunded",
        "refundAmount": amount or payment.get("amount"),
        "refundReason": reason,
        "refundedAt": now(),
    })
    logger.info(f"Payment {payment_id} refunded")
    return payment


def handle_webhook_event(db, event: dict):
    """Apply a verified Stripe event to the payment it refers to."""
    intent = event["object"]
    if event["type"] == "payment_intent.succeeded":
        payment = find_by_intent_id(db, intent["id"])
        if payment:
            mark_completed(db, payment, intent["id"])
    elif event["type"] == "payment_intent.payment_failed":
        payment = find_by_intent_id(db, intent["id"])
        if payment:
            mark_failed(db, payment, "Payment failed")
    else:
        logger.info(f"Unhandled event type {event['type']}")
