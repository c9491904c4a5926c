import logging

from fastapi import APIRouter, Depends, Query, Request

from dependencies import authenticate, get_db, get_payments
from models import ConfirmPaymentRequest, FareRequest, PaymentIntentRequest, RefundRequest
from responses import envelope
from services import fare, payment_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/calculate-fare")
async def calculate_fare(request: FareRequest):
    breakdown = fare.estimate_fare(request.distance, request.duration, request.rideType)
    return envelope({"fareBreakdown": breakdown})


@router.post("/webhook/stripe")
async def stripe_webhook(request: Request, db=Depends(get_db), gateway=Depends(get_payments)):
    # signature is computed over the raw body
    payload = await request.body()
    event = gateway.construct_event(payload, request.headers.get("stripe-signature"))
    logger.info(f"Stripe webhook received: {event['type']}")
    payment_service.handle_webhook_event(db, event)
    return {"received": True}


@router.post("/create-intent")
async def create_intent(request: PaymentIntentRequest, claims: dict = Depends(authenticate),
                        db=Depends(get_db), gateway=Depends(get_payments)):
    result = payment_service.create_intent(
        db, gateway, claims["userId"], request.amount, request.rideId, request.currency, request.metadata
    )
    return envelope(result)


@router.get("/history")
async def payment_history(role: str | None = None, limit: int = Query(10, ge=1, le=100),
                          claims: dict = Depends(authenticate), db=Depends(get_db)):
    payments = payment_service.payment_history(db, claims["userId"], as_driver=role == "driver", limit=limit)
    return envelope({"payments": payments})


@router.get("/{payment_id}")
async def get_payment(payment_id: str, claims: dict = Depends(authenticate), db=Depends(get_db)):
    return envelope({"payment": payment_service.get_payment_for_user(db, payment_id, claims["userId"])})


@router.post("/{payment_id}/confirm")
async def confirm_payment(payment_id: str, request: ConfirmPaymentRequest | None = None,
                          claims: dict = Depends(authenticate), db=Depends(get_db)):
    transaction_id = request.transactionId if request else None
    payment = payment_service.confirm_payment(db, payment_id, transaction_id)
    return envelope({"payment": payment}, "Payment confirmed successfully")


@router.post("/{payment_id}/refund")
async def refund_payment(payment_id: str, request: RefundRequest | None = None,
                         claims: dict = Depends(authenticate), db=Depends(get_db), gateway=Depends(get_payments)):
    request = request or RefundRequest()
    payment = payment_service.refund_payment(db, gateway, payment_id, request.amount, request.reason)
    return envelope({"payment": payment}, "Refund processed successfully")
