import logging

import stripe

from errors import BadRequestError

logger = logging.getLogger(__name__)


def to_cents(amount: float) -> int:
    return int(round(float(amount) * 100))


class PaymentGateway:
    """Stripe calls used by the payment endpoints."""

    def __init__(self, api_key: str, webhook_secret: str):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_intent(self, amount: float, currency: str, metadata: dict) -> dict:
        intent = stripe.PaymentIntent.create(
            api_key=self.api_key,
            amount=to_cents(amount),
            currency=currency,
            metadata=metadata,
        )
        logger.info(f"Payment intent {intent['id']} created for {amount} {currency}")
        return {"id": intent["id"], "client_secret": intent["client_secret"]}

    def refund(self, payment_intent_id: str, amount: float | None = None) -> dict:
        params = {"payment_intent": payment_intent_id, "reason": "requested_by_customer"}
        if amount:
            params["amount"] = to_cents(amount)
        refund = stripe.Refund.create(api_key=self.api_key, **params)
        logger.info(f"Refund {refund['id']} issued for {payment_intent_id}")
        return {"id": refund["id"], "status": refund.get("status")}

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        if not signature:
            raise BadRequestError("Webhook signature verification failed: missing stripe-signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Webhook signature verification failed: {str(e)}")
            raise BadRequestError(f"Webhook signature verification failed: {str(e)}")
        return {"type": event["type"], "object": event["data"]["object"]}
