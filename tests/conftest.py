import os
import tempfile

os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="taxi-uploads-"))

import pytest
from fastapi.testclient import TestClient

from fake_firestore import FakeFirestore
from main import app
from rate_limit import limiter
from services import auth_service, user_service


class FakeGateway:
    """Records payment calls instead of reaching Stripe."""

    def __init__(self):
        self.intents = []
        self.refunds = []

    def create_intent(self, amount, currency, metadata):
        intent = {"id": f"pi_test_{len(self.intents) + 1}", "client_secret": f"secret_{len(self.intents) + 1}"}
        self.intents.append({"amount": amount, "currency": currency, "metadata": metadata, **intent})
        return intent

    def refund(self, payment_intent_id, amount=None):
        self.refunds.append({"payment_intent": payment_intent_id, "amount": amount})
        return {"id": f"re_test_{len(self.refunds)}", "status": "succeeded"}

    def construct_event(self, payload, signature):
        raise AssertionError("webhook tests install a real PaymentGateway")


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(db, gateway):
    app.state.db = db
    app.state.payments = gateway
    limiter.reset()
    limiter.enabled = False
    with TestClient(app) as client:
        yield client
    limiter.enabled = True
    app.state.db = None
    app.state.payments = None


@pytest.fixture
def make_user(db):
    def factory(role="passenger", **fields):
        data = {
            "name": fields.pop("name", f"Test {role}"),
            "phoneNumber": fields.pop("phoneNumber", f"+1555{len(db._documents('users')):07d}"),
            "email": fields.pop("email", None),
            "role": role,
            **fields,
        }
        return user_service.create_user(db, data)
    return factory


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers
