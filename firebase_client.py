import logging
from contextlib import asynccontextmanager

import firebase_admin
from fastapi import FastAPI
from firebase_admin import credentials, firestore

from config import settings
from services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    firebase_app = None
    if getattr(app.state, "db", None) is None:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
        firebase_app = firebase_admin.initialize_app(cred, {
            'databaseURL': settings.DATABASE_URL
        })
        app.state.db = firestore.client(app=firebase_app, database_id=settings.FIRESTORE_DATABASE_ID)
        logger.info("Firebase Admin SDK initialized successfully.")
    if getattr(app.state, "payments", None) is None:
        app.state.payments = PaymentGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)

    yield

    # --- Shutdown ---
    if firebase_app is not None:
        try:
            logger.info("Closing Firestore client...")
            app.state.db.close()
            firebase_admin.delete_app(firebase_app)
            app.state.db = None
            logger.info("Firebase Admin SDK app deleted successfully.")
        except Exception as e:
            logger.error(f"Error deleting Firebase Admin SDK app: {e}")
