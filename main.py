import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from config import settings
from errors import register_exception_handlers
from firebase_client import lifespan
from rate_limit import limiter, rate_limit_exceeded_handler
from responses import envelope
from routes import (
    auth_routes,
    driver_routes,
    payment_routes,
    personal_ride_routes,
    private_ride_routes,
    rates_routes,
    review_routes,
    ride_routes,
    shared_ride_routes,
    user_routes,
    vehicle_routes,
)
from services.store import now

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Taxi Backend API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

register_exception_handlers(app)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# Health check endpoints
@app.get("/")
async def root():
    return envelope(
        {"version": "1.0.0", "timestamp": now().isoformat()},
        "Taxi Backend API is running",
    )


@app.get("/health")
async def health_check():
    return envelope({"status": "ok", "timestamp": now().isoformat()})


# Include routers
app.include_router(auth_routes.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(user_routes.router, prefix="/api/users", tags=["Users"])
app.include_router(driver_routes.router, prefix="/api/drivers", tags=["Drivers"])
app.include_router(ride_routes.router, prefix="/api/rides", tags=["Rides"])
app.include_router(shared_ride_routes.router, prefix="/api/shared-rides", tags=["Shared rides"])
app.include_router(vehicle_routes.router, prefix="/api/vehicles", tags=["Vehicles"])
app.include_router(private_ride_routes.router, prefix="/api/private-rides", tags=["Private rides"])
app.include_router(personal_ride_routes.router, prefix="/api/personal-rides", tags=["Personal rides"])
app.include_router(rates_routes.router, prefix="/api/rates", tags=["Rates"])
app.include_router(review_routes.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(payment_routes.router, prefix="/api/payments", tags=["Payments"])

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting on port {settings.PORT} ({settings.ENVIRONMENT})")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
