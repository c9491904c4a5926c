from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

RideType = Literal["standard", "shared", "premium", "van"]


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class VehicleInfo(BaseModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int
    color: str = Field(min_length=1)
    licensePlate: str = Field(min_length=1)
    capacity: int = Field(ge=1, le=8)

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int) -> int:
        if value < 2000 or value > date.today().year + 1:
            raise ValueError("Valid vehicle year is required")
        return value


# --- Auth ---

class RegisterRequest(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    firstName: str = Field(min_length=2, max_length=50)
    lastName: str = Field(min_length=2, max_length=50)
    phoneNumber: str | None = None
    password: str | None = Field(default=None, min_length=6)
    role: Literal["passenger", "driver"] = "passenger"


class LoginRequest(BaseModel):
    idToken: str | None = None
    email: str | None = None
    password: str | None = None


# --- Users and drivers ---

class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class OnlineStatusUpdate(BaseModel):
    isOnline: bool


class DeactivateRequest(BaseModel):
    reason: str | None = None


class DriverRegistration(BaseModel):
    name: str = Field(min_length=1)
    phoneNumber: str = Field(min_length=1)
    vehicleInfo: dict[str, Any] | None = None


# --- Rides ---

class RideRequest(BaseModel):
    passengerName: str = Field(min_length=1)
    passengerPhone: str = Field(min_length=1)
    pickupLocation: Location
    destination: Location
    pickupAddress: str = ""
    destinationAddress: str = ""
    rideType: RideType
    paymentMethod: Literal["cash", "card", "wallet"] | None = None
    passengers: int = Field(default=1, ge=1, le=8)
    notes: str = ""
    scheduledTime: datetime | None = None
    fare: float | None = None
    estimatedDistance: float | None = None
    estimatedDuration: float | None = None


class AcceptRideRequest(BaseModel):
    driverName: str = Field(min_length=1)
    driverPhone: str = Field(min_length=1)
    vehicleInfo: dict[str, Any] | None = None


class CompleteRideRequest(BaseModel):
    actualDistance: float | None = None
    actualDuration: float | None = None
    fare: float | None = None


class CancelRideRequest(BaseModel):
    reason: str | None = None


class RateRideRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: str | None = Field(default=None, max_length=500)


class JoinSharedRideRequest(BaseModel):
    passengerName: str = Field(min_length=1)
    passengerPhone: str = Field(min_length=1)
    pickupLocation: Location | None = None
    destination: Location | None = None


class BookSeatRequest(BaseModel):
    passengerName: str = Field(min_length=1)
    passengerPhone: str = Field(min_length=1)
    seatsBooked: int = Field(default=1, ge=1)


# --- Vehicles ---

class AvailabilityUpdate(BaseModel):
    isAvailable: bool | None = None


# --- Rates ---

class RatesUpdate(BaseModel):
    ratePerKm: float | str | None = None
    rateLKRPerKm: float | str | None = None
    exchangeRate: float | str | None = None


# --- Payments ---

class FareRequest(BaseModel):
    distance: float = Field(ge=0.1)
    duration: float = Field(ge=1)
    rideType: RideType = "standard"


class PaymentIntentRequest(BaseModel):
    amount: float = Field(ge=0.01)
    currency: Literal["usd", "eur", "gbp"] = "usd"
    rideId: str = Field(min_length=1)
    metadata: dict[str, str] = {}


class ConfirmPaymentRequest(BaseModel):
    transactionId: str | None = None


class RefundRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    reason: str | None = None
