from decimal import Decimal, ROUND_HALF_UP

BASE_FARE = Decimal("2.50")
PER_KM_RATES = {
    "premium": Decimal("2.00"),
    "shared": Decimal("0.80"),
}
DEFAULT_PER_KM_RATE = Decimal("1.20")
PER_MINUTE_RATE = Decimal("0.15")
SURGE_FACTOR = Decimal("1.0")
TAX_RATE = Decimal("0.08")
SERVICE_FEE = Decimal("1.00")

_CENTS = Decimal("0.01")


def _money(value: Decimal) -> float:
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def per_km_rate(ride_type: str) -> Decimal:
    return PER_KM_RATES.get(ride_type, DEFAULT_PER_KM_RATE)


def estimate_fare(distance: float, duration: float, ride_type: str = "standard") -> dict:
    """Fare breakdown for a trip of `distance` km lasting `duration` minutes."""
    distance = Decimal(str(distance))
    duration = Decimal(str(duration))

    distance_fare = distance * per_km_rate(ride_type)
    time_fare = duration * PER_MINUTE_RATE
    subtotal = BASE_FARE + distance_fare + time_fare

    # Surge pricing is not dynamic yet
    fare_before_tax = subtotal * SURGE_FACTOR
    tax = fare_before_tax * TAX_RATE
    total_fare = fare_before_tax + tax + SERVICE_FEE

    return {
        "baseFare": _money(BASE_FARE),
        "distanceFare": _money(distance_fare),
        "timeFare": _money(time_fare),
        "subtotal": _money(subtotal),
        "surgeFactor": float(SURGE_FACTOR),
        "fareBeforeTax": _money(fare_before_tax),
        "tax": _money(tax),
        "serviceFee": _money(SERVICE_FEE),
        "totalFare": _money(total_fare),
    }
