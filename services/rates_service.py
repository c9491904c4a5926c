import logging

from config import settings
from errors import BadRequestError
from services.store import SETTINGS, now

logger = logging.getLogger(__name__)

RATES_DOCUMENT = "rates"


def _positive_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _rates_ref(db):
    return db.collection(SETTINGS).document(RATES_DOCUMENT)


def get_rates(db) -> dict | None:
    snapshot = _rates_ref(db).get()
    return snapshot.to_dict() if snapshot.exists else None


def compute_rates(rate_per_km, rate_lkr_per_km=None, exchange_rate=None) -> dict:
    """
    Fill in whichever of the LKR rate and exchange rate is missing.

    The LKR rate falls back to the USD rate converted at the exchange rate
    (or the configured default); the exchange rate falls back to the ratio
    of the two rates when only the LKR rate was given.
    """
    usd = _positive_number(rate_per_km)
    if usd is None:
        raise BadRequestError("Invalid ratePerKm")
    lkr = _positive_number(rate_lkr_per_km)
    exchange = _positive_number(exchange_rate)

    if exchange is None:
        exchange = lkr / usd if lkr is not None else settings.DEFAULT_EXCHANGE_RATE
    if lkr is None:
        lkr = round(usd * exchange, 2)

    return {
        "ratePerKm": usd,
        "rateLKRPerKm": lkr,
        "exchangeRate": exchange,
        "updatedAt": now().isoformat(),
    }


def upsert_rates(db, rate_per_km, rate_lkr_per_km=None, exchange_rate=None) -> dict:
    rates = compute_rates(rate_per_km, rate_lkr_per_km, exchange_rate)
    _rates_ref(db).set(rates, merge=True)
    logger.info(f"Rates updated: {rates['ratePerKm']} USD/km")
    return rates


def delete_rates(db):
    _rates_ref(db).delete()
    logger.info("Rates removed")
