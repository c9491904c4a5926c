from fastapi import APIRouter, Depends

from dependencies import get_db, require_admin
from models import RatesUpdate
from responses import envelope
from services import rates_service

router = APIRouter()


@router.get("")
async def get_rates(db=Depends(get_db)):
    return envelope({"rates": rates_service.get_rates(db)})


@router.put("")
async def upsert_rates(request: RatesUpdate, admin: dict = Depends(require_admin), db=Depends(get_db)):
    rates = rates_service.upsert_rates(db, request.ratePerKm, request.rateLKRPerKm, request.exchangeRate)
    return envelope({"rates": rates})


@router.delete("")
async def delete_rates(admin: dict = Depends(require_admin), db=Depends(get_db)):
    rates_service.delete_rates(db)
    return envelope(message="Rates removed")
