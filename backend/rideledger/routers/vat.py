"""
VAT rates API router: active rate, form options, validation and calculators.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from rideledger.dependencies import get_vat_service
from rideledger.models.vat import VatInTotal, VatOnNet, VatRateOption
from rideledger.services.vat import VatRateService

router = APIRouter(prefix="/vat", tags=["vat"])


@router.get("/active")
async def active_rate(
    on: Optional[date] = Query(None, alias="date", description="Date (YYYY-MM-DD), default today"),
    vat: VatRateService = Depends(get_vat_service),
):
    """Rate legally in force on a date."""
    return {"date": on.isoformat() if on else None, "rate": vat.active_rate(on)}


@router.get("/default")
async def default_rate(vat: VatRateService = Depends(get_vat_service)):
    return {"rate": vat.default_rate()}


@router.get("/options", response_model=List[VatRateOption])
async def rate_options(vat: VatRateService = Depends(get_vat_service)):
    """Options for VAT dropdowns in document forms."""
    return vat.rate_options()


@router.get("/validate")
async def validate_rate(
    rate: Decimal = Query(..., ge=0, le=100),
    on: Optional[date] = Query(None, alias="date"),
    vat: VatRateService = Depends(get_vat_service),
):
    return {"rate": rate, "valid": vat.is_valid_rate(rate, on)}


@router.get("/calculate", response_model=VatOnNet)
async def calculate_vat(
    net_amount: Decimal = Query(..., ge=0),
    rate: Optional[Decimal] = Query(None, ge=0, le=100),
    vat: VatRateService = Depends(get_vat_service),
):
    """VAT and total for a net amount; default rate when none given."""
    return vat.calculate_vat(net_amount, rate)


@router.get("/net-from-total", response_model=VatInTotal)
async def net_from_total(
    total_amount: Decimal = Query(..., ge=0),
    rate: Optional[Decimal] = Query(None, ge=0, le=100),
    vat: VatRateService = Depends(get_vat_service),
):
    """Net and VAT contained in a VAT-inclusive total."""
    return vat.calculate_net_from_total(total_amount, rate)
