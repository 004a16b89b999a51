"""
Company lookup API router (ANAF registry by CIF).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from rideledger.dependencies import get_company_lookup
from rideledger.exceptions import CompanyLookupError, InvalidTaxId
from rideledger.models.company import CompanyRecord
from rideledger.services.anaf import CompanyLookupService

router = APIRouter(prefix="/companies", tags=["companies"])
logger = logging.getLogger(__name__)


@router.get("/{tax_id}", response_model=CompanyRecord)
async def lookup_company(
    tax_id: str,
    lookup: CompanyLookupService = Depends(get_company_lookup),
):
    """
    Fetch company details for a CIF to pre-fill supplier or business forms.
    """
    try:
        company = lookup.fetch_company(tax_id)
    except InvalidTaxId as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CompanyLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if company is None:
        raise HTTPException(status_code=404, detail=f"Company {tax_id} not found in ANAF")

    return company
