"""
Pydantic models for VAT reference data.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class VatRate(BaseModel):
    """A VAT rate valid during [effective_from, effective_to)."""
    id: str
    rate_percentage: Decimal
    effective_from: dt.date
    effective_to: Optional[dt.date] = None
    is_default: bool = False
    description: Optional[str] = None

    def is_effective_on(self, on: dt.date) -> bool:
        if on < self.effective_from:
            return False
        return self.effective_to is None or on < self.effective_to


class VatRateOption(BaseModel):
    """Entry of the VAT rate dropdown in document forms."""
    value: Decimal
    label: str
    is_active: bool


class VatOnNet(BaseModel):
    """VAT added on top of a net amount."""
    vat_amount: Decimal
    total_amount: Decimal


class VatInTotal(BaseModel):
    """Net and VAT contained in a VAT-inclusive total."""
    net_amount: Decimal
    vat_amount: Decimal
