"""
Pydantic model for company data returned by the ANAF registry.
"""

from typing import Optional

from pydantic import BaseModel


class CompanyRecord(BaseModel):
    cif: str
    name: str
    address: str = ""
    registration_number: str = ""
    postal_code: str = ""
    phone: str = ""
    vat_payer: bool = False
    vat_on_collection: bool = False
    is_active: bool = True
    e_invoice_registered: bool = False
    registration_date: Optional[str] = None
    caen_code: str = ""
