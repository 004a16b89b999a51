"""
Pydantic models for scanned receipts and saved accounting documents.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ExpenseCategory(str, Enum):
    """Closed set of deductible expense categories for a rideshare driver."""
    FUEL = "fuel"
    REPAIRS = "repairs"
    INSURANCE = "insurance"
    CAR_WASH = "car-wash"
    SERVICE = "service"
    CONSUMABLES = "consumables"
    PARKING = "parking"
    FINES = "fines"
    COMMISSIONS = "commissions"
    OTHER = "other"


class DocumentType(str, Enum):
    RECEIPT = "receipt"
    INVOICE = "invoice"
    EXPENSE = "expense"


class Currency(str, Enum):
    RON = "RON"
    EUR = "EUR"
    USD = "USD"


class ParsedReceipt(BaseModel):
    """
    Draft extracted from OCR text.

    Always shown to the user for correction; never persisted as-is.
    """
    supplier_name: str = ""
    supplier_tax_id: str = ""
    document_number: str = ""
    date: Optional[dt.date] = None
    total_amount: Optional[Decimal] = None
    net_amount: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    vat_rate_percent: Optional[Decimal] = None
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = ""
    confidence_score: int = Field(default=0, ge=0, le=100)
    raw_text: str = ""
    needs_review: bool = True


class ScanResult(BaseModel):
    """Response of the scan endpoint: the draft plus where the image was stored."""
    receipt: ParsedReceipt
    file_path: str
    file_hash: str
    file_url: Optional[str] = None


class DocumentCreate(BaseModel):
    """Corrected draft submitted by the user for persistence."""
    type: DocumentType = DocumentType.RECEIPT
    document_number: str
    date: dt.date
    supplier_name: str
    supplier_cif: str = ""
    supplier_address: Optional[str] = None
    net_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    vat_rate: Decimal
    currency: Currency = Currency.RON
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = ""
    file_path: str
    vehicle_id: Optional[str] = None
    verified: bool = True

    # OCR audit trail, copied from the draft the user started from
    ocr_confidence: Optional[int] = None
    ocr_extracted_text: Optional[str] = None
    ocr_extracted_supplier: Optional[str] = None
    ocr_extracted_cif: Optional[str] = None
    ocr_extracted_amount: Optional[Decimal] = None
    ocr_extracted_date: Optional[dt.date] = None
