"""
FastAPI dependency providers.

Services holding process-wide state (the VAT cache) are built once and shared;
tests override these with ``app.dependency_overrides``.
"""

from functools import lru_cache

from rideledger.services.anaf import CompanyLookupService
from rideledger.services.documents import DocumentService
from rideledger.services.vat import VatRateService


@lru_cache()
def get_vat_service() -> VatRateService:
    return VatRateService.from_supabase()


def get_document_service() -> DocumentService:
    return DocumentService(vat_service=get_vat_service())


@lru_cache()
def get_company_lookup() -> CompanyLookupService:
    return CompanyLookupService()
