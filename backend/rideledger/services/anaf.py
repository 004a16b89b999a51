"""
ANAF registry lookup: company data by CIF.

Queries the public ANAF VAT-payer web service. The request body is a list of
``{"cui": <int>, "data": "YYYY-MM-DD"}`` objects; the response lists matches
under ``found`` and misses under ``notfound`` (``notFound`` in newer APIs).
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import requests

from rideledger.config import settings
from rideledger.exceptions import CompanyLookupError, InvalidTaxId
from rideledger.models.company import CompanyRecord
from rideledger.utils.cif import cif_as_int, is_valid_cif, normalize_cif

logger = logging.getLogger(__name__)


class CompanyLookupService:
    """Fetch company records from ANAF by CIF."""

    def __init__(self, url: str = None, timeout: float = None, session: requests.Session = None):
        self.url = url or settings.ANAF_URL
        self.timeout = timeout or settings.ANAF_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def fetch_company(self, tax_id: str, on: Optional[date] = None) -> Optional[CompanyRecord]:
        """
        Look up a company.

        Args:
            tax_id: CIF with or without the RO prefix
            on: Date the registry state is requested for (today by default)

        Returns:
            CompanyRecord, or None when ANAF does not know the CIF

        Raises:
            InvalidTaxId: CIF is not 2-10 digits
            CompanyLookupError: ANAF unreachable or answered unexpectedly
        """
        if not is_valid_cif(tax_id):
            raise InvalidTaxId(f"Invalid CIF: {tax_id}")

        check_date = (on or date.today()).isoformat()
        body = [{"cui": cif_as_int(tax_id), "data": check_date}]

        logger.info("ANAF lookup", extra={"cif": normalize_cif(tax_id), "date": check_date})

        try:
            response = self.session.post(
                self.url,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error("ANAF request failed", extra={"error": str(e)}, exc_info=True)
            raise CompanyLookupError("ANAF registry unavailable") from e
        except ValueError as e:
            raise CompanyLookupError("ANAF returned a non-JSON response") from e

        found = data.get('found') if isinstance(data, dict) else None
        if found:
            return _to_company_record(found[0], tax_id)

        not_found = (data.get('notfound') or data.get('notFound')) if isinstance(data, dict) else None
        if not_found:
            logger.info("Company not found in ANAF", extra={"cif": normalize_cif(tax_id)})
            return None

        raise CompanyLookupError("Unexpected ANAF response")


def _to_company_record(entry: Dict[str, Any], tax_id: str) -> CompanyRecord:
    """Map both the flat (v7) and the grouped (v8) ANAF payloads."""
    general = entry.get('date_generale', entry)
    vat_scope = entry.get('inregistrare_scop_Tva', entry)
    vat_collection = entry.get('inregistrare_RTVAI', entry)
    inactive = entry.get('stare_inactiv', entry)

    cui = general.get('cui') or tax_id

    return CompanyRecord(
        cif=normalize_cif(str(cui)),
        name=general.get('denumire') or '',
        address=general.get('adresa') or '',
        registration_number=general.get('nrRegCom') or '',
        postal_code=str(general.get('codPostal') or ''),
        phone=str(general.get('telefon') or ''),
        vat_payer=bool(vat_scope.get('scpTVA')),
        vat_on_collection=bool(vat_collection.get('statusTvaIncasare', vat_collection.get('tvainc'))),
        is_active=not bool(inactive.get('statusInactivi')),
        e_invoice_registered=bool(general.get('statusRO_e_Factura')),
        registration_date=general.get('data_inregistrare') or None,
        caen_code=str(general.get('cod_CAEN') or ''),
    )
