"""
API tests with FastAPI's TestClient. Services are replaced through
dependency overrides so no Supabase, Tesseract or ANAF access happens.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from rideledger.dependencies import get_company_lookup, get_document_service, get_vat_service
from rideledger.exceptions import CompanyLookupError, InvalidTaxId, RecognitionError
from rideledger.main import app
from rideledger.models.company import CompanyRecord
from rideledger.services.documents import DocumentService
from rideledger.services.storage import StoredImage
from rideledger.services.vat import STATUTORY_VAT_RATES, VatRateService


@pytest.fixture
def vat_service():
    return VatRateService(fetch_rates=lambda: list(STATUTORY_VAT_RATES))


@pytest.fixture
def ocr():
    ocr = Mock()
    ocr.recognize_text.return_value = "SC PETROM SA CIF: RO 123 456 7\nTOTAL: 150,00 LEI TVA 19% 23,95"
    return ocr


@pytest.fixture
def supabase():
    return Mock()


@pytest.fixture
def lookup():
    return Mock()


@pytest.fixture
def client(vat_service, ocr, supabase, lookup):
    storage = Mock()
    storage.store_receipt_image.return_value = StoredImage(file_hash='ab12', file_path='user-1/ab/ab12/bon.png')
    storage.preview_url.return_value = None
    documents = DocumentService(vat_service=vat_service, supabase=supabase, storage=storage, ocr=ocr)

    app.dependency_overrides[get_vat_service] = lambda: vat_service
    app.dependency_overrides[get_document_service] = lambda: documents
    app.dependency_overrides[get_company_lookup] = lambda: lookup
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestVatEndpoints:

    def test_active_rate(self, client):
        response = client.get("/vat/active", params={"date": "2020-05-05"})

        assert response.status_code == 200
        assert Decimal(str(response.json()["rate"])) == Decimal('19')

    def test_active_rate_after_change(self, client):
        response = client.get("/vat/active", params={"date": "2025-08-01"})
        assert Decimal(str(response.json()["rate"])) == Decimal('21')

    def test_default_rate(self, client):
        assert Decimal(str(client.get("/vat/default").json()["rate"])) == Decimal('21')

    def test_options(self, client):
        options = client.get("/vat/options").json()
        values = [Decimal(str(option["value"])) for option in options]

        assert values == [Decimal('0'), Decimal('5'), Decimal('9'), Decimal('19'), Decimal('21')]

    def test_validate(self, client):
        assert client.get("/vat/validate", params={"rate": 5}).json()["valid"] is True
        assert client.get("/vat/validate", params={"rate": 7}).json()["valid"] is False

    def test_calculate(self, client):
        body = client.get("/vat/calculate", params={"net_amount": "100", "rate": "19"}).json()

        assert Decimal(str(body["vat_amount"])) == Decimal('19.00')
        assert Decimal(str(body["total_amount"])) == Decimal('119.00')
        assert set(body) == {"vat_amount", "total_amount"}

    def test_net_from_total(self, client):
        body = client.get("/vat/net-from-total", params={"total_amount": "121", "rate": "21"}).json()

        assert Decimal(str(body["net_amount"])) == Decimal('100.00')
        assert Decimal(str(body["vat_amount"])) == Decimal('21.00')
        assert set(body) == {"net_amount", "vat_amount"}

    def test_negative_amount_rejected(self, client):
        response = client.get("/vat/calculate", params={"net_amount": "-1"})
        assert response.status_code == 422


class TestDocumentEndpoints:

    def test_scan(self, client, png_bytes):
        response = client.post(
            "/documents/scan",
            files={"file": ("bon.png", png_bytes, "image/png")},
            data={"user_id": "user-1"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["file_path"] == "user-1/ab/ab12/bon.png"
        assert body["receipt"]["supplier_name"] == "PETROM"
        assert body["receipt"]["category"] == "fuel"
        assert Decimal(str(body["receipt"]["total_amount"])) == Decimal('150.00')

    def test_scan_rejects_pdf(self, client):
        response = client.post(
            "/documents/scan",
            files={"file": ("bon.pdf", b"%PDF-1.4", "application/pdf")},
            data={"user_id": "user-1"},
        )
        assert response.status_code == 400

    def test_scan_recognition_failure(self, client, ocr, png_bytes):
        ocr.recognize_text.side_effect = RecognitionError("Image could not be read")

        response = client.post(
            "/documents/scan",
            files={"file": ("bon.png", png_bytes, "image/png")},
            data={"user_id": "user-1"},
        )
        assert response.status_code == 422

    def test_create_document(self, client, supabase):
        supabase.table.return_value.insert.return_value.execute.return_value.data = [{"id": "doc-1"}]

        response = client.post("/documents", params={"user_id": "user-1"}, json={
            "document_number": "0042",
            "date": "2025-08-12",
            "supplier_name": "PETROM",
            "supplier_cif": "RO1234567",
            "net_amount": "126.05",
            "vat_amount": "23.95",
            "total_amount": "150.00",
            "vat_rate": "19",
            "category": "fuel",
            "file_path": "user-1/ab/ab12/bon.png",
        })

        assert response.status_code == 201
        assert response.json() == {"id": "doc-1"}

    def test_list_documents(self, client, supabase):
        query = supabase.table.return_value.select.return_value.eq.return_value
        query.order.return_value.execute.return_value.data = [{"id": "doc-1"}]

        response = client.get("/documents", params={"user_id": "user-1"})

        assert response.json() == {"documents": [{"id": "doc-1"}], "total": 1}


class TestCompanyEndpoints:

    def test_found(self, client, lookup):
        lookup.fetch_company.return_value = CompanyRecord(cif="RO1234567", name="PETROM SA")

        response = client.get("/companies/RO1234567")

        assert response.status_code == 200
        assert response.json()["name"] == "PETROM SA"

    def test_not_found(self, client, lookup):
        lookup.fetch_company.return_value = None
        assert client.get("/companies/RO1234567").status_code == 404

    def test_invalid(self, client, lookup):
        lookup.fetch_company.side_effect = InvalidTaxId("Invalid CIF: X")
        assert client.get("/companies/X").status_code == 400

    def test_registry_down(self, client, lookup):
        lookup.fetch_company.side_effect = CompanyLookupError("ANAF registry unavailable")
        assert client.get("/companies/RO1234567").status_code == 502
