"""
Test suite for the document capture service.

Tests cover:
- Upload validation (type, size)
- Scan pipeline: store, OCR, parse with the resolver's default rate
- Failures at each step surfacing as domain errors
- Saving and listing documents in the documents table
"""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from rideledger.exceptions import InvalidUpload, RecognitionError, StorageError
from rideledger.models.document import DocumentCreate, ExpenseCategory
from rideledger.models.vat import VatRate
from rideledger.services.documents import DocumentService
from rideledger.services.storage import StoredImage
from rideledger.services.vat import VatRateService


RECEIPT_TEXT = "SC PETROM SA CIF: RO 123 456 7\nData: 12.08.2025\nTOTAL: 150,00 LEI TVA 19% 23,95"


def make_vat_service(default=Decimal('21')):
    rates = [VatRate(id='1', rate_percentage=default, effective_from=date(2025, 8, 1), is_default=True)]
    return VatRateService(fetch_rates=lambda: rates)


@pytest.fixture
def storage():
    storage = Mock()
    storage.store_receipt_image.return_value = StoredImage(file_hash='ab12', file_path='user-1/ab/ab12/bon.png')
    storage.preview_url.return_value = 'https://storage.example/signed'
    return storage


@pytest.fixture
def ocr():
    ocr = Mock()
    ocr.recognize_text.return_value = RECEIPT_TEXT
    return ocr


@pytest.fixture
def supabase():
    return Mock()


@pytest.fixture
def service(supabase, storage, ocr):
    return DocumentService(vat_service=make_vat_service(), supabase=supabase, storage=storage, ocr=ocr)


def make_document(**overrides):
    fields = dict(
        document_number='0042',
        date=date(2025, 8, 12),
        supplier_name='PETROM',
        supplier_cif='RO1234567',
        net_amount=Decimal('126.05'),
        vat_amount=Decimal('23.95'),
        total_amount=Decimal('150.00'),
        vat_rate=Decimal('19'),
        category=ExpenseCategory.FUEL,
        description='Fuel PETROM',
        file_path='user-1/ab/ab12/bon.png',
        ocr_confidence=80,
    )
    fields.update(overrides)
    return DocumentCreate(**fields)


class TestValidateUpload:

    def test_rejects_pdf(self, service):
        with pytest.raises(InvalidUpload):
            service.validate_upload(b'%PDF-1.4', 'application/pdf')

    def test_rejects_oversized(self, service):
        with pytest.raises(InvalidUpload):
            service.validate_upload(b'x' * (10 * 1024 * 1024 + 1), 'image/jpeg')

    def test_rejects_empty(self, service):
        with pytest.raises(InvalidUpload):
            service.validate_upload(b'', 'image/png')

    def test_accepts_webp(self, service):
        service.validate_upload(b'RIFF....WEBP', 'image/webp')


class TestScan:

    def test_returns_parsed_draft(self, service, storage, ocr):
        result = service.scan('user-1', 'bon.png', b'image-bytes', 'image/png')

        assert result.file_path == 'user-1/ab/ab12/bon.png'
        assert result.file_hash == 'ab12'
        assert result.file_url == 'https://storage.example/signed'
        assert result.receipt.supplier_name == 'PETROM'
        assert result.receipt.total_amount == Decimal('150.00')
        assert result.receipt.date == date(2025, 8, 12)
        ocr.recognize_text.assert_called_once_with(b'image-bytes')

    def test_never_writes_documents_row(self, service, supabase):
        service.scan('user-1', 'bon.png', b'image-bytes', 'image/png')
        supabase.table.assert_not_called()

    def test_parser_uses_resolver_default(self, supabase, storage, ocr):
        ocr.recognize_text.return_value = "TOTAL 119,00"
        service = DocumentService(
            vat_service=make_vat_service(Decimal('19')), supabase=supabase, storage=storage, ocr=ocr,
        )

        receipt = service.scan('user-1', 'bon.png', b'image-bytes', 'image/png').receipt

        assert receipt.vat_rate_percent == Decimal('19')
        assert receipt.net_amount == Decimal('100.00')

    def test_storage_failure(self, service, storage, ocr):
        storage.store_receipt_image.side_effect = StorageError("Failed to upload file to storage")

        with pytest.raises(StorageError):
            service.scan('user-1', 'bon.png', b'image-bytes', 'image/png')
        ocr.recognize_text.assert_not_called()

    def test_recognition_failure_propagates(self, service, ocr):
        ocr.recognize_text.side_effect = RecognitionError("Image could not be read")

        with pytest.raises(RecognitionError):
            service.scan('user-1', 'bon.png', b'image-bytes', 'image/png')

    def test_invalid_upload_not_stored(self, service, storage):
        with pytest.raises(InvalidUpload):
            service.scan('user-1', 'bon.pdf', b'%PDF', 'application/pdf')
        storage.store_receipt_image.assert_not_called()


class TestSaveDocument:

    def test_inserts_row(self, service, supabase):
        supabase.table.return_value.insert.return_value.execute.return_value.data = [{'id': 'doc-1'}]

        saved = service.save_document('user-1', make_document())

        assert saved == {'id': 'doc-1'}
        supabase.table.assert_called_with('documents')
        row = supabase.table.return_value.insert.call_args[0][0]
        assert row['user_id'] == 'user-1'
        assert row['date'] == '2025-08-12'
        assert row['total_amount'] == '150.00'
        assert row['category'] == 'fuel'
        assert row['reconciled'] is False

    def test_out_of_window_rate_still_saved(self, service, supabase):
        supabase.table.return_value.insert.return_value.execute.return_value.data = [{'id': 'doc-2'}]

        saved = service.save_document('user-1', make_document(vat_rate=Decimal('24')))

        assert saved['id'] == 'doc-2'

    def test_insert_error(self, service, supabase):
        supabase.table.return_value.insert.return_value.execute.side_effect = Exception("db down")

        with pytest.raises(StorageError):
            service.save_document('user-1', make_document())

    def test_empty_insert_response(self, service, supabase):
        supabase.table.return_value.insert.return_value.execute.return_value.data = []

        with pytest.raises(StorageError):
            service.save_document('user-1', make_document())


class TestListDocuments:

    def test_filters_applied(self, service, supabase):
        query = supabase.table.return_value.select.return_value.eq.return_value
        query.eq.return_value = query
        query.gte.return_value = query
        query.lte.return_value = query
        query.order.return_value.execute.return_value.data = [{'id': 'doc-1'}]

        documents = service.list_documents(
            'user-1', ExpenseCategory.PARKING, date(2025, 1, 1), date(2025, 12, 31),
        )

        assert documents == [{'id': 'doc-1'}]
        query.eq.assert_called_with('category', 'parking')
        query.gte.assert_called_with('date', '2025-01-01')
        query.lte.assert_called_with('date', '2025-12-31')
        query.order.assert_called_with('created_at', desc=True)
