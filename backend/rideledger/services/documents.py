"""
Document capture service: photo -> OCR -> parsed draft, and saving the
corrected draft to the Supabase ``documents`` table.

Scanning never writes a documents row; a draft is only persisted after the
user has reviewed it.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from rideledger.config import settings
from rideledger.exceptions import InvalidUpload, StorageError
from rideledger.models.document import DocumentCreate, ExpenseCategory, ScanResult
from rideledger.services.ocr import OCRService
from rideledger.services.parser import ReceiptParser
from rideledger.services.storage import StorageService
from rideledger.services.vat import VatRateService
from rideledger.utils.supabase import get_supabase_client

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]


def _decimal_to_str(value) -> Optional[str]:
    """Convert Decimal to string for database storage."""
    return str(value) if value is not None else None


class DocumentService:
    """Orchestrates OCR, parsing and persistence of expense documents."""

    def __init__(
        self,
        vat_service: VatRateService,
        supabase=None,
        storage: Optional[StorageService] = None,
        ocr: Optional[OCRService] = None,
    ):
        self.vat_service = vat_service
        self.supabase = supabase or get_supabase_client()
        self.storage = storage or StorageService(supabase=self.supabase)
        self.ocr = ocr or OCRService()

    def validate_upload(self, file_data: bytes, mime_type: Optional[str]) -> None:
        """
        Reject non-images and files over the size limit.

        Raises:
            InvalidUpload: with a message suitable for the user
        """
        if mime_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidUpload(f"Invalid file type: {mime_type}. Allowed: JPG, PNG, WEBP")

        file_size_mb = len(file_data) / (1024 * 1024)
        if file_size_mb > settings.MAX_UPLOAD_MB:
            raise InvalidUpload(
                f"File too large: {file_size_mb:.2f}MB. Maximum: {settings.MAX_UPLOAD_MB}MB"
            )

        if not file_data:
            raise InvalidUpload("Empty file")

    def scan(
        self,
        user_id: str,
        filename: str,
        file_data: bytes,
        mime_type: Optional[str],
    ) -> ScanResult:
        """
        Store a receipt photo and return the parsed draft for review.

        Raises:
            InvalidUpload: wrong type or too large
            StorageError: the image could not be stored
            RecognitionError: OCR failed; nothing is parsed
        """
        self.validate_upload(file_data, mime_type)

        stored = self.storage.store_receipt_image(
            user_id=user_id,
            filename=filename or "document",
            image_data=file_data,
            mime_type=mime_type,
        )

        logger.info("Document image stored", extra={
            "user_id": user_id,
            "file_hash": stored.file_hash,
            "file_path": stored.file_path,
        })

        raw_text = self.ocr.recognize_text(file_data)

        # Same default the VAT forms use, so drafts and forms agree
        parser = ReceiptParser(default_vat_rate=self.vat_service.default_rate())
        receipt = parser.parse(raw_text)

        logger.info("Receipt parsed", extra={
            "user_id": user_id,
            "file_hash": stored.file_hash,
            "confidence": receipt.confidence_score,
            "category": receipt.category.value,
            "needs_review": receipt.needs_review,
        })

        return ScanResult(
            receipt=receipt,
            file_path=stored.file_path,
            file_hash=stored.file_hash,
            file_url=self.storage.preview_url(stored.file_path),
        )

    def save_document(self, user_id: str, document: DocumentCreate) -> Dict[str, Any]:
        """
        Persist a reviewed document.

        Raises:
            StorageError: the insert failed or returned no row
        """
        row = {
            "user_id": user_id,
            "type": document.type.value,
            "document_number": document.document_number,
            "date": document.date.isoformat(),
            "supplier_name": document.supplier_name,
            "supplier_cif": document.supplier_cif,
            "supplier_address": document.supplier_address,
            "net_amount": _decimal_to_str(document.net_amount),
            "vat_amount": _decimal_to_str(document.vat_amount),
            "total_amount": _decimal_to_str(document.total_amount),
            "vat_rate": _decimal_to_str(document.vat_rate),
            "currency": document.currency.value,
            "category": document.category.value,
            "description": document.description,
            "file_path": document.file_path,
            "vehicle_id": document.vehicle_id,
            "verified": document.verified,
            "reconciled": False,
            "ocr_confidence": document.ocr_confidence,
            "ocr_extracted_text": document.ocr_extracted_text,
            "ocr_extracted_supplier": document.ocr_extracted_supplier,
            "ocr_extracted_cif": document.ocr_extracted_cif,
            "ocr_extracted_amount": _decimal_to_str(document.ocr_extracted_amount),
            "ocr_extracted_date": document.ocr_extracted_date.isoformat()
            if document.ocr_extracted_date else None,
        }

        if not self.vat_service.is_valid_rate(document.vat_rate, document.date):
            # Saved anyway; the accountant sees it flagged in the logs
            logger.warning("VAT rate not in force on document date", extra={
                "user_id": user_id,
                "vat_rate": str(document.vat_rate),
                "date": document.date.isoformat(),
            })

        try:
            response = self.supabase.table('documents').insert(row).execute()
        except Exception as e:
            logger.error("Error saving document", extra={
                "user_id": user_id,
                "error": str(e)
            }, exc_info=True)
            raise StorageError("Failed to save document") from e

        if not response.data:
            raise StorageError("Failed to save document")

        saved = response.data[0]
        logger.info("Document saved", extra={"user_id": user_id, "document_id": saved.get('id')})
        return saved

    def list_documents(
        self,
        user_id: str,
        category: Optional[ExpenseCategory] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """List a user's documents, newest first."""
        query = self.supabase.table('documents').select('*').eq('user_id', user_id)

        if category:
            query = query.eq('category', category.value)
        if start_date:
            query = query.gte('date', start_date.isoformat())
        if end_date:
            query = query.lte('date', end_date.isoformat())

        response = query.order('created_at', desc=True).execute()
        return response.data or []
