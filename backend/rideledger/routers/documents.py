"""
Documents API router: scan a receipt photo into a draft, save reviewed
documents, list saved documents.
"""

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from rideledger.dependencies import get_document_service
from rideledger.exceptions import InvalidUpload, RecognitionError, StorageError
from rideledger.models.document import DocumentCreate, ExpenseCategory, ScanResult
from rideledger.services.documents import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])
logger = logging.getLogger(__name__)


@router.post("/scan", response_model=ScanResult)
async def scan_document(
    file: UploadFile = File(...),
    user_id: str = Form(...),
    service: DocumentService = Depends(get_document_service),
):
    """
    Upload a receipt photo and get back a pre-filled draft.

    This endpoint:
    1. Validates the image (JPG, PNG, WEBP, max 10MB)
    2. Stores it in Supabase Storage with a content-addressed path
    3. Runs OCR and parsing
    4. Returns the draft for the user to review; nothing is saved yet
    """
    file_data = await file.read()

    try:
        return service.scan(
            user_id=user_id,
            filename=file.filename or "document",
            file_data=file_data,
            mime_type=file.content_type,
        )
    except InvalidUpload as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecognitionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_document(
    document: DocumentCreate,
    user_id: str = Query(..., description="User ID"),
    service: DocumentService = Depends(get_document_service),
):
    """Save a document after the user reviewed the OCR draft."""
    try:
        return service.save_document(user_id, document)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("")
async def list_documents(
    user_id: str = Query(..., description="User ID"),
    category: Optional[ExpenseCategory] = Query(None, description="Filter by category"),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    service: DocumentService = Depends(get_document_service),
):
    """List a user's documents, newest first."""
    try:
        documents = service.list_documents(user_id, category, start_date, end_date)
    except Exception as e:
        logger.error("Error listing documents", extra={"user_id": user_id, "error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list documents")

    return {"documents": documents, "total": len(documents)}
