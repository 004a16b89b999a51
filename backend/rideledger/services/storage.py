"""
Receipt photo storage in a private Supabase Storage bucket.

Photos are stored under a content-addressed path, so scanning the same photo
twice overwrites a single object.
"""

import hashlib
import logging
import re
from pathlib import Path
from typing import NamedTuple, Optional

from rideledger.config import settings
from rideledger.exceptions import StorageError
from rideledger.utils.supabase import get_supabase_client

logger = logging.getLogger(__name__)


class StoredImage(NamedTuple):
    file_hash: str
    file_path: str


def receipt_image_path(user_id: str, file_hash: str, filename: str) -> str:
    """
    Bucket path for a receipt photo: {user_id}/{hash[:2]}/{hash}/{name}.

    The name keeps only ASCII letters, digits, "_", "-" and ".".
    """
    safe_name = re.sub(r'[^\w\-.]+', '_', Path(filename or '').name, flags=re.ASCII)
    return f"{user_id}/{file_hash[:2]}/{file_hash}/{safe_name or 'document'}"


class StorageService:
    """Stores receipt photos and hands out temporary links for the review screen."""

    def __init__(self, supabase=None, bucket_name: str = None):
        self.supabase = supabase or get_supabase_client()
        self.bucket_name = bucket_name or settings.DOCUMENT_BUCKET

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def store_receipt_image(
        self,
        user_id: str,
        filename: str,
        image_data: bytes,
        mime_type: str,
    ) -> StoredImage:
        """
        Upload a receipt photo, replacing an identical earlier upload.

        Raises:
            StorageError: the bucket rejected the upload
        """
        file_hash = hashlib.sha256(image_data).hexdigest()
        file_path = receipt_image_path(user_id, file_hash, filename)

        try:
            self._bucket().upload(
                path=file_path,
                file=image_data,
                file_options={"content-type": mime_type, "upsert": "true"},
            )
        except Exception as e:
            logger.error("Receipt photo upload failed", extra={
                "user_id": user_id,
                "file_path": file_path,
                "error": str(e)
            }, exc_info=True)
            raise StorageError("Failed to upload file to storage") from e

        logger.debug("Receipt photo stored", extra={
            "file_path": file_path,
            "size_bytes": len(image_data),
        })
        return StoredImage(file_hash=file_hash, file_path=file_path)

    def preview_url(self, file_path: str, expires_in: int = 3600) -> Optional[str]:
        """Signed link to a stored photo, or None when Supabase cannot issue one."""
        try:
            response = self._bucket().create_signed_url(path=file_path, expires_in=expires_in)
        except Exception as e:
            logger.warning("Could not sign receipt photo URL", extra={
                "file_path": file_path,
                "error": str(e)
            })
            return None

        return response.get('signedURL') or response.get('signedUrl')
