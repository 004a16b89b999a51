"""
OCR service for extracting text from receipt photos.
"""

import io
import logging

import pytesseract
from PIL import Image, ImageEnhance, UnidentifiedImageError

from rideledger.config import settings
from rideledger.exceptions import RecognitionError

logger = logging.getLogger(__name__)


class OCRService:
    """Service for extracting text from receipt images with Tesseract."""

    def __init__(self, lang: str = None):
        """Initialize OCR service with Tesseract configuration."""
        pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD
        self.lang = lang or settings.TESSERACT_LANG

    def recognize_text(self, image_data: bytes) -> str:
        """
        Extract text from an image using Tesseract OCR.

        Args:
            image_data: Raw image bytes (JPEG, PNG, ...)

        Returns:
            Recognized text, possibly empty for a blank image

        Raises:
            RecognitionError: the image could not be read or Tesseract failed
        """
        try:
            image = Image.open(io.BytesIO(image_data))
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Unreadable image", extra={"error": str(e)})
            raise RecognitionError("Image could not be read") from e

        image = self._preprocess_image(image)

        try:
            # psm 6: a single uniform block of text, which suits till receipts
            custom_config = r'--oem 3 --psm 6'
            text = pytesseract.image_to_string(image, lang=self.lang, config=custom_config)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as e:
            logger.error("Tesseract failed", extra={"error": str(e)}, exc_info=True)
            raise RecognitionError("Failed to process image with OCR") from e

        logger.debug("OCR text extracted", extra={"chars": len(text)})
        return text.strip()

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Preprocess image to improve OCR accuracy.

        Args:
            image: PIL Image object

        Returns:
            Preprocessed image
        """
        try:
            if image.mode != 'RGB':
                image = image.convert('RGB')

            image = image.convert('L')

            # Faded thermal paper needs the extra contrast
            enhancer = ImageEnhance.Contrast(image)
            return enhancer.enhance(2.0)

        except OSError:
            logger.warning("Error preprocessing image", exc_info=True)
            return image
