from google.cloud import vision
from google.api_core import exceptions as google_exceptions
from google.api_core import retry
import google.auth.exceptions
import logging

logger = logging.getLogger(__name__)

# Transient Vision API failures worth another attempt
RETRYABLE_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
)

VISION_RETRY = retry.Retry(
    predicate=retry.if_exception_type(*RETRYABLE_ERRORS),
    initial=1.0,
    maximum=8.0,
    multiplier=2.0,
    timeout=30.0,
)


class OCRServiceUnavailable(Exception):
    """Raised when the Vision client could not be created."""


class OCRService:
    """
    Google Cloud Vision client for receipt text extraction.
    The client is created once and reused for every scan.
    """

    def __init__(self):
        try:
            self.client = vision.ImageAnnotatorClient()
        except google.auth.exceptions.DefaultCredentialsError:
            logger.warning("Google Cloud Credentials not found. Receipt scanning will not work.")
            self.client = None
        except Exception as e:
            logger.warning(f"Failed to initialize OCR service: {e}")
            self.client = None

    def extract_text(self, image_bytes: bytes):
        """
        Run text detection on a receipt image.

        Args:
            image_bytes: Raw image bytes (JPEG, PNG, WebP)

        Returns:
            AnnotateImageResponse; text_annotations[0] holds the full text.

        Raises:
            OCRServiceUnavailable: If the client is not initialized
            google.api_core.exceptions.GoogleAPICallError: If the call still fails after retries
            RuntimeError: If Vision reports an error in the response body
        """
        if not self.client:
            raise OCRServiceUnavailable("OCR service is not available (missing credentials)")

        image = vision.Image(content=image_bytes)
        response = self.client.text_detection(image=image, retry=VISION_RETRY)

        if response.error.message:
            raise RuntimeError(f"Vision API error: {response.error.message}")

        return response


# Singleton instance - initialized once, reused for all requests
ocr_service = OCRService()
