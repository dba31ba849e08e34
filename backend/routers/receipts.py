"""Receipts router: scan a receipt photo into editable line items."""

from typing import Annotated
import logging
import os
from fastapi import APIRouter, Depends, HTTPException, File, UploadFile
from google.api_core import exceptions as google_exceptions

import models
import schemas
from dependencies import get_current_user
from ocr.parser import parse_receipt
from ocr.service import ocr_service, OCRServiceUnavailable
from utils.files import detect_image_type, read_upload_file_securely, save_receipt_image
from utils.rate_limiter import ocr_rate_limiter


logger = logging.getLogger(__name__)

# Receipt directory path
DATA_DIR = os.getenv("DATA_DIR", "data")
RECEIPT_DIR = os.path.join(DATA_DIR, "receipts")

ALLOWED_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp"]


router = APIRouter(tags=["receipts"])


@router.post("/ocr/scan-receipt", response_model=schemas.ReceiptScan, dependencies=[Depends(ocr_rate_limiter)])
async def scan_receipt(
    current_user: Annotated[models.User, Depends(get_current_user)],
    file: UploadFile = File(...)
):
    """
    Extract receipt lines and totals from a photo using Google Cloud Vision.

    The image is stored under /static/receipts so the tab can link to it. Nothing is
    written to a tab here: the organizer reviews the lines and imports them.
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only JPEG, PNG, and WebP images are supported."
        )

    image_content = await read_upload_file_securely(file)
    file_ext = detect_image_type(image_content)
    if file_ext is None:
        raise HTTPException(status_code=400, detail="Invalid image file.")

    filename = save_receipt_image(image_content, file_ext, RECEIPT_DIR)
    logger.info(f"Scanning receipt for user {current_user.id}: {len(image_content)} bytes")

    try:
        vision_response = ocr_service.extract_text(image_content)
    except OCRServiceUnavailable:
        raise HTTPException(status_code=503, detail="Receipt scanning is not available right now.")
    except (google_exceptions.ServiceUnavailable, google_exceptions.RetryError):
        raise HTTPException(
            status_code=503,
            detail="OCR service is temporarily unavailable, please try again later."
        )
    except Exception:
        logger.exception("OCR processing error")
        raise HTTPException(status_code=500, detail="OCR processing failed")

    result = parse_receipt(vision_response)
    logger.info(f"Parsed {len(result['items'])} receipt lines")
    return schemas.ReceiptScan(**result, receipt_image_path=f"/static/receipts/{filename}")
