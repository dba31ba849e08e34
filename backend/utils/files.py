"""Upload handling for receipt images."""

import io
import os
import uuid
from typing import Optional

from fastapi import UploadFile, HTTPException
from PIL import Image, UnidentifiedImageError

MAX_RECEIPT_SIZE_MB = int(os.getenv("MAX_RECEIPT_SIZE_MB", "10"))
MAX_RECEIPT_SIZE_BYTES = MAX_RECEIPT_SIZE_MB * 1024 * 1024

# Pillow format name -> extension we store the receipt under
FORMAT_TO_EXT = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
}


async def read_upload_file_securely(file: UploadFile, max_size_bytes: int = MAX_RECEIPT_SIZE_BYTES) -> bytes:
    """
    Read an upload in 1MB chunks, stopping as soon as it exceeds the limit.

    Raises:
        HTTPException: 413 if the file is larger than max_size_bytes
    """
    content = bytearray()
    chunk_size = 1024 * 1024

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > max_size_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File size exceeds maximum allowed size of {max_size_bytes / (1024 * 1024):.2f}MB"
            )

    return bytes(content)


def detect_image_type(content: bytes) -> Optional[str]:
    """Extension for a valid JPEG, PNG or WebP image; None for anything else."""
    try:
        image = Image.open(io.BytesIO(content))
        img_format = image.format
        image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None
    return FORMAT_TO_EXT.get(img_format)


def save_receipt_image(content: bytes, ext: str, receipt_dir: str) -> str:
    """Write the image under a random name and return that name."""
    os.makedirs(receipt_dir, exist_ok=True)
    filename = f"{uuid.uuid4()}.{ext}"
    with open(os.path.join(receipt_dir, filename), "wb") as buffer:
        buffer.write(content)
    return filename
