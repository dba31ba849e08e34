"""Tests for the receipt scanning endpoint."""

import io
import pytest
from unittest.mock import patch
from PIL import Image

from ocr.service import OCRServiceUnavailable
from utils.files import read_upload_file_securely


class MockError:
    """Mock for Google Vision error."""
    def __init__(self, message=""):
        self.message = message


class MockTextAnnotation:
    def __init__(self, description):
        self.description = description


class MockAnnotateImageResponse:
    """Mock for Google Vision API response."""
    def __init__(self, text=None):
        self.text_annotations = [MockTextAnnotation(text)] if text else []
        self.error = MockError()


@pytest.fixture
def receipt_png():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def mock_ocr(tmp_path):
    with patch("routers.receipts.ocr_service") as mock, \
            patch("routers.receipts.RECEIPT_DIR", str(tmp_path)):
        mock.extract_text.return_value = MockAnnotateImageResponse("Noodle Bar\nRamen 15.00\nGyoza 7.50\nTax 1.80")
        yield mock


def test_scan_receipt(client, auth_headers, mock_ocr, receipt_png, tmp_path):
    files = {"file": ("receipt.png", receipt_png, "image/png")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["restaurant_name"] == "Noodle Bar"
    assert [i["description"] for i in data["items"]] == ["Ramen", "Gyoza"]
    assert data["subtotal"] == 22.5
    assert data["tax"] == 1.8
    assert data["receipt_image_path"].startswith("/static/receipts/")
    assert data["receipt_image_path"].endswith(".png")

    filename = data["receipt_image_path"].split("/")[-1]
    assert (tmp_path / filename).exists()
    mock_ocr.extract_text.assert_called_once_with(receipt_png)


def test_extension_comes_from_content_not_filename(client, auth_headers, mock_ocr, receipt_png):
    files = {"file": ("exploit.html", receipt_png, "image/jpeg")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["receipt_image_path"].endswith(".png")


def test_scan_requires_auth(client, mock_ocr, receipt_png):
    files = {"file": ("receipt.png", receipt_png, "image/png")}
    response = client.post("/ocr/scan-receipt", files=files)
    assert response.status_code == 401


def test_rejects_wrong_content_type(client, auth_headers, mock_ocr):
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 400
    mock_ocr.extract_text.assert_not_called()


def test_rejects_content_that_is_not_an_image(client, auth_headers, mock_ocr):
    files = {"file": ("receipt.jpg", b"definitely not a jpeg", "image/jpeg")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid image file."


def test_rejects_oversized_upload(client, auth_headers, mock_ocr, receipt_png):
    files = {"file": ("receipt.png", receipt_png, "image/png")}
    # The size limit is bound as a default argument at import time
    with patch.object(read_upload_file_securely, "__defaults__", (10,)):
        response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 413
    mock_ocr.extract_text.assert_not_called()


def test_service_unavailable(client, auth_headers, mock_ocr, receipt_png):
    mock_ocr.extract_text.side_effect = OCRServiceUnavailable("missing credentials")
    files = {"file": ("receipt.png", receipt_png, "image/png")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 503


def test_unexpected_ocr_error(client, auth_headers, mock_ocr, receipt_png):
    mock_ocr.extract_text.side_effect = RuntimeError("Vision API error: bad image")
    files = {"file": ("receipt.png", receipt_png, "image/png")}
    response = client.post("/ocr/scan-receipt", files=files, headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "OCR processing failed"
