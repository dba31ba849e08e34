"""Tests for SMS sending through Twilio and the SMS endpoints."""

import pytest
import requests
from decimal import Decimal
from unittest.mock import MagicMock, patch

import utils.sms as sms
from utils.sms import SmsError, format_phone_number, payment_link_message, send_sms


@pytest.fixture
def twilio_configured(monkeypatch):
    monkeypatch.setattr(sms, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(sms, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(sms, "TWILIO_PHONE_NUMBER", "+15550000000")


def twilio_response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


def test_format_phone_number():
    assert format_phone_number("(555) 123-4567") == "+15551234567"
    assert format_phone_number("+44 20 7946 0958") == "+442079460958"
    with pytest.raises(SmsError) as exc:
        format_phone_number("12345")
    assert exc.value.status_code == 400


def test_payment_link_message():
    body = payment_link_message("tab1", "p1", Decimal("14"), "Bob", "Luigi's")
    assert "$14.00" in body
    assert body.endswith("/pay/tab1/p1")


def test_send_sms(twilio_configured):
    with patch("utils.sms.requests.post", return_value=twilio_response(201, {"sid": "SM1"})) as mock_post:
        assert send_sms("5551234567", "hello") == "SM1"

    args, kwargs = mock_post.call_args
    assert "AC123" in args[0]
    assert kwargs["data"] == {"To": "+15551234567", "From": "+15550000000", "Body": "hello"}
    assert kwargs["auth"] == ("AC123", "secret")


def test_send_sms_not_configured(monkeypatch):
    monkeypatch.setattr(sms, "TWILIO_ACCOUNT_SID", None)
    with pytest.raises(SmsError) as exc:
        send_sms("5551234567", "hello")
    assert exc.value.status_code == 500


def test_send_sms_invalid_number_from_twilio(twilio_configured):
    with patch("utils.sms.requests.post", return_value=twilio_response(400, {"code": 21211})):
        with pytest.raises(SmsError) as exc:
            send_sms("5551234567", "hello")
    assert exc.value.status_code == 400


def test_send_sms_timeout(twilio_configured):
    with patch("utils.sms.requests.post", side_effect=requests.exceptions.Timeout()):
        with pytest.raises(SmsError) as exc:
            send_sms("5551234567", "hello")
    assert exc.value.status_code == 502


def test_send_payment_link_endpoint(client, auth_headers, tab, twilio_configured):
    bob = tab["people"][1]["id"]
    client.post(f"/tabs/{tab['id']}/items/{tab['items'][0]['id']}/toggle", json={"person_id": bob})

    with patch("utils.sms.requests.post", return_value=twilio_response(201, {"sid": "SM9"})) as mock_post:
        response = client.post(
            "/sms/send-payment-link",
            headers=auth_headers,
            json={"tab_id": tab["id"], "person_id": bob, "phone_number": "5551234567"}
        )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message_id": "SM9"}
    # Pizza 18 + a third of 6 tax/tip
    assert "$20.00" in mock_post.call_args.kwargs["data"]["Body"]


def test_send_reminder_uses_person_phone(client, auth_headers, tab, twilio_configured):
    person = client.post(f"/tabs/{tab['id']}/join", json={"name": "Dave", "phone": "5559876543"}).json()

    with patch("utils.sms.requests.post", return_value=twilio_response(201, {"sid": "SM2"})) as mock_post:
        response = client.post(
            "/sms/send-reminder",
            headers=auth_headers,
            json={"tab_id": tab["id"], "person_id": person["id"]}
        )

    assert response.status_code == 200
    assert mock_post.call_args.kwargs["data"]["To"] == "+15559876543"


def test_send_reminder_without_phone(client, auth_headers, tab, twilio_configured):
    bob = tab["people"][1]["id"]
    response = client.post(
        "/sms/send-reminder",
        headers=auth_headers,
        json={"tab_id": tab["id"], "person_id": bob}
    )
    assert response.status_code == 400


def test_send_invite_only_for_organizer(client, other_user_headers, tab, twilio_configured):
    response = client.post(
        "/sms/send-invite",
        headers=other_user_headers,
        json={"tab_id": tab["id"], "phone_number": "5551234567"}
    )
    assert response.status_code == 403


def test_send_invite_provider_failure(client, auth_headers, tab, twilio_configured):
    with patch("utils.sms.requests.post", side_effect=requests.exceptions.ConnectionError()):
        response = client.post(
            "/sms/send-invite",
            headers=auth_headers,
            json={"tab_id": tab["id"], "phone_number": "5551234567"}
        )
    assert response.status_code == 502
