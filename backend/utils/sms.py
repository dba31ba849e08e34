"""SMS notifications through the Twilio REST API."""

import os
import re
import logging
import requests
from decimal import Decimal
from typing import Optional

logger = logging.getLogger(__name__)

# Environment configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

# Twilio error codes we can explain to the user
TWILIO_INVALID_NUMBER = 21211
TWILIO_UNVERIFIED_NUMBER = 21608


class SmsError(Exception):
    """SMS could not be sent. status_code is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def is_sms_configured() -> bool:
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER)


def format_phone_number(phone_number: str) -> str:
    """
    Normalise to E.164: 10 digits are taken as a US number, 11-15 digits get a "+".

    Raises:
        SmsError: If the number has too few or too many digits
    """
    digits = re.sub(r'\D', '', phone_number or "")
    if len(digits) < 10 or len(digits) > 15:
        raise SmsError("Invalid phone number", status_code=400)
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


def invite_message(tab_id: str, inviter_name: Optional[str], restaurant_name: Optional[str]) -> str:
    sender = inviter_name or "Someone"
    bill = restaurant_name or "a bill"
    return f"{sender} invited you to split {bill} on Tabie! Tap to claim your items: {FRONTEND_URL}/join/{tab_id}"


def reminder_message(
    tab_id: str,
    person_id: str,
    amount: Decimal,
    person_name: Optional[str],
    organizer_name: Optional[str]
) -> str:
    name = person_name or "Hey"
    organizer = organizer_name or "The organizer"
    return (
        f"{name}, {organizer} is waiting for your ${amount:.2f} payment on Tabie. "
        f"Pay now: {FRONTEND_URL}/pay/{tab_id}/{person_id}"
    )


def payment_link_message(
    tab_id: str,
    person_id: str,
    amount: Decimal,
    person_name: Optional[str],
    restaurant_name: Optional[str]
) -> str:
    name = person_name or "there"
    restaurant = restaurant_name or "your meal"
    return (
        f"Hey {name}! Your share of {restaurant} is ${amount:.2f}. "
        f"Pay with Tabie: {FRONTEND_URL}/pay/{tab_id}/{person_id}"
    )


def send_sms(phone_number: str, body: str) -> str:
    """
    Send one SMS.

    Returns:
        str: Twilio message SID

    Raises:
        SmsError: If Twilio is not configured, rejects the message, or is unreachable
    """
    to_number = format_phone_number(phone_number)
    if not is_sms_configured():
        logger.error("SMS service not configured: TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER required")
        raise SmsError("SMS service is not configured")

    try:
        response = requests.post(
            TWILIO_API_URL.format(sid=TWILIO_ACCOUNT_SID),
            data={"To": to_number, "From": TWILIO_PHONE_NUMBER, "Body": body},
            auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
            timeout=10
        )
    except requests.exceptions.Timeout:
        logger.error("Twilio API request timed out")
        raise SmsError("SMS provider timed out", status_code=502)
    except requests.exceptions.RequestException as e:
        logger.error(f"Twilio API request failed: {e}")
        raise SmsError("Failed to send SMS", status_code=502)

    if response.status_code == 201:
        sid = response.json().get("sid")
        logger.info(f"SMS sent to {to_number} (Message SID: {sid})")
        return sid

    try:
        code = response.json().get("code")
    except ValueError:
        code = None
    logger.error(f"Twilio API error ({response.status_code}): {response.text}")
    if code == TWILIO_INVALID_NUMBER:
        raise SmsError("Invalid phone number", status_code=400)
    if code == TWILIO_UNVERIFIED_NUMBER:
        raise SmsError("Phone number not verified for trial account", status_code=400)
    raise SmsError("Failed to send SMS", status_code=502)
