"""Deep links into Venmo, Cash App and PayPal for paying the organizer back."""

import re
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

import schemas


def clean_venmo_username(value: Optional[str]) -> Optional[str]:
    """Drop a leading @; keep letters, digits, hyphen and underscore."""
    if not value:
        return None
    cleaned = re.sub(r'[^a-zA-Z0-9\-_]', '', value.strip().lstrip('@'))
    return cleaned or None


def clean_cashapp_tag(value: Optional[str]) -> Optional[str]:
    """Drop a leading $; keep letters and digits."""
    if not value:
        return None
    cleaned = re.sub(r'[^a-zA-Z0-9]', '', value.strip().lstrip('$'))
    return cleaned or None


def clean_paypal_username(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = re.sub(r'[^a-zA-Z0-9]', '', value.strip())
    return cleaned or None


def clean_payment_accounts(accounts: schemas.PaymentAccounts) -> schemas.PaymentAccounts:
    return schemas.PaymentAccounts(
        venmo=clean_venmo_username(accounts.venmo),
        cashapp=clean_cashapp_tag(accounts.cashapp),
        paypal=clean_paypal_username(accounts.paypal)
    )


def format_amount(amount) -> str:
    return f"{Decimal(str(amount)):.2f}"


def venmo_link(username: str, amount, note: str) -> str:
    return (
        f"https://venmo.com/{username}?txn=pay&amount={format_amount(amount)}"
        f"&note={quote(note)}&audience=private"
    )


def cashapp_link(tag: str, amount) -> str:
    return f"https://cash.app/${tag}/{format_amount(amount)}"


def paypal_link(username: str, amount) -> str:
    return f"https://paypal.me/{username}/{format_amount(amount)}"


def build_payment_links(
    accounts: schemas.PaymentAccounts,
    person_id: str,
    amount,
    note: str
) -> schemas.PaymentLinks:
    """Links for every account the organizer has set up; missing accounts stay None."""
    return schemas.PaymentLinks(
        person_id=person_id,
        amount=float(amount),
        venmo=venmo_link(accounts.venmo, amount, note) if accounts.venmo else None,
        cashapp=cashapp_link(accounts.cashapp, amount) if accounts.cashapp else None,
        paypal=paypal_link(accounts.paypal, amount) if accounts.paypal else None
    )
