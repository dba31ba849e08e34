"""SMS router: invite guests, remind them to pay, send payment links."""

from typing import Annotated
import logging
from fastapi import APIRouter, Depends, HTTPException

import models
import schemas
from dependencies import get_current_user, get_tab_store
from utils.allocation import person_total
from utils.people import organizer
from utils.rate_limiter import sms_rate_limiter
from utils.sms import (
    SmsError,
    invite_message,
    payment_link_message,
    reminder_message,
    send_sms,
)
from utils.tab_store import TabStore
from utils.validation import get_admin_tab_or_404, get_person_or_404


logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"], dependencies=[Depends(sms_rate_limiter)])


def _deliver(phone_number: str, body: str) -> schemas.SmsResult:
    try:
        message_id = send_sms(phone_number, body)
    except SmsError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return schemas.SmsResult(success=True, message_id=message_id)


def _recipient_phone(request: schemas.PersonSmsRequest, person: schemas.Person) -> str:
    phone = request.phone_number or person.phone
    if not phone:
        raise HTTPException(status_code=400, detail="No phone number for this person")
    return phone


@router.post("/sms/send-invite", response_model=schemas.SmsResult)
def send_invite(
    request: schemas.InviteSmsRequest,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, request.tab_id, current_user)
    inviter = organizer(tab)
    body = invite_message(tab.id, inviter.name if inviter else current_user.full_name, tab.restaurant_name)
    return _deliver(request.phone_number, body)


@router.post("/sms/send-reminder", response_model=schemas.SmsResult)
def send_reminder(
    request: schemas.PersonSmsRequest,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Nudge a guest who has not paid yet; the amount comes from the current tab."""
    tab = get_admin_tab_or_404(store, request.tab_id, current_user)
    person = get_person_or_404(tab, request.person_id)
    inviter = organizer(tab)
    body = reminder_message(
        tab.id, person.id, person_total(tab, person.id),
        person.name, inviter.name if inviter else current_user.full_name
    )
    return _deliver(_recipient_phone(request, person), body)


@router.post("/sms/send-payment-link", response_model=schemas.SmsResult)
def send_payment_link(
    request: schemas.PersonSmsRequest,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, request.tab_id, current_user)
    person = get_person_or_404(tab, request.person_id)
    body = payment_link_message(
        tab.id, person.id, person_total(tab, person.id), person.name, tab.restaurant_name
    )
    return _deliver(_recipient_phone(request, person), body)
