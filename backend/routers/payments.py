"""Payments router: out-of-band payment status and payment deep links."""

from typing import Annotated
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user, get_tab_store
from utils.allocation import person_total
from utils.payment_links import build_payment_links
from utils.people import all_confirmed, set_payment_status, status_after_payments
from utils.rewards import award_points_for_tab
from utils.tab_store import TabStore
from utils.validation import get_admin_tab_or_404, get_person_or_404, get_tab_or_404


logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


def _apply_payment_status(
    db: Session,
    store: TabStore,
    tab: schemas.Tab,
    person_id: str,
    status: schemas.PaymentStatus,
    paid_via: str = None
) -> schemas.Tab:
    """Write the new payment state; settle the tab and award points once everyone is confirmed."""
    people = set_payment_status(tab.people, person_id, status, paid_via)
    new_status = status_after_payments(people, tab.status)
    updated = store.update(tab.id, {"people": people, "status": new_status})

    if all_confirmed(people) and not updated.points_awarded:
        points = award_points_for_tab(db, updated)
        updated = store.update(tab.id, {"points_awarded": True})
        logger.info(f"Tab {tab.id} settled; organizer earned {points} points")
    return updated


@router.post("/tabs/{tab_id}/people/{person_id}/payment/claim", response_model=schemas.Tab)
def claim_payment(
    tab_id: str,
    person_id: str,
    body: schemas.PaymentClaimRequest,
    store: TabStore = Depends(get_tab_store),
    db: Session = Depends(get_db)
):
    """A guest reports having paid; the organizer still has to confirm."""
    tab = get_tab_or_404(store, tab_id)
    get_person_or_404(tab, person_id)
    return _apply_payment_status(db, store, tab, person_id, "claimed", body.paid_via)


@router.post("/tabs/{tab_id}/people/{person_id}/payment/confirm", response_model=schemas.Tab)
def confirm_payment(
    tab_id: str,
    person_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store),
    db: Session = Depends(get_db)
):
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    get_person_or_404(tab, person_id)
    return _apply_payment_status(db, store, tab, person_id, "confirmed")


@router.post("/tabs/{tab_id}/people/{person_id}/payment/reject", response_model=schemas.Tab)
def reject_payment(
    tab_id: str,
    person_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store),
    db: Session = Depends(get_db)
):
    """The organizer did not receive the money; back to pending."""
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    get_person_or_404(tab, person_id)
    return _apply_payment_status(db, store, tab, person_id, "pending")


@router.get("/tabs/{tab_id}/people/{person_id}/payment-links", response_model=schemas.PaymentLinks)
def get_payment_links(
    tab_id: str,
    person_id: str,
    store: TabStore = Depends(get_tab_store),
    db: Session = Depends(get_db)
):
    """Venmo / Cash App / PayPal links for this person's total, paid to the organizer."""
    tab = get_tab_or_404(store, tab_id)
    get_person_or_404(tab, person_id)
    organizer = db.query(models.User).filter(models.User.id == tab.created_by).first()
    accounts = schemas.PaymentAccounts(
        venmo=organizer.venmo_username if organizer else None,
        cashapp=organizer.cashapp_tag if organizer else None,
        paypal=organizer.paypal_username if organizer else None
    )
    note = f"{tab.restaurant_name or 'Tab'} via Tabie"
    return build_payment_links(accounts, person_id, person_total(tab, person_id), note)
