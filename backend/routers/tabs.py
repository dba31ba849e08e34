"""Tabs router: create and configure tabs, items, people and totals."""

from typing import Annotated
import logging
import os
from fastapi import APIRouter, Depends, HTTPException

import models
import schemas
from dependencies import get_current_user, get_tab_store
from utils.allocation import (
    person_item_breakdown,
    person_summary,
    tab_subtotal,
    tab_totals,
    tip_for_percentage,
    tip_suggestions,
)
from utils.claims import ingest_receipt_items, new_manual_item, remove_person
from utils.people import build_person
from utils.rate_limiter import join_rate_limiter
from utils.tab_store import TabStore
from utils.validation import get_admin_tab_or_404, get_person_or_404, get_tab_or_404, get_item_or_404


logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


router = APIRouter(tags=["tabs"])


def share_link_for(tab_id: str) -> str:
    return f"{FRONTEND_URL}/join/{tab_id}"


@router.post("/tabs", response_model=schemas.Tab)
def create_tab(
    tab: schemas.TabCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Create a tab in setup; the organizer becomes its first person."""
    organizer_name = tab.organizer_name or current_user.full_name or current_user.email
    organizer = build_person([], organizer_name, is_admin=True)
    return store.create({
        "restaurant_name": tab.restaurant_name,
        "tax": tab.tax,
        "tip": tab.tip,
        "split_tax_tip_method": tab.split_tax_tip_method,
        "people": [organizer],
    }, created_by_id=current_user.id)


@router.get("/tabs", response_model=list[schemas.Tab])
def list_tabs(
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    return store.list_for_user(current_user.id)


@router.get("/tabs/{tab_id}", response_model=schemas.Tab)
def read_tab(tab_id: str, store: TabStore = Depends(get_tab_store)):
    """Public snapshot: holding the share link is what grants access."""
    return get_tab_or_404(store, tab_id)


@router.patch("/tabs/{tab_id}", response_model=schemas.Tab)
def update_tab(
    tab_id: str,
    updates: schemas.TabUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Replace the fields present in the body; other fields are untouched."""
    get_admin_tab_or_404(store, tab_id, current_user)
    fields = {name: getattr(updates, name) for name in updates.model_fields_set}
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    return store.update(tab_id, fields)


@router.delete("/tabs/{tab_id}")
def delete_tab(
    tab_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    get_admin_tab_or_404(store, tab_id, current_user)
    store.delete(tab_id)
    return {"message": "Tab deleted successfully"}


def _set_status(tab_id: str, status: str, user: models.User, store: TabStore) -> schemas.Tab:
    get_admin_tab_or_404(store, tab_id, user)
    return store.update(tab_id, {"status": status})


@router.post("/tabs/{tab_id}/open", response_model=schemas.Tab)
def open_tab(
    tab_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Publish the tab so guests can join and claim items."""
    return _set_status(tab_id, "open", current_user, store)


@router.post("/tabs/{tab_id}/lock", response_model=schemas.Tab)
def lock_tab(
    tab_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    return _set_status(tab_id, "locked", current_user, store)


@router.post("/tabs/{tab_id}/complete", response_model=schemas.Tab)
def complete_tab(
    tab_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    return _set_status(tab_id, "completed", current_user, store)


@router.get("/tabs/{tab_id}/share-link", response_model=schemas.ShareLink)
def get_share_link(tab_id: str, store: TabStore = Depends(get_tab_store)):
    tab = get_tab_or_404(store, tab_id)
    return schemas.ShareLink(tab_id=tab.id, share_link=share_link_for(tab.id))


@router.put("/tabs/{tab_id}/tip-percentage", response_model=schemas.Tab)
def set_tip_percentage(
    tab_id: str,
    body: schemas.TipPercentageUpdate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    tip = tip_for_percentage(tab_subtotal(tab), body.percentage)
    return store.update(tab_id, {"tip": float(tip), "tip_percentage": body.percentage})


@router.get("/tabs/{tab_id}/tip-suggestions", response_model=list[schemas.TipSuggestion])
def get_tip_suggestions(tab_id: str, store: TabStore = Depends(get_tab_store)):
    tab = get_tab_or_404(store, tab_id)
    return tip_suggestions(tab_subtotal(tab))


# Items

@router.post("/tabs/{tab_id}/items", response_model=schemas.Tab)
def add_item(
    tab_id: str,
    item: schemas.ItemCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    items = [*tab.items, new_manual_item(item.description, item.price)]
    return store.update(tab_id, {"items": items})


@router.post("/tabs/{tab_id}/items/import", response_model=schemas.Tab)
def import_receipt_items(
    tab_id: str,
    receipt: schemas.ReceiptImport,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Replace the tab's items with scanned receipt lines (no claims yet)."""
    get_admin_tab_or_404(store, tab_id, current_user)
    fields = {"items": ingest_receipt_items(receipt.items)}
    if receipt.restaurant_name:
        fields["restaurant_name"] = receipt.restaurant_name
    if receipt.tax is not None:
        fields["tax"] = receipt.tax
    if receipt.tip is not None:
        fields["tip"] = receipt.tip
    if receipt.receipt_image_path:
        fields["receipt_image_path"] = receipt.receipt_image_path
    logger.info(f"Importing {len(receipt.items)} receipt lines into tab {tab_id}")
    return store.update(tab_id, fields)


@router.put("/tabs/{tab_id}/items", response_model=schemas.Tab)
def replace_items(
    tab_id: str,
    body: schemas.ItemsReplace,
    store: TabStore = Depends(get_tab_store)
):
    """
    Write a complete items array computed by a client.

    Last writer wins: a concurrent write computed from an older snapshot is overwritten.
    """
    get_tab_or_404(store, tab_id)
    return store.update(tab_id, {"items": body.items})


@router.delete("/tabs/{tab_id}/items/{item_id}", response_model=schemas.Tab)
def delete_item(
    tab_id: str,
    item_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    get_item_or_404(tab, item_id)
    return store.update(tab_id, {"items": [i for i in tab.items if i.id != item_id]})


# People

@router.post("/tabs/{tab_id}/people", response_model=schemas.Person)
def add_person(
    tab_id: str,
    person: schemas.PersonCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    new_person = build_person(tab.people, person.name, person.phone)
    store.update(tab_id, {"people": [*tab.people, new_person]})
    return new_person


@router.post(
    "/tabs/{tab_id}/join",
    response_model=schemas.Person,
    dependencies=[Depends(join_rate_limiter)]
)
def join_tab(
    tab_id: str,
    person: schemas.PersonCreate,
    store: TabStore = Depends(get_tab_store)
):
    """A guest joins through the share link and gets a fresh participant id."""
    tab = get_tab_or_404(store, tab_id)
    new_person = build_person(tab.people, person.name, person.phone)
    store.update(tab_id, {"people": [*tab.people, new_person]})
    logger.info(f"Guest {new_person.id} joined tab {tab_id}")
    return new_person


@router.delete("/tabs/{tab_id}/people/{person_id}", response_model=schemas.Tab)
def delete_person(
    tab_id: str,
    person_id: str,
    current_user: Annotated[models.User, Depends(get_current_user)],
    store: TabStore = Depends(get_tab_store)
):
    """Remove a person and every claim they hold."""
    tab = get_admin_tab_or_404(store, tab_id, current_user)
    get_person_or_404(tab, person_id)
    return store.update(tab_id, {
        "people": [p for p in tab.people if p.id != person_id],
        "items": remove_person(tab.items, person_id)
    })


# Totals

@router.get("/tabs/{tab_id}/totals", response_model=schemas.TabTotals)
def get_tab_totals(tab_id: str, store: TabStore = Depends(get_tab_store)):
    return tab_totals(get_tab_or_404(store, tab_id))


@router.get("/tabs/{tab_id}/people/{person_id}/total", response_model=schemas.PersonTotal)
def get_person_total(tab_id: str, person_id: str, store: TabStore = Depends(get_tab_store)):
    tab = get_tab_or_404(store, tab_id)
    return person_summary(tab, get_person_or_404(tab, person_id))


@router.get("/tabs/{tab_id}/people/{person_id}/breakdown", response_model=schemas.PersonBreakdown)
def get_person_breakdown(tab_id: str, person_id: str, store: TabStore = Depends(get_tab_store)):
    tab = get_tab_or_404(store, tab_id)
    get_person_or_404(tab, person_id)
    return person_item_breakdown(tab, person_id)
