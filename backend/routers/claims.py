"""Claims router: participants claim, split and release items.

Each endpoint reads the freshest tab snapshot, applies one claim mutation and writes
the complete items array back. Guests are not authenticated; the share link and
their participant id are their capability.
"""

from fastapi import APIRouter, Depends

import schemas
from dependencies import get_tab_store
from utils.claims import (
    clear_assignments,
    set_fractional_share,
    set_quantity_claim,
    split_evenly,
    toggle_claim,
    update_item,
)
from utils.tab_store import TabStore
from utils.validation import get_item_or_404, get_person_or_404, get_tab_or_404


router = APIRouter(tags=["claims"])


def _load(store: TabStore, tab_id: str, item_id: str, person_id: str = None) -> schemas.Tab:
    tab = get_tab_or_404(store, tab_id)
    get_item_or_404(tab, item_id)
    if person_id is not None:
        get_person_or_404(tab, person_id)
    return tab


@router.post("/tabs/{tab_id}/items/{item_id}/toggle", response_model=schemas.Tab)
def toggle_item_claim(
    tab_id: str,
    item_id: str,
    claim: schemas.ClaimToggle,
    store: TabStore = Depends(get_tab_store)
):
    tab = _load(store, tab_id, item_id, claim.person_id)
    items = update_item(tab.items, item_id, toggle_claim, claim.person_id)
    return store.update(tab_id, {"items": items})


@router.post("/tabs/{tab_id}/items/{item_id}/quantity", response_model=schemas.Tab)
def set_item_quantity(
    tab_id: str,
    item_id: str,
    claim: schemas.QuantityClaim,
    store: TabStore = Depends(get_tab_store)
):
    """Claim a number of units of a multi-unit item (0 releases the claim)."""
    tab = _load(store, tab_id, item_id, claim.person_id)
    items = update_item(tab.items, item_id, set_quantity_claim, claim.person_id, claim.quantity)
    return store.update(tab_id, {"items": items})


@router.post("/tabs/{tab_id}/items/{item_id}/share", response_model=schemas.Tab)
def set_item_share(
    tab_id: str,
    item_id: str,
    claim: schemas.ShareClaim,
    store: TabStore = Depends(get_tab_store)
):
    """Claim a fraction of a single item, as a share or as 1/denominator."""
    tab = _load(store, tab_id, item_id, claim.person_id)
    items = update_item(
        tab.items, item_id, set_fractional_share, claim.person_id,
        share=claim.share, denominator=claim.denominator
    )
    return store.update(tab_id, {"items": items})


@router.post("/tabs/{tab_id}/items/{item_id}/clear", response_model=schemas.Tab)
def clear_item_claims(
    tab_id: str,
    item_id: str,
    store: TabStore = Depends(get_tab_store)
):
    tab = _load(store, tab_id, item_id)
    items = update_item(tab.items, item_id, clear_assignments)
    return store.update(tab_id, {"items": items})


@router.post("/tabs/{tab_id}/items/{item_id}/split-evenly", response_model=schemas.Tab)
def split_item_evenly(
    tab_id: str,
    item_id: str,
    store: TabStore = Depends(get_tab_store)
):
    """Everyone on the tab takes an equal share of the item."""
    tab = _load(store, tab_id, item_id)
    items = update_item(tab.items, item_id, split_evenly, [p.id for p in tab.people])
    return store.update(tab_id, {"items": items})
