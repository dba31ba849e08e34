"""Lookup and access-control helpers shared by the tab routers."""

from sqlalchemy.orm import Session
from fastapi import HTTPException

import models
import schemas
from utils.people import find_person
from utils.tab_store import TabStore


def get_user_by_email(db: Session, email: str):
    """Get a user by their email address."""
    return db.query(models.User).filter(models.User.email == email).first()


def get_tab_or_404(store: TabStore, tab_id: str) -> schemas.Tab:
    """Get the freshest snapshot of a tab or raise 404 if not found."""
    tab = store.get(tab_id)
    if tab is None:
        raise HTTPException(status_code=404, detail="Tab not found")
    return tab


def verify_tab_admin(tab: schemas.Tab, user: models.User) -> schemas.Tab:
    """Verify that a user created the tab, raise 403 if not."""
    if tab.created_by != user.id:
        raise HTTPException(status_code=403, detail="Only the tab organizer can perform this action")
    return tab


def get_admin_tab_or_404(store: TabStore, tab_id: str, user: models.User) -> schemas.Tab:
    return verify_tab_admin(get_tab_or_404(store, tab_id), user)


def get_item_or_404(tab: schemas.Tab, item_id: str) -> schemas.Item:
    item = next((i for i in tab.items if i.id == item_id), None)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


def get_person_or_404(tab: schemas.Tab, person_id: str) -> schemas.Person:
    person = find_person(tab.people, person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found in this tab")
    return person
