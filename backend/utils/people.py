"""Participant helpers: palette colours, joining, payment status."""

from datetime import datetime, timezone
from typing import Optional

import schemas
from utils.claims import new_id


COLORS = [
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#22c55e",  # green
    "#a855f7",  # purple
    "#f97316",  # orange
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#eab308",  # yellow
]


def build_person(
    people: list[schemas.Person],
    name: str,
    phone: Optional[str] = None,
    is_admin: bool = False
) -> schemas.Person:
    """New participant with a fresh id; colour follows their position in the tab."""
    return schemas.Person(
        id=new_id(),
        name=name,
        phone=phone,
        color=COLORS[len(people) % len(COLORS)],
        is_admin=is_admin
    )


def find_person(people: list[schemas.Person], person_id: str) -> Optional[schemas.Person]:
    return next((p for p in people if p.id == person_id), None)


def organizer(tab: schemas.Tab) -> Optional[schemas.Person]:
    """The admin participant, by flag or by convention the first person."""
    admin = next((p for p in tab.people if p.is_admin), None)
    if admin:
        return admin
    return tab.people[0] if tab.people else None


def set_payment_status(
    people: list[schemas.Person],
    person_id: str,
    status: schemas.PaymentStatus,
    paid_via: Optional[str] = None
) -> list[schemas.Person]:
    """Return a new people list with one person's payment state replaced."""
    updated = []
    for person in people:
        if person.id != person_id:
            updated.append(person)
            continue
        if status == "pending":
            changes = {"payment_status": status, "paid_at": None, "paid_via": None}
        elif status == "claimed":
            changes = {
                "payment_status": status,
                "paid_at": datetime.now(timezone.utc).isoformat(),
                "paid_via": paid_via
            }
        else:
            changes = {
                "payment_status": status,
                "paid_at": person.paid_at or datetime.now(timezone.utc).isoformat(),
                "paid_via": paid_via or person.paid_via
            }
        updated.append(person.model_copy(update=changes))
    return updated


def all_confirmed(people: list[schemas.Person]) -> bool:
    return bool(people) and all(p.payment_status == "confirmed" for p in people)


def status_after_payments(
    people: list[schemas.Person],
    current_status: schemas.TabStatus
) -> schemas.TabStatus:
    """A tab settles once every participant is confirmed and reopens if one is un-confirmed."""
    if all_confirmed(people):
        return "completed"
    if current_status == "completed":
        return "open"
    return current_status
