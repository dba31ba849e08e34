"""Shared tab document store.

Each tab is a single row whose items and people are stored whole. Writers send
complete replacement values for the fields they change; the last write wins and
nothing is merged. Subscribers get the full snapshot on subscribe and after every
committed change, or None once the tab is gone.
"""

import logging
import threading
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

import models
import schemas
from utils.allocation import tab_subtotal


logger = logging.getLogger(__name__)

Listener = Callable[[Optional[schemas.Tab]], None]

WRITABLE_FIELDS = {
    "restaurant_name",
    "status",
    "items",
    "people",
    "tax",
    "tip",
    "tip_percentage",
    "split_tax_tip_method",
    "receipt_image_path",
    "points_awarded",
}


class TabNotFoundError(Exception):
    """Raised when writing to a tab that does not exist."""

    def __init__(self, tab_id: str):
        super().__init__(f"Tab {tab_id} not found")
        self.tab_id = tab_id


class TabBroadcaster:
    """Process-wide fan-out of tab snapshots to subscribers."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def add(self, tab_id: str, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners[tab_id].append(listener)

        def unsubscribe():
            with self._lock:
                listeners = self._listeners.get(tab_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(tab_id, None)

        return unsubscribe

    def publish(self, tab_id: str, snapshot: Optional[schemas.Tab]):
        with self._lock:
            listeners = list(self._listeners.get(tab_id, []))
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                # One broken subscriber must not stop delivery to the rest
                logger.exception(f"Tab subscriber failed for tab {tab_id}")

    def subscriber_count(self, tab_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(tab_id, []))


# Singleton instance shared by every store and WebSocket connection
tab_broadcaster = TabBroadcaster()


def to_snapshot(db_tab: models.Tab) -> schemas.Tab:
    return schemas.Tab(
        id=db_tab.id,
        restaurant_name=db_tab.restaurant_name,
        status=db_tab.status,
        items=db_tab.items or [],
        people=db_tab.people or [],
        subtotal=db_tab.subtotal or 0,
        tax=db_tab.tax or 0,
        tip=db_tab.tip or 0,
        tip_percentage=db_tab.tip_percentage if db_tab.tip_percentage is not None else 20,
        split_tax_tip_method=db_tab.split_tax_tip_method or "equal",
        created_by=db_tab.created_by_id,
        receipt_image_path=db_tab.receipt_image_path,
        points_awarded=bool(db_tab.points_awarded),
        created_at=db_tab.created_at.isoformat() if db_tab.created_at else None,
        updated_at=db_tab.updated_at.isoformat() if db_tab.updated_at else None
    )


def _dump(value):
    """Plain JSON-compatible value for a JSON column."""
    if isinstance(value, list):
        return [v.model_dump() if hasattr(v, "model_dump") else v for v in value]
    return value


class TabStore:
    def __init__(self, db: Session, broadcaster: TabBroadcaster = tab_broadcaster):
        self.db = db
        self.broadcaster = broadcaster

    def _row(self, tab_id: str) -> Optional[models.Tab]:
        return self.db.query(models.Tab).filter(models.Tab.id == tab_id).first()

    def get(self, tab_id: str) -> Optional[schemas.Tab]:
        db_tab = self._row(tab_id)
        if db_tab is None:
            return None
        # Always read what is committed, not a cached identity-map copy
        self.db.refresh(db_tab)
        return to_snapshot(db_tab)

    def create(self, fields: dict, created_by_id: Optional[int]) -> schemas.Tab:
        now = datetime.utcnow()
        db_tab = models.Tab(
            id=uuid.uuid4().hex,
            status="setup",
            items=[],
            people=[],
            subtotal=0,
            tax=0,
            tip=0,
            tip_percentage=20,
            split_tax_tip_method="equal",
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now
        )
        for field, value in fields.items():
            if field in WRITABLE_FIELDS:
                setattr(db_tab, field, _dump(value))
        if fields.get("items"):
            db_tab.subtotal = float(tab_subtotal(to_snapshot(db_tab)))
        self.db.add(db_tab)
        self.db.commit()
        self.db.refresh(db_tab)
        logger.info(f"Created tab {db_tab.id} for user {created_by_id}")
        return to_snapshot(db_tab)

    def update(self, tab_id: str, fields: dict) -> schemas.Tab:
        """
        Replace the given fields wholesale and notify subscribers.

        Writing `items` re-derives `subtotal`. Unknown fields are ignored.

        Raises:
            TabNotFoundError: If the tab does not exist
        """
        db_tab = self._row(tab_id)
        if db_tab is None:
            raise TabNotFoundError(tab_id)

        changed = []
        for field, value in fields.items():
            if field not in WRITABLE_FIELDS:
                continue
            setattr(db_tab, field, _dump(value))
            changed.append(field)

        if "items" in fields:
            db_tab.subtotal = float(tab_subtotal(to_snapshot(db_tab)))
        db_tab.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(db_tab)
        snapshot = to_snapshot(db_tab)
        logger.info(f"Updated tab {tab_id}: {', '.join(changed) or 'no fields'}")
        self.broadcaster.publish(tab_id, snapshot)
        return snapshot

    def delete(self, tab_id: str) -> bool:
        db_tab = self._row(tab_id)
        if db_tab is None:
            return False
        self.db.delete(db_tab)
        self.db.commit()
        logger.info(f"Deleted tab {tab_id}")
        self.broadcaster.publish(tab_id, None)
        return True

    def list_for_user(self, user_id: int) -> list[schemas.Tab]:
        rows = self.db.query(models.Tab).filter(
            models.Tab.created_by_id == user_id
        ).order_by(models.Tab.created_at.desc()).all()
        return [to_snapshot(row) for row in rows]

    def subscribe(self, tab_id: str, on_update: Listener) -> Callable[[], None]:
        """Deliver the current snapshot now and every later change; returns unsubscribe."""
        unsubscribe = self.broadcaster.add(tab_id, on_update)
        on_update(self.get(tab_id))
        return unsubscribe
