"""Claim mutations on tab items.

Every function returns new Item objects (or a new items list) and leaves its input
untouched, so the caller can write the complete array back to the tab store.

Capacity is checked the same way for every way of claiming: a person can never take
more than what the other claimants have left. Capacity arithmetic uses exact
fractions; a claim made as "1/d" counts as exactly 1/d even though it is stored as a
float.
"""

import uuid
from fractions import Fraction
from typing import Callable, Optional

import schemas


FRACTION_MATCH_TOLERANCE = 0.01
MAX_INFERRED_DENOMINATOR = 10


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def claimed_amount(item: schemas.Item, person_id: str) -> Fraction:
    """Exact value of one person's claim (0 if none)."""
    value = item.assignments.get(person_id)
    if value is None:
        return Fraction(0)
    denominator = item.share_denominators.get(person_id)
    if denominator:
        return Fraction(1, denominator)
    return Fraction(str(value))


def remaining_capacity(item: schemas.Item, exclude: Optional[str] = None) -> Fraction:
    """Units (or fraction of the single unit) not yet claimed by anyone but `exclude`."""
    claimed = sum(
        (claimed_amount(item, pid) for pid in item.assignments if pid != exclude),
        Fraction(0)
    )
    return item.quantity - claimed


def is_claiming(item: schemas.Item, person_id: str) -> bool:
    return person_id in item.assigned_to or item.assignments.get(person_id, 0) > 0


def _as_number(value: Fraction):
    if value.denominator == 1:
        return int(value)
    return float(value)


def _with_claim(
    item: schemas.Item,
    person_id: str,
    amount,
    denominator: Optional[int] = None
) -> schemas.Item:
    assignments = dict(item.assignments)
    assignments[person_id] = amount
    assigned_to = list(item.assigned_to)
    if person_id not in assigned_to:
        assigned_to.append(person_id)
    denominators = dict(item.share_denominators)
    if denominator:
        denominators[person_id] = denominator
    else:
        denominators.pop(person_id, None)
    return item.model_copy(update={
        "assigned_to": assigned_to,
        "assignments": assignments,
        "share_denominators": denominators
    })


def _without_claim(item: schemas.Item, person_id: str) -> schemas.Item:
    assignments = {pid: v for pid, v in item.assignments.items() if pid != person_id}
    denominators = {pid: d for pid, d in item.share_denominators.items() if pid != person_id}
    return item.model_copy(update={
        "assigned_to": [pid for pid in item.assigned_to if pid != person_id],
        "assignments": assignments,
        "share_denominators": denominators
    })


def _unchanged(item: schemas.Item) -> schemas.Item:
    return item.model_copy(deep=True)


def toggle_claim(item: schemas.Item, person_id: str) -> schemas.Item:
    """
    Claim or un-claim an item.

    A current claimant is removed entirely. Anyone else takes one unit (multi-unit
    items) or the whole unit (single items), limited to what is left; a fully
    claimed item is returned unchanged.
    """
    if is_claiming(item, person_id):
        return _without_claim(item, person_id)

    remaining = remaining_capacity(item)
    if remaining <= 0:
        return _unchanged(item)
    return _with_claim(item, person_id, _as_number(min(Fraction(1), remaining)))


def set_quantity_claim(item: schemas.Item, person_id: str, quantity: int) -> schemas.Item:
    """Set how many units of a multi-unit item a person takes; <= 0 removes them."""
    if quantity <= 0:
        return _without_claim(item, person_id)

    remaining = remaining_capacity(item, exclude=person_id)
    if remaining <= 0:
        return _unchanged(item)
    return _with_claim(item, person_id, _as_number(min(Fraction(quantity), remaining)))


def set_fractional_share(
    item: schemas.Item,
    person_id: str,
    share: Optional[float] = None,
    denominator: Optional[int] = None
) -> schemas.Item:
    """
    Set a person's fraction of a single-unit item; <= 0 removes them.

    Passing `denominator` claims exactly 1/denominator and remembers it. A share larger
    than what others left is clamped, and the clamped value keeps no denominator.
    """
    if denominator:
        requested = Fraction(1, denominator)
    elif share is None or share <= 0:
        return _without_claim(item, person_id)
    else:
        requested = Fraction(str(share))

    remaining = remaining_capacity(item, exclude=person_id)
    if remaining <= 0:
        return _unchanged(item)
    if requested > remaining:
        return _with_claim(item, person_id, _as_number(remaining))
    if denominator:
        return _with_claim(item, person_id, 1 / denominator, denominator)
    return _with_claim(item, person_id, share)


def clear_assignments(item: schemas.Item) -> schemas.Item:
    return item.model_copy(update={
        "assigned_to": [],
        "assignments": {},
        "share_denominators": {}
    })


def split_evenly(item: schemas.Item, person_ids: list[str]) -> schemas.Item:
    """Give every listed person exactly 1/n of the item."""
    if not person_ids:
        return clear_assignments(item)
    n = len(person_ids)
    return item.model_copy(update={
        "assigned_to": list(person_ids),
        "assignments": {pid: 1 / n for pid in person_ids},
        "share_denominators": {pid: n for pid in person_ids}
    })


def update_item(
    items: list[schemas.Item],
    item_id: str,
    mutate: Callable[..., schemas.Item],
    *args,
    **kwargs
) -> list[schemas.Item]:
    """Return a new items list with `mutate` applied to the item with `item_id`."""
    return [
        mutate(item, *args, **kwargs) if item.id == item_id else item
        for item in items
    ]


def remove_person(items: list[schemas.Item], person_id: str) -> list[schemas.Item]:
    """Strip a person's claims from every item."""
    return [
        _without_claim(item, person_id) if is_claiming(item, person_id) else item
        for item in items
    ]


def ingest_receipt_items(lines: list[schemas.ReceiptLine]) -> list[schemas.Item]:
    """Turn extracted receipt lines into claimable items with fresh ids and no claims."""
    items = []
    for index, line in enumerate(lines):
        items.append(schemas.Item(
            id=new_id(),
            description=line.description or f"Item {index + 1}",
            quantity=line.quantity,
            unit_price=line.unit_price or line.total_price,
            total_price=line.total_price
        ))
    return items


def new_manual_item(description: str, price: float) -> schemas.Item:
    return schemas.Item(
        id=new_id(),
        description=description,
        quantity=1,
        unit_price=price,
        total_price=price
    )


def share_label(item: schemas.Item, person_id: str, people_count: int) -> str:
    """Human label for a person's claim: "Just you", "1/3 split", "Everyone", "2 of 4"..."""
    if person_id not in item.assigned_to:
        return ""
    value = item.assignments.get(person_id)
    if value is None:
        value = 1 / len(item.assigned_to)

    if item.quantity > 1:
        units = int(value) if float(value).is_integer() else round(value, 2)
        return f"{units} of {item.quantity}"
    if value == 1:
        return "Just you"

    denominator = item.share_denominators.get(person_id)
    if denominator is None:
        # Legacy claims carry no denominator; infer it from the float
        for candidate in range(2, MAX_INFERRED_DENOMINATOR + 1):
            if abs(value - 1 / candidate) < FRACTION_MATCH_TOLERANCE:
                denominator = candidate
                break

    if denominator:
        everyone = len(item.assigned_to) == people_count and people_count > 1
        if everyone and denominator == people_count:
            return "Everyone"
        return f"1/{denominator} split"
    return f"{round(value * 100)}%"
