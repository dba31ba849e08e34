"""Allocation engine: what each person owes on a tab.

Everything here is a pure function of a tab snapshot. Two clients holding the same
snapshot get the same totals to the cent: arithmetic is done in Decimal built from
the stored values, items are walked in document order, and rounding happens once,
on the final total.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import schemas
from utils.claims import share_label


ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
TIP_SUGGESTION_PERCENTAGES = (15, 18, 20, 25)


def to_decimal(value) -> Decimal:
    """Convert a stored JSON number to Decimal via its shortest repr."""
    if value is None:
        return ZERO
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def tab_subtotal(tab: Optional[schemas.Tab]) -> Decimal:
    """Subtotal re-derived from the items; an empty tab is 0."""
    if tab is None:
        return ZERO
    return sum((to_decimal(item.total_price) for item in tab.items), ZERO)


def item_contribution(item: schemas.Item, person_id: str) -> Decimal:
    """Unrounded amount of one item owed by one person."""
    if person_id not in item.assigned_to:
        return ZERO
    price = to_decimal(item.total_price)
    if person_id in item.assignments:
        return price / item.quantity * to_decimal(item.assignments[person_id])
    # Claim recorded without an amount: equal split among current claimants
    return price / len(item.assigned_to)


def person_subtotal(tab: Optional[schemas.Tab], person_id: str) -> Decimal:
    """Sum of a person's item contributions before tax and tip."""
    if tab is None:
        return ZERO
    return sum((item_contribution(item, person_id) for item in tab.items), ZERO)


def person_tax_tip_share(tab: Optional[schemas.Tab], subtotal: Decimal) -> Decimal:
    """
    A person's share of tax + tip.

    Equal: divided evenly by head count.
    Proportional: weighted by the person's share of the tab subtotal, capped at 100%.
    """
    if tab is None:
        return ZERO
    tax_tip = to_decimal(tab.tax) + to_decimal(tab.tip)

    if tab.split_tax_tip_method == "equal" and len(tab.people) > 0:
        return tax_tip / len(tab.people)

    total = tab_subtotal(tab)
    if total > 0:
        proportion = min(subtotal / total, ONE)
        return tax_tip * proportion
    return ZERO


def person_total(tab: Optional[schemas.Tab], person_id: str) -> Decimal:
    """Final amount a person owes, rounded to cents. No tab loaded yet means 0."""
    if tab is None:
        return round2(ZERO)
    subtotal = person_subtotal(tab, person_id)
    return round2(subtotal + person_tax_tip_share(tab, subtotal))


def person_summary(tab: schemas.Tab, person: schemas.Person) -> schemas.PersonTotal:
    subtotal = person_subtotal(tab, person.id)
    share = person_tax_tip_share(tab, subtotal)
    return schemas.PersonTotal(
        person_id=person.id,
        name=person.name,
        subtotal=float(round2(subtotal)),
        tax_tip_share=float(round2(share)),
        total=float(round2(subtotal + share)),
        payment_status=person.payment_status
    )


def tab_totals(tab: schemas.Tab) -> schemas.TabTotals:
    """Organizer view: every person's totals plus the tab-level sums."""
    people = [person_summary(tab, person) for person in tab.people]

    subtotal = tab_subtotal(tab)
    tax = to_decimal(tab.tax)
    tip = to_decimal(tab.tip)
    return schemas.TabTotals(
        tab_id=tab.id,
        subtotal=float(round2(subtotal)),
        tax=float(round2(tax)),
        tip=float(round2(tip)),
        total=float(round2(subtotal + tax + tip)),
        split_tax_tip_method=tab.split_tax_tip_method,
        people=people
    )


def person_item_breakdown(tab: schemas.Tab, person_id: str) -> schemas.PersonBreakdown:
    """Per-item lines for one person's receipt view."""
    lines = []
    for item in tab.items:
        if person_id not in item.assigned_to:
            continue
        amount = item_contribution(item, person_id)
        lines.append(schemas.BreakdownLine(
            item_id=item.id,
            description=item.description,
            claimed=item.assignments.get(person_id, 1 / len(item.assigned_to)),
            label=share_label(item, person_id, len(tab.people)),
            amount=float(round2(amount))
        ))

    subtotal = person_subtotal(tab, person_id)
    share = person_tax_tip_share(tab, subtotal)
    return schemas.PersonBreakdown(
        person_id=person_id,
        lines=lines,
        subtotal=float(round2(subtotal)),
        tax_tip_share=float(round2(share)),
        total=float(round2(subtotal + share))
    )


def tip_for_percentage(subtotal, percentage) -> Decimal:
    return round2(to_decimal(subtotal) * to_decimal(percentage) / 100)


def tip_suggestions(subtotal) -> list[schemas.TipSuggestion]:
    return [
        schemas.TipSuggestion(percentage=pct, amount=float(tip_for_percentage(subtotal, pct)))
        for pct in TIP_SUGGESTION_PERCENTAGES
    ]
