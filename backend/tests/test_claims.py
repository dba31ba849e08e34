"""Tests for claim mutations on a single item."""

import pytest
from pydantic import ValidationError

import schemas
from utils.claims import (
    clear_assignments,
    ingest_receipt_items,
    remaining_capacity,
    remove_person,
    set_fractional_share,
    set_quantity_claim,
    share_label,
    split_evenly,
    toggle_claim,
    update_item,
)


def make_item(quantity=1, assignments=None, denominators=None, total_price=12.0):
    assignments = assignments or {}
    return schemas.Item(
        id="item1",
        description="Nachos",
        quantity=quantity,
        unit_price=total_price / quantity,
        total_price=total_price,
        assigned_to=list(assignments),
        assignments=assignments,
        share_denominators=denominators or {}
    )


def test_toggle_claims_whole_single_item():
    item = toggle_claim(make_item(), "A")
    assert item.assigned_to == ["A"]
    assert item.assignments == {"A": 1}


def test_toggle_claims_one_unit_of_multi_unit_item():
    item = toggle_claim(make_item(quantity=4, assignments={"B": 2}), "A")
    assert item.assignments == {"B": 2, "A": 1}


def test_toggle_does_not_overclaim_a_fully_claimed_item():
    original = make_item(assignments={"A": 1})
    item = toggle_claim(original, "B")
    assert item == original
    assert "B" not in item.assigned_to


def test_toggle_takes_only_what_is_left():
    item = toggle_claim(make_item(assignments={"A": 0.75}), "B")
    assert item.assignments["B"] == pytest.approx(0.25)


def test_toggle_twice_restores_item():
    original = make_item(assignments={"A": 0.5})
    claimed = toggle_claim(original, "B")
    assert claimed.assignments == {"A": 0.5, "B": 0.5}
    assert toggle_claim(claimed, "B") == original


def test_toggle_does_not_mutate_input():
    original = make_item(assignments={"A": 0.5})
    toggle_claim(original, "B")
    assert original.assignments == {"A": 0.5}
    assert original.assigned_to == ["A"]


def test_set_quantity_claim_clamps_to_remaining_units():
    item = set_quantity_claim(make_item(quantity=3, assignments={"A": 2}), "B", 5)
    assert item.assignments["B"] == 1


def test_set_quantity_claim_can_replace_own_claim():
    item = set_quantity_claim(make_item(quantity=3, assignments={"A": 1}), "A", 3)
    assert item.assignments == {"A": 3}


def test_set_quantity_claim_zero_removes_person():
    item = set_quantity_claim(make_item(quantity=3, assignments={"A": 2, "B": 1}), "B", 0)
    assert item.assignments == {"A": 2}
    assert item.assigned_to == ["A"]


def test_set_quantity_claim_when_nothing_left_is_a_no_op():
    original = make_item(quantity=2, assignments={"A": 2})
    assert set_quantity_claim(original, "B", 1) == original


def test_fractional_share_is_idempotent():
    once = set_fractional_share(make_item(), "A", 0.5)
    twice = set_fractional_share(once, "A", 0.5)
    assert once.assignments["A"] == 0.5
    assert twice == once


def test_fractional_share_is_clamped_to_remaining():
    item = set_fractional_share(make_item(assignments={"A": 0.75}), "B", 0.5)
    assert item.assignments["B"] == pytest.approx(0.25)
    assert "B" not in item.share_denominators


def test_fractional_share_with_denominator_is_exact():
    item = make_item(assignments={"A": 1 / 3, "B": 1 / 3}, denominators={"A": 3, "B": 3})
    item = set_fractional_share(item, "C", denominator=3)
    assert item.assignments["C"] == 1 / 3
    assert item.share_denominators["C"] == 3
    assert remaining_capacity(item) == 0


def test_fractional_share_zero_removes_person():
    item = set_fractional_share(make_item(assignments={"A": 0.5}), "A", 0)
    assert item.assignments == {}
    assert item.assigned_to == []


def test_clear_assignments_is_idempotent():
    item = make_item(assignments={"A": 0.5, "B": 0.5}, denominators={"A": 2, "B": 2})
    once = clear_assignments(item)
    assert once.assignments == {}
    assert once.assigned_to == []
    assert clear_assignments(once) == once


@pytest.mark.parametrize("people", [["A"], ["A", "B"], ["A", "B", "C"], list("ABCDEFG")])
def test_split_evenly_gives_each_person_one_nth(people):
    item = split_evenly(make_item(assignments={"Z": 1}), people)
    n = len(people)
    assert item.assigned_to == people
    assert all(value == 1 / n for value in item.assignments.values())
    assert sum(item.assignments.values()) == pytest.approx(1.0)
    assert item.share_denominators == {pid: n for pid in people}


def test_update_item_only_touches_matching_item():
    other = make_item().model_copy(update={"id": "item2"})
    items = update_item([make_item(), other], "item1", toggle_claim, "A")
    assert items[0].assignments == {"A": 1}
    assert items[1] is other


def test_remove_person_strips_claims_everywhere():
    items = [
        make_item(assignments={"A": 0.5, "B": 0.5}),
        make_item(quantity=2, assignments={"B": 2}).model_copy(update={"id": "item2"}),
    ]
    items = remove_person(items, "B")
    assert items[0].assignments == {"A": 0.5}
    assert items[1].assignments == {}


def test_ingest_receipt_items_gives_fresh_unclaimed_items():
    lines = [
        schemas.ReceiptLine(description="Wings", quantity=2, unit_price=6.5, total_price=13.0),
        schemas.ReceiptLine(total_price=4.0),
    ]
    items = ingest_receipt_items(lines)
    assert [i.description for i in items] == ["Wings", "Item 2"]
    assert items[1].unit_price == 4.0
    assert all(i.assignments == {} and i.assigned_to == [] for i in items)
    assert items[0].id != items[1].id


def test_share_labels():
    item = make_item(assignments={"A": 1})
    assert share_label(item, "A", 3) == "Just you"

    split = split_evenly(make_item(), ["A", "B", "C"])
    assert share_label(split, "A", 3) == "Everyone"
    assert share_label(split, "A", 4) == "1/3 split"

    legacy = make_item(assignments={"A": 0.333, "B": 0.4})
    assert share_label(legacy, "A", 5) == "1/3 split"
    assert share_label(legacy, "B", 5) == "40%"

    units = make_item(quantity=4, assignments={"A": 3})
    assert share_label(units, "A", 2) == "3 of 4"
    assert share_label(units, "B", 2) == ""


def test_item_rejects_claims_for_unlisted_people():
    with pytest.raises(ValidationError):
        schemas.Item(id="item1", description="Nachos", assigned_to=["A"], assignments={"B": 1})
