"""Tests for payment status, tab completion and organizer rewards."""

import models


def pay_url(tab, person_id, action):
    return f"/tabs/{tab['id']}/people/{person_id}/payment/{action}"


def test_guest_claims_payment(client, tab):
    bob = tab["people"][1]["id"]
    response = client.post(pay_url(tab, bob, "claim"), json={"paid_via": "venmo"})
    assert response.status_code == 200
    person = response.json()["people"][1]
    assert person["payment_status"] == "claimed"
    assert person["paid_via"] == "venmo"
    assert person["paid_at"] is not None


def test_invalid_payment_method(client, tab):
    bob = tab["people"][1]["id"]
    response = client.post(pay_url(tab, bob, "claim"), json={"paid_via": "bitcoin"})
    assert response.status_code == 422


def test_only_organizer_confirms(client, other_user_headers, tab):
    bob = tab["people"][1]["id"]
    response = client.post(pay_url(tab, bob, "confirm"), headers=other_user_headers)
    assert response.status_code == 403


def test_reject_resets_to_pending(client, auth_headers, tab):
    bob = tab["people"][1]["id"]
    client.post(pay_url(tab, bob, "claim"), json={"paid_via": "cashapp"})
    response = client.post(pay_url(tab, bob, "reject"), headers=auth_headers)
    assert response.status_code == 200
    person = response.json()["people"][1]
    assert person["payment_status"] == "pending"
    assert person["paid_via"] is None
    assert person["paid_at"] is None


def test_all_confirmed_completes_tab_and_awards_points_once(client, auth_headers, tab, test_user, db_session):
    for person in tab["people"]:
        response = client.post(pay_url(tab, person["id"], "confirm"), headers=auth_headers)
        assert response.status_code == 200

    data = response.json()
    assert data["status"] == "completed"
    assert data["points_awarded"] is True

    db_session.refresh(test_user)
    assert test_user.points_balance == 30
    assert test_user.points_lifetime == 30

    # Confirming again must not award twice
    client.post(pay_url(tab, tab["people"][0]["id"], "confirm"), headers=auth_headers)
    db_session.refresh(test_user)
    assert test_user.points_balance == 30
    assert db_session.query(models.PointsHistory).count() == 1

    rewards = client.get("/users/me/rewards", headers=auth_headers).json()
    assert rewards["balance"] == 30
    assert rewards["history"][0]["tab_name"] == "Luigi's"


def test_partial_confirmation_keeps_status(client, auth_headers, tab):
    bob = tab["people"][1]["id"]
    response = client.post(pay_url(tab, bob, "confirm"), headers=auth_headers)
    assert response.json()["status"] == "open"
    assert response.json()["points_awarded"] is False


def test_payment_links_use_organizer_accounts(client, auth_headers, tab):
    client.put(
        "/users/me/payment-accounts",
        headers=auth_headers,
        json={"venmo": "@alice-eats", "cashapp": "$alice", "paypal": None}
    )
    bob = tab["people"][1]["id"]
    client.post(f"/tabs/{tab['id']}/items/{tab['items'][1]['id']}/toggle", json={"person_id": bob})

    response = client.get(f"/tabs/{tab['id']}/people/{bob}/payment-links")
    assert response.status_code == 200
    data = response.json()
    # Salad 12 + a third of 6 tax/tip
    assert data["amount"] == 14.0
    assert data["venmo"].startswith("https://venmo.com/alice-eats?txn=pay&amount=14.00")
    assert data["cashapp"] == "https://cash.app/$alice/14.00"
    assert data["paypal"] is None


def test_reject_after_completion_reopens_tab(client, auth_headers, tab, test_user, db_session):
    for person in tab["people"]:
        client.post(pay_url(tab, person["id"], "confirm"), headers=auth_headers)

    carol = tab["people"][2]["id"]
    response = client.post(pay_url(tab, carol, "reject"), headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "open"
    assert [p["payment_status"] for p in data["people"]] == ["confirmed", "confirmed", "pending"]

    # Settling again completes the tab without a second award
    response = client.post(pay_url(tab, carol, "confirm"), headers=auth_headers)
    assert response.json()["status"] == "completed"
    db_session.refresh(test_user)
    assert test_user.points_balance == 30
