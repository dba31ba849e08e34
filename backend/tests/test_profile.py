def test_payment_accounts_start_empty(client, auth_headers):
    response = client.get("/users/me/payment-accounts", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"venmo": None, "cashapp": None, "paypal": None}

def test_update_payment_accounts_cleans_handles(client, auth_headers):
    response = client.put(
        "/users/me/payment-accounts",
        headers=auth_headers,
        json={"venmo": "@alex_b", "cashapp": "$AlexB", "paypal": "alex.b"}
    )
    assert response.status_code == 200
    assert response.json() == {"venmo": "alex_b", "cashapp": "AlexB", "paypal": "alexb"}

    response = client.get("/users/me/payment-accounts", headers=auth_headers)
    assert response.json()["cashapp"] == "AlexB"

def test_clearing_an_account(client, auth_headers):
    client.put("/users/me/payment-accounts", headers=auth_headers, json={"venmo": "alex"})
    response = client.put("/users/me/payment-accounts", headers=auth_headers, json={"venmo": ""})
    assert response.json()["venmo"] is None

def test_rewards_start_at_zero(client, auth_headers):
    response = client.get("/users/me/rewards", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"balance": 0, "lifetime": 0, "history": []}

def test_profile_requires_auth(client):
    assert client.get("/users/me/payment-accounts").status_code == 401
    assert client.get("/users/me/rewards").status_code == 401
