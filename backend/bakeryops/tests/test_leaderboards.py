import pytest


RANGE = {"start_date": "2026-03-01", "end_date": "2026-03-31"}


@pytest.fixture
def ranked(client, chain, submit):
    r = client.post("/admin/users", json={
        "email": "zaid@bakery.com", "password": "secret123", "role": "cashier",
        "branch_id": chain.branch_id, "name": "Zaid",
    }, headers=chain.admin)
    zaid_id = r.json()["id"]

    # Sami: 800 balanced; Omar: 600 with a 60 shortage; Zaid: 400 balanced
    submit(chain.cashier)
    submit(chain.other, total_network_sales=100, actual_cash_in_register=540, total_transactions=20)
    submit(chain.admin, cashier_id=zaid_id, total_cash_sales=300, total_network_sales=100, actual_cash_in_register=400, total_transactions=10)
    chain.zaid_id = zaid_id
    return chain


def test_rank_by_total_sales(client, ranked):
    r = client.get("/leaderboards/cashiers", params=RANGE, headers=ranked.cashier)
    assert r.status_code == 200, r.text
    rows = r.json()
    assert [(row["rank"], row["name"], row["value"]) for row in rows] == [
        (1, "Sami", 800.0),
        (2, "Omar", 600.0),
        (3, "Zaid", 400.0),
    ]


def test_rank_by_average_ticket(client, ranked):
    rows = client.get("/leaderboards/cashiers", params={**RANGE, "metric": "average_ticket"}, headers=ranked.cashier).json()
    assert [(row["name"], row["value"]) for row in rows] == [("Zaid", 40.0), ("Omar", 30.0), ("Sami", 20.0)]


def test_ties_share_a_rank(client, ranked):
    rows = client.get("/leaderboards/cashiers", params={**RANGE, "metric": "performance"}, headers=ranked.cashier).json()
    assert [(row["rank"], row["name"]) for row in rows] == [(1, "Sami"), (1, "Zaid"), (3, "Omar")]


def test_limit(client, ranked):
    rows = client.get("/leaderboards/cashiers", params={**RANGE, "limit": 2}, headers=ranked.cashier).json()
    assert len(rows) == 2


def test_my_rank(client, ranked):
    r = client.get("/leaderboards/cashiers/my-rank", params=RANGE, headers=ranked.other)
    assert r.status_code == 200
    assert r.json()["rank"] == 2
    assert r.json()["cashier_id"] == ranked.other_id

    r = client.get("/leaderboards/cashiers/my-rank", params=RANGE, headers=ranked.manager)
    assert r.status_code == 404


def test_unknown_metric(client, ranked):
    r = client.get("/leaderboards/cashiers", params={**RANGE, "metric": "speed"}, headers=ranked.cashier)
    assert r.status_code == 422
