import pytest


DAY = "2026-03-10"


@pytest.fixture
def approved_day(client, chain, submit):
    """Both cashiers closed a shift on the same day and both were approved."""
    morning = submit(chain.cashier)
    evening = submit(
        chain.other, shift_type="evening",
        shift_start="2026-03-10T13:00:00", shift_end="2026-03-10T21:00:00",
        total_network_sales=100, actual_cash_in_register=540, total_transactions=20,
    )
    for entry in (morning, evening):
        r = client.post(f"/daily-sales/{entry['id']}/approve", headers=chain.manager)
        assert r.status_code == 200, r.text
    chain.entry_ids = [morning["id"], evening["id"]]
    return chain


def consolidate(client, chain, headers=None, day=DAY):
    return client.post(
        "/consolidated-sales/",
        json={"branch_id": chain.branch_id, "date": day},
        headers=headers or chain.manager,
    )


def test_consolidate_sums_approved_closings(client, approved_day):
    r = consolidate(client, approved_day)
    assert r.status_code == 200, r.text
    journal = r.json()
    assert journal["branch_name"] == "Olaya"
    assert journal["date"] == DAY
    assert journal["total_cash_sales"] == 1000
    assert journal["total_network_sales"] == 400
    assert journal["total_sales"] == 1400
    assert journal["total_transactions"] == 60
    assert journal["average_ticket"] == pytest.approx(23.33)
    assert journal["total_discrepancy"] == -60
    assert journal["discrepancy_status"] == "shortage"
    assert journal["status"] == "open"
    assert journal["created_by_id"] == approved_day.manager_id
    assert journal["entry_count"] == 2
    assert [e["id"] for e in journal["entries"]] == approved_day.entry_ids
    assert {e["consolidated_id"] for e in journal["entries"]} == {journal["id"]}

    entry = client.get(f"/daily-sales/{approved_day.entry_ids[0]}", headers=approved_day.cashier).json()
    assert entry["consolidated_id"] == journal["id"]


def test_day_is_consolidated_once(client, approved_day):
    assert consolidate(client, approved_day).status_code == 200
    r = consolidate(client, approved_day, headers=approved_day.admin)
    assert r.status_code == 400
    assert "already consolidated" in r.json()["detail"]


def test_pending_closings_block_consolidation(client, approved_day, submit):
    submit(approved_day.cashier, shift_start="2026-03-10T21:00:00", shift_end="2026-03-10T23:00:00")
    r = consolidate(client, approved_day)
    assert r.status_code == 400
    assert "pending review" in r.json()["detail"]


def test_nothing_to_consolidate(client, chain, submit):
    entry = submit(chain.cashier)
    client.post(f"/daily-sales/{entry['id']}/reject", headers=chain.manager)
    r = consolidate(client, chain)
    assert r.status_code == 400
    assert "No approved" in r.json()["detail"]

    assert consolidate(client, chain, day="2026-03-11").status_code == 400


def test_close_then_transfer(client, approved_day):
    journal_id = consolidate(client, approved_day).json()["id"]
    base = f"/consolidated-sales/{journal_id}"

    assert client.post(f"{base}/transfer", headers=approved_day.manager).status_code == 400

    r = client.post(f"{base}/close", headers=approved_day.manager)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "closed"
    assert r.json()["closed_by_id"] == approved_day.manager_id
    assert r.json()["closed_at"] is not None
    assert client.post(f"{base}/close", headers=approved_day.manager).status_code == 400

    r = client.post(f"{base}/transfer", headers=approved_day.admin)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "transferred"
    assert r.json()["transferred_at"] is not None
    assert client.post(f"{base}/transfer", headers=approved_day.admin).status_code == 400

    actions = [a["action"] for a in client.get("/activities/", headers=approved_day.admin).json()]
    assert actions[:3] == ["transfer_consolidated_sales", "close_consolidated_sales", "consolidate_sales"]


def test_list_and_get(client, approved_day):
    journal_id = consolidate(client, approved_day).json()["id"]

    r = client.get("/consolidated-sales/", params={"branch_id": approved_day.branch_id, "date": DAY}, headers=approved_day.manager)
    assert r.status_code == 200
    assert [j["id"] for j in r.json()] == [journal_id]
    assert client.get("/consolidated-sales/", params={"status": "closed"}, headers=approved_day.manager).json() == []

    r = client.get(f"/consolidated-sales/{journal_id}", headers=approved_day.manager)
    assert r.status_code == 200
    assert len(r.json()["entries"]) == 2
    assert client.get("/consolidated-sales/9999", headers=approved_day.manager).status_code == 404


def test_cashiers_cannot_consolidate(client, approved_day):
    assert consolidate(client, approved_day, headers=approved_day.cashier).status_code == 403
    assert client.get("/consolidated-sales/", headers=approved_day.cashier).status_code == 403


def test_unknown_branch(client, approved_day):
    r = client.post("/consolidated-sales/", json={"branch_id": 9999, "date": DAY}, headers=approved_day.manager)
    assert r.status_code == 404
