def test_feed_records_submission_review_and_targets(client, chain, submit):
    entry = submit(chain.cashier, actual_cash_in_register=590)
    client.post(f"/daily-sales/{entry['id']}/approve", json={"notes": "Counted twice"}, headers=chain.manager)
    r = client.post("/monthly-targets/", json={
        "branch_id": chain.branch_id, "year": 2026, "month": 3, "target_amount": "31000",
    }, headers=chain.admin)
    assert r.status_code == 200, r.text

    r = client.get("/activities/", headers=chain.admin)
    assert r.status_code == 200, r.text
    feed = r.json()
    assert [a["action"] for a in feed] == [
        "set_monthly_target",
        "approve_daily_sales",
        "register_shortage",
        "create_daily_sales",
    ]

    target, approval, shortage, created = feed
    assert target["details"] == {"year": 2026, "month": 3, "target_amount": 31000.0}
    assert approval["user_id"] == chain.manager_id
    assert approval["user_name"] == "Maha"
    assert approval["details"]["notes"] == "Counted twice"
    assert created["user_name"] == "Sami"
    assert created["user_role"] == "cashier"
    assert created["branch_name"] == "Olaya"
    assert created["details"]["daily_sales_id"] == entry["id"]
    assert created["details"]["discrepancy"] == -10
    assert shortage["details"] == created["details"]


def test_balanced_shift_is_not_a_shortage(client, chain, submit):
    submit(chain.cashier)
    feed = client.get("/activities/", headers=chain.cashier).json()
    assert [a["action"] for a in feed] == ["create_daily_sales"]


def test_feed_limit_and_branch_filter(client, chain, submit):
    for _ in range(3):
        submit(chain.cashier)

    r = client.get("/activities/", params={"limit": 2}, headers=chain.manager)
    assert len(r.json()) == 2

    r = client.post("/branches/", json={"name": "Malqa", "code": "MLQ"}, headers=chain.admin)
    other_branch = r.json()["id"]
    assert client.get("/activities/", params={"branch_id": other_branch}, headers=chain.admin).json() == []
    assert len(client.get("/activities/", params={"branch_id": chain.branch_id}, headers=chain.admin).json()) == 3

    assert client.get("/activities/", params={"limit": 0}, headers=chain.admin).status_code == 422
    assert client.get("/activities/", params={"limit": 101}, headers=chain.admin).status_code == 422


def test_feed_requires_login(client, chain):
    assert client.get("/activities/", headers={"X-Tenant-ID": "bakery"}).status_code == 401
