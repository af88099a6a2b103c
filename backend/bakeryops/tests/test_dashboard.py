import pytest

from bakeryops.services.performance_service import achievement_status


@pytest.fixture
def march(client, chain, submit):
    """Two cashiers in March 2026 at one branch, plus one rejected closing."""
    r = client.post("/monthly-targets/", json={
        "branch_id": chain.branch_id, "year": 2026, "month": 3, "target_amount": "31000",
    }, headers=chain.admin)
    assert r.status_code == 200, r.text

    submit(chain.cashier, date="2026-03-05", shift_start="2026-03-05T05:00:00", shift_end="2026-03-05T13:00:00")
    submit(chain.cashier, date="2026-03-10")
    submit(
        chain.other, date="2026-03-10", shift_type="evening",
        shift_start="2026-03-10T13:00:00", shift_end="2026-03-10T21:00:00",
        total_network_sales=100, actual_cash_in_register=540, total_transactions=20,
    )
    rejected = submit(
        chain.other, date="2026-03-11",
        shift_start="2026-03-11T05:00:00", shift_end="2026-03-11T13:00:00",
    )
    r = client.post(f"/daily-sales/{rejected['id']}/reject", headers=chain.manager)
    assert r.status_code == 200
    return chain


def test_stats_for_a_day(client, march):
    r = client.get("/dashboard/stats", params={"date": "2026-03-10", "branch_id": march.branch_id}, headers=march.manager)
    assert r.status_code == 200, r.text
    stats = r.json()
    assert stats["daily_sales"] == 1400
    assert stats["daily_target"] == 1000
    assert stats["daily_target_percentage"] == 140.0
    assert stats["monthly_sales_amount"] == 2200
    assert stats["monthly_target"] == 31000
    assert stats["monthly_target_percentage"] == pytest.approx(7.1)
    assert stats["entries"] == 2
    assert stats["total_transactions"] == 60
    assert stats["average_ticket"] == pytest.approx(23.33)
    assert stats["net_discrepancy"] == -60
    assert stats["pending_reviews"] == 2


def test_rejected_entries_do_not_count(client, march):
    stats = client.get("/dashboard/stats", params={"date": "2026-03-11"}, headers=march.admin).json()
    assert stats["daily_sales"] == 0
    assert stats["entries"] == 0
    assert stats["average_ticket"] == 0
    assert stats["monthly_sales_amount"] == 2200


def test_cashier_performance(client, march):
    params = {"start_date": "2026-03-01", "end_date": "2026-03-31"}
    r = client.get("/dashboard/cashier-performance", params=params, headers=march.manager)
    assert r.status_code == 200, r.text
    rows = r.json()
    assert [row["cashier_id"] for row in rows] == [march.cashier_id, march.other_id]

    sami, omar = rows
    assert sami["shifts"] == 2
    assert sami["total_sales"] == 1600
    assert sami["discrepancy"] == 0
    assert sami["discrepancy_status"] == "balanced"
    assert sami["total_transactions"] == 80
    assert sami["average_ticket"] == 20
    assert sami["performance"] == 100.0
    assert sami["shift_start"] == "2026-03-05T05:00:00"
    assert sami["shift_end"] == "2026-03-10T13:00:00"

    assert omar["shifts"] == 1
    assert omar["total_sales"] == 600
    assert omar["discrepancy"] == -60
    assert omar["average_ticket"] == 30
    assert omar["performance"] == pytest.approx(90.0)


def test_cashier_performance_discrepancy_filter(client, march):
    params = {"start_date": "2026-03-01", "end_date": "2026-03-31", "discrepancy_filter": "shortage"}
    rows = client.get("/dashboard/cashier-performance", params=params, headers=march.manager).json()
    assert [row["cashier_id"] for row in rows] == [march.other_id]

    params["discrepancy_filter"] = "surplus"
    assert client.get("/dashboard/cashier-performance", params=params, headers=march.manager).json() == []

    params["discrepancy_filter"] = "bogus"
    assert client.get("/dashboard/cashier-performance", params=params, headers=march.manager).status_code == 422


def test_inverted_range_is_rejected(client, march):
    params = {"start_date": "2026-03-31", "end_date": "2026-03-01"}
    assert client.get("/dashboard/cashier-performance", params=params, headers=march.admin).status_code == 400
    assert client.get("/dashboard/sales-analytics", params=params, headers=march.admin).status_code == 400


def test_target_achievement(client, march):
    client.post("/branches/", json={"name": "Malqa", "code": "MLQ"}, headers=march.admin)

    r = client.get("/dashboard/target-achievement", params={"month": 3, "year": 2026}, headers=march.admin)
    assert r.status_code == 200, r.text
    rows = {row["branch_name"]: row for row in r.json()}
    assert rows["Olaya"]["target"] == 31000
    assert rows["Olaya"]["achieved"] == 2200
    assert rows["Olaya"]["percentage"] == pytest.approx(7.1)
    assert rows["Olaya"]["status"] == "needs_improvement"
    assert rows["Malqa"]["status"] == "no_target"
    assert rows["Malqa"]["achieved"] == 0


@pytest.mark.parametrize("pct,status", [
    (120.0, "excellent"),
    (95.0, "excellent"),
    (90.0, "very_good"),
    (75.0, "good"),
    (74.99, "needs_improvement"),
])
def test_achievement_status_bands(pct, status):
    assert achievement_status(pct) == status


def test_sales_analytics_fills_quiet_days(client, march):
    params = {"start_date": "2026-03-09", "end_date": "2026-03-11", "branch_id": march.branch_id}
    r = client.get("/dashboard/sales-analytics", params=params, headers=march.manager)
    assert r.status_code == 200, r.text
    series = r.json()
    assert [point["date"] for point in series] == ["2026-03-09", "2026-03-10", "2026-03-11"]
    assert series[0]["total_sales"] == 0
    assert series[1] == {
        "date": "2026-03-10",
        "cash_sales": 1000.0,
        "network_sales": 400.0,
        "total_sales": 1400.0,
        "transactions": 60,
        "average_ticket": pytest.approx(23.33),
    }
    # The only closing on the 11th was rejected
    assert series[2]["total_sales"] == 0


def test_monthly_target_upsert(client, chain):
    payload = {"branch_id": chain.branch_id, "year": 2026, "month": 4, "target_amount": "40000"}
    first = client.post("/monthly-targets/", json=payload, headers=chain.manager).json()
    payload["target_amount"] = "45000.50"
    second = client.post("/monthly-targets/", json=payload, headers=chain.admin).json()
    assert first["id"] == second["id"]
    assert second["target_amount"] == 45000.5

    targets = client.get("/monthly-targets/", params={"year": 2026, "month": 4}, headers=chain.cashier).json()
    assert len(targets) == 1
    assert targets[0]["branch_name"] == "Olaya"


def test_monthly_target_validation(client, chain):
    payload = {"branch_id": chain.branch_id, "year": 2026, "month": 4, "target_amount": "0"}
    assert client.post("/monthly-targets/", json=payload, headers=chain.admin).status_code == 422
    payload.update(target_amount="100", month=13)
    assert client.post("/monthly-targets/", json=payload, headers=chain.admin).status_code == 422
    payload.update(month=4)
    assert client.post("/monthly-targets/", json=payload, headers=chain.cashier).status_code == 403
    payload.update(branch_id=9999)
    assert client.post("/monthly-targets/", json=payload, headers=chain.admin).status_code == 404
