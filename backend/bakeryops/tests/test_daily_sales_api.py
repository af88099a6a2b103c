import pytest
from fastapi.testclient import TestClient

from bakeryops.main import app
from bakeryops.services import notification_service


def test_submit_derives_figures_on_server(client, chain, shift_payload):
    payload = shift_payload(
        actual_cash_in_register=590,
        # Client-side totals are ignored
        total_sales=1,
        discrepancy=999,
        average_ticket=5,
    )
    r = client.post("/daily-sales/", json=payload, headers=chain.cashier)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total_sales"] == 800
    assert body["discrepancy"] == -10
    assert body["discrepancy_status"] == "shortage"
    assert body["average_ticket"] == 20
    assert body["status"] == "pending"
    assert body["cashier_id"] == chain.cashier_id
    assert body["cashier_name"] == "Sami"
    assert body["branch_name"] == "Olaya"
    assert body["date"] == "2026-03-10"


def test_non_numeric_amounts_count_as_zero(client, chain, shift_payload):
    payload = shift_payload(starting_cash="", total_network_sales="abc", actual_cash_in_register=None)
    r = client.post("/daily-sales/", json=payload, headers=chain.cashier)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["starting_cash"] == 0
    assert body["total_network_sales"] == 0
    assert body["total_sales"] == 500
    assert body["discrepancy"] == -500


def test_amount_strings_are_accepted(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(total_cash_sales="820.50", total_transactions="57"), headers=chain.cashier)
    assert r.status_code == 200, r.text
    assert r.json()["total_sales"] == 1120.5
    assert r.json()["total_transactions"] == 57


def test_negative_amounts_and_zero_transactions_rejected(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(total_cash_sales=-1), headers=chain.cashier)
    assert r.status_code == 422
    r = client.post("/daily-sales/", json=shift_payload(total_transactions=0), headers=chain.cashier)
    assert r.status_code == 422
    r = client.post("/daily-sales/", json=shift_payload(total_transactions="none"), headers=chain.cashier)
    assert r.status_code == 422


def test_signature_and_shift_end_are_required(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(signature=""), headers=chain.cashier)
    assert r.status_code == 400
    assert "Signature" in r.json()["detail"]

    r = client.post("/daily-sales/", json=shift_payload(shift_end=None), headers=chain.cashier)
    assert r.status_code == 400
    assert "Shift end" in r.json()["detail"]

    r = client.post("/daily-sales/", json=shift_payload(shift_end="2026-03-10T04:00:00"), headers=chain.cashier)
    assert r.status_code == 400


def test_unknown_branch(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(branch_id=9999), headers=chain.cashier)
    assert r.status_code == 404


def test_cashier_cannot_submit_for_someone_else(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(cashier_id=chain.other_id), headers=chain.cashier)
    assert r.status_code == 403


def test_manager_submits_on_behalf_of_cashier(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(cashier_id=chain.other_id), headers=chain.manager)
    assert r.status_code == 200, r.text
    assert r.json()["cashier_id"] == chain.other_id


def test_cashiers_only_see_their_own_entries(client, chain, submit):
    mine = submit(chain.cashier)
    theirs = submit(chain.other)

    r = client.get("/daily-sales/", headers=chain.cashier)
    assert [e["id"] for e in r.json()] == [mine["id"]]

    # Asking for another cashier's entries still returns only your own
    r = client.get("/daily-sales/", params={"cashier_id": chain.other_id}, headers=chain.cashier)
    assert [e["id"] for e in r.json()] == [mine["id"]]

    assert client.get(f"/daily-sales/{theirs['id']}", headers=chain.cashier).status_code == 403
    assert client.get(f"/daily-sales/{mine['id']}", headers=chain.cashier).status_code == 200

    r = client.get("/daily-sales/", headers=chain.manager)
    assert {e["id"] for e in r.json()} == {mine["id"], theirs["id"]}


def test_list_filters(client, chain, submit):
    submit(chain.cashier, date="2026-03-10")
    submit(chain.cashier, date="2026-03-11", shift_start="2026-03-11T05:00:00", shift_end="2026-03-11T13:00:00")

    r = client.get("/daily-sales/", params={"date": "2026-03-11"}, headers=chain.manager)
    assert [e["date"] for e in r.json()] == ["2026-03-11"]

    r = client.get("/daily-sales/", params={"start_date": "2026-03-01", "end_date": "2026-03-31"}, headers=chain.manager)
    assert [e["date"] for e in r.json()] == ["2026-03-11", "2026-03-10"]

    r = client.get("/daily-sales/", params={"start_date": "2026-03-31", "end_date": "2026-03-01"}, headers=chain.manager)
    assert r.status_code == 400


def test_review_flow(client, chain, submit):
    entry = submit(chain.cashier)

    assert client.post(f"/daily-sales/{entry['id']}/approve", headers=chain.cashier).status_code == 403

    r = client.post(f"/daily-sales/{entry['id']}/approve", json={"notes": "Checked"}, headers=chain.manager)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["reviewed_by_id"] == chain.manager_id
    assert body["review_notes"] == "Checked"
    # Figures are untouched by review
    assert body["total_sales"] == entry["total_sales"]

    r = client.post(f"/daily-sales/{entry['id']}/reject", headers=chain.manager)
    assert r.status_code == 400

    r = client.get("/daily-sales/", params={"status": "approved"}, headers=chain.manager)
    assert [e["id"] for e in r.json()] == [entry["id"]]


def test_reject_without_body(client, chain, submit):
    entry = submit(chain.cashier)
    r = client.post(f"/daily-sales/{entry['id']}/reject", headers=chain.admin)
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"


def test_entries_are_tenant_scoped(client, chain, submit):
    entry = submit(chain.cashier)
    r = client.post("/auth/register", json={
        "email": "admin@other.com",
        "password": "secret123",
        "tenant_name": "Other",
        "tenant_slug": "other",
    })
    other_admin = {"Authorization": f"Bearer {r.json()['access_token']}", "X-Tenant-ID": "other"}
    assert client.get(f"/daily-sales/{entry['id']}", headers=other_admin).status_code == 404
    assert client.get("/daily-sales/", headers=other_admin).json() == []


def test_preview_matches_submission(client, chain, shift_payload):
    r = client.post("/daily-sales/preview", json={
        "starting_cash": "100",
        "total_cash_sales": 500,
        "total_network_sales": "300",
        "actual_cash_in_register": 590,
        "total_transactions": 40,
    }, headers=chain.cashier)
    assert r.status_code == 200
    assert r.json() == {"total_sales": 800.0, "discrepancy": -10.0, "average_ticket": 20.0, "discrepancy_status": "shortage"}


def test_preview_tolerates_blank_form(client, chain):
    r = client.post("/daily-sales/preview", json={"total_cash_sales": "abc"}, headers=chain.cashier)
    assert r.status_code == 200
    assert r.json() == {"total_sales": 0.0, "discrepancy": 0.0, "average_ticket": 0.0, "discrepancy_status": "balanced"}


def test_preview_with_huge_exponents(client, chain):
    r = client.post("/daily-sales/preview", json={
        "starting_cash": "1e1000000",
        "total_cash_sales": 500,
        "total_network_sales": 300,
        "actual_cash_in_register": 600,
        "total_transactions": "1e100000000",
    }, headers=chain.cashier)
    assert r.status_code == 200, r.text
    assert r.json() == {"total_sales": 800.0, "discrepancy": 100.0, "average_ticket": 0.0, "discrepancy_status": "surplus"}


@pytest.mark.parametrize("amount", ["1e30", "10000000000", "1e1000000", 1e300])
def test_oversized_amounts_rejected(client, chain, shift_payload, amount):
    r = client.post("/daily-sales/", json=shift_payload(total_cash_sales=amount), headers=chain.cashier)
    assert r.status_code == 422
    assert client.get("/daily-sales/", headers=chain.manager).json() == []


def test_largest_storable_amount_accepted(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(total_network_sales="9999999999.99"), headers=chain.cashier)
    assert r.status_code == 200, r.text
    assert r.json()["total_network_sales"] == 9999999999.99


def test_huge_transaction_count_rejected(client, chain, shift_payload):
    r = client.post("/daily-sales/", json=shift_payload(total_transactions="1e100000000"), headers=chain.cashier)
    assert r.status_code == 422


def test_failed_review_leaves_entry_pending(client, chain, submit, monkeypatch):
    entry = submit(chain.cashier)

    def broken(db, entry):
        raise RuntimeError("notification store unavailable")

    monkeypatch.setattr(notification_service, "notify_review", broken)
    failing = TestClient(app, raise_server_exceptions=False)
    r = failing.post(f"/daily-sales/{entry['id']}/approve", headers=chain.manager)
    assert r.status_code == 500

    monkeypatch.undo()
    body = client.get(f"/daily-sales/{entry['id']}", headers=chain.manager).json()
    assert body["status"] == "pending"
    assert body["reviewed_by_id"] is None

    r = client.post(f"/daily-sales/{entry['id']}/approve", headers=chain.manager)
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
