import os

# Must be set before any bakeryops module builds its settings or engine
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import bakeryops.models  # noqa: F401
from bakeryops.core.database import SessionLocal, engine
from bakeryops.main import app
from bakeryops.models.tenant import Base


TENANT_SLUG = "bakery"
PASSWORD = "secret123"
SIGNATURE = "data:image/png;base64,c2lnbmF0dXJl"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def headers_for(token: str, slug: str = TENANT_SLUG) -> dict:
    return {"Authorization": f"Bearer {token}", "X-Tenant-ID": slug}


def login(client: TestClient, email: str, slug: str = TENANT_SLUG) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": PASSWORD}, headers={"X-Tenant-ID": slug})
    assert r.status_code == 200, r.text
    return headers_for(r.json()["access_token"], slug)


def create_user(client: TestClient, admin_headers: dict, email: str, role: str, branch_id=None, name: str = "") -> dict:
    r = client.post(
        "/admin/users",
        json={"email": email, "password": PASSWORD, "role": role, "branch_id": branch_id, "name": name},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def chain(client):
    """A chain with one branch, an admin, a branch manager and two cashiers."""
    r = client.post("/auth/register", json={
        "email": "admin@bakery.com",
        "password": PASSWORD,
        "name": "Admin",
        "tenant_name": "Test Bakery",
        "tenant_slug": TENANT_SLUG,
    })
    assert r.status_code == 200, r.text
    admin = headers_for(r.json()["access_token"])

    r = client.post("/branches/", json={"name": "Olaya", "code": "OLY"}, headers=admin)
    assert r.status_code == 200, r.text
    branch_id = r.json()["id"]

    manager = create_user(client, admin, "manager@bakery.com", "branch_manager", branch_id, "Maha")
    cashier = create_user(client, admin, "cashier@bakery.com", "cashier", branch_id, "Sami")
    other = create_user(client, admin, "other@bakery.com", "cashier", branch_id, "Omar")

    return SimpleNamespace(
        admin=admin,
        branch_id=branch_id,
        manager_id=manager["id"],
        manager=login(client, "manager@bakery.com"),
        cashier_id=cashier["id"],
        cashier=login(client, "cashier@bakery.com"),
        other_id=other["id"],
        other=login(client, "other@bakery.com"),
    )


@pytest.fixture
def shift_payload(chain):
    def build(**overrides):
        payload = {
            "branch_id": chain.branch_id,
            "date": "2026-03-10",
            "shift_type": "morning",
            "shift_start": "2026-03-10T05:00:00",
            "shift_end": "2026-03-10T13:00:00",
            "starting_cash": 100,
            "total_cash_sales": 500,
            "total_network_sales": 300,
            "actual_cash_in_register": 600,
            "total_transactions": 40,
            "signature": SIGNATURE,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def submit(client, shift_payload):
    def do_submit(headers, **overrides):
        r = client.post("/daily-sales/", json=shift_payload(**overrides), headers=headers)
        assert r.status_code == 200, r.text
        return r.json()
    return do_submit
