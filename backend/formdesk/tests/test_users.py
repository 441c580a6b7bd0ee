import uuid

from formdesk import models

from formdesk.tests.conftest import TestingSessionLocal, register


def test_get_and_update_profile(client):
    email = f"{uuid.uuid4()}@example.com"
    headers, _ = register(client, name="Tester", email=email)
    resp = client.get("/api/users/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == email

    update = {"name": "Renamed", "phone_number": "123", "age": 30}
    up_resp = client.put("/api/users/me", json=update, headers=headers)
    assert up_resp.status_code == 200
    updated = up_resp.json()
    assert updated["name"] == "Renamed"
    assert updated["phone_number"] == "123"
    assert updated["age"] == 30


def test_users_listing_is_tenant_scoped(client):
    headers, data = register(client, name="Solo")
    register(client, name="Elsewhere")
    resp = client.get("/api/users", headers=headers)
    assert resp.status_code == 200
    assert [u["id"] for u in resp.json()] == [data["user_id"]]


def test_tenant_branding_requires_admin(client):
    headers, data = register(client, name="Brand")
    tenant = client.get("/api/tenants/me", headers=headers)
    assert tenant.status_code == 200
    assert tenant.json()["name"] == "Brand's Organization"

    denied = client.patch("/api/tenants/me", json={"name": "Acme"}, headers=headers)
    assert denied.status_code == 403

    db = TestingSessionLocal()
    try:
        db.get(models.User, uuid.UUID(data["user_id"])).role = models.ROLE_ADMIN
        db.commit()
    finally:
        db.close()

    resp = client.patch(
        "/api/tenants/me",
        json={"name": "Acme", "logo_url": "https://example.com/logo.png"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Acme"
    assert resp.json()["logo_url"] == "https://example.com/logo.png"
