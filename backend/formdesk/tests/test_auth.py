import uuid

from formdesk.tests.conftest import register


def test_register_and_login(client):
    email = f"{uuid.uuid4()}@example.com"
    _, data = register(client, name="Ali", email=email)
    assert data["access_token"]
    assert data["role"] == "Editor"
    assert data["tenant_name"] == "Ali's Organization"

    resp = client.post("/api/auth/login", json={"email": email.upper(), "password": "secret"})
    assert resp.status_code == 200
    assert resp.json()["tenant_id"] == data["tenant_id"]


def test_duplicate_email_is_rejected(client):
    email = f"{uuid.uuid4()}@example.com"
    register(client, name="First", email=email)
    resp = client.post(
        "/api/auth/register",
        json={"name": "Second", "email": email.upper(), "password": "secret"},
    )
    assert resp.status_code == 409


def test_bad_credentials(client):
    email = f"{uuid.uuid4()}@example.com"
    register(client, name="Pw", email=email)
    resp = client.post("/api/auth/login", json={"email": email, "password": "wrong-password"})
    assert resp.status_code == 401
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret"})
    assert resp.status_code == 401


def test_short_password_is_invalid(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Short", "email": f"{uuid.uuid4()}@example.com", "password": "123"},
    )
    assert resp.status_code == 422


def test_garbage_token_is_unauthorized(client):
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
