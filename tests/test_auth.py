from datetime import timedelta

from jose import jwt

from app.core.config import settings
from app.models.user import User
from app.services.auth import create_access_token, create_reset_token
from tests.helpers import PASSWORD, auth_headers


def _register(client, **overrides):
    payload = {"email": "novo@cantina.com", "password": "secret123", "name": "Novo Cliente"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_token_and_customer(client, db):
    r = _register(client, phone="11999990000")
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["role"] == "CLIENTE"
    assert user["email"] == "novo@cantina.com"
    assert "passwordHash" not in user and "password" not in user
    assert body["data"]["token"]

    stored = db.query(User).filter(User.email == "novo@cantina.com").one()
    assert stored.password_hash != "secret123"
    assert stored.cart is not None


def test_register_trims_name(client):
    r = _register(client, name="  Ana Souza ")
    assert r.status_code == 201
    assert r.json()["data"]["user"]["name"] == "Ana Souza"


def test_register_ignores_role_in_payload(client):
    r = _register(client, role="ADMIN")
    assert r.status_code == 201
    assert r.json()["data"]["user"]["role"] == "CLIENTE"


def test_register_duplicate_email_conflicts(client):
    assert _register(client).status_code == 201
    r = _register(client, name="Outro Nome", password="outra-senha")
    assert r.status_code == 409
    assert r.json()["success"] is False


def test_register_email_is_case_insensitive(client):
    assert _register(client).status_code == 201
    assert _register(client, email="NOVO@Cantina.com").status_code == 409


def test_register_validation(client):
    assert _register(client, email="nao-e-email").status_code == 400
    assert _register(client, password="123").status_code == 400
    r = client.post("/api/auth/register", json={"email": "x@cantina.com", "password": "secret123"})
    assert r.status_code == 400
    assert r.json()["errors"]
    assert _register(client, name="   ").status_code == 400


def test_login_success_and_me(client, customer):
    r = client.post("/api/auth/login", json={"email": "cliente@cantina.com", "password": PASSWORD})
    assert r.status_code == 200
    token = r.json()["data"]["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == customer.id


def test_login_failures_share_message(client, customer):
    wrong_pw = client.post("/api/auth/login", json={"email": "cliente@cantina.com", "password": "errada"})
    unknown = client.post("/api/auth/login", json={"email": "ninguem@cantina.com", "password": PASSWORD})
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json()["message"] == unknown.json()["message"]


def test_me_requires_valid_token(client, customer):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer lixo"}).status_code == 401

    expired = create_access_token({"sub": customer.id, "role": "CLIENTE"}, timedelta(minutes=-1))
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"}).status_code == 401

    forged = jwt.encode({"sub": customer.id, "type": "access"}, "outra-chave", algorithm=settings.ALGORITHM)
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"}).status_code == 401


def test_token_of_deleted_user_is_rejected(client, db, customer):
    headers = auth_headers(customer)
    db.delete(customer)
    db.commit()
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_change_password(client, customer, client_headers):
    r = client.put("/api/auth/change-password", headers=client_headers,
                   json={"currentPassword": "errada", "newPassword": "nova-senha"})
    assert r.status_code == 400

    r = client.put("/api/auth/change-password", headers=client_headers,
                   json={"currentPassword": PASSWORD, "newPassword": "nova-senha"})
    assert r.status_code == 200
    ok = client.post("/api/auth/login", json={"email": "cliente@cantina.com", "password": "nova-senha"})
    assert ok.status_code == 200


def test_forgot_password_does_not_reveal_accounts(client, customer):
    known = client.post("/api/auth/forgot-password", json={"email": "cliente@cantina.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ninguem@cantina.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]


def test_reset_password_token_is_single_use(client, customer):
    token = create_reset_token(customer)
    r = client.post("/api/auth/reset-password", json={"token": token, "password": "trocada1"})
    assert r.status_code == 200
    assert client.post("/api/auth/login", json={"email": "cliente@cantina.com", "password": "trocada1"}).status_code == 200

    # the password changed, so the same token no longer matches
    again = client.post("/api/auth/reset-password", json={"token": token, "password": "trocada2"})
    assert again.status_code == 400


def test_access_token_cannot_reset_password(client, customer):
    token = create_access_token({"sub": customer.id, "role": "CLIENTE"})
    r = client.post("/api/auth/reset-password", json={"token": token, "password": "trocada1"})
    assert r.status_code == 400
