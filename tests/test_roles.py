import pytest

from app.models.user import RoleEnum
from app.services.auth import ensure_admin

ADMIN_ROUTES = [
    ("post", "/api/categories", {"name": "Nova"}),
    ("put", "/api/categories/id-inexistente-123", {"name": "X"}),
    ("delete", "/api/categories/id-inexistente-123", None),
    ("put", "/api/categories/reorder/all", {"categories": [{"id": "x", "sortOrder": 1}]}),
    ("post", "/api/products", {"name": "X", "price": 1, "categoryId": "x"}),
    ("put", "/api/products/id-inexistente-123", {"price": 1}),
    ("delete", "/api/products/id-inexistente-123", None),
    ("patch", "/api/products/id-inexistente-123/availability", {"isAvailable": False}),
    ("get", "/api/orders/admin/all", None),
    ("patch", "/api/orders/admin/id-inexistente-123/status", {"status": "EM_PREPARO"}),
]


@pytest.mark.parametrize("method, path, body", ADMIN_ROUTES)
def test_admin_routes_reject_customers(client, client_headers, method, path, body):
    kwargs = {"json": body} if body is not None else {}
    assert getattr(client, method)(path, **kwargs).status_code == 401
    r = getattr(client, method)(path, headers=client_headers, **kwargs)
    assert r.status_code == 403
    assert r.json()["success"] is False


def test_ensure_admin_is_idempotent(db):
    admin = ensure_admin(db, "Chefe@Cantina.com", "secret123", "Chefe")
    assert admin.role == RoleEnum.ADMIN
    assert admin.email == "chefe@cantina.com"
    assert admin.cart is not None
    assert ensure_admin(db, "chefe@cantina.com", "outra", "Outro") is None


def test_health_and_banner(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"
    assert r.json()["timestamp"]
    assert client.get("/").status_code == 200


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nao-existe")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Rota nao encontrada"}
