from app.models.cart import CartItem
from tests.helpers import auth_headers


def _cart(resp):
    return resp.json()["data"]["cart"]


def test_new_customer_has_empty_cart(client, client_headers):
    r = client.get("/api/cart", headers=client_headers)
    assert r.status_code == 200
    cart = _cart(r)
    assert cart["items"] == []
    assert cart["total"] == 0
    assert cart["itemCount"] == 0


def test_cart_requires_authentication(client):
    assert client.get("/api/cart").status_code == 401


def test_add_defaults_to_one_and_increments(client, client_headers, make_product):
    p = make_product("Coxinha", "5.50")
    r = client.post("/api/cart/items", headers=client_headers, json={"productId": p.id})
    assert r.status_code == 200
    assert _cart(r)["items"][0]["quantity"] == 1

    r = client.post("/api/cart", headers=client_headers, json={"productId": p.id, "quantity": 2})
    cart = _cart(r)
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["items"][0]["subtotal"] == 16.5
    assert cart["total"] == 16.5
    assert cart["itemCount"] == 3


def test_add_rejects_bad_quantity_and_products(client, client_headers, make_product):
    available = make_product("Coxinha")
    hidden = make_product("Pastel", is_available=False)

    for qty in (0, -2, 1.5, "dois"):
        r = client.post("/api/cart/items", headers=client_headers, json={"productId": available.id, "quantity": qty})
        assert r.status_code == 400, qty

    r = client.post("/api/cart/items", headers=client_headers, json={"productId": hidden.id})
    assert r.status_code == 400
    r = client.post("/api/cart/items", headers=client_headers, json={"productId": "id-inexistente-123"})
    assert r.status_code == 404


def test_update_and_remove_items(client, client_headers, make_product):
    a = make_product("Coxinha", "5.00")
    b = make_product("Suco", "7.00")
    client.post("/api/cart/items", headers=client_headers, json={"productId": a.id})
    cart = _cart(client.post("/api/cart/items", headers=client_headers, json={"productId": b.id}))
    item_a = next(i for i in cart["items"] if i["productId"] == a.id)
    item_b = next(i for i in cart["items"] if i["productId"] == b.id)

    cart = _cart(client.put(f"/api/cart/items/{item_a['id']}", headers=client_headers, json={"quantity": 4}))
    assert cart["total"] == 27.0

    # zero removes the line
    cart = _cart(client.put(f"/api/cart/items/{item_a['id']}", headers=client_headers, json={"quantity": 0}))
    assert [i["productId"] for i in cart["items"]] == [b.id]

    cart = _cart(client.delete(f"/api/cart/items/{item_b['id']}", headers=client_headers))
    assert cart["items"] == []
    assert client.delete(f"/api/cart/items/{item_b['id']}", headers=client_headers).status_code == 404


def test_cannot_touch_another_users_item(client, make_user, client_headers, make_product):
    p = make_product()
    other = make_user()
    cart = _cart(client.post("/api/cart/items", headers=auth_headers(other), json={"productId": p.id}))
    item_id = cart["items"][0]["id"]

    assert client.put(f"/api/cart/items/{item_id}", headers=client_headers, json={"quantity": 3}).status_code == 404
    assert client.delete(f"/api/cart/items/{item_id}", headers=client_headers).status_code == 404


def test_clear_cart_is_idempotent(client, db, customer, client_headers, make_product):
    p1 = make_product("Coxinha")
    p2 = make_product("Suco")
    client.post("/api/cart/items", headers=client_headers, json={"productId": p1.id})
    client.post("/api/cart/items", headers=client_headers, json={"productId": p2.id})

    r = client.delete("/api/cart", headers=client_headers)
    assert r.status_code == 200
    assert _cart(r)["items"] == []
    assert db.query(CartItem).count() == 0

    r = client.delete("/api/cart", headers=client_headers)
    assert r.status_code == 200
    assert _cart(r)["id"] == customer.cart.id
