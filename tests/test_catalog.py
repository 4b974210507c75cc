from app.models.product import Product


def test_categories_list_active_in_sort_order(client, make_category):
    make_category("Bebidas", sort_order=2)
    make_category("Salgados", sort_order=1)
    make_category("Antigos", sort_order=0, is_active=False)

    r = client.get("/api/categories")
    assert r.status_code == 200
    names = [c["name"] for c in r.json()["data"]["categories"]]
    assert names == ["Salgados", "Bebidas"]

    r = client.get("/api/categories", params={"includeInactive": "true"})
    assert [c["name"] for c in r.json()["data"]["categories"]] == ["Antigos", "Salgados", "Bebidas"]


def test_category_crud_as_admin(client, admin_headers):
    r = client.post("/api/categories", headers=admin_headers, json={"name": "Doces", "sortOrder": 3})
    assert r.status_code == 201
    category = r.json()["data"]["category"]
    assert category["sortOrder"] == 3 and category["isActive"] is True

    dup = client.post("/api/categories", headers=admin_headers, json={"name": "doces"})
    assert dup.status_code == 409

    r = client.put(f"/api/categories/{category['id']}", headers=admin_headers, json={"description": "Sobremesas"})
    assert r.status_code == 200
    assert r.json()["data"]["category"]["description"] == "Sobremesas"
    assert r.json()["data"]["category"]["name"] == "Doces"

    r = client.get(f"/api/categories/{category['id']}")
    assert r.json()["data"]["category"]["productCount"] == 0

    assert client.delete(f"/api/categories/{category['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/categories/{category['id']}").status_code == 404


def test_category_with_products_cannot_be_deleted(client, admin_headers, make_product):
    p = make_product()
    r = client.delete(f"/api/categories/{p.category_id}", headers=admin_headers)
    assert r.status_code == 409


def test_category_reorder(client, admin_headers, make_category):
    a = make_category("A", sort_order=0)
    b = make_category("B", sort_order=1)
    r = client.put("/api/categories/reorder/all", headers=admin_headers, json={
        "categories": [{"id": a.id, "sortOrder": 5}, {"id": b.id, "sortOrder": 1}],
    })
    assert r.status_code == 200
    assert [c["name"] for c in r.json()["data"]["categories"]] == ["B", "A"]

    r = client.put("/api/categories/reorder/all", headers=admin_headers, json={
        "categories": [{"id": "id-inexistente-123", "sortOrder": 1}],
    })
    assert r.status_code == 404


def test_unknown_category_is_404(client):
    assert client.get("/api/categories/id-inexistente-123").status_code == 404


def test_product_listing_filters_and_pagination(client, make_category, make_product):
    drinks = make_category("Bebidas")
    snacks = make_category("Salgados")
    make_product("Suco de Laranja", "7.00", category=drinks, description="natural")
    make_product("Refrigerante", "6.00", category=drinks)
    make_product("Coxinha", "5.50", category=snacks)
    make_product("Pastel", "8.00", category=snacks, is_available=False)

    r = client.get("/api/products")
    data = r.json()["data"]
    assert [p["name"] for p in data["products"]] == ["Coxinha", "Refrigerante", "Suco de Laranja"]
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 3, "totalPages": 1}
    assert data["products"][0]["category"] == {"id": snacks.id, "name": "Salgados"}

    r = client.get("/api/products", params={"includeUnavailable": "true"})
    assert r.json()["data"]["pagination"]["total"] == 4

    r = client.get("/api/products", params={"search": "NATURAL"})
    assert [p["name"] for p in r.json()["data"]["products"]] == ["Suco de Laranja"]

    r = client.get("/api/products", params={"categoryId": drinks.id, "minPrice": 6.5})
    assert [p["name"] for p in r.json()["data"]["products"]] == ["Suco de Laranja"]

    r = client.get("/api/products", params={"maxPrice": 6})
    assert [p["name"] for p in r.json()["data"]["products"]] == ["Coxinha", "Refrigerante"]

    r = client.get("/api/products", params={"limit": 2, "page": 2})
    data = r.json()["data"]
    assert [p["name"] for p in data["products"]] == ["Suco de Laranja"]
    assert data["pagination"]["totalPages"] == 2

    assert client.get("/api/products", params={"limit": 500}).status_code == 400
    assert client.get("/api/products", params={"page": 0}).status_code == 400


def test_products_by_category(client, make_category, make_product):
    drinks = make_category("Bebidas")
    make_product("Suco", "7.00", category=drinks)
    make_product("Cha gelado", "4.00", category=drinks, is_available=False)

    r = client.get(f"/api/products/category/{drinks.id}")
    assert [p["name"] for p in r.json()["data"]["products"]] == ["Suco"]
    assert client.get("/api/products/category/id-inexistente-123").status_code == 404


def test_product_create_and_validation(client, admin_headers, make_category):
    category = make_category()
    r = client.post("/api/products", headers=admin_headers, json={
        "name": "Pão de queijo", "price": 4.5, "categoryId": category.id,
    })
    assert r.status_code == 201
    product = r.json()["data"]["product"]
    assert product["price"] == 4.5
    assert product["isAvailable"] is True
    assert product["categoryId"] == category.id

    bad = [
        {"price": 4.5, "categoryId": category.id},
        {"name": "Sem preço", "categoryId": category.id},
        {"name": "Sem categoria", "price": 4.5},
        {"name": "Negativo", "price": -1, "categoryId": category.id},
        {"name": "Caro demais", "price": 1e30, "categoryId": category.id},
        {"name": "Acima do limite", "price": 100000000, "categoryId": category.id},
        {"name": "   ", "price": 4.5, "categoryId": category.id},
    ]
    for payload in bad:
        assert client.post("/api/products", headers=admin_headers, json=payload).status_code == 400

    r = client.post("/api/products", headers=admin_headers, json={
        "name": "Orfão", "price": 1, "categoryId": "id-inexistente-123",
    })
    assert r.status_code == 404


def test_product_update_delete_and_availability(client, db, admin_headers, make_product):
    p = make_product("Coxinha", "5.50")

    r = client.put(f"/api/products/{p.id}", headers=admin_headers, json={"price": 6})
    assert r.status_code == 200
    assert r.json()["data"]["product"]["price"] == 6.0
    assert r.json()["data"]["product"]["name"] == "Coxinha"

    r = client.patch(f"/api/products/{p.id}/availability", headers=admin_headers, json={"isAvailable": False})
    assert r.json()["data"]["product"]["isAvailable"] is False
    r = client.patch(f"/api/products/{p.id}/availability", headers=admin_headers, json={"isAvailable": True})
    assert r.json()["data"]["product"]["isAvailable"] is True

    assert client.delete(f"/api/products/{p.id}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.get(Product, p.id).is_available is False
    # still readable by id after the soft delete
    r = client.get(f"/api/products/{p.id}")
    assert r.status_code == 200
    assert r.json()["data"]["product"]["isAvailable"] is False
    assert client.get("/api/products").json()["data"]["products"] == []


def test_names_are_trimmed_and_prices_bounded(client, admin_headers, make_product):
    r = client.post("/api/categories", headers=admin_headers, json={"name": "  Doces  "})
    assert r.status_code == 201
    category = r.json()["data"]["category"]
    assert category["name"] == "Doces"
    assert client.post("/api/categories", headers=admin_headers, json={"name": "   "}).status_code == 400
    assert client.put(f"/api/categories/{category['id']}", headers=admin_headers,
                      json={"name": " "}).status_code == 400

    p = make_product("Coxinha", "5.50")
    r = client.put(f"/api/products/{p.id}", headers=admin_headers, json={"name": "  Coxinha Grande "})
    assert r.json()["data"]["product"]["name"] == "Coxinha Grande"
    assert client.put(f"/api/products/{p.id}", headers=admin_headers, json={"name": "\t "}).status_code == 400
    assert client.put(f"/api/products/{p.id}", headers=admin_headers, json={"price": 1e30}).status_code == 400
    r = client.put(f"/api/products/{p.id}", headers=admin_headers, json={"price": 99999999.99})
    assert r.json()["data"]["product"]["price"] == 99999999.99

    assert client.get("/api/products", params={"maxPrice": 1e30}).status_code == 400


def test_unknown_product_is_404(client, admin_headers):
    assert client.get("/api/products/id-inexistente-123").status_code == 404
    assert client.put("/api/products/id-inexistente-123", headers=admin_headers, json={"price": 1}).status_code == 404


def test_product_image_upload(client, admin_headers, make_product):
    p = make_product()
    r = client.post(
        f"/api/products/{p.id}/image",
        headers=admin_headers,
        files={"image": ("foto.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
    )
    assert r.status_code == 200
    url = r.json()["data"]["product"]["imageUrl"]
    assert url.startswith("/uploads/products/") and url.endswith(".png")
    assert client.get(url).content == b"\x89PNG\r\n\x1a\nfake"

    r = client.post(
        f"/api/products/{p.id}/image",
        headers=admin_headers,
        files={"image": ("nota.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400
