"""HTTP tests for products and the session cart"""

from fastapi.testclient import TestClient

from inventory.utils.exceptions import TransientStoreFailure


def _login(client, username, password):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


def test_products_require_a_session(client):
    assert client.get("/api/products").status_code == 401


def test_product_crud_for_any_signed_in_user(client):
    _login(client, "user", "user123")

    listing = client.get("/api/products?sort=price&direction=desc")
    assert listing.status_code == 200
    assert [p["code"] for p in listing.json()] == ["LAP-001", "MOU-002", "CAB-003"]
    assert listing.json()[0]["price"] == "1299.99"
    assert listing.json()[0]["low_stock"] is True

    created = client.post("/api/products", json={"code": "KEY-004", "name": "Mechanical Keyboard", "price": "89.50", "stock": 4})
    assert created.status_code == 201
    product_id = created.json()["id"]

    updated = client.put(f"/api/products/{product_id}", json={"stock": 40})
    assert updated.status_code == 200
    assert updated.json()["stock"] == 40
    assert updated.json()["name"] == "Mechanical Keyboard"

    assert client.delete(f"/api/products/{product_id}").status_code == 200
    assert client.get(f"/api/products/{product_id}").status_code == 404


def test_product_validation_errors_are_400(client):
    _login(client, "user", "user123")
    response = client.post("/api/products", json={"code": "AB", "name": "Valid name", "price": "10"})
    assert response.status_code == 400
    assert "code" in response.json()["errors"]

    duplicate = client.post("/api/products", json={"code": "LAP-001", "name": "Another laptop", "price": "10"})
    assert duplicate.status_code == 400

    assert client.get("/api/products?sort=secret").status_code == 400


def test_cart_lifecycle(client):
    _login(client, "user", "user123")

    empty = client.get("/api/cart").json()
    assert empty == {"lines": [], "item_count": 0, "total": "0.00"}

    assert client.post("/api/cart/items", json={"item_id": 1, "quantity": 2}).json() == {"item_id": 1, "quantity": 2}
    assert client.post("/api/cart/items", json={"item_id": 1, "quantity": 3}).json() == {"item_id": 1, "quantity": 5}
    client.post("/api/cart/items", json={"item_id": 3})

    cart = client.get("/api/cart").json()
    assert [(line["code"], line["quantity"]) for line in cart["lines"]] == [("LAP-001", 5), ("CAB-003", 1)]
    assert cart["lines"][0]["line_total"] == "6499.95"
    assert cart["total"] == "6500.05"
    assert cart["item_count"] == 6

    assert client.delete("/api/cart/items/3").json() == {"item_id": 3, "removed": True}
    assert client.delete("/api/cart/items/3").json() == {"item_id": 3, "removed": False}
    assert client.get("/api/cart").json()["total"] == "6499.95"


def test_invalid_quantity_is_rejected(client):
    _login(client, "user", "user123")
    assert client.post("/api/cart/items", json={"item_id": 1, "quantity": 0}).status_code == 422
    assert client.post("/api/cart/items", json={"item_id": 1, "quantity": -2}).status_code == 422
    assert client.get("/api/cart").json()["lines"] == []


def test_cart_for_deleted_product_hides_line(client, catalog_store):
    _login(client, "user", "user123")
    client.post("/api/cart/items", json={"item_id": 2, "quantity": 2})
    catalog_store.delete_product(2)
    cart = client.get("/api/cart").json()
    assert cart["lines"] == []
    assert cart["total"] == "0.00"


def test_carts_are_isolated_between_sessions(app):
    alice = TestClient(app)
    bob = TestClient(app)
    _login(alice, "user", "user123")
    _login(bob, "user", "user123")

    alice.post("/api/cart/items", json={"item_id": 1, "quantity": 1})
    assert bob.get("/api/cart").json()["lines"] == []
    assert len(alice.get("/api/cart").json()["lines"]) == 1


def test_logout_discards_cart(client):
    _login(client, "user", "user123")
    client.post("/api/cart/items", json={"item_id": 1})
    client.post("/auth/logout")
    _login(client, "user", "user123")
    assert client.get("/api/cart").json()["lines"] == []


def test_expiry_discards_cart(client, clock):
    _login(client, "user", "user123")
    client.post("/api/cart/items", json={"item_id": 1})
    clock.advance(minutes=31)
    assert client.get("/api/cart").status_code == 401
    _login(client, "user", "user123")
    assert client.get("/api/cart").json()["lines"] == []


def test_transient_failure_is_retried_once(client, catalog_store, monkeypatch):
    _login(client, "user", "user123")
    original = catalog_store.find_all
    calls = []

    def flaky(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            raise TransientStoreFailure("catalog busy", store="catalog")
        return original(*args, **kwargs)

    monkeypatch.setattr(catalog_store, "find_all", flaky)
    response = client.get("/api/products")
    assert response.status_code == 200
    assert len(calls) == 2


def test_persistent_failure_is_503(client, catalog_store, monkeypatch):
    _login(client, "user", "user123")

    def broken(*args, **kwargs):
        raise TransientStoreFailure("catalog busy", store="catalog")

    monkeypatch.setattr(catalog_store, "find_all", broken)
    response = client.get("/api/products")
    assert response.status_code == 503
    assert response.json() == {"detail": "Service temporarily unavailable"}
