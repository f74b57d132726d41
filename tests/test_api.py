from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.core import security
from storefront.main import app
from storefront.models.user import RoleEnum
from storefront.services.checkout import CheckoutEngine
from storefront.services.restock import RestockWatcher


@pytest.fixture
def client(session_factory, tasks, dispatcher):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[security.get_db] = override_get_db
    app.state.tasks = tasks
    app.state.checkout_engine = CheckoutEngine(session_factory, tasks, dispatcher, tax_rate=Decimal("0.10"))
    app.state.restock_watcher = RestockWatcher(session_factory, dispatcher)
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id):
    return {"Authorization": f"Bearer {security.create_access_token(str(user_id))}"}


def test_cart_to_checkout_to_invoice(client, make_user, make_product):
    user = make_user()
    a = make_product("Product A", "10.00", 10)
    b = make_product("Product B", "5.00", 10)

    assert client.post("/api/cart", json={"product_id": a, "quantity": 1}, headers=auth(user)).status_code == 200
    assert client.post("/api/cart", json={"product_id": a, "quantity": 1}, headers=auth(user)).status_code == 200
    assert client.post("/api/cart", json={"product_id": b, "quantity": 1}, headers=auth(user)).status_code == 200

    cart = client.get("/api/cart", headers=auth(user)).json()
    assert {(line["product_id"], line["quantity"]) for line in cart} == {(a, 2), (b, 1)}

    response = client.post("/api/orders/checkout", headers=auth(user))
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["subtotal"]) == Decimal("25.00")
    assert Decimal(body["tax"]) == Decimal("2.50")
    assert Decimal(body["total"]) == Decimal("27.50")
    assert len(body["lines"]) == 2

    assert client.get("/api/cart", headers=auth(user)).json() == []
    assert client.get(f"/api/products/{a}").json()["stock"] == 8

    invoice = client.get(f"/api/orders/{body['order_id']}/invoice", headers=auth(user))
    assert invoice.status_code == 200
    assert invoice.headers["content-type"] == "application/pdf"
    assert invoice.content.startswith(b"%PDF-")
    again = client.get(f"/api/orders/{body['order_id']}/invoice", headers=auth(user))
    assert again.content == invoice.content


def test_checkout_errors_are_mapped(client, make_user, make_product, fill_cart):
    user = make_user()
    response = client.post("/api/orders/checkout", headers=auth(user))
    assert response.status_code == 400
    assert response.json() == {"detail": "Cart is empty"}

    p = make_product("Rare Coin", "100.00", 1)
    fill_cart(user, {p: 2})
    response = client.post("/api/orders/checkout", headers=auth(user))
    assert response.status_code == 409
    assert "Rare Coin" in response.json()["detail"]


def test_foreign_invoice_is_not_found(client, make_user, make_product, fill_cart):
    owner, other = make_user(), make_user()
    p = make_product()
    fill_cart(owner, {p: 1})
    order_id = client.post("/api/orders/checkout", headers=auth(owner)).json()["order_id"]

    assert client.get(f"/api/orders/{order_id}/invoice", headers=auth(other)).status_code == 404


def test_malformed_purchase_request_is_rejected(client, make_user, make_product):
    user = make_user()
    p = make_product()

    response = client.post("/api/cart", json={"product_id": p, "quantity": 0}, headers=auth(user))
    assert response.status_code == 422
    assert client.get("/api/cart", headers=auth(user)).json() == []


def test_missing_token_is_rejected(client):
    assert client.get("/api/cart").status_code == 401


def test_restock_via_product_update_notifies_wishlisters(client, make_user, make_product, transport):
    admin = make_user(role=RoleEnum.admin)
    fan = make_user(email="fan@example.com")
    p = make_product("Vinyl", "25.00", 0)

    assert client.post("/api/wishlist", json={"product_id": p}, headers=auth(fan)).status_code == 200
    assert client.get(f"/api/wishlist/{p}", headers=auth(fan)).json() == {"inWishlist": True}

    response = client.put(f"/api/products/{p}", json={"stock": 5}, headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["stock"] == 5
    assert [m.to for m in transport.sent] == ["fan@example.com"]

    client.put(f"/api/products/{p}", json={"stock": 7}, headers=auth(admin))
    assert len(transport.sent) == 1


def test_rating_must_be_between_one_and_five(client, make_user, make_product):
    user = make_user()
    p = make_product()

    assert client.put(f"/api/products/{p}/rating", json={"rating": 6}, headers=auth(user)).status_code == 422
    response = client.put(f"/api/products/{p}/rating", json={"rating": 4}, headers=auth(user))
    assert response.status_code == 200
    assert response.json()["rating"] == 4


def test_unknown_product_is_404(client):
    assert client.get("/api/products/12345").status_code == 404


def test_register_and_login(client):
    response = client.post("/api/auth/register", json={"email": "New@Example.com", "password": "secret123", "name": "New"})
    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"

    duplicate = client.post("/api/auth/register", json={"email": "new@example.com", "password": "secret123"})
    assert duplicate.status_code == 400

    token = client.post("/api/auth/token", data={"username": "new@example.com", "password": "secret123"})
    assert token.status_code == 200
    assert client.get("/api/cart", headers={"Authorization": f"Bearer {token.json()['access_token']}"}).status_code == 200

    bad = client.post("/api/auth/token", data={"username": "new@example.com", "password": "wrong-pass"})
    assert bad.status_code == 400


def test_only_admins_can_update_products(client, make_user, make_product, wishlist_for, transport, stock_of):
    shopper = make_user()
    fan = make_user(email="watcher@example.com")
    p = make_product("Console", "300.00", 0)
    wishlist_for(fan, p)

    response = client.put(f"/api/products/{p}", json={"stock": 50, "price": "0.01"}, headers=auth(shopper))

    assert response.status_code == 403
    assert stock_of(p) == 0
    assert transport.sent == []
