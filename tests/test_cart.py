from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.core.errors import ProductNotFound
from storefront.db.session import session_scope
from storefront.schemas import ProductUpdate, PurchaseRequest
from storefront.services import cart, wishlist


def test_adding_same_product_twice_merges_quantity(session_factory, make_user, make_product):
    user = make_user()
    p = make_product("Cup", "2.50", 10)

    with session_scope(session_factory) as db:
        cart.add_to_cart(db, user, PurchaseRequest(product_id=p, quantity=2))
    with session_scope(session_factory) as db:
        cart.add_to_cart(db, user, PurchaseRequest(product_id=p, quantity=3))
    with session_scope(session_factory) as db:
        lines = cart.list_cart(db, user)

    assert len(lines) == 1
    assert lines[0].quantity == 5
    assert lines[0].title == "Cup"
    assert lines[0].unit_price == Decimal("2.50")


def test_remove_and_clear(session_factory, make_user, make_product, fill_cart):
    user = make_user()
    a, b = make_product("A"), make_product("B")
    fill_cart(user, {a: 1, b: 1})

    with session_scope(session_factory) as db:
        assert cart.remove_from_cart(db, user, a) is True
        assert cart.remove_from_cart(db, user, a) is False
    with session_scope(session_factory) as db:
        assert cart.clear_cart(db, user) == 1
        assert cart.list_cart(db, user) == []


def test_carts_are_per_user(session_factory, make_user, make_product, fill_cart):
    first, second = make_user(), make_user()
    p = make_product()
    fill_cart(first, {p: 1})

    with session_scope(session_factory) as db:
        assert cart.list_cart(db, second) == []


def test_adding_unknown_product_fails(session_factory, make_user):
    user = make_user()
    with session_scope(session_factory) as db:
        with pytest.raises(ProductNotFound):
            cart.add_to_cart(db, user, PurchaseRequest(product_id=404, quantity=1))


@pytest.mark.parametrize(
    "payload",
    [
        {"product_id": 0, "quantity": 1},
        {"product_id": 1, "quantity": 0},
        {"product_id": 1, "quantity": -3},
        {"product_id": 1, "quantity": "lots"},
        {"product_id": 1, "quantity": 1, "price": "0.01"},
    ],
)
def test_purchase_request_rejects_malformed_input(payload):
    with pytest.raises(ValidationError):
        PurchaseRequest(**payload)


def test_product_update_validates_money_and_rating():
    with pytest.raises(ValidationError):
        ProductUpdate(price=Decimal("1.999"))
    with pytest.raises(ValidationError):
        ProductUpdate(rating=6)
    with pytest.raises(ValidationError):
        ProductUpdate(stock=-1)


def test_wishlist_upsert_and_listing(session_factory, make_user, make_product):
    user = make_user()
    first, second = make_product("First"), make_product("Second")

    with session_scope(session_factory) as db:
        wishlist.add_to_wishlist(db, user, first)
    with session_scope(session_factory) as db:
        wishlist.add_to_wishlist(db, user, second)
    with session_scope(session_factory) as db:
        wishlist.add_to_wishlist(db, user, first)
    with session_scope(session_factory) as db:
        rows = wishlist.list_wishlist(db, user)
        assert wishlist.in_wishlist(db, user, second) is True

    assert [row.title for row in rows] == ["First", "Second"]

    with session_scope(session_factory) as db:
        assert wishlist.remove_from_wishlist(db, user, second) is True
        assert wishlist.in_wishlist(db, user, second) is False
