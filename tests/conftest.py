import os
import tempfile
from decimal import Decimal

# engine модуля storefront.db.session создаётся при импорте — подменяем URL заранее
os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.mkdtemp()}/storefront-import.db"
os.environ.setdefault("SMTP_HOST", "")

import pytest
from sqlalchemy import select

from storefront.core.errors import NotificationFailed
from storefront.db.base import Base
from storefront.db.session import make_engine, make_session_factory, session_scope
from storefront.models.cart import CartLine
from storefront.models.order import Order, OrderLine
from storefront.models.product import Product
from storefront.models.user import RoleEnum, User
from storefront.models.wishlist import WishlistEntry
from storefront.services.checkout import CheckoutEngine
from storefront.services.notifications import MailMessage, MailTransport, NotificationDispatcher
from storefront.services.restock import RestockWatcher
from storefront.services.tasks import PostCommitQueue


class RecordingTransport(MailTransport):
    """Транспорт для тестов: запоминает письма, может отказывать адресам."""

    def __init__(self):
        self.sent: list[MailMessage] = []
        self.fail_for: set[str] = set()

    def send(self, message: MailMessage) -> None:
        if message.to in self.fail_for:
            raise NotificationFailed(f"mailbox {message.to} unavailable")
        self.sent.append(message)


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path}/storefront.db")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def dispatcher(transport):
    return NotificationDispatcher(transport)


@pytest.fixture
def tasks():
    return PostCommitQueue(inline=True)


@pytest.fixture
def checkout_engine(session_factory, tasks, dispatcher):
    return CheckoutEngine(session_factory, tasks, dispatcher, tax_rate=Decimal("0.10"))


@pytest.fixture
def restock_watcher(session_factory, dispatcher):
    return RestockWatcher(session_factory, dispatcher)


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    def _make(email=None, name=None, role=RoleEnum.client):
        counter["n"] += 1
        with session_scope(session_factory) as db:
            user = User(
                email=email or f"user{counter['n']}@example.com",
                name=name or f"User {counter['n']}",
                role=role,
            )
            db.add(user)
            db.flush()
            return user.id

    return _make


@pytest.fixture
def make_product(session_factory):
    def _make(title="Widget", price="10.00", stock=10):
        with session_scope(session_factory) as db:
            product = Product(title=title, price=Decimal(price), stock=stock, rating=0)
            db.add(product)
            db.flush()
            return product.id

    return _make


@pytest.fixture
def fill_cart(session_factory):
    def _fill(user_id, lines):
        with session_scope(session_factory) as db:
            for product_id, quantity in lines.items():
                db.add(CartLine(user_id=user_id, product_id=product_id, quantity=quantity))

    return _fill


@pytest.fixture
def wishlist_for(session_factory):
    def _add(user_id, product_id):
        with session_scope(session_factory) as db:
            db.add(WishlistEntry(user_id=user_id, product_id=product_id))

    return _add


@pytest.fixture
def db_state(session_factory):
    """Содержимое таблиц товаров, корзин и заказов для сравнения до/после."""

    def _state():
        with session_scope(session_factory) as db:
            return {
                "products": db.execute(select(Product.id, Product.stock, Product.price).order_by(Product.id)).all(),
                "cart": db.execute(
                    select(CartLine.user_id, CartLine.product_id, CartLine.quantity).order_by(CartLine.id)
                ).all(),
                "orders": db.execute(select(Order.id, Order.total).order_by(Order.id)).all(),
                "order_lines": db.execute(select(OrderLine.id).order_by(OrderLine.id)).all(),
            }

    return _state


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id):
        with session_scope(session_factory) as db:
            return db.get(Product, product_id).stock

    return _stock
