# storefront/services/checkout.py
# Оформление заказа: корзина -> заказ в одной транзакции.
#
# Шаги внутри транзакции: чтение корзины со снимком цен (с блокировкой строк),
# проверка остатков, расчёт сумм, запись Order и OrderLine, условный декремент
# остатков, очистка корзины, commit. После commit счёт и письмо уходят
# в очередь пост-коммитных задач.
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import settings
from storefront.core.errors import EmptyCart, InsufficientStock, StorefrontError, TransactionFailed
from storefront.db.session import session_scope
from storefront.models.order import Order, OrderLine, OrderStatus
from storefront.models.user import User
from storefront.services.cart import CartSnapshotLine, clear_cart, read_cart_snapshot
from storefront.services.catalog import conditional_decrement
from storefront.services.invoice import invoice_filename, render_invoice_pdf
from storefront.services.notifications import Attachment, NotificationDispatcher
from storefront.services.pricing import compute_totals
from storefront.services.tasks import PostCommitQueue

logger = logging.getLogger(__name__)

# одна повторная попытка после проигранной гонки за остаток
MAX_ATTEMPTS = 2


class CartChanged(Exception):
    """Корзину изменили параллельно: удалено не столько строк, сколько прочитано."""


class StockRaceLost(Exception):
    """Условный декремент не прошёл, хотя проверка при чтении прошла."""

    def __init__(self, title: str):
        super().__init__(title)
        self.title = title


@dataclass
class PlacedOrder:
    order_id: int
    user_id: int
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal
    created_at: datetime
    lines: List[OrderLine] = field(default_factory=list)
    recipient: Optional[str] = None

    @property
    def id(self) -> int:
        return self.order_id


class CheckoutEngine:
    """Превращает корзину пользователя в заказ.

    session_factory выдаёт новую сессию на каждую попытку; dispatcher и tasks
    используются только после коммита.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        tasks: PostCommitQueue,
        dispatcher: NotificationDispatcher,
        tax_rate: Decimal = settings.TAX_RATE,
    ):
        self.session_factory = session_factory
        self.tasks = tasks
        self.dispatcher = dispatcher
        self.tax_rate = tax_rate

    def place_order(self, user_id: int) -> PlacedOrder:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                with session_scope(self.session_factory) as db:
                    placed = self._place_order_tx(db, user_id)
            except StockRaceLost as e:
                logger.warning(
                    f"Stock race lost for user {user_id} on '{e.title}' (attempt {attempt}/{MAX_ATTEMPTS})"
                )
                if attempt == MAX_ATTEMPTS:
                    raise InsufficientStock(e.title) from e
                continue
            except CartChanged as e:
                logger.warning(f"Cart of user {user_id} changed during checkout (attempt {attempt}/{MAX_ATTEMPTS})")
                if attempt == MAX_ATTEMPTS:
                    raise TransactionFailed() from e
                continue
            except StorefrontError:
                raise
            except SQLAlchemyError as e:
                logger.error(f"❌ Checkout transaction for user {user_id} failed: {e}", exc_info=True)
                raise TransactionFailed() from e

            logger.info(f"✅ Order {placed.order_id} placed for user {user_id}, total {placed.total}")
            self.tasks.enqueue(self.send_invoice, placed)
            return placed

    def _place_order_tx(self, db: Session, user_id: int) -> PlacedOrder:
        cart = read_cart_snapshot(db, user_id)
        if not cart:
            raise EmptyCart()

        # все или ничего: первая же нехватка отменяет заказ
        for line in cart:
            if line.stock < line.quantity:
                raise InsufficientStock(line.title)

        totals = compute_totals(((line.unit_price, line.quantity) for line in cart), self.tax_rate)

        order = Order(
            user_id=user_id,
            subtotal=totals.subtotal,
            tax_rate=self.tax_rate,
            tax=totals.tax,
            total=totals.total,
            status=OrderStatus.completed,
            created_at=datetime.utcnow().replace(microsecond=0),
        )
        db.add(order)
        db.flush()

        lines = [self._order_line(order.id, line) for line in cart]
        db.add_all(lines)
        db.flush()

        for line in cart:
            if not conditional_decrement(db, line.product_id, line.quantity):
                raise StockRaceLost(line.title)

        if clear_cart(db, user_id) != len(cart):
            raise CartChanged()

        recipient = db.execute(select(User.email).where(User.id == user_id)).scalar_one_or_none()

        return PlacedOrder(
            order_id=order.id,
            user_id=user_id,
            subtotal=order.subtotal,
            tax_rate=order.tax_rate,
            tax=order.tax,
            total=order.total,
            created_at=order.created_at,
            lines=lines,
            recipient=recipient,
        )

    @staticmethod
    def _order_line(order_id: int, line: CartSnapshotLine) -> OrderLine:
        return OrderLine(
            order_id=order_id,
            product_id=line.product_id,
            title=line.title,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )

    def send_invoice(self, placed: PlacedOrder) -> bool:
        """Пост-коммитная задача: счёт в PDF и письмо покупателю."""
        if not placed.recipient:
            logger.warning(f"Order {placed.order_id} has no recipient address, invoice not sent")
            return False

        document = render_invoice_pdf(placed, placed.lines)
        return self.dispatcher.send(
            placed.recipient,
            f"Your order #{placed.order_id}",
            f"Thank you for your order #{placed.order_id}. Total: {placed.total:.2f}.\n"
            "The invoice is attached.",
            Attachment(filename=invoice_filename(placed.order_id), content=document),
        )
