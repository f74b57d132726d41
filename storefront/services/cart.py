# storefront/services/cart.py
# Корзина пользователя: добавление со слиянием, удаление строки, очистка,
# чтение корзины вместе со снимком цены/остатка товара.
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.models.cart import CartLine
from storefront.models.product import Product
from storefront.schemas import PurchaseRequest
from storefront.services.catalog import get_product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartSnapshotLine:
    """Строка корзины, зафиксированная на момент чтения."""

    product_id: int
    quantity: int
    unit_price: Decimal
    stock: int
    title: str


def add_to_cart(db: Session, user_id: int, request: PurchaseRequest) -> CartLine:
    """Добавляет товар; повторное добавление увеличивает количество."""
    get_product(db, request.product_id)
    line = db.execute(
        select(CartLine)
        .where(CartLine.user_id == user_id, CartLine.product_id == request.product_id)
        .with_for_update()
    ).scalar_one_or_none()
    if line is None:
        line = CartLine(user_id=user_id, product_id=request.product_id, quantity=request.quantity)
        db.add(line)
    else:
        line.quantity += request.quantity
    db.flush()
    return line


def remove_from_cart(db: Session, user_id: int, product_id: int) -> bool:
    result = db.execute(
        delete(CartLine).where(CartLine.user_id == user_id, CartLine.product_id == product_id)
    )
    return result.rowcount > 0


def clear_cart(db: Session, user_id: int) -> int:
    result = db.execute(delete(CartLine).where(CartLine.user_id == user_id))
    return result.rowcount


def list_cart(db: Session, user_id: int) -> List[CartSnapshotLine]:
    return read_cart_snapshot(db, user_id, lock=False)


def read_cart_snapshot(db: Session, user_id: int, *, lock: bool = True) -> List[CartSnapshotLine]:
    """Строки корзины вместе с текущими ценой, остатком и названием товара.

    С lock=True строки корзины и товаров блокируются до конца транзакции,
    товары — в порядке id, чтобы параллельные заказы не ловили дедлок.
    """
    stmt = (
        select(CartLine.product_id, CartLine.quantity, Product.price, Product.stock, Product.title)
        .join(Product, Product.id == CartLine.product_id)
        .where(CartLine.user_id == user_id)
        .order_by(CartLine.product_id)
    )
    if lock:
        stmt = stmt.with_for_update()
    return [
        CartSnapshotLine(
            product_id=row.product_id,
            quantity=row.quantity,
            unit_price=Decimal(row.price),
            stock=row.stock,
            title=row.title,
        )
        for row in db.execute(stmt)
    ]
