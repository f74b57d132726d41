# storefront/services/catalog.py
# Каталог: чтение товара, условный декремент остатка и обновление товара
# с определением перехода остатка из <=0 в >0.
import logging
from typing import Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.core.errors import ProductNotFound
from storefront.models.product import Product
from storefront.schemas import ProductUpdate

logger = logging.getLogger(__name__)


def get_product(db: Session, product_id: int, *, for_update: bool = False) -> Product:
    stmt = select(Product).where(Product.id == product_id)
    if for_update:
        stmt = stmt.with_for_update()
    product = db.execute(stmt).scalar_one_or_none()
    if product is None:
        raise ProductNotFound()
    return product


def conditional_decrement(db: Session, product_id: int, quantity: int) -> bool:
    """Уменьшает остаток, только если он не уйдёт в минус.

    Возвращает False, если строка не обновилась (остатка уже не хватает).
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_product(db: Session, product_id: int, changes: ProductUpdate) -> Tuple[Product, bool]:
    """Применяет изменения к товару. Возвращает (товар, пополнен ли остаток).

    Пополнение — переход stock из <=0 в >0. Вызывающий код обязан
    запустить рассылку только после коммита.
    """
    product = get_product(db, product_id, for_update=True)
    previous_stock = product.stock

    for field, value in changes.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(product, field, value)
    db.flush()

    replenished = previous_stock <= 0 < product.stock
    if replenished:
        logger.info(f"Product {product_id} restocked: {previous_stock} -> {product.stock}")
    return product, replenished


def rate_product(db: Session, product_id: int, rating: int) -> Product:
    product = get_product(db, product_id, for_update=True)
    product.rating = rating
    db.flush()
    return product
