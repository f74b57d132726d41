# storefront/services/wishlist.py
# Список желаний: добавление (с обновлением времени), удаление, проверка,
# и выборка получателей для рассылки о пополнении.
from dataclasses import dataclass
from datetime import datetime
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.models.product import Product
from storefront.models.user import User
from storefront.models.wishlist import WishlistEntry
from storefront.services.catalog import get_product


@dataclass(frozen=True)
class Wishlister:
    address: str
    display_name: str


def add_to_wishlist(db: Session, user_id: int, product_id: int) -> WishlistEntry:
    get_product(db, product_id)
    entry = db.execute(
        select(WishlistEntry).where(
            WishlistEntry.user_id == user_id, WishlistEntry.product_id == product_id
        )
    ).scalar_one_or_none()
    if entry is None:
        entry = WishlistEntry(user_id=user_id, product_id=product_id)
        db.add(entry)
    else:
        entry.created_at = datetime.utcnow()
    db.flush()
    return entry


def remove_from_wishlist(db: Session, user_id: int, product_id: int) -> bool:
    result = db.execute(
        delete(WishlistEntry).where(
            WishlistEntry.user_id == user_id, WishlistEntry.product_id == product_id
        )
    )
    return result.rowcount > 0


def in_wishlist(db: Session, user_id: int, product_id: int) -> bool:
    found = db.execute(
        select(WishlistEntry.id).where(
            WishlistEntry.user_id == user_id, WishlistEntry.product_id == product_id
        )
    ).first()
    return found is not None


def list_wishlist(db: Session, user_id: int):
    """Товары из списка желаний, новые сверху."""
    stmt = (
        select(Product.id, Product.title, Product.price, WishlistEntry.created_at)
        .join(WishlistEntry, WishlistEntry.product_id == Product.id)
        .where(WishlistEntry.user_id == user_id)
        .order_by(WishlistEntry.created_at.desc(), WishlistEntry.id.desc())
    )
    return db.execute(stmt).all()


def find_wishlisters(db: Session, product_id: int) -> List[Wishlister]:
    """Получатели для товара, без повторов адреса (без учёта регистра)."""
    rows = db.execute(
        select(User.email, User.name)
        .join(WishlistEntry, WishlistEntry.user_id == User.id)
        .where(WishlistEntry.product_id == product_id)
        .order_by(User.id)
    ).all()

    seen = set()
    result = []
    for email, name in rows:
        key = email.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(Wishlister(address=email.strip(), display_name=name or email))
    return result
