# storefront/services/restock.py
# Рассылка "снова в наличии" всем, у кого товар в списке желаний.
# Вызывается только после коммита обновления, которое подняло остаток с <=0 до >0.
import logging

from sqlalchemy.orm import sessionmaker

from storefront.core.errors import ProductNotFound
from storefront.db.session import session_scope
from storefront.services.catalog import get_product
from storefront.services.notifications import NotificationDispatcher
from storefront.services.wishlist import find_wishlisters

logger = logging.getLogger(__name__)


class RestockWatcher:
    def __init__(self, session_factory: sessionmaker, dispatcher: NotificationDispatcher):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    def on_stock_replenished(self, product_id: int) -> int:
        """Одно письмо на каждый уникальный адрес. Возвращает число успешных отправок."""
        try:
            with session_scope(self.session_factory) as db:
                product = get_product(db, product_id)
                title, stock = product.title, product.stock
                recipients = find_wishlisters(db, product_id)
        except ProductNotFound:
            logger.warning(f"Restock notification skipped: product {product_id} no longer exists")
            return 0

        logger.info(f"Product {product_id} back in stock, notifying {len(recipients)} wishlisters")

        sent = 0
        for recipient in recipients:
            # отказ одного получателя не останавливает остальных
            ok = self.dispatcher.send(
                recipient.address,
                f"{title} is back in stock",
                f"Hi {recipient.display_name},\n\n"
                f"Good news: {title} from your wishlist is back in stock "
                f"({stock} available). Grab it before it sells out again!",
            )
            if ok:
                sent += 1
        if sent < len(recipients):
            logger.warning(f"Restock notifications for product {product_id}: {sent}/{len(recipients)} delivered")
        return sent
