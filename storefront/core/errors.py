# storefront/core/errors.py
# Таксономия ошибок оформления заказа, счетов и уведомлений.
# Каждая ошибка знает свой HTTP-статус; маппинг в ответ делает main.py.


class StorefrontError(Exception):
    """Базовая ошибка домена."""

    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.detail = message or self.message


class EmptyCart(StorefrontError):
    status_code = 400
    message = "Cart is empty"


class InsufficientStock(StorefrontError):
    """Товара на складе меньше, чем в корзине."""

    status_code = 409

    def __init__(self, product_title: str):
        super().__init__(f"Insufficient stock for {product_title}")
        self.product_title = product_title


class TransactionFailed(StorefrontError):
    """Инфраструктурная ошибка: детали только в логах."""

    status_code = 503
    message = "Order could not be placed, please try again later"


class NotificationFailed(StorefrontError):
    # никогда не уходит к клиенту, только логируется диспетчером
    status_code = 502
    message = "Notification delivery failed"


class OrderNotFound(StorefrontError):
    status_code = 404
    message = "Order not found"


class ProductNotFound(StorefrontError):
    status_code = 404
    message = "Product not found"
