# storefront/api/deps.py
# Зависимости для сервисов, собранных в lifespan и лежащих в app.state.
from fastapi import Request

from storefront.services.checkout import CheckoutEngine
from storefront.services.restock import RestockWatcher
from storefront.services.tasks import PostCommitQueue


def get_checkout_engine(request: Request) -> CheckoutEngine:
    return request.app.state.checkout_engine


def get_restock_watcher(request: Request) -> RestockWatcher:
    return request.app.state.restock_watcher


def get_tasks(request: Request) -> PostCommitQueue:
    return request.app.state.tasks
