# storefront/api/products.py
# Чтение и обновление товара. Обновлять может только admin.
# Пополнение остатка запускает рассылку по спискам желаний — строго после коммита.
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_restock_watcher, get_tasks
from storefront.core import security
from storefront.models.user import RoleEnum, User
from storefront.schemas import ProductOut, ProductUpdate, RatingRequest
from storefront.services import catalog
from storefront.services.restock import RestockWatcher
from storefront.services.tasks import PostCommitQueue

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(security.get_db)):
    return catalog.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    changes: ProductUpdate,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.require_role(RoleEnum.admin)),
    watcher: RestockWatcher = Depends(get_restock_watcher),
    tasks: PostCommitQueue = Depends(get_tasks),
):
    product, replenished = catalog.update_product(db, product_id, changes)
    db.commit()
    logger.info(f"Product {product_id} updated by user {current_user.id}")
    if replenished:
        tasks.enqueue(watcher.on_stock_replenished, product_id)
    return product


@router.put("/{product_id}/rating", response_model=ProductOut)
def rate_product(
    product_id: int,
    payload: RatingRequest,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    product = catalog.rate_product(db, product_id, payload.rating)
    db.commit()
    return product
