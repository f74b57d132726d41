# storefront/api/cart.py
# Корзина текущего пользователя.
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.core import security
from storefront.models.user import User
from storefront.schemas import CartLineOut, PurchaseRequest
from storefront.services import cart

router = APIRouter()


@router.get("", response_model=List[CartLineOut])
def list_cart(db: Session = Depends(security.get_db), current_user: User = Depends(security.get_current_user)):
    return [
        CartLineOut(product_id=line.product_id, title=line.title, price=line.unit_price, quantity=line.quantity)
        for line in cart.list_cart(db, current_user.id)
    ]


@router.post("")
def add_to_cart(
    payload: PurchaseRequest,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    line = cart.add_to_cart(db, current_user.id, payload)
    db.commit()
    return {"message": "Added to cart", "product_id": line.product_id, "quantity": line.quantity}


@router.delete("/{product_id}")
def remove_from_cart(
    product_id: int,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    removed = cart.remove_from_cart(db, current_user.id, product_id)
    db.commit()
    return {"message": "Removed from cart" if removed else "Not in cart"}
