# storefront/api/wishlist.py
# Список желаний текущего пользователя.
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.core import security
from storefront.models.user import User
from storefront.schemas import WishlistItemOut, WishlistRequest
from storefront.services import wishlist

router = APIRouter()


@router.get("", response_model=List[WishlistItemOut])
def list_wishlist(db: Session = Depends(security.get_db), current_user: User = Depends(security.get_current_user)):
    return [
        WishlistItemOut(product_id=row.id, title=row.title, price=row.price, created_at=row.created_at)
        for row in wishlist.list_wishlist(db, current_user.id)
    ]


@router.get("/{product_id}")
def check_wishlist(
    product_id: int,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    return {"inWishlist": wishlist.in_wishlist(db, current_user.id, product_id)}


@router.post("")
def add_to_wishlist(
    payload: WishlistRequest,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    wishlist.add_to_wishlist(db, current_user.id, payload.product_id)
    db.commit()
    return {"message": "Added to wishlist"}


@router.delete("/{product_id}")
def remove_from_wishlist(
    product_id: int,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    wishlist.remove_from_wishlist(db, current_user.id, product_id)
    db.commit()
    return {"message": "Removed from wishlist"}
