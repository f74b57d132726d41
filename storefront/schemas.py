# storefront/schemas.py
# Pydantic-схемы запросов и ответов. Входные данные проверяются здесь,
# один раз на границе, до того как попадут в сервисы.
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- Requests ----------

class PurchaseRequest(BaseModel):
    """Строка покупки: товар и количество."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1, le=1000)


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[int] = Field(None, ge=0, le=5)


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class WishlistRequest(BaseModel):
    product_id: int = Field(..., gt=0)


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=72)
    name: Optional[str] = Field(None, max_length=255)


# ---------- Responses ----------

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    rating: int


class CartLineOut(BaseModel):
    product_id: int
    title: str
    price: Decimal
    quantity: int


class WishlistItemOut(BaseModel):
    product_id: int
    title: str
    price: Decimal
    created_at: datetime


class OrderLineOut(BaseModel):
    product_id: int
    title: str
    quantity: int
    unit_price: Decimal


class OrderOut(BaseModel):
    order_id: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    created_at: datetime
    lines: List[OrderLineOut] = []
