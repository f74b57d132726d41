# storefront/api/orders.py
# Оформление заказа и выдача счёта в PDF.
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_checkout_engine
from storefront.core import security
from storefront.models.user import User
from storefront.schemas import OrderLineOut, OrderOut
from storefront.services.checkout import CheckoutEngine
from storefront.services.invoice import invoice_filename, render_invoice

router = APIRouter()


@router.post("/checkout", response_model=OrderOut)
def checkout(
    current_user: User = Depends(security.get_current_user),
    engine: CheckoutEngine = Depends(get_checkout_engine),
):
    placed = engine.place_order(current_user.id)
    return OrderOut(
        order_id=placed.order_id,
        subtotal=placed.subtotal,
        tax=placed.tax,
        total=placed.total,
        created_at=placed.created_at,
        lines=[
            OrderLineOut(product_id=l.product_id, title=l.title, quantity=l.quantity, unit_price=l.unit_price)
            for l in placed.lines
        ],
    )


@router.get("/{order_id}/invoice")
def download_invoice(
    order_id: int,
    db: Session = Depends(security.get_db),
    current_user: User = Depends(security.get_current_user),
):
    document = render_invoice(db, order_id, user_id=current_user.id)
    return Response(
        content=document,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{invoice_filename(order_id)}"'},
    )
