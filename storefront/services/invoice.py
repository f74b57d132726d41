# storefront/services/invoice.py
# Генерация счёта в PDF. render_invoice_pdf — чистая функция:
# одинаковый заказ даёт побайтно одинаковый документ (invariant-режим reportlab,
# шрифт DejaVu из пакета встраивается подмножеством, кириллица поддерживается).
import io
from pathlib import Path
from typing import Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.core.config import settings
from storefront.core.errors import OrderNotFound
from storefront.models.order import Order, OrderLine
from storefront.services.pricing import format_money, format_rate

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 56
ROW_HEIGHT = 16
MAX_TITLE_CHARS = 60

FONTS_DIR = Path(__file__).resolve().parent.parent / "fonts"
FONT = "DejaVuSans"
FONT_BOLD = "DejaVuSans-Bold"

# Helvetica покрывает только WinAnsi — названия товаров бывают на кириллице
pdfmetrics.registerFont(TTFont(FONT, str(FONTS_DIR / "DejaVuSans.ttf")))
pdfmetrics.registerFont(TTFont(FONT_BOLD, str(FONTS_DIR / "DejaVuSans-Bold.ttf")))


def _line_label(line: OrderLine) -> str:
    title = line.title
    if len(title) > MAX_TITLE_CHARS:
        title = title[: MAX_TITLE_CHARS - 3] + "..."
    return f"{title} × {line.quantity}"


class _InvoiceCanvas:
    """Обёртка над canvas: курсор по вертикали и перенос на новую страницу."""

    def __init__(self, buffer: io.BytesIO, order: Order, store_name: str):
        self.order = order
        self.store_name = store_name
        self.page = 0
        self.pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1, pageCompression=0)
        self.pdf.setTitle(f"Invoice #{order.id}")
        self.pdf.setAuthor(store_name)
        self.pdf.setCreator(store_name)
        self._start_page()

    def _start_page(self) -> None:
        self.page += 1
        self.y = PAGE_HEIGHT - MARGIN
        self.pdf.setFont(FONT_BOLD, 18)
        heading = "INVOICE" if self.page == 1 else f"INVOICE #{self.order.id} (continued)"
        self.pdf.drawString(MARGIN, self.y, heading)
        self.pdf.setFont(FONT, 10)
        self.pdf.drawRightString(PAGE_WIDTH - MARGIN, self.y, self.store_name)
        self.pdf.drawRightString(PAGE_WIDTH - MARGIN, MARGIN / 2, f"Page {self.page}")
        self.y -= ROW_HEIGHT * 2

    def ensure_room(self, rows: int = 1) -> None:
        if self.y - ROW_HEIGHT * rows < MARGIN:
            self.pdf.showPage()
            self._start_page()

    def row(self, left: str, right: str = "", bold: bool = False) -> None:
        self.ensure_room()
        self.pdf.setFont(FONT_BOLD if bold else FONT, 11)
        self.pdf.drawString(MARGIN, self.y, left)
        if right:
            self.pdf.drawRightString(PAGE_WIDTH - MARGIN, self.y, right)
        self.y -= ROW_HEIGHT

    def rule(self) -> None:
        self.ensure_room()
        self.pdf.line(MARGIN, self.y + ROW_HEIGHT / 2, PAGE_WIDTH - MARGIN, self.y + ROW_HEIGHT / 2)
        self.y -= ROW_HEIGHT / 2

    def finish(self) -> None:
        self.pdf.showPage()
        self.pdf.save()


def render_invoice_pdf(
    order: Order,
    lines: Sequence[OrderLine],
    *,
    store_name: str = settings.STORE_NAME,
) -> bytes:
    """Рендерит заказ в PDF. Без обращений к БД и сети.

    Ставка налога берётся из самого заказа, а не из текущих настроек.
    """
    buffer = io.BytesIO()
    doc = _InvoiceCanvas(buffer, order, store_name)

    doc.row(f"Order #{order.id}")
    doc.row(f"Order date: {order.created_at:%Y-%m-%d %H:%M:%S} UTC")
    doc.y -= ROW_HEIGHT
    doc.row("Item", "Amount", bold=True)
    doc.rule()

    for line in sorted(lines, key=lambda l: (l.product_id, l.id or 0)):
        doc.row(_line_label(line), f"— {format_money(line.line_total)}")

    doc.rule()
    # итоги не разрываем между страницами
    doc.ensure_room(3)
    doc.row("Subtotal:", format_money(order.subtotal))
    doc.row(f"Tax ({format_rate(order.tax_rate)}):", format_money(order.tax))
    doc.row("Total:", format_money(order.total), bold=True)

    doc.finish()
    return buffer.getvalue()


def load_order(db: Session, order_id: int, user_id: int | None = None) -> Order:
    """Заказ со строками; чужой заказ неотличим от несуществующего."""
    order = db.execute(
        select(Order).options(selectinload(Order.lines)).where(Order.id == order_id)
    ).scalar_one_or_none()
    if order is None or (user_id is not None and order.user_id != user_id):
        raise OrderNotFound()
    return order


def render_invoice(db: Session, order_id: int, user_id: int | None = None) -> bytes:
    order = load_order(db, order_id, user_id)
    return render_invoice_pdf(order, order.lines)


def invoice_filename(order_id: int) -> str:
    return f"invoice-{order_id}.pdf"
