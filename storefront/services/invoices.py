"""
Invoice Generator

Renders a single-page PDF invoice for a confirmed order. If rendering
fails the invoice degrades to a plain-text summary, so a downloadable
file is always produced.
"""

import io
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..core.config import Settings
from ..models.cart import CartItem
from ..models.checkout import TAX_RATE, CustomerInfo, Order, OrderItem
from ..models.payment import PaymentResult

logger = logging.getLogger(__name__)

PRIMARY_COLOR = (37 / 255, 99 / 255, 235 / 255)
LIGHT_GRAY = (243 / 255, 244 / 255, 246 / 255)
MAX_NAME_LENGTH = 48
PAID_STATUSES = {"confirmed", "paid", "completed"}

# (order line, zero-based position) -> product name or None
NameResolver = Callable[[OrderItem, int], Optional[str]]


@dataclass
class InvoiceFile:
    """Downloadable invoice"""
    filename: str
    content: bytes
    media_type: str


def format_amount(value: float, symbol: str = "₡") -> str:
    """Format an amount with thousands separators, no decimals for whole values"""
    value = float(value or 0)
    if value.is_integer():
        return f"{symbol}{value:,.0f}"
    return f"{symbol}{value:,.2f}"


def embedded_product_name(line: OrderItem, index: int) -> Optional[str]:
    if isinstance(line.product, dict):
        return line.product.get("name")
    return None


def line_name(line: OrderItem, index: int) -> Optional[str]:
    return line.name or line.product_name


def cart_name_resolver(cart_items: Iterable[CartItem]) -> NameResolver:
    """Resolve names from the cart items cached when the order was placed"""
    names = {item.id: item.name for item in cart_items if item.name}

    def resolve(line: OrderItem, index: int) -> Optional[str]:
        product_id = line.product_id
        return names.get(product_id) if product_id else None

    return resolve


def placeholder_name(line: OrderItem, index: int) -> str:
    return f"Producto {index + 1}"


def resolve_product_name(line: OrderItem, index: int, resolvers: Sequence[NameResolver]) -> str:
    """First non-empty name from the resolvers, tried in order"""
    for resolver in resolvers:
        name = resolver(line, index)
        if name:
            return name
    return placeholder_name(line, index)


class InvoiceGenerator:
    """
    Builds invoices for confirmed orders.

    Usage:
        generator = InvoiceGenerator.from_settings(settings)
        invoice = generator.generate(order, customer, payment, cart_items)
        generator.save(invoice, "invoices")
    """

    def __init__(
        self,
        company_name: str = "Marketplace CR S.A.",
        company_legal_id: str = "3-101-123456",
        company_location: str = "San José, Costa Rica",
        company_phone: str = "+506 2234-5678",
        company_email: str = "info@marketplace-cr.com",
    ):
        self.company_name = company_name
        self.company_legal_id = company_legal_id
        self.company_location = company_location
        self.company_phone = company_phone
        self.company_email = company_email

    @classmethod
    def from_settings(cls, settings: Settings) -> "InvoiceGenerator":
        return cls(
            company_name=settings.company_name,
            company_legal_id=settings.company_legal_id,
            company_location=settings.company_location,
            company_phone=settings.company_phone,
            company_email=settings.company_email,
        )

    @staticmethod
    def name_resolvers(cart_items: Iterable[CartItem] = ()) -> list[NameResolver]:
        """Product name sources, most authoritative first"""
        return [embedded_product_name, line_name, cart_name_resolver(cart_items)]

    def generate(
        self,
        order: Order,
        customer: CustomerInfo,
        payment: PaymentResult,
        cart_items: Iterable[CartItem] = (),
    ) -> InvoiceFile:
        """Render the invoice, falling back to plain text if the PDF fails"""
        resolvers = self.name_resolvers(list(cart_items))
        basename = f"Factura_{order.order_number}"

        try:
            content = self.render_pdf(order, customer, payment, resolvers)
            return InvoiceFile(f"{basename}.pdf", content, "application/pdf")
        except Exception:
            logger.warning(
                f"PDF invoice failed for order {order.order_number}, using plain text",
                exc_info=True,
            )

        text = self.render_text(order, customer, payment, resolvers)
        return InvoiceFile(f"{basename}.txt", text.encode("utf-8"), "text/plain")

    @staticmethod
    def save(invoice: InvoiceFile, directory: str) -> str:
        """Write the invoice into directory and return its path"""
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, invoice.filename)
        with open(path, "wb") as f:
            f.write(invoice.content)
        logger.info(f"Invoice saved to {path}")
        return path

    @staticmethod
    def _issued_at(order: Order, payment: PaymentResult) -> datetime:
        return order.created_at or payment.processed_at

    @staticmethod
    def _status_label(order: Order) -> str:
        if order.status.lower() in PAID_STATUSES:
            return "PAGADA"
        return order.status.upper()

    def render_pdf(
        self,
        order: Order,
        customer: CustomerInfo,
        payment: PaymentResult,
        resolvers: Sequence[NameResolver],
    ) -> bytes:
        """Draw the fixed invoice layout; coordinates are millimetres from the top-left"""
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"Factura {order.order_number}")
        page_height = A4[1]

        def text(x: float, top: float, value: str, font: str = "Helvetica", size: int = 10) -> None:
            pdf.setFont(font, size)
            pdf.drawString(x * mm, page_height - top * mm, value)

        def hline(top: float) -> None:
            pdf.line(15 * mm, page_height - top * mm, 195 * mm, page_height - top * mm)

        def band(x: float, top: float, width: float, height: float, color: tuple) -> None:
            pdf.setFillColorRGB(*color)
            pdf.rect(x * mm, page_height - (top + height) * mm, width * mm, height * mm, fill=1, stroke=0)

        def amount(value: float) -> str:
            return format_amount(value, symbol="CRC ")

        # Header band
        band(0, 0, 210, 25, PRIMARY_COLOR)
        pdf.setFillColorRGB(1, 1, 1)
        text(15, 17, "MARKETPLACE CR", "Helvetica-Bold", 20)
        text(150, 17, "Factura Electrónica", "Helvetica-Bold", 12)

        # Issuer
        pdf.setFillColorRGB(0, 0, 0)
        text(15, 35, self.company_name)
        text(15, 42, f"Cédula Jurídica: {self.company_legal_id}")
        text(15, 49, self.company_location)
        text(15, 56, f"Tel: {self.company_phone}")
        text(15, 63, f"Email: {self.company_email}")

        # Order metadata
        text(120, 35, f"FACTURA #: {order.order_number}", "Helvetica-Bold")
        text(120, 42, f"Fecha: {self._issued_at(order, payment).strftime('%d/%m/%Y %H:%M')}")
        text(120, 49, f"Estado: {self._status_label(order)}")
        text(120, 56, "Método: Tarjeta de Crédito")
        text(120, 63, f"Autorización: {payment.authorization_code}")

        pdf.setLineWidth(0.5)
        hline(70)

        # Customer
        text(15, 80, "CLIENTE:", "Helvetica-Bold", 12)
        text(15, 87, f"Nombre: {customer.name}")
        text(15, 94, f"Dirección: {customer.address}, {customer.city}")
        text(15, 101, f"Teléfono: {customer.phone}")

        # Line items
        start = 115
        band(15, start, 180, 8, LIGHT_GRAY)
        pdf.setFillColorRGB(0, 0, 0)
        text(20, start + 5, "PRODUCTO", "Helvetica-Bold", 9)
        text(120, start + 5, "CANT.", "Helvetica-Bold", 9)
        text(140, start + 5, "PRECIO", "Helvetica-Bold", 9)
        text(170, start + 5, "TOTAL", "Helvetica-Bold", 9)

        current = start + 15
        for index, line in enumerate(order.items):
            name = resolve_product_name(line, index, resolvers)[:MAX_NAME_LENGTH]
            text(20, current, name, size=9)
            text(125, current, str(line.quantity), size=9)
            text(140, current, amount(line.unit_amount), size=9)
            text(170, current, amount(line.line_amount), size=9)
            current += 7

        hline(current + 5)

        # Totals
        totals_top = current + 15
        text(140, totals_top, "Subtotal:")
        text(170, totals_top, amount(order.subtotal))
        text(140, totals_top + 7, "Envío:")
        text(170, totals_top + 7, "GRATIS" if not order.shipping_cost else amount(order.shipping_cost))
        text(140, totals_top + 14, f"IVA ({TAX_RATE:.0%}):")
        text(170, totals_top + 14, amount(order.tax))
        text(140, totals_top + 25, "TOTAL:", "Helvetica-Bold", 12)
        text(170, totals_top + 25, amount(order.total), "Helvetica-Bold", 12)

        # Payment
        text(15, totals_top + 40, f"Tarjeta: **** **** **** {payment.card_last4}", size=9)
        text(15, totals_top + 47, f"Transacción: {payment.transaction_id}", size=9)

        # Footer
        text(15, 270, "Gracias por su compra en Marketplace CR", "Helvetica-Oblique", 8)
        text(15, 277, "Esta es una factura electrónica válida", "Helvetica-Oblique", 8)

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def render_text(
        self,
        order: Order,
        customer: CustomerInfo,
        payment: PaymentResult,
        resolvers: Sequence[NameResolver],
    ) -> str:
        """Plain-text summary used when the PDF cannot be produced"""
        lines = [
            f"Factura - Orden: {order.order_number}",
            f"{self.company_name} ({self.company_legal_id})",
            f"Cliente: {customer.name} - {customer.phone}",
            "",
        ]
        for index, line in enumerate(order.items):
            name = resolve_product_name(line, index, resolvers)
            lines.append(f"{line.quantity} x {name}: {format_amount(line.line_amount)}")

        shipping = "GRATIS" if not order.shipping_cost else format_amount(order.shipping_cost)
        lines.extend([
            "",
            f"Subtotal: {format_amount(order.subtotal)}",
            f"Envío: {shipping}",
            f"IVA: {format_amount(order.tax)}",
            f"Total: {format_amount(order.total)}",
            f"Tarjeta: **** **** **** {payment.card_last4}",
            f"Autorización: {payment.authorization_code}",
            f"Transacción: {payment.transaction_id}",
        ])
        return "\n".join(lines) + "\n"
