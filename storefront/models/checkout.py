"""Checkout and order models"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, field_validator

from .base import CamelModel
from .cart import CartItem
from .payment import PaymentResult

FREE_SHIPPING_THRESHOLD = 50000
SHIPPING_COST = 2500
TAX_RATE = 0.13


class CheckoutStep(str, Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


class ShippingAddress(CamelModel):
    """Shipping details typed into the first checkout step"""
    full_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    phone: str = ""


class OrderTotals(BaseModel):
    """Amounts derived from the cart contents"""
    subtotal: float
    shipping: float
    tax: float
    total: float


def compute_totals(items: Iterable[CartItem]) -> OrderTotals:
    """
    Derive order totals from cart items.

    Shipping is free strictly above the threshold; tax applies to
    subtotal plus shipping and is rounded half up to whole units.
    """
    subtotal = sum(item.price * item.quantity for item in items)
    shipping = 0 if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_COST
    tax = int(
        (Decimal(str(subtotal + shipping)) * Decimal(str(TAX_RATE))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )


class CustomerInfo(CamelModel):
    """Customer block printed on the invoice"""
    name: str
    address: str
    city: str
    phone: str

    @classmethod
    def from_shipping(cls, shipping: ShippingAddress) -> "CustomerInfo":
        return cls(
            name=shipping.full_name or "Usuario",
            address=shipping.address or "Dirección no especificada",
            city=shipping.city or "San José",
            phone=shipping.phone or "No especificado",
        )


class OrderItem(CamelModel):
    """Line of a server-side order"""
    product: Union[str, dict, None] = None
    name: Optional[str] = None
    product_name: Optional[str] = None
    store: Union[str, dict, None] = None
    quantity: int = 1
    price: Optional[float] = None
    unit_price: Optional[float] = None
    total: Optional[float] = None

    class Config:
        extra = "allow"

    @property
    def product_id(self) -> Optional[str]:
        if isinstance(self.product, dict):
            product_id = self.product.get("id") or self.product.get("_id")
            return str(product_id) if product_id else None
        return self.product

    @property
    def unit_amount(self) -> float:
        return self.price or self.unit_price or 0

    @property
    def line_amount(self) -> float:
        return self.total or self.unit_amount * self.quantity


class Order(CamelModel):
    """Order as returned by the backend"""
    order_number: str
    items: list[OrderItem] = []
    subtotal: float = 0
    shipping_cost: float = 0
    tax: float = 0
    total: float = 0
    status: str = "pending"
    created_at: Optional[datetime] = None

    class Config:
        extra = "allow"

    @field_validator("order_number", mode="before")
    @classmethod
    def order_number_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("items", mode="before")
    @classmethod
    def default_missing_items(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("subtotal", "shipping_cost", "tax", "total", mode="before")
    @classmethod
    def default_missing_amount(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def default_missing_status(cls, value: Any) -> Any:
        return "pending" if value is None else value


class OrderConfirmation(CamelModel):
    """Result of a successful checkout submission"""
    order: Order
    payment: PaymentResult
    customer: CustomerInfo
