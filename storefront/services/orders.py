"""Order submission"""

import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from ..database.carts import CartStore
from ..errors import AuthenticationError, MarketplaceAPIError, OrderSubmissionError
from ..models.cart import CartItem
from ..models.checkout import (
    CustomerInfo,
    Order,
    OrderConfirmation,
    OrderItem,
    OrderTotals,
    ShippingAddress,
)
from ..models.payment import PaymentResult
from .api_client import MarketplaceClient

logger = logging.getLogger(__name__)

PAYMENT_METHOD = "credit_card"
DEFAULT_PROVINCE = "San José"
UNKNOWN_ORDER_NUMBER = "SIN-NUMERO"


def build_order_lines(cart_items: Sequence[CartItem]) -> list[dict]:
    """Convert cart items to backend order lines"""
    lines = []
    for item in cart_items:
        if not item.store_id:
            raise OrderSubmissionError(f"Product {item.name or item.id} has no store information")

        lines.append({
            "product": item.id,
            "name": item.name,
            "store": item.store_id,
            "quantity": item.quantity,
            "price": item.price,
            "total": item.price * item.quantity,
        })
    return lines


def build_shipping_address(shipping: ShippingAddress) -> dict:
    """Adapt the checkout address to the backend's address shape"""
    return {
        "alias": "Dirección principal",
        "country": "Costa Rica",
        "provincia": shipping.city or DEFAULT_PROVINCE,
        "canton": shipping.city or DEFAULT_PROVINCE,
        "distrito": shipping.address,
        "numeroCasillero": "",
        "codigoPostal": shipping.postal_code,
        "observaciones": f"{shipping.full_name} - {shipping.phone}",
    }


def accepted_order(order_data: dict, lines: list[dict], totals: OrderTotals) -> Order:
    """Order rebuilt from what was submitted, keeping the backend's reference if any"""
    reference = order_data.get("orderNumber") or order_data.get("_id") or order_data.get("id")
    return Order(
        order_number=str(reference) if reference else UNKNOWN_ORDER_NUMBER,
        items=[OrderItem.model_validate(line) for line in lines],
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping,
        tax=totals.tax,
        total=totals.total,
    )


class OrderSubmissionClient:
    """
    Turns a paid cart into a backend order.

    A single attempt is made per call; retrying is left to the caller.
    """

    def __init__(self, api: MarketplaceClient, cart: CartStore):
        self.api = api
        self.cart = cart

    async def submit(
        self,
        cart_items: Sequence[CartItem],
        shipping: ShippingAddress,
        payment: PaymentResult,
        totals: OrderTotals,
        idempotency_key: Optional[str] = None,
    ) -> OrderConfirmation:
        """
        Create the order and clear the cart.

        Raises:
            OrderSubmissionError: cart is empty or a line has no store
            AuthenticationError: no stored session token
            MarketplaceAPIError: backend rejected the order or was unreachable
        """
        if not cart_items:
            raise OrderSubmissionError("There are no products in the cart")

        lines = build_order_lines(cart_items)

        if not self.api.get_token():
            raise AuthenticationError("No authentication token found. Please sign in again.")

        payload = {
            "items": lines,
            "shippingAddress": build_shipping_address(shipping),
            "paymentMethod": PAYMENT_METHOD,
            "subtotal": totals.subtotal,
            "shippingCost": totals.shipping,
            "tax": totals.tax,
            "total": totals.total,
        }

        order_data = await self.api.create_order(payload, idempotency_key=idempotency_key)

        try:
            order = Order.model_validate(order_data)
        except ValidationError as e:
            # Already accepted by the backend
            logger.warning(f"Unreadable order in a successful response, confirming from submission: {e}")
            order = accepted_order(order_data, lines, totals)

        self.cart.clear()
        logger.info(
            f"Order {order.order_number} created: {order.total} - "
            f"{len(lines)} line(s), transaction {payment.transaction_id}"
        )

        return OrderConfirmation(
            order=order,
            payment=payment,
            customer=CustomerInfo.from_shipping(shipping),
        )

    async def refresh(self, order_id: str) -> Order:
        """Re-fetch an order from the backend"""
        try:
            return Order.model_validate(await self.api.get_order(order_id))
        except ValidationError as e:
            raise MarketplaceAPIError("Invalid order returned by server") from e
