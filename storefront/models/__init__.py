# Storefront Models

from .cart import CartItem, CartResult, AddToCartRequest, UpdateCartItemRequest, CartResponse
from .payment import (
    CardBrand,
    CardValidation,
    DeclineReason,
    PaymentInput,
    PaymentResult,
)
from .checkout import (
    CheckoutStep,
    CustomerInfo,
    Order,
    OrderConfirmation,
    OrderItem,
    OrderTotals,
    ShippingAddress,
    compute_totals,
)

__all__ = [
    "CartItem",
    "CartResult",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartResponse",
    "CardBrand",
    "CardValidation",
    "DeclineReason",
    "PaymentInput",
    "PaymentResult",
    "CheckoutStep",
    "CustomerInfo",
    "Order",
    "OrderConfirmation",
    "OrderItem",
    "OrderTotals",
    "ShippingAddress",
    "compute_totals",
]
