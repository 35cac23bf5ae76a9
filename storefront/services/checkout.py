"""
Checkout State Machine

Drives the three-step checkout: shipping details, payment, confirmation.
Steps only move forward once their inputs validate, and payment is always
authorized before the order is submitted.
"""

import logging
import re
import uuid
from typing import Callable, Optional

from ..database.carts import CartStore
from ..errors import InvalidStepError, StorefrontError
from ..models.cart import CartItem
from ..models.checkout import (
    CheckoutStep,
    OrderConfirmation,
    OrderTotals,
    ShippingAddress,
    compute_totals,
)
from ..models.payment import PaymentInput
from .invoices import InvoiceFile, InvoiceGenerator
from .orders import OrderSubmissionClient
from .payments import (
    PaymentGateway,
    format_card_number,
    format_cvv,
    format_expiry_date,
    validate_card,
)

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\d{8}$")

REQUIRED_SHIPPING_FIELDS = {
    "full_name": "Full name is required",
    "address": "Address is required",
    "city": "City is required",
    "postal_code": "Postal code is required",
}

# Signed-in user profile (or None) used to pre-fill the forms
UserProvider = Callable[[], Optional[dict]]


def validate_shipping(shipping: ShippingAddress) -> dict[str, str]:
    """Per-field errors for the shipping step, empty when valid"""
    errors = {
        field: message
        for field, message in REQUIRED_SHIPPING_FIELDS.items()
        if not getattr(shipping, field).strip()
    }

    phone = shipping.phone.strip()
    if not phone:
        errors["phone"] = "Phone is required"
    elif not PHONE_PATTERN.match(re.sub(r"[\s-]", "", phone)):
        errors["phone"] = "Invalid phone format (8 digits)"

    return errors


def validate_payment(payment: PaymentInput) -> dict[str, str]:
    """Per-field errors for the payment step, empty when valid"""
    errors = {}

    card = validate_card(payment.card_number, payment.expiry_date, payment.cvv)
    if not card.is_valid:
        errors[card.field] = card.error

    if not payment.card_holder_name.strip():
        errors["card_holder_name"] = "Cardholder name is required"

    return errors


class CheckoutMachine:
    """
    Checkout flow for one storefront session.

    Totals are never stored: they are derived from the cart every time
    they are asked for. Closing the flow bumps an epoch so that a
    submission still in flight cannot land in a later session.
    """

    def __init__(
        self,
        cart: CartStore,
        gateway: PaymentGateway,
        orders: OrderSubmissionClient,
        invoices: InvoiceGenerator,
        user_provider: Optional[UserProvider] = None,
    ):
        self.cart = cart
        self.gateway = gateway
        self.orders = orders
        self.invoices = invoices
        self._user_provider = user_provider or (lambda: None)

        self.is_open = True
        self.submitting = False
        self._epoch = 0
        self._reset()

    def _reset(self) -> None:
        self.step = CheckoutStep.SHIPPING
        self.shipping = ShippingAddress()
        self.payment = PaymentInput()
        self._prefill()
        self.errors: dict[str, str] = {}
        self.confirmation: Optional[OrderConfirmation] = None
        self._purchased_items: list[CartItem] = []
        self._idempotency_key = str(uuid.uuid4())

    def _prefill(self) -> None:
        """Fill blank name and phone fields from the signed-in user"""
        user = self._user_provider() or {}
        full_name = user.get("fullName") or ""

        if not self.shipping.full_name:
            self.shipping.full_name = full_name
        if not self.shipping.phone:
            self.shipping.phone = user.get("phone") or ""
        if not self.payment.card_holder_name:
            self.payment.card_holder_name = full_name

    def _require_step(self, step: CheckoutStep, action: str) -> None:
        if self.step != step:
            raise InvalidStepError(f"Cannot {action} during the {self.step.value} step")

    def totals(self) -> OrderTotals:
        return compute_totals(self.cart.items)

    @property
    def idempotency_key(self) -> str:
        """Key sent with every order submission of this session"""
        return self._idempotency_key

    # ==================== Input ====================

    def update_shipping(self, **fields: str) -> ShippingAddress:
        """Replace shipping form fields; unknown fields are ignored"""
        self.shipping = ShippingAddress.model_validate({**self.shipping.model_dump(), **fields})
        return self.shipping

    def set_card_number(self, value: str) -> str:
        self.payment.card_number = format_card_number(value)
        return self.payment.card_number

    def set_expiry_date(self, value: str) -> str:
        self.payment.expiry_date = format_expiry_date(value)
        return self.payment.expiry_date

    def set_cvv(self, value: str) -> str:
        self.payment.cvv = format_cvv(value)
        return self.payment.cvv

    def set_card_holder_name(self, value: str) -> str:
        self.payment.card_holder_name = value
        return value

    # ==================== Transitions ====================

    def submit_shipping(self) -> bool:
        """Advance to payment if the shipping details are valid"""
        self._require_step(CheckoutStep.SHIPPING, "submit shipping details")

        self.errors = validate_shipping(self.shipping)
        if self.errors:
            logger.debug(f"Shipping step rejected: {sorted(self.errors)}")
            return False

        self.step = CheckoutStep.PAYMENT
        logger.info("Checkout moved to payment step")
        return True

    def back(self) -> None:
        """Return from payment to shipping, keeping entered details"""
        self._require_step(CheckoutStep.PAYMENT, "go back")
        self.errors = {}
        self.step = CheckoutStep.SHIPPING

    async def submit_payment(self) -> bool:
        """
        Authorize the card and place the order.

        Returns True once the confirmation step is reached. On any failure
        the step stays at payment and the reason is left in errors.
        """
        self._require_step(CheckoutStep.PAYMENT, "submit payment")

        if self.submitting:
            self.errors = {"submit": "A payment is already being processed"}
            return False

        self.errors = validate_payment(self.payment)
        if self.errors:
            logger.debug(f"Payment step rejected: {sorted(self.errors)}")
            return False

        epoch = self._epoch
        purchased_items = self.cart.items
        totals = compute_totals(purchased_items)
        self.submitting = True

        try:
            receipt = await self.gateway.authorize(self.payment)
            confirmation = await self.orders.submit(
                purchased_items,
                self.shipping,
                receipt,
                totals,
                idempotency_key=self._idempotency_key,
            )
        except StorefrontError as e:
            logger.warning(f"Checkout submission failed: {e}")
            if epoch == self._epoch:
                self.errors = {"submit": str(e)}
            return False
        finally:
            if epoch == self._epoch:
                self.submitting = False

        if epoch != self._epoch:
            logger.info(f"Ignoring order {confirmation.order.order_number}: checkout was closed meanwhile")
            return False

        self.confirmation = confirmation
        self._purchased_items = purchased_items
        self.errors = {}
        self.step = CheckoutStep.CONFIRMATION
        logger.info(f"Checkout confirmed order {confirmation.order.order_number}")
        return True

    def open(self) -> None:
        self.is_open = True
        if self.step == CheckoutStep.SHIPPING:
            self._prefill()

    def close(self) -> None:
        """
        Dismiss the checkout.

        After a confirmed purchase this empties the cart and resets every
        step for the next session; repeating the call changes nothing.
        """
        self._epoch += 1
        self.submitting = False
        self.is_open = False

        if self.step == CheckoutStep.CONFIRMATION:
            self.cart.clear()
            self._reset()
            logger.info("Checkout reset after confirmed purchase")

    # ==================== Confirmation ====================

    def download_invoice(self) -> InvoiceFile:
        """Invoice for the confirmed order"""
        self._require_step(CheckoutStep.CONFIRMATION, "download an invoice")
        return self.invoices.generate(
            self.confirmation.order,
            self.confirmation.customer,
            self.confirmation.payment,
            self._purchased_items,
        )

    def snapshot(self) -> dict:
        """Current state for display; card number and CVV are masked"""
        last_four = self.payment.last_four
        return {
            "step": self.step.value,
            "is_open": self.is_open,
            "submitting": self.submitting,
            "shipping": self.shipping.model_dump(),
            "payment": {
                "card_number": f"**** **** **** {last_four}" if last_four else "",
                "expiry_date": self.payment.expiry_date,
                "card_holder_name": self.payment.card_holder_name,
            },
            "totals": self.totals().model_dump(),
            "errors": dict(self.errors),
            "confirmation": self.confirmation.to_wire() if self.confirmation else None,
        }
