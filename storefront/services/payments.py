"""
Payment Simulation

Card input helpers and a payment gateway interface with a deterministic,
local implementation. Outcomes are keyed on the last four digits of the
card number, so test cards always behave the same way.
"""

import asyncio
import logging
import re
import secrets
import string
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from ..errors import CardValidationError, PaymentDeclinedError
from ..models.payment import (
    CardBrand,
    CardValidation,
    DeclineReason,
    PaymentInput,
    PaymentResult,
)

logger = logging.getLogger(__name__)

CARD_NUMBER_DIGITS = 16
EXPIRY_DIGITS = 4
CVV_MAX_DIGITS = 4

# Last four digits -> simulated rejection
DECLINE_TABLE: dict[str, DeclineReason] = {
    "0002": DeclineReason.INSUFFICIENT_FUNDS,
    "0004": DeclineReason.EXPIRED_CARD,
    "0005": DeclineReason.BLOCKED_CARD,
    "0008": DeclineReason.NETWORK_ERROR,
    "0010": DeclineReason.SECURITY_REJECTION,
}

_NON_DIGITS = re.compile(r"\D")


def _digits(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def format_card_number(value: str) -> str:
    """Group card digits in blocks of four, keeping at most 16 digits"""
    digits = _digits(value)[:CARD_NUMBER_DIGITS]
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiry_date(value: str) -> str:
    """Force expiry input into MM/YY"""
    digits = _digits(value)[:EXPIRY_DIGITS]
    if len(digits) >= 2:
        return f"{digits[:2]}/{digits[2:]}"
    return digits


def format_cvv(value: str) -> str:
    return _digits(value)[:CVV_MAX_DIGITS]


def detect_card_brand(card_number: Optional[str]) -> CardBrand:
    """Detect card brand from its leading digits, defaulting to Visa"""
    digits = _digits(card_number)

    if digits.startswith("4"):
        return CardBrand.VISA
    if re.match(r"^5[1-5]", digits):
        return CardBrand.MASTERCARD
    if re.match(r"^3[47]", digits):
        return CardBrand.AMERICAN_EXPRESS
    if digits.startswith("6"):
        return CardBrand.DISCOVER

    return CardBrand.VISA


def validate_card(card_number: str, expiry_date: str, cvv: str) -> CardValidation:
    """Structural card checks; the first failing field is reported"""
    if len(_digits(card_number)) < CARD_NUMBER_DIGITS:
        return CardValidation(is_valid=False, error="Invalid card number", field="card_number")

    if not expiry_date or len(expiry_date) < 5:
        return CardValidation(is_valid=False, error="Invalid expiration date", field="expiry_date")

    if not cvv or len(cvv) < 3:
        return CardValidation(is_valid=False, error="Invalid CVV", field="cvv")

    return CardValidation(is_valid=True)


def _authorization_code(length: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "AUTH-" + "".join(secrets.choice(alphabet) for _ in range(length))


class PaymentGateway(ABC):
    """Authorizes card payments"""

    @abstractmethod
    async def authorize(self, payment: PaymentInput) -> PaymentResult:
        """
        Authorize a card payment.

        Raises:
            CardValidationError: card details are structurally invalid
            PaymentDeclinedError: the authorization was rejected
        """


class SimulatedPaymentGateway(PaymentGateway):
    """
    Local payment gateway used in place of a real processor.

    Usage:
        gateway = SimulatedPaymentGateway(processing_delay=0)
        receipt = await gateway.authorize(PaymentInput(...))
    """

    def __init__(
        self,
        processing_delay: float = 2.0,
        decline_table: Optional[dict[str, DeclineReason]] = None,
    ):
        self.processing_delay = processing_delay
        self.decline_table = DECLINE_TABLE if decline_table is None else decline_table

    async def authorize(self, payment: PaymentInput) -> PaymentResult:
        validation = validate_card(payment.card_number, payment.expiry_date, payment.cvv)
        if not validation.is_valid:
            raise CardValidationError(validation.error, field=validation.field)

        if self.processing_delay > 0:
            await asyncio.sleep(self.processing_delay)

        last_four = payment.last_four
        reason = self.decline_table.get(last_four)
        if reason is not None:
            logger.warning(f"Simulated decline for card ending {last_four}: {reason.value}")
            raise PaymentDeclinedError(reason)

        result = PaymentResult(
            transaction_id=f"TXN-{int(time.time() * 1000)}",
            authorization_code=_authorization_code(),
            card_last4=last_four,
            card_brand=detect_card_brand(payment.card_number),
            processed_at=datetime.now(timezone.utc),
        )
        logger.info(f"Authorized {result.card_brand.value} card ending {last_four}: {result.transaction_id}")
        return result
