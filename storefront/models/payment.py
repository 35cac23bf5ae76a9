"""Payment models"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import CamelModel


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMERICAN_EXPRESS = "american express"
    DISCOVER = "discover"


class DeclineReason(str, Enum):
    """Reasons a simulated authorization can be rejected"""
    INSUFFICIENT_FUNDS = "insufficient_funds"
    EXPIRED_CARD = "expired_card"
    BLOCKED_CARD = "blocked_card"
    NETWORK_ERROR = "network_error"
    SECURITY_REJECTION = "security_rejection"

    @property
    def message(self) -> str:
        return _DECLINE_MESSAGES[self]


_DECLINE_MESSAGES = {
    DeclineReason.INSUFFICIENT_FUNDS: "Payment declined by the bank: insufficient funds.",
    DeclineReason.EXPIRED_CARD: "Card expired. Check the expiration date.",
    DeclineReason.BLOCKED_CARD: "Card blocked. Contact your bank.",
    DeclineReason.NETWORK_ERROR: "Network error. Please try again later.",
    DeclineReason.SECURITY_REJECTION: "Transaction rejected for security reasons.",
}


class PaymentInput(CamelModel):
    """Card details typed into the payment step"""
    card_number: str = Field(default="", repr=False)
    expiry_date: str = ""
    cvv: str = Field(default="", repr=False)
    card_holder_name: str = ""

    @property
    def card_digits(self) -> str:
        return "".join(ch for ch in self.card_number if ch.isdigit())

    @property
    def last_four(self) -> str:
        return self.card_digits[-4:]


class PaymentResult(CamelModel):
    """Receipt of a successful authorization"""
    transaction_id: str
    authorization_code: str
    card_last4: str
    card_brand: CardBrand
    processed_at: datetime


@dataclass
class CardValidation:
    """Result of structural card checks"""
    is_valid: bool
    error: Optional[str] = None
    field: Optional[str] = None
