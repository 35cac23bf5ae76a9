"""Storefront exceptions"""

from typing import Optional

from .models.payment import DeclineReason


class StorefrontError(Exception):
    """Base exception for storefront errors"""
    pass


class PaymentError(StorefrontError):
    """Payment-related errors"""
    pass


class CardValidationError(PaymentError):
    """Card details failed structural checks"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PaymentDeclinedError(PaymentError):
    """Authorization was rejected"""

    def __init__(self, reason: DeclineReason):
        super().__init__(reason.message)
        self.reason = reason


class MarketplaceAPIError(StorefrontError):
    """Backend call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(MarketplaceAPIError):
    """Missing or rejected session token"""
    pass


class OrderSubmissionError(StorefrontError):
    """Order could not be assembled from the cart"""
    pass


class CheckoutError(StorefrontError):
    """Checkout flow misuse"""
    pass


class InvalidStepError(CheckoutError):
    """Operation not allowed in the current checkout step"""
    pass
