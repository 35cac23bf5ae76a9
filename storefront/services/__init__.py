# Storefront services

from .api_client import MarketplaceClient
from .payments import PaymentGateway, SimulatedPaymentGateway
from .orders import OrderSubmissionClient
from .invoices import InvoiceFile, InvoiceGenerator
from .checkout import CheckoutMachine

__all__ = [
    "MarketplaceClient",
    "PaymentGateway",
    "SimulatedPaymentGateway",
    "OrderSubmissionClient",
    "InvoiceFile",
    "InvoiceGenerator",
    "CheckoutMachine",
]
