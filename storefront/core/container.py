"""Service wiring for a storefront session"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..database.carts import CartStore
from ..database.storage import LocalStorage
from ..services.api_client import MarketplaceClient
from ..services.checkout import CheckoutMachine
from ..services.invoices import InvoiceGenerator
from ..services.orders import OrderSubmissionClient
from ..services.payments import PaymentGateway, SimulatedPaymentGateway
from .config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a storefront session needs, constructed once"""
    settings: Settings
    storage: LocalStorage
    cart: CartStore
    api: MarketplaceClient
    gateway: PaymentGateway
    orders: OrderSubmissionClient
    invoices: InvoiceGenerator
    checkout: CheckoutMachine

    async def close(self) -> None:
        await self.api.close()


def build_services(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Services:
    """Construct and connect the storefront services"""
    storage = LocalStorage(settings.storage_path)
    cart = CartStore(storage)
    api = MarketplaceClient(
        base_url=settings.api_base_url,
        storage=storage,
        timeout=settings.request_timeout,
        transport=transport,
    )
    gateway = gateway or SimulatedPaymentGateway(processing_delay=settings.payment_processing_delay)
    orders = OrderSubmissionClient(api=api, cart=cart)
    invoices = InvoiceGenerator.from_settings(settings)
    checkout = CheckoutMachine(
        cart=cart,
        gateway=gateway,
        orders=orders,
        invoices=invoices,
        user_provider=api.get_user,
    )

    logger.info(
        f"Storefront services ready: backend {settings.api_base_url}, "
        f"storage {'file ' + settings.storage_path if settings.storage_persistent else 'in memory'}"
    )
    return Services(
        settings=settings,
        storage=storage,
        cart=cart,
        api=api,
        gateway=gateway,
        orders=orders,
        invoices=invoices,
        checkout=checkout,
    )
