"""Checkout API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from ..core.container import Services
from .deps import get_services

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


class ShippingUpdate(BaseModel):
    """Partial update of the shipping form"""
    full_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None


class PaymentUpdate(BaseModel):
    """Partial update of the payment form, formatted as typed"""
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    card_holder_name: Optional[str] = None


@router.get("")
async def get_checkout(services: Services = Depends(get_services)):
    """Current checkout state"""
    return services.checkout.snapshot()


@router.post("/open")
async def open_checkout(services: Services = Depends(get_services)):
    services.checkout.open()
    return services.checkout.snapshot()


@router.patch("/shipping")
async def update_shipping(
    request: ShippingUpdate,
    services: Services = Depends(get_services),
):
    """Edit shipping details"""
    services.checkout.update_shipping(**request.model_dump(exclude_none=True))
    return services.checkout.snapshot()


@router.post("/shipping")
async def submit_shipping(services: Services = Depends(get_services)):
    """Validate shipping details and move to payment"""
    services.checkout.submit_shipping()
    return services.checkout.snapshot()


@router.post("/back")
async def go_back(services: Services = Depends(get_services)):
    services.checkout.back()
    return services.checkout.snapshot()


@router.patch("/payment")
async def update_payment(
    request: PaymentUpdate,
    services: Services = Depends(get_services),
):
    """Edit card details; inputs are auto-formatted"""
    checkout = services.checkout
    if request.card_number is not None:
        checkout.set_card_number(request.card_number)
    if request.expiry_date is not None:
        checkout.set_expiry_date(request.expiry_date)
    if request.cvv is not None:
        checkout.set_cvv(request.cvv)
    if request.card_holder_name is not None:
        checkout.set_card_holder_name(request.card_holder_name)
    return checkout.snapshot()


@router.post("/payment")
async def submit_payment(services: Services = Depends(get_services)):
    """
    Authorize payment and place the order.

    Failures are reported in the returned state's errors and leave the
    checkout on the payment step.
    """
    await services.checkout.submit_payment()
    return services.checkout.snapshot()


@router.post("/close")
async def close_checkout(services: Services = Depends(get_services)):
    services.checkout.close()
    return services.checkout.snapshot()


@router.get("/invoice")
async def download_invoice(services: Services = Depends(get_services)):
    """Download the invoice of the confirmed order"""
    invoice = services.checkout.download_invoice()
    if services.settings.invoice_output_dir:
        services.invoices.save(invoice, services.settings.invoice_output_dir)
    return Response(
        content=invoice.content,
        media_type=invoice.media_type,
        headers={"Content-Disposition": f'attachment; filename="{invoice.filename}"'},
    )
