"""Cart API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.container import Services
from ..database.carts import CartStore
from ..models.cart import AddToCartRequest, CartResponse, UpdateCartItemRequest
from .deps import get_services

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def _cart_response(cart: CartStore, message: Optional[str] = None) -> CartResponse:
    return CartResponse(
        items=[item.to_wire() for item in cart.items],
        total=cart.total(),
        item_count=cart.item_count(),
        message=message,
    )


@router.get("", response_model=CartResponse)
async def get_cart(services: Services = Depends(get_services)):
    """Get cart contents"""
    return _cart_response(services.cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    services: Services = Depends(get_services),
):
    """Add an item to the cart"""
    result = services.cart.add(request.product_id, request.quantity, request.product)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return _cart_response(services.cart, result.message)


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    services: Services = Depends(get_services),
):
    """Update item quantity in cart; zero or less removes it"""
    result = services.cart.set_quantity(product_id, request.quantity)
    if not result.success:
        raise HTTPException(status_code=404, detail=result.message)
    return _cart_response(services.cart, result.message)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    services: Services = Depends(get_services),
):
    """Remove an item from the cart"""
    result = services.cart.remove(product_id)
    return _cart_response(services.cart, result.message)


@router.delete("", response_model=CartResponse)
async def clear_cart(services: Services = Depends(get_services)):
    """Clear all items from cart"""
    result = services.cart.clear()
    return _cart_response(services.cart, result.message)
