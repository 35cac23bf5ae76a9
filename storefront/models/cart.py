"""Cart models"""

from pydantic import BaseModel, Field
from typing import Optional

from .base import CamelModel


class CartItem(CamelModel):
    """Item in the shopping cart"""
    id: str
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    store_id: str = Field(min_length=1)
    category: Optional[str] = None
    images: list[str] = []

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartResult(BaseModel):
    """Outcome of a cart mutation"""
    success: bool
    message: str


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_id: str
    quantity: int = 1
    product: Optional[dict] = None


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity"""
    quantity: int


class CartResponse(BaseModel):
    """Cart API response"""
    items: list[dict]
    total: float
    item_count: int
    message: Optional[str] = None
