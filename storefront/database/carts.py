"""Cart storage for the storefront"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..models.cart import CartItem, CartResult
from .storage import LocalStorage

logger = logging.getLogger(__name__)

CART_KEY = "cart"


def _reference_id(value: Any) -> Optional[str]:
    """Id of a reference that may be a plain id or an embedded object"""
    if isinstance(value, dict):
        value = value.get("id") or value.get("_id")
    return str(value) if value else None


class CartStore:
    """
    Cart line items persisted to device-local storage.

    The whole list is written back after every in-memory change, so any
    holder of the store sees mutations immediately.
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._items: list[CartItem] = []
        self.load()

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def load(self) -> list[CartItem]:
        """Rebuild the cart from storage"""
        raw = self.storage.get_item(CART_KEY)
        self._items = self._parse(raw) if raw else []
        return self.items

    @staticmethod
    def _parse(raw: str) -> list[CartItem]:
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("stored cart is not a list")
            return [CartItem.model_validate(entry) for entry in data]
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable stored cart: {e}")
            return []

    def _save(self) -> None:
        self.storage.set_item(
            CART_KEY,
            json.dumps([item.to_wire() for item in self._items], ensure_ascii=False),
        )

    def _find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == product_id), None)

    def add(
        self,
        product_id: str,
        quantity: int = 1,
        product_data: Optional[dict] = None,
    ) -> CartResult:
        """Add a product, or increase its quantity if already in the cart"""
        if quantity <= 0:
            return CartResult(success=False, message="Quantity must be positive")

        store_id = None
        if product_data is not None:
            store_id = _reference_id(product_data.get("storeId") or product_data.get("store"))
            if not store_id:
                return CartResult(success=False, message="Product has no store information")

        existing_item = self._find(product_id)

        if existing_item:
            existing_item.quantity += quantity
        else:
            if product_data is None:
                return CartResult(success=False, message="Product has no store information")

            category = product_data.get("category")
            if isinstance(category, dict):
                category = category.get("name")

            images = product_data.get("images") or []
            if not isinstance(images, list):
                logger.warning(f"Rejected product {product_id} for cart: images is not a list")
                return CartResult(success=False, message="Invalid product data")

            try:
                cart_item = CartItem(
                    id=product_id,
                    name=product_data.get("name", ""),
                    price=product_data.get("price", 0),
                    quantity=quantity,
                    store_id=store_id,
                    category=category,
                    images=[
                        image if isinstance(image, str) else image.get("url", "")
                        for image in images
                        if isinstance(image, (str, dict))
                    ],
                )
            except ValidationError as e:
                logger.warning(f"Rejected product {product_id} for cart: {e}")
                return CartResult(success=False, message="Invalid product data")

            self._items.append(cart_item)

        self._save()
        logger.debug(f"Added {quantity}x {product_id} to cart")
        return CartResult(success=True, message="Product added to cart")

    def set_quantity(self, product_id: str, quantity: int) -> CartResult:
        """Update item quantity, removing the item when quantity <= 0"""
        if quantity <= 0:
            return self.remove(product_id)

        item = self._find(product_id)
        if not item:
            return CartResult(success=False, message="Product not in cart")

        item.quantity = quantity
        self._save()
        return CartResult(success=True, message="Quantity updated")

    def remove(self, product_id: str) -> CartResult:
        """Remove an item from the cart"""
        self._items = [item for item in self._items if item.id != product_id]
        self._save()
        return CartResult(success=True, message="Product removed from cart")

    def clear(self) -> CartResult:
        """Clear all items from cart"""
        self._items = []
        self.storage.remove_item(CART_KEY)
        return CartResult(success=True, message="Cart cleared")

    def contains(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    def total(self) -> float:
        return sum(item.price * item.quantity for item in self._items)

    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return not self._items
