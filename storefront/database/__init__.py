# Storage modules

from .storage import LocalStorage
from .carts import CartStore, CART_KEY

__all__ = [
    "LocalStorage",
    "CartStore",
    "CART_KEY",
]
