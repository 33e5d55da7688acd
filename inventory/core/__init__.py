"""Session-scoped state: per-key locking and the cart aggregate"""

from .cart import Cart, CartLine, CartService, CartView
from .locks import KeyedLocks

__all__ = [
    "Cart",
    "CartLine",
    "CartService",
    "CartView",
    "KeyedLocks",
]
