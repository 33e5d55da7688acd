"""
Session-scoped shopping cart.

The cart only stores catalog item ids and quantities. Names and prices are
resolved against the catalog when the cart is listed, so a listing always
reflects the live catalog; items that vanished from the catalog are skipped
but their quantities are kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Tuple

from ..models.catalog import Product, to_money
from ..utils.exceptions import ValidationError
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..auth.sessions import SessionManager
    from ..models.session import Session
    from ..services.catalog_store import CatalogStore

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def _check_item_id(item_id) -> int:
    if isinstance(item_id, bool) or not isinstance(item_id, int):
        raise ValidationError("item_id must be an integer", {"item_id": ["must be an integer"]})
    return item_id


class Cart:
    """Mapping of catalog item id -> positive quantity"""

    def __init__(self):
        self._quantities: Dict[int, int] = {}

    def add(self, item_id: int, quantity: int = 1) -> int:
        """Add `quantity` units of an item, summing with any existing entry. Returns the new quantity."""
        _check_item_id(item_id)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                "quantity must be a positive integer",
                {"quantity": ["must be a positive integer"]},
            )
        new_quantity = self._quantities.get(item_id, 0) + quantity
        self._quantities[item_id] = new_quantity
        return new_quantity

    def remove(self, item_id: int) -> bool:
        """Delete the entry for an item. Absent entries are a no-op."""
        _check_item_id(item_id)
        return self._quantities.pop(item_id, None) is not None

    def quantity_of(self, item_id: int) -> int:
        return self._quantities.get(item_id, 0)

    def items(self) -> List[Tuple[int, int]]:
        """Snapshot of (item_id, quantity) pairs ordered by item id"""
        return sorted(self._quantities.items())

    def clear(self) -> None:
        self._quantities.clear()

    def __len__(self) -> int:
        return len(self._quantities)

    def __contains__(self, item_id) -> bool:
        return item_id in self._quantities


@dataclass(frozen=True)
class CartLine:
    item: Product
    quantity: int
    line_total: Decimal


@dataclass(frozen=True)
class CartView:
    """Cart resolved against the catalog at read time"""
    lines: Tuple[CartLine, ...]
    total: Decimal

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


class CartService:
    """
    Cart operations bound to a live session.

    Every mutation runs under the owning session's lock, so concurrent
    requests on the same session never lose each other's updates and a cart
    can not be written after its session was invalidated.
    """

    def __init__(self, session_manager: "SessionManager", catalog_store: "CatalogStore"):
        self._sessions = session_manager
        self._catalog = catalog_store

    def add(self, session: "Session", item_id: int, quantity: int = 1) -> int:
        with self._sessions.locked(session.token) as live:
            new_quantity = live.ensure_cart().add(item_id, quantity)
        logger.debug("Cart item added", username=live.username, item_id=item_id, quantity=new_quantity)
        return new_quantity

    def remove(self, session: "Session", item_id: int) -> bool:
        with self._sessions.locked(session.token) as live:
            if live.cart is None:
                _check_item_id(item_id)
                return False
            removed = live.cart.remove(item_id)
        if removed:
            logger.debug("Cart item removed", username=live.username, item_id=item_id)
        return removed

    def quantity_of(self, session: "Session", item_id: int) -> int:
        with self._sessions.locked(session.token) as live:
            return live.cart.quantity_of(item_id) if live.cart else 0

    def list(self, session: "Session") -> CartView:
        with self._sessions.locked(session.token) as live:
            snapshot = live.cart.items() if live.cart else []

        # Catalog lookups happen outside the session lock
        lines = []
        for item_id, quantity in snapshot:
            item = self._catalog.find_by_id(item_id)
            if item is None:
                logger.debug("Cart item not in catalog, skipped", item_id=item_id)
                continue
            lines.append(CartLine(item=item, quantity=quantity, line_total=to_money(item.price * quantity)))

        total = sum((line.line_total for line in lines), ZERO)
        return CartView(lines=tuple(lines), total=to_money(total))
