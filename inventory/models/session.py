"""Session records held by the session manager"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..core.cart import Cart
from .user import Role


class SessionState(str, Enum):
    """Lifecycle of a session. An absent session is anonymous."""
    AUTHENTICATED = "authenticated"
    INVALIDATED = "invalidated"  # Terminal: logout or inactivity expiry


@dataclass
class Session:
    """
    Ephemeral, server-side session bound to one identity.

    Mutable fields (last_activity, state, cart) are only touched while the
    session's lock is held.
    """
    token: str  # opaque; never logged in full
    username: str
    role: Role
    created_at: datetime
    last_activity: datetime
    state: SessionState = SessionState.AUTHENTICATED
    cart: Optional[Cart] = field(default=None, repr=False)

    @property
    def is_bound(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def ensure_cart(self) -> Cart:
        """Return the session's cart, creating it on first mutation"""
        if self.cart is None:
            self.cart = Cart()
        return self.cart
