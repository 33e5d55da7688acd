"""Custom exceptions for the inventory system"""

from typing import Dict, List, Optional


# Single user-visible message for every credential failure (no account enumeration)
GENERIC_CREDENTIALS_MESSAGE = "Invalid username or password"


class InventoryError(Exception):
    """Base exception for the inventory system"""
    pass


class NotFoundError(InventoryError):
    """Requested entity does not exist"""

    def __init__(self, message: str = "Not found", entity: Optional[str] = None):
        self.entity = entity
        super().__init__(message)


class UnauthorizedError(InventoryError):
    """No identity is bound to the current session"""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ForbiddenError(InventoryError):
    """Identity is bound but lacks the required role"""
    pass


class InvalidCredentialsError(InventoryError):
    """
    Authentication failed.

    Covers unknown accounts, inactive accounts and wrong secrets alike; the
    precise reason is only kept in `reason` for logging.
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(GENERIC_CREDENTIALS_MESSAGE)


class TransientStoreFailure(InventoryError):
    """A backing store did not answer in time or could not be read"""

    def __init__(self, message: str, store: Optional[str] = None):
        self.store = store
        super().__init__(message)


class ValidationError(InventoryError):
    """Field-level validation or uniqueness failure"""

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        self.errors = errors or {}
        super().__init__(message)


class ConfigError(InventoryError):
    """Configuration error"""
    pass
