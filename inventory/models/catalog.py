"""Catalog models: products and categories"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

CENT = Decimal("0.01")
LOW_STOCK_THRESHOLD = 10


def to_money(value) -> Decimal:
    """Coerce to a fixed-point amount with two decimal places"""
    return Decimal(str(value)).quantize(CENT)


class Product(BaseModel):
    """A product in the catalog. Also serves as the read-only catalog item view."""

    id: int
    code: str = Field(min_length=3, max_length=50)
    name: str = Field(min_length=5, max_length=120)
    category: Optional[str] = Field(default=None, max_length=50)
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    active: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def _quantize_price(cls, value):
        try:
            return to_money(value)
        except (InvalidOperation, TypeError):
            raise ValueError("price must be a decimal amount")

    @field_serializer("price")
    def _serialize_price(self, value: Decimal) -> str:
        return str(value)

    @property
    def inventory_value(self) -> Decimal:
        """Total stock value (price * stock)"""
        return to_money(self.price * self.stock)

    @property
    def is_low_stock(self) -> bool:
        return self.stock < LOW_STOCK_THRESHOLD


class Category(BaseModel):
    """A product category"""

    id: int
    name: str = Field(min_length=3, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
