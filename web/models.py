"""API request/response models"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from inventory.core.cart import CartView
from inventory.models.catalog import Category, Product
from inventory.models.session import Session


class LoginRequest(BaseModel):
    username: str
    password: str
    next: Optional[str] = None


class UserPublic(BaseModel):
    username: str
    role: str


class LoginResponse(BaseModel):
    status: str = "success"
    user: UserPublic
    token: str
    redirect_to: str


class MeResponse(BaseModel):
    username: str
    role: str
    session_started_at: str


def user_from_session(session: Session) -> UserPublic:
    return UserPublic(username=session.username, role=session.role.value)


class ProductCreate(BaseModel):
    code: str
    name: str
    price: Decimal
    stock: int = 0
    category: Optional[str] = None
    active: bool = True


class ProductUpdate(BaseModel):
    """Partial update; omitted fields keep their value"""
    name: Optional[str] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: int
    code: str
    name: str
    category: Optional[str] = None
    price: Decimal
    stock: int
    active: bool
    inventory_value: Decimal
    low_stock: bool

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            code=product.code,
            name=product.name,
            category=product.category,
            price=product.price,
            stock=product.stock,
            active=product.active,
            inventory_value=product.inventory_value,
            low_stock=product.is_low_stock,
        )


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, description=category.description)


class AddToCartRequest(BaseModel):
    item_id: int
    quantity: int = Field(default=1, ge=1)


class CartLineResponse(BaseModel):
    item_id: int
    code: str
    name: str
    price: Decimal
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    lines: List[CartLineResponse]
    item_count: int
    total: Decimal

    @classmethod
    def from_view(cls, view: CartView) -> "CartResponse":
        return cls(
            lines=[
                CartLineResponse(
                    item_id=line.item.id,
                    code=line.item.code,
                    name=line.item.name,
                    price=line.item.price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in view.lines
            ],
            item_count=view.item_count,
            total=view.total,
        )


class CartMutationResponse(BaseModel):
    item_id: int
    quantity: int


class SummaryResponse(BaseModel):
    total_products: int
    total_categories: int


class StatisticsResponse(BaseModel):
    most_expensive: List[ProductResponse]
    cheapest: List[ProductResponse]
    highest_stock: List[ProductResponse]
    lowest_stock: List[ProductResponse]
