"""Product and category services: validation, CRUD and statistics"""

from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.catalog import Category, Product, to_money
from ..utils.exceptions import NotFoundError, ValidationError
from .catalog_store import CatalogStore, SortDirection

DEFAULT_TOP_LIMIT = 5

PRODUCT_UPDATABLE_FIELDS = ("name", "price", "stock", "active")
CATEGORY_UPDATABLE_FIELDS = ("name", "description")


@dataclass(frozen=True)
class ProductStatistics:
    most_expensive: List[Product]
    cheapest: List[Product]
    highest_stock: List[Product]
    lowest_stock: List[Product]


@dataclass(frozen=True)
class CatalogSummary:
    total_products: int
    total_categories: int


class ProductService:
    """Business rules for products"""

    def __init__(self, store: CatalogStore):
        self.store = store

    def list_products(self, sort_key: str = "id", direction: SortDirection = SortDirection.ASC) -> List[Product]:
        return self.store.find_all(sort_key, direction)

    def get_product(self, product_id: int) -> Product:
        product = self.store.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found", entity="product")
        return product

    def create_product(
        self,
        code: str,
        name: str,
        price,
        stock: int = 0,
        category: Optional[str] = None,
        active: bool = True,
    ) -> Product:
        """
        Create a product.

        Rules: code at least 3 characters, name at least 5, price strictly
        positive, code unique across the catalog.
        """
        code = (code or "").strip()
        name = (name or "").strip()
        if len(code) < 3:
            raise ValidationError("Code must be at least 3 characters", {"code": ["min 3 characters"]})
        if len(name) < 5:
            raise ValidationError("Name must be at least 5 characters", {"name": ["min 5 characters"]})
        try:
            amount = to_money(price) if price is not None else None
        except (InvalidOperation, ValueError):
            raise ValidationError("Price must be a decimal amount", {"price": ["not a number"]})
        if amount is None or amount <= 0:
            raise ValidationError("Price must be greater than 0", {"price": ["must be greater than 0"]})

        return self.store.insert_product({
            "code": code,
            "name": name,
            "category": category,
            "price": amount,
            "stock": stock,
            "active": active,
        })

    def update_product(self, product_id: int, **changes: Any) -> Product:
        """Partial update: only name, price, stock and active; None values are ignored"""
        product = self.get_product(product_id)
        updates = {k: v for k, v in changes.items() if k in PRODUCT_UPDATABLE_FIELDS and v is not None}
        try:
            updated = Product(**{**product.model_dump(), **updates})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid product update: {str(e)}")
        return self.store.replace_product(updated)

    def delete_product(self, product_id: int) -> None:
        if not self.store.delete_product(product_id):
            raise NotFoundError("Product not found", entity="product")

    # Statistics

    def most_expensive(self, limit: int = DEFAULT_TOP_LIMIT) -> List[Product]:
        return self.store.find_all("price", SortDirection.DESC)[:limit]

    def cheapest(self, limit: int = DEFAULT_TOP_LIMIT) -> List[Product]:
        return self.store.find_all("price", SortDirection.ASC)[:limit]

    def highest_stock(self, limit: int = DEFAULT_TOP_LIMIT) -> List[Product]:
        return self.store.find_all("stock", SortDirection.DESC)[:limit]

    def lowest_stock(self, limit: int = DEFAULT_TOP_LIMIT) -> List[Product]:
        return self.store.find_all("stock", SortDirection.ASC)[:limit]

    def statistics(self, limit: int = DEFAULT_TOP_LIMIT) -> ProductStatistics:
        return ProductStatistics(
            most_expensive=self.most_expensive(limit),
            cheapest=self.cheapest(limit),
            highest_stock=self.highest_stock(limit),
            lowest_stock=self.lowest_stock(limit),
        )


class CategoryService:
    """Business rules for categories"""

    def __init__(self, store: CatalogStore):
        self.store = store

    def list_categories(self) -> List[Category]:
        return self.store.find_all_categories()

    def get_category(self, category_id: int) -> Category:
        category = self.store.find_category(category_id)
        if category is None:
            raise NotFoundError("Category not found", entity="category")
        return category

    def create_category(self, name: str, description: Optional[str] = None) -> Category:
        name = (name or "").strip()
        if len(name) < 3:
            raise ValidationError("Invalid category name", {"name": ["min 3 characters"]})
        return self.store.insert_category({"name": name, "description": description})

    def update_category(self, category_id: int, **changes: Any) -> Category:
        category = self.get_category(category_id)
        updates: Dict[str, Any] = {
            k: v for k, v in changes.items() if k in CATEGORY_UPDATABLE_FIELDS and v is not None
        }
        try:
            updated = Category(**{**category.model_dump(), **updates})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid category update: {str(e)}")
        return self.store.replace_category(updated)

    def delete_category(self, category_id: int) -> None:
        if not self.store.delete_category(category_id):
            raise NotFoundError("Category not found", entity="category")


def catalog_summary(store: CatalogStore) -> CatalogSummary:
    """Admin panel counters"""
    return CatalogSummary(
        total_products=store.count_products(),
        total_categories=store.count_categories(),
    )
