"""
Catalog store for products and categories with JSON-based persistence.

Read contract used by the cart and statistics:
    find_by_id(id) -> Product | None
    find_all(sort_key, direction) -> list[Product]
"""

import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.catalog import Category, Product
from ..utils.exceptions import ConfigError, ValidationError
from ..utils.logger import get_logger
from .json_file import atomic_write, bounded_lock, read_json

logger = get_logger(__name__)

STORE_NAME = "catalog"
PRODUCT_SORT_KEYS = ("id", "code", "name", "price", "stock")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _validation_error(entity: str, e: PydanticValidationError) -> ValidationError:
    errors: Dict[str, List[str]] = {}
    for err in e.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or entity
        errors.setdefault(field, []).append(err.get("msg", "invalid"))
    return ValidationError(f"Invalid {entity}", errors)


class CatalogStore:
    """Products and categories; in memory when no path is given"""

    def __init__(self, path: Optional[Path] = None, lock_timeout_seconds: float = 5.0):
        self.catalog_path = Path(path) if path else None
        self.lock_timeout_seconds = lock_timeout_seconds
        self._memory: Dict[str, List[Dict[str, Any]]] = {"products": [], "categories": []}
        self._write_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Raw document access
    # -------------------------------------------------------------------
    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        if self.catalog_path is None:
            return {
                "products": [dict(p) for p in self._memory["products"]],
                "categories": [dict(c) for c in self._memory["categories"]],
            }
        data = read_json(self.catalog_path, STORE_NAME)
        return {
            "products": list(data.get("products", [])),
            "categories": list(data.get("categories", [])),
        }

    def _save(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        if self.catalog_path is None:
            self._memory = data
            return
        atomic_write(self.catalog_path, data, STORE_NAME)

    def _products(self) -> List[Product]:
        try:
            return [Product(**p) for p in self._load()["products"]]
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid product data in catalog: {str(e)}")

    def _categories(self) -> List[Category]:
        try:
            return [Category(**c) for c in self._load()["categories"]]
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid category data in catalog: {str(e)}")

    # -------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------
    def find_by_id(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products() if p.id == product_id), None)

    def find_by_code(self, code: str) -> Optional[Product]:
        return next((p for p in self._products() if p.code == code), None)

    def find_all(self, sort_key: str = "id", direction: SortDirection = SortDirection.ASC) -> List[Product]:
        if sort_key not in PRODUCT_SORT_KEYS:
            raise ValidationError(f"Unsupported sort key '{sort_key}'", {"sort": [f"one of {PRODUCT_SORT_KEYS}"]})
        direction = SortDirection(direction)
        # Stable secondary order on id so ties are deterministic
        products = sorted(self._products(), key=lambda p: p.id)
        return sorted(products, key=lambda p: getattr(p, sort_key), reverse=direction is SortDirection.DESC)

    def count_products(self) -> int:
        return len(self._load()["products"])

    def insert_product(self, fields: Dict[str, Any]) -> Product:
        """Insert a product, assigning the next id. The code must be unique."""
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            if any(p.get("code") == fields.get("code") for p in data["products"]):
                raise ValidationError("Product code already exists", {"code": ["already exists"]})
            next_id = max((p["id"] for p in data["products"]), default=0) + 1
            try:
                product = Product(**{**fields, "id": next_id})
            except PydanticValidationError as e:
                raise _validation_error("product", e)
            data["products"].append(product.model_dump(mode="json"))
            self._save(data)
        logger.info("Product created", product_id=product.id, code=product.code)
        return product

    def replace_product(self, product: Product) -> Product:
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            for i, existing in enumerate(data["products"]):
                if existing["id"] == product.id:
                    data["products"][i] = product.model_dump(mode="json")
                    self._save(data)
                    return product
        raise ValidationError(f"Product {product.id} does not exist")

    def delete_product(self, product_id: int) -> bool:
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            remaining = [p for p in data["products"] if p["id"] != product_id]
            if len(remaining) == len(data["products"]):
                return False
            data["products"] = remaining
            self._save(data)
        logger.info("Product deleted", product_id=product_id)
        return True

    # -------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------
    def find_category(self, category_id: int) -> Optional[Category]:
        return next((c for c in self._categories() if c.id == category_id), None)

    def find_category_by_name(self, name: str) -> Optional[Category]:
        return next((c for c in self._categories() if c.name == name), None)

    def find_all_categories(self) -> List[Category]:
        return sorted(self._categories(), key=lambda c: c.id)

    def count_categories(self) -> int:
        return len(self._load()["categories"])

    def insert_category(self, fields: Dict[str, Any]) -> Category:
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            if any(c.get("name") == fields.get("name") for c in data["categories"]):
                raise ValidationError("A category with that name already exists", {"name": ["already exists"]})
            next_id = max((c["id"] for c in data["categories"]), default=0) + 1
            try:
                category = Category(**{**fields, "id": next_id})
            except PydanticValidationError as e:
                raise _validation_error("category", e)
            data["categories"].append(category.model_dump(mode="json"))
            self._save(data)
        logger.info("Category created", category_id=category.id, name=category.name)
        return category

    def replace_category(self, category: Category) -> Category:
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            if any(c["name"] == category.name and c["id"] != category.id for c in data["categories"]):
                raise ValidationError("A category with that name already exists", {"name": ["already exists"]})
            for i, existing in enumerate(data["categories"]):
                if existing["id"] == category.id:
                    data["categories"][i] = category.model_dump(mode="json")
                    self._save(data)
                    return category
        raise ValidationError(f"Category {category.id} does not exist")

    def delete_category(self, category_id: int) -> bool:
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            data = self._load()
            remaining = [c for c in data["categories"] if c["id"] != category_id]
            if len(remaining) == len(data["categories"]):
                return False
            data["categories"] = remaining
            self._save(data)
        logger.info("Category deleted", category_id=category_id)
        return True
