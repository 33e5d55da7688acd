"""API route handlers for the inventory web application"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from inventory.app import InventoryApp
from inventory.auth.authorization import PUBLIC
from inventory.models.session import Session
from inventory.services.catalog_service import catalog_summary
from inventory.services.catalog_store import SortDirection
from inventory.utils.logger import get_logger
from inventory.utils.resilience import store_call

from .auth_deps import get_core, get_session_token, require, require_admin, require_auth
from .models import (
    AddToCartRequest,
    CartMutationResponse,
    CartResponse,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    LoginRequest,
    LoginResponse,
    MeResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StatisticsResponse,
    SummaryResponse,
    user_from_session,
)

logger = get_logger(__name__)

DEFAULT_AFTER_LOGIN = "/api/products"

router = APIRouter(prefix="/api", tags=["api"])
auth_router = APIRouter(prefix="/auth", tags=["auth"])
admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


async def run_store_call(fn, *args, **kwargs):
    """Run a blocking store-backed call in the threadpool with one retry on transient failure"""
    return await run_in_threadpool(store_call(fn), *args, **kwargs)


# ---------------------------------------------------------------------------
# Session helpers shared with the HTML login form
# ---------------------------------------------------------------------------

def safe_next(next_path: Optional[str]) -> str:
    """Only same-site relative paths are honoured for post-login continuation"""
    if next_path and next_path.startswith("/") and not next_path.startswith("//") and "\\" not in next_path:
        return next_path
    return DEFAULT_AFTER_LOGIN


async def start_session(core: InventoryApp, request: Request, username: str, password: str) -> Session:
    """Authenticate and bind a fresh session. Raises InvalidCredentialsError on any failure."""
    current_token = get_session_token(request)
    session, result = await run_store_call(core.sessions.authenticate, current_token, username, password)
    if session is None:
        result.raise_for_status()
    return session


def set_session_cookie(response: Response, core: InventoryApp, token: str) -> None:
    """Attach the session token as an HttpOnly cookie (secure in production)"""
    auth = core.settings.auth
    response.set_cookie(
        key=auth.cookie_name,
        value=token,
        httponly=True,
        secure=auth.cookie_secure or core.settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, core: InventoryApp) -> None:
    response.delete_cookie(key=core.settings.auth.cookie_name)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@auth_router.post("/login", response_model=LoginResponse)
async def login(login_data: LoginRequest, request: Request, core: InventoryApp = Depends(get_core)):
    """Login with username and password"""
    session = await start_session(core, request, login_data.username, login_data.password)
    body = LoginResponse(
        user=user_from_session(session),
        token=session.token,
        redirect_to=safe_next(login_data.next),
    )
    response = JSONResponse(body.model_dump())
    set_session_cookie(response, core, session.token)
    return response


@auth_router.post("/logout")
async def logout(request: Request, core: InventoryApp = Depends(get_core)):
    """Logout and clear session"""
    token = get_session_token(request)
    if token:
        await run_store_call(core.sessions.logout, token)
    response = JSONResponse({"status": "success", "message": "Logged out"})
    clear_session_cookie(response, core)
    return response


@auth_router.get("/me", response_model=MeResponse)
async def me(session: Session = Depends(require_auth)):
    """Return the identity bound to the current session"""
    return MeResponse(
        username=session.username,
        role=session.role.value,
        session_started_at=session.created_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get("/health", dependencies=[Depends(require(PUBLIC))])
async def health_check():
    """Health check endpoint for deployment platforms"""
    return {
        "status": "healthy",
        "service": "inventory",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Products (any signed-in user)
# ---------------------------------------------------------------------------

@router.get("/products", response_model=List[ProductResponse], dependencies=[Depends(require_auth)])
async def list_products(
    sort: str = Query("id"),
    direction: SortDirection = Query(SortDirection.ASC),
    core: InventoryApp = Depends(get_core),
):
    products = await run_store_call(core.products.list_products, sort, direction)
    return [ProductResponse.from_product(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_auth)])
async def get_product(product_id: int, core: InventoryApp = Depends(get_core)):
    product = await run_store_call(core.products.get_product, product_id)
    return ProductResponse.from_product(product)


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_auth)],
)
async def create_product(data: ProductCreate, core: InventoryApp = Depends(get_core)):
    product = await run_store_call(
        core.products.create_product,
        code=data.code,
        name=data.name,
        price=data.price,
        stock=data.stock,
        category=data.category,
        active=data.active,
    )
    return ProductResponse.from_product(product)


@router.put("/products/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_auth)])
async def update_product(product_id: int, data: ProductUpdate, core: InventoryApp = Depends(get_core)):
    product = await run_store_call(core.products.update_product, product_id, **data.model_dump(exclude_unset=True))
    return ProductResponse.from_product(product)


@router.delete("/products/{product_id}", dependencies=[Depends(require_auth)])
async def delete_product(product_id: int, core: InventoryApp = Depends(get_core)) -> Dict[str, Any]:
    await run_store_call(core.products.delete_product, product_id)
    return {"status": "success", "message": "Product deleted"}


# ---------------------------------------------------------------------------
# Cart (session-scoped)
# ---------------------------------------------------------------------------

@router.get("/cart", response_model=CartResponse)
async def view_cart(session: Session = Depends(require_auth), core: InventoryApp = Depends(get_core)):
    view = await run_store_call(core.carts.list, session)
    return CartResponse.from_view(view)


@router.post("/cart/items", response_model=CartMutationResponse)
async def add_to_cart(
    data: AddToCartRequest,
    session: Session = Depends(require_auth),
    core: InventoryApp = Depends(get_core),
):
    quantity = await run_in_threadpool(core.carts.add, session, data.item_id, data.quantity)
    return CartMutationResponse(item_id=data.item_id, quantity=quantity)


@router.delete("/cart/items/{item_id}")
async def remove_from_cart(
    item_id: int,
    session: Session = Depends(require_auth),
    core: InventoryApp = Depends(get_core),
) -> Dict[str, Any]:
    removed = await run_in_threadpool(core.carts.remove, session, item_id)
    return {"item_id": item_id, "removed": removed}


# ---------------------------------------------------------------------------
# Admin (ADMIN role only)
# ---------------------------------------------------------------------------

@admin_router.get("", response_model=SummaryResponse, dependencies=[Depends(require_admin)])
async def admin_summary(core: InventoryApp = Depends(get_core)):
    summary = await run_store_call(catalog_summary, core.catalog_store)
    return SummaryResponse(total_products=summary.total_products, total_categories=summary.total_categories)


@admin_router.get("/statistics", response_model=StatisticsResponse, dependencies=[Depends(require_admin)])
async def admin_statistics(limit: int = Query(5, ge=1, le=50), core: InventoryApp = Depends(get_core)):
    stats = await run_store_call(core.products.statistics, limit)
    return StatisticsResponse(
        most_expensive=[ProductResponse.from_product(p) for p in stats.most_expensive],
        cheapest=[ProductResponse.from_product(p) for p in stats.cheapest],
        highest_stock=[ProductResponse.from_product(p) for p in stats.highest_stock],
        lowest_stock=[ProductResponse.from_product(p) for p in stats.lowest_stock],
    )


@admin_router.get("/categories", response_model=List[CategoryResponse], dependencies=[Depends(require_admin)])
async def list_categories(core: InventoryApp = Depends(get_core)):
    categories = await run_store_call(core.categories.list_categories)
    return [CategoryResponse.from_category(c) for c in categories]


@admin_router.get(
    "/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)]
)
async def get_category(category_id: int, core: InventoryApp = Depends(get_core)):
    category = await run_store_call(core.categories.get_category, category_id)
    return CategoryResponse.from_category(category)


@admin_router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_category(data: CategoryCreate, core: InventoryApp = Depends(get_core)):
    category = await run_store_call(core.categories.create_category, data.name, data.description)
    return CategoryResponse.from_category(category)


@admin_router.put(
    "/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)]
)
async def update_category(category_id: int, data: CategoryUpdate, core: InventoryApp = Depends(get_core)):
    category = await run_store_call(core.categories.update_category, category_id, **data.model_dump(exclude_unset=True))
    return CategoryResponse.from_category(category)


@admin_router.delete("/categories/{category_id}", dependencies=[Depends(require_admin)])
async def delete_category(category_id: int, core: InventoryApp = Depends(get_core)) -> Dict[str, Any]:
    await run_store_call(core.categories.delete_category, category_id)
    return {"status": "success", "message": "Category deleted"}
