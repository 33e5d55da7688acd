"""FastAPI main application for the inventory web app"""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, Form, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory.app import InventoryApp
from inventory.auth.authorization import PUBLIC
from inventory.utils.exceptions import (
    ConfigError,
    GENERIC_CREDENTIALS_MESSAGE,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    TransientStoreFailure,
    UnauthorizedError,
    ValidationError,
)
from inventory.utils.logger import get_logger

from .api import (
    admin_router,
    auth_router,
    router as api_router,
    run_store_call,
    safe_next,
    set_session_cookie,
    start_session,
)
from .auth_deps import get_core, get_session_token, require

logger = get_logger(__name__)

NOT_FOUND_BODY = {"detail": "Not found"}
UNAVAILABLE_BODY = {"detail": "Service temporarily unavailable"}

# Templates
templates_path = Path(__file__).parent / "templates"
jinja_env = Environment(loader=FileSystemLoader(templates_path), autoescape=select_autoescape(["html"]))


def _render_template_sync(template_name: str, context: dict) -> str:
    """Sync Jinja2 render (used from threadpool to avoid blocking event loop)."""
    template = jinja_env.get_template(template_name)
    return template.render(**context)


async def render_template_async(template_name: str, context: dict) -> str:
    """Render Jinja2 template in threadpool so the event loop is not blocked."""
    return await run_in_threadpool(_render_template_sync, template_name, context)


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return accept.strip().startswith("text/html")


def _login_redirect_url(core: InventoryApp, request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return f"{core.settings.auth.login_path}?next={quote(target, safe='')}"


def register_exception_handlers(app: FastAPI) -> None:
    """Map the domain error taxonomy onto HTTP responses"""

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        core = get_core(request)
        login_url = _login_redirect_url(core, request)
        if _wants_html(request):
            return RedirectResponse(url=login_url, status_code=302)
        return JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated", "login_url": login_url},
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Forbidden answers exactly like NotFound so protected resources stay invisible
    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.info("Access denied", path=request.url.path)
        return JSONResponse(status_code=404, content=NOT_FOUND_BODY)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=NOT_FOUND_BODY)

    # Unknown routes share the body of hidden and missing resources
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=NOT_FOUND_BODY)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        logger.info("Login rejected", reason=exc.reason)
        return JSONResponse(status_code=401, content={"detail": GENERIC_CREDENTIALS_MESSAGE})

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})

    @app.exception_handler(TransientStoreFailure)
    async def handle_transient(request: Request, exc: TransientStoreFailure):
        logger.error("Store unavailable", store=exc.store, error=str(exc), path=request.url.path)
        return JSONResponse(status_code=503, content=UNAVAILABLE_BODY)

    @app.exception_handler(ConfigError)
    async def handle_config_error(request: Request, exc: ConfigError):
        logger.error("Stored data unreadable", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=503, content=UNAVAILABLE_BODY)


def register_pages(app: FastAPI) -> None:
    """Login entry point and the root redirect"""

    @app.get("/", dependencies=[Depends(require(PUBLIC))])
    async def root():
        return RedirectResponse(url="/login", status_code=302)

    @app.get("/login", response_class=HTMLResponse, dependencies=[Depends(require(PUBLIC))])
    async def login_page(
        request: Request,
        error: Optional[str] = None,
        logout: Optional[str] = None,
        next: Optional[str] = None,
    ):
        """Serve login page; ?error and ?logout select the flash message"""
        message, kind = None, None
        if error is not None:
            message, kind = GENERIC_CREDENTIALS_MESSAGE, "error"
        elif logout is not None:
            message, kind = "You have been logged out", "success"
        content = await render_template_async(
            "login.html",
            {"request": request, "message": message, "kind": kind, "next": next or ""},
        )
        return HTMLResponse(content=content)

    @app.post("/login", dependencies=[Depends(require(PUBLIC))])
    async def login_form(
        request: Request,
        username: str = Form(...),
        password: str = Form(...),
        next: Optional[str] = Form(None),
        core: InventoryApp = Depends(get_core),
    ):
        """Browser form login: redirect on success, back to /login?error on failure"""
        try:
            session = await start_session(core, request, username, password)
        except InvalidCredentialsError as e:
            logger.info("Form login rejected", reason=e.reason)
            return RedirectResponse(url=f"{core.settings.auth.login_path}?error", status_code=303)
        response = RedirectResponse(url=safe_next(next), status_code=303)
        set_session_cookie(response, core, session.token)
        return response

    @app.get("/logout", dependencies=[Depends(require(PUBLIC))])
    async def logout_page(request: Request, core: InventoryApp = Depends(get_core)):
        token = get_session_token(request)
        if token:
            await run_store_call(core.sessions.logout, token)
        response = RedirectResponse(url=f"{core.settings.auth.login_path}?logout", status_code=302)
        response.delete_cookie(key=core.settings.auth.cookie_name)
        return response


def create_app(core: Optional[InventoryApp] = None, initialize: bool = True) -> FastAPI:
    """Build the FastAPI application around an InventoryApp core"""
    if core is None:
        core = InventoryApp()
    if initialize:
        core.initialize()

    app = FastAPI(
        title=core.settings.app.name,
        description="Inventory management with session-scoped carts",
        version=core.settings.app.version,
    )
    app.state.core = core

    # CORS middleware - configurable for production
    cors_origins = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    register_pages(app)
    app.include_router(auth_router)
    app.include_router(api_router)
    app.include_router(admin_router)
    return app
