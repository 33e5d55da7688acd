"""
FastAPI dependencies for authentication and authorization.

Each protected route declares its classification through require(); the
decision is taken here, before the route body runs.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool

from inventory.app import InventoryApp
from inventory.auth.authorization import ADMIN_ONLY, AUTHENTICATED, ResourceClassification
from inventory.models.session import Session
from inventory.utils.resilience import store_call


def get_core(request: Request) -> InventoryApp:
    """Dependency to get the application core"""
    return request.app.state.core


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from request (Authorization header or cookie)"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None

    cookie_name = get_core(request).settings.auth.cookie_name
    return request.cookies.get(cookie_name) or None


async def get_current_session(request: Request) -> Optional[Session]:
    """Resolve the session for this request; None means anonymous"""
    token = get_session_token(request)
    if not token:
        return None
    core = get_core(request)
    return await run_in_threadpool(store_call(core.sessions.resolve), token)


def require(resource: ResourceClassification):
    """Dependency factory enforcing a resource classification"""
    async def checker(
        session: Optional[Session] = Depends(get_current_session),
        core: InventoryApp = Depends(get_core),
    ) -> Optional[Session]:
        core.gate.enforce(session, resource)
        return session

    return checker


# Pre-configured dependencies
require_auth = require(AUTHENTICATED)
require_admin = require(ADMIN_ONLY)
