"""
Session lifecycle management.

Sessions live in an explicit in-memory table keyed by opaque token and are
never persisted; a restart drops them all. State machine:

    Anonymous --(authenticated)--> Authenticated --(logout | expiry)--> Invalidated

An unknown, revoked or expired token is simply anonymous: resolve() returns
None and never raises.
"""

from __future__ import annotations

import secrets
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Generator, Optional, Tuple

from ..core.locks import LOCK_TIMEOUT_SECONDS, KeyedLocks, lock_key_session
from ..models.session import Session, SessionState
from ..utils.exceptions import TransientStoreFailure, UnauthorizedError
from ..utils.logger import fingerprint, get_logger
from .credentials import AuthResult, CredentialVerifier

logger = get_logger(__name__)

DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)
TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Owns every session and its per-session lock"""

    def __init__(
        self,
        verifier: CredentialVerifier,
        timeout: timedelta = DEFAULT_SESSION_TIMEOUT,
        clock: Optional[Callable[[], datetime]] = None,
        user_store=None,
        lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
    ):
        self._verifier = verifier
        self._timeout = timeout
        self._clock = clock or _utcnow
        self._user_store = user_store
        self._sessions: Dict[str, Session] = {}
        # Guards the table structure only; never held during session work
        self._table_lock = threading.Lock()
        self._locks = KeyedLocks(timeout_seconds=lock_timeout_seconds)

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._sessions)

    # -------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------
    @contextmanager
    def _session_lock(self, token: str) -> Generator[bool, None, None]:
        """Yield True while holding the session lock, False if the session is already gone"""
        try:
            with self._locks.acquire(lock_key_session(token), create=False) as held:
                yield held
        except TimeoutError as e:
            raise TransientStoreFailure(str(e), store="sessions")

    def _lookup(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        with self._table_lock:
            return self._sessions.get(token)

    @contextmanager
    def locked(self, token: Optional[str]) -> Generator[Session, None, None]:
        """
        Hold the session's lock and yield it, provided it is still bound.
        Raises UnauthorizedError for unknown or invalidated tokens.
        """
        session = self._lookup(token)
        if session is None:
            raise UnauthorizedError()
        with self._session_lock(session.token) as held:
            if not held or not session.is_bound:
                raise UnauthorizedError()
            yield session

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def authenticate(
        self, current_token: Optional[str], username: str, secret: str
    ) -> Tuple[Optional[Session], AuthResult]:
        """
        Verify credentials and, on success, bind a brand-new session.

        Any session presented with the request is revoked first so a token
        chosen before login can never become authenticated.
        """
        result = self._verifier.authenticate(username, secret)
        if not result.is_authenticated:
            logger.info("Authentication failed", username=username, reason=result.status.value)
            return None, result

        if current_token:
            self.logout(current_token)

        now = self._clock()
        session = Session(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            username=result.username,
            role=result.role,
            created_at=now,
            last_activity=now,
        )
        # Registered once here; lookups after invalidation never re-create it
        self._locks.get(lock_key_session(session.token))
        with self._table_lock:
            self._sessions[session.token] = session

        logger.info(
            "Session created",
            username=session.username,
            role=session.role.value,
            token=fingerprint(session.token),
        )
        return session, result

    def resolve(self, token: Optional[str]) -> Optional[Session]:
        """Return the bound session for `token`, or None when anonymous"""
        session = self._lookup(token)
        if session is None:
            return None

        with self._session_lock(session.token) as held:
            if not held or not session.is_bound:
                return None
            now = self._clock()
            if now - session.last_activity > self._timeout:
                self._invalidate_locked(session, reason="expired")
                return None
            if self._user_store is not None and not self._account_still_valid(session):
                self._invalidate_locked(session, reason="account_changed")
                return None
            session.last_activity = now
            return session

    def logout(self, token: Optional[str]) -> bool:
        """Revoke a token. Idempotent; returns True if a session was revoked."""
        session = self._lookup(token)
        if session is None:
            return False
        with self._session_lock(session.token) as held:
            if not held or not session.is_bound:
                return False
            self._invalidate_locked(session, reason="logout")
        return True

    def purge_expired(self) -> int:
        """Invalidate every session idle past the timeout. Returns how many were removed."""
        with self._table_lock:
            candidates = list(self._sessions.values())

        removed = 0
        for session in candidates:
            with self._session_lock(session.token) as held:
                if held and session.is_bound and self._clock() - session.last_activity > self._timeout:
                    self._invalidate_locked(session, reason="expired")
                    removed += 1
        if removed:
            logger.info("Expired sessions purged", count=removed)
        return removed

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _account_still_valid(self, session: Session) -> bool:
        account = self._user_store.find_by_username(session.username)
        return account is not None and account.is_active and account.role is session.role

    def _invalidate_locked(self, session: Session, reason: str) -> None:
        # Caller holds the session lock
        session.state = SessionState.INVALIDATED
        session.cart = None
        with self._table_lock:
            self._sessions.pop(session.token, None)
        self._locks.discard(lock_key_session(session.token))
        logger.info(
            "Session invalidated",
            username=session.username,
            reason=reason,
            token=fingerprint(session.token),
        )
