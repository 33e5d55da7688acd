"""
Credential verification against the credential store.

The verifier looks the account up by exact username, rejects inactive
accounts and otherwise compares the supplied secret with the stored bcrypt
digest. Every branch pays for one bcrypt check, so response time does not
tell known usernames from unknown ones.
"""

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.user import Role
from ..utils.exceptions import InvalidCredentialsError
from .passwords import DEFAULT_ROUNDS, hash_password, verify_password


class AuthStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_INACTIVE = "account_inactive"
    ACCOUNT_NOT_FOUND = "account_not_found"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of one authentication attempt. `role` is set only on success."""
    status: AuthStatus
    username: str
    role: Optional[Role] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    def raise_for_status(self) -> None:
        """Collapse every failure into the generic credentials error"""
        if not self.is_authenticated:
            raise InvalidCredentialsError(reason=self.status.value)


class CredentialVerifier:
    """Validates username/secret pairs"""

    def __init__(self, user_store, rounds: int = DEFAULT_ROUNDS):
        self._store = user_store
        # Checked when there is no real digest to compare, at the same cost
        self.dummy_hash = hash_password(secrets.token_urlsafe(16), rounds=rounds)

    def authenticate(self, username: str, secret: str) -> AuthResult:
        account = self._store.find_by_username(username)
        if account is None:
            verify_password(secret, self.dummy_hash)
            return AuthResult(AuthStatus.ACCOUNT_NOT_FOUND, username)
        if not account.is_active:
            verify_password(secret, self.dummy_hash)
            return AuthResult(AuthStatus.ACCOUNT_INACTIVE, username)
        if not verify_password(secret, account.password_hash):
            return AuthResult(AuthStatus.INVALID_CREDENTIALS, username)
        return AuthResult(AuthStatus.AUTHENTICATED, username, account.role)
