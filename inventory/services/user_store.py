"""
Credential store with JSON-based persistence.
Holds accounts (username, email, bcrypt hash, role, active flag).
"""

import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.user import Account, Role
from ..utils.exceptions import ConfigError, NotFoundError, ValidationError
from ..utils.logger import get_logger
from .json_file import atomic_write, bounded_lock, read_json

logger = get_logger(__name__)

STORE_NAME = "users"


class UserStore:
    """
    Account directory.

    With a path, every read goes to the JSON file so external edits are seen;
    without one the store lives in memory only.
    """

    def __init__(self, path: Optional[Path] = None, lock_timeout_seconds: float = 5.0):
        self.users_path = Path(path) if path else None
        self.lock_timeout_seconds = lock_timeout_seconds
        self._memory: List[Account] = []
        self._write_lock = threading.Lock()

    def load_users(self) -> List[Account]:
        """Load all accounts from storage"""
        if self.users_path is None:
            return list(self._memory)

        data = read_json(self.users_path, STORE_NAME)
        try:
            return [Account(**user_data) for user_data in data.get("users", [])]
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid account data in {self.users_path}: {str(e)}")

    def save_users(self, users: List[Account]) -> None:
        if self.users_path is None:
            self._memory = list(users)
            return
        payload = {"users": [user.model_dump(mode="json") for user in users]}
        atomic_write(self.users_path, payload, STORE_NAME)

    def find_by_username(self, username: str) -> Optional[Account]:
        """Find account by exact (case-sensitive) username"""
        return next((u for u in self.load_users() if u.username == username), None)

    def find_by_email(self, email: str) -> Optional[Account]:
        email = email.lower()
        return next((u for u in self.load_users() if u.email.lower() == email), None)

    def exists_by_username(self, username: str) -> bool:
        return self.find_by_username(username) is not None

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: Role = Role.USER,
        full_name: Optional[str] = None,
        is_active: bool = True,
    ) -> Account:
        """Create a new account; username and email must be unique"""
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            users = self.load_users()
            if any(u.username == username for u in users):
                raise ValidationError(f"Username '{username}' already exists", {"username": ["already exists"]})
            if any(u.email.lower() == email.lower() for u in users):
                raise ValidationError(f"Email '{email}' already registered", {"email": ["already registered"]})

            try:
                account = Account(
                    id=max((u.id for u in users), default=0) + 1,
                    username=username,
                    email=email,
                    password_hash=password_hash,
                    full_name=full_name,
                    is_active=is_active,
                    role=role,
                )
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid account: {str(e)}")

            users.append(account)
            self.save_users(users)

        logger.info("Account created", username=username, role=role.value)
        return account

    def update_user(self, username: str, **updates) -> Account:
        """Update account fields (e.g. is_active, role, password_hash)"""
        with bounded_lock(self._write_lock, self.lock_timeout_seconds, STORE_NAME):
            users = self.load_users()
            for i, user in enumerate(users):
                if user.username == username:
                    user_dict = user.model_dump()
                    user_dict.update(updates)
                    try:
                        updated = Account(**user_dict)
                    except PydanticValidationError as e:
                        raise ValidationError(f"Invalid account update: {str(e)}")
                    users[i] = updated
                    self.save_users(users)
                    return updated

        raise NotFoundError(f"Account '{username}' not found", entity="account")
