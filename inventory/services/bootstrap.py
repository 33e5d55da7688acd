"""Seed the default accounts on first start"""

from ..auth.passwords import hash_password
from ..models.user import Role
from ..utils.config import SeedSettings
from ..utils.logger import get_logger
from .user_store import UserStore

logger = get_logger(__name__)

DEFAULT_ACCOUNTS = (
    # username, email, full name, role
    ("admin", "admin@inventario.com", "Administrator", Role.ADMIN),
    ("user", "user@inventario.com", "Standard User", Role.USER),
)


def seed_default_accounts(user_store: UserStore, seed: SeedSettings, rounds: int) -> int:
    """
    Create the admin and user accounts if they do not exist yet.
    Idempotent; returns the number of accounts created.
    """
    passwords = {"admin": seed.admin_password, "user": seed.user_password}
    created = 0
    for username, email, full_name, role in DEFAULT_ACCOUNTS:
        if user_store.exists_by_username(username):
            continue
        user_store.create_user(
            username=username,
            email=email,
            password_hash=hash_password(passwords[username], rounds=rounds),
            role=role,
            full_name=full_name,
        )
        logger.info("Default account created", username=username, role=role.value)
        created += 1
    logger.info("Account bootstrap complete", created=created)
    return created
