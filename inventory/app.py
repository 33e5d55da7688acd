"""Application wiring: settings, stores and the identity/cart core"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from .auth.authorization import AuthorizationGate
from .auth.credentials import CredentialVerifier
from .auth.sessions import SessionManager
from .core.cart import CartService
from .services.bootstrap import seed_default_accounts
from .services.catalog_service import CategoryService, ProductService
from .services.catalog_store import CatalogStore
from .services.user_store import UserStore
from .utils.config import Settings, config_manager
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class InventoryApp:
    """Main application object shared by every request"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        user_store: Optional[UserStore] = None,
        catalog_store: Optional[CatalogStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or config_manager.settings
        storage = self.settings.storage

        self.user_store = user_store or UserStore(
            storage.users_file, lock_timeout_seconds=storage.store_timeout_seconds
        )
        self.catalog_store = catalog_store or CatalogStore(
            storage.catalog_file, lock_timeout_seconds=storage.store_timeout_seconds
        )

        self.verifier = CredentialVerifier(self.user_store, rounds=self.settings.auth.bcrypt_rounds)
        self.gate = AuthorizationGate()
        self.sessions = SessionManager(
            self.verifier,
            timeout=timedelta(minutes=self.settings.auth.session_timeout_minutes),
            clock=clock,
            user_store=self.user_store,
            lock_timeout_seconds=storage.store_timeout_seconds,
        )
        self.carts = CartService(self.sessions, self.catalog_store)
        self.products = ProductService(self.catalog_store)
        self.categories = CategoryService(self.catalog_store)

    def initialize(self, configure_logging: bool = True) -> None:
        """Set up logging and seed the default accounts"""
        if configure_logging:
            log = self.settings.logging
            setup_logger(
                log_level=log.level,
                log_format=log.format,
                file_path=log.file_path,
                max_bytes=log.max_bytes,
                backup_count=log.backup_count,
            )

        logger.info(
            "Initializing inventory application",
            app_name=self.settings.app.name,
            version=self.settings.app.version,
            environment=self.settings.app.environment,
        )

        if self.settings.seed.enabled:
            seed_default_accounts(self.user_store, self.settings.seed, rounds=self.settings.auth.bcrypt_rounds)
