"""Shared fixtures: in-memory stores, a controllable clock and a wired app"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from inventory.app import InventoryApp
from inventory.auth.passwords import hash_password
from inventory.models.user import Role
from inventory.services.catalog_store import CatalogStore
from inventory.services.user_store import UserStore
from inventory.utils.config import AuthSettings, LoggingSettings, SeedSettings, Settings, StorageSettings

# Cheap bcrypt cost keeps the suite fast; the algorithm is unchanged
TEST_ROUNDS = 4


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_store():
    store = UserStore()
    store.create_user("admin", "admin@inventario.com", hash_password("admin123", rounds=TEST_ROUNDS), role=Role.ADMIN)
    store.create_user("user", "user@inventario.com", hash_password("user123", rounds=TEST_ROUNDS), role=Role.USER)
    store.create_user(
        "disabled",
        "disabled@inventario.com",
        hash_password("disabled123", rounds=TEST_ROUNDS),
        is_active=False,
    )
    return store


@pytest.fixture
def catalog_store():
    store = CatalogStore()
    store.insert_product({"code": "LAP-001", "name": "Laptop Pro 14", "price": "1299.99", "stock": 7, "category": "Computers"})
    store.insert_product({"code": "MOU-002", "name": "Wireless Mouse", "price": "19.90", "stock": 150})
    store.insert_product({"code": "CAB-003", "name": "USB-C Cable 1m", "price": "0.10", "stock": 500})
    return store


@pytest.fixture
def settings(tmp_path):
    return Settings(
        auth=AuthSettings(bcrypt_rounds=TEST_ROUNDS, session_timeout_minutes=30),
        storage=StorageSettings(data_dir=str(tmp_path), store_timeout_seconds=1.0),
        logging=LoggingSettings(file_path=None, format="console"),
        seed=SeedSettings(enabled=False),
    )


@pytest.fixture
def core(settings, user_store, catalog_store, clock):
    return InventoryApp(settings=settings, user_store=user_store, catalog_store=catalog_store, clock=clock)


@pytest.fixture
def sessions(core):
    return core.sessions


@pytest.fixture
def app(core):
    from web.main import create_app
    return create_app(core, initialize=False)


@pytest.fixture
def client(app):
    return TestClient(app)
