"""Tests for the account store and default account bootstrap"""

import pytest

from inventory.auth.passwords import verify_password
from inventory.models.user import Role
from inventory.services.bootstrap import seed_default_accounts
from inventory.services.user_store import UserStore
from inventory.utils.config import SeedSettings
from inventory.utils.exceptions import NotFoundError, ValidationError

TEST_ROUNDS = 4


def test_create_and_find(user_store):
    account = user_store.find_by_username("admin")
    assert account.id == 1
    assert account.role is Role.ADMIN
    assert user_store.find_by_email("ADMIN@inventario.com").username == "admin"
    assert user_store.find_by_username("Admin") is None


def test_duplicates_are_rejected(user_store):
    with pytest.raises(ValidationError) as exc_info:
        user_store.create_user("admin", "other@inventario.com", "hash")
    assert "username" in exc_info.value.errors

    with pytest.raises(ValidationError) as exc_info:
        user_store.create_user("another", "User@Inventario.com", "hash")
    assert "email" in exc_info.value.errors


def test_invalid_account_fields(user_store):
    with pytest.raises(ValidationError):
        user_store.create_user("abc", "abc@inventario.com", "hash")
    with pytest.raises(ValidationError):
        user_store.create_user("valid_name", "not-an-email", "hash")


def test_update_user(user_store):
    updated = user_store.update_user("user", is_active=False)
    assert updated.is_active is False
    assert user_store.find_by_username("user").is_active is False

    with pytest.raises(NotFoundError):
        user_store.update_user("ghost", is_active=False)


def test_file_backed_store_sees_writes_from_other_instances(tmp_path):
    path = tmp_path / "users.json"
    writer = UserStore(path)
    reader = UserStore(path)
    writer.create_user("someone", "someone@inventario.com", "hash")
    assert reader.exists_by_username("someone")
    assert reader.load_users()[0].role is Role.USER


class TestBootstrap:
    def test_seeds_admin_and_user(self):
        store = UserStore()
        created = seed_default_accounts(store, SeedSettings(), rounds=TEST_ROUNDS)
        assert created == 2

        admin = store.find_by_username("admin")
        user = store.find_by_username("user")
        assert admin.role is Role.ADMIN and admin.email == "admin@inventario.com"
        assert user.role is Role.USER and user.email == "user@inventario.com"
        assert verify_password("admin123", admin.password_hash)
        assert verify_password("user123", user.password_hash)

    def test_is_idempotent(self):
        store = UserStore()
        seed_default_accounts(store, SeedSettings(), rounds=TEST_ROUNDS)
        assert seed_default_accounts(store, SeedSettings(), rounds=TEST_ROUNDS) == 0
        assert len(store.load_users()) == 2

    def test_uses_configured_passwords(self):
        store = UserStore()
        seed = SeedSettings(admin_password="s3cret-admin", user_password="s3cret-user")
        seed_default_accounts(store, seed, rounds=TEST_ROUNDS)
        assert verify_password("s3cret-admin", store.find_by_username("admin").password_hash)
        assert not verify_password("admin123", store.find_by_username("admin").password_hash)
