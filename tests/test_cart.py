"""Tests for the cart aggregate and cart service"""

import threading
from decimal import Decimal

import pytest

from inventory.core.cart import Cart, CartService
from inventory.models.catalog import Product
from inventory.utils.exceptions import UnauthorizedError, ValidationError


class FakeCatalog:
    """Minimal catalog collaborator: find_by_id only"""

    def __init__(self, *products):
        self.products = {p.id: p for p in products}

    def find_by_id(self, item_id):
        return self.products.get(item_id)


def _product(item_id, price, name="Sample product"):
    return Product(id=item_id, code=f"P-{item_id:03d}", name=name, price=price, stock=10)


# Cart aggregate

def test_add_sums_quantities():
    cart = Cart()
    cart.add(5, 2)
    assert cart.add(5, 3) == 5
    assert cart.quantity_of(5) == 5


def test_add_defaults_to_one():
    cart = Cart()
    cart.add(7)
    assert cart.items() == [(7, 1)]


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
def test_add_rejects_non_positive_or_non_integer_quantity(quantity):
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.add(5, quantity)
    assert 5 not in cart


def test_remove_deletes_key_and_is_idempotent():
    cart = Cart()
    cart.add(5, 3)
    assert cart.remove(5) is True
    assert cart.remove(5) is False
    assert 5 not in cart
    assert cart.quantity_of(5) == 0
    assert len(cart) == 0


def test_items_are_ordered_by_id():
    cart = Cart()
    for item_id in (9, 2, 5):
        cart.add(item_id)
    assert [item_id for item_id, _ in cart.items()] == [2, 5, 9]


# Cart service against a live session

@pytest.fixture
def user_session(sessions):
    session, _ = sessions.authenticate(None, "user", "user123")
    return session


def test_cart_is_created_lazily(core, user_session):
    assert user_session.cart is None
    view = core.carts.list(user_session)
    assert view.is_empty
    assert view.total == Decimal("0.00")
    assert user_session.cart is None

    core.carts.add(user_session, 1)
    assert user_session.cart is not None


def test_remove_without_cart_is_a_noop(core, user_session):
    assert core.carts.remove(user_session, 5) is False


def test_list_resolves_lines_and_totals(core, user_session):
    core.carts.add(user_session, 1, 2)
    core.carts.add(user_session, 3, 3)

    view = core.carts.list(user_session)
    assert [(line.item.code, line.quantity) for line in view.lines] == [("LAP-001", 2), ("CAB-003", 3)]
    assert view.lines[0].line_total == Decimal("2599.98")
    assert view.lines[1].line_total == Decimal("0.30")
    assert view.total == Decimal("2600.28")
    assert view.item_count == 5


def test_many_small_amounts_do_not_drift(sessions, user_session):
    catalog = FakeCatalog(*[_product(i, "0.10") for i in range(1, 101)])
    carts = CartService(sessions, catalog)
    for item_id in range(1, 101):
        carts.add(user_session, item_id, 3)
    view = carts.list(user_session)
    assert view.total == Decimal("30.00")


def test_vanished_items_are_skipped_but_remembered(sessions, user_session):
    catalog = FakeCatalog(_product(1, "5.00"))
    carts = CartService(sessions, catalog)

    carts.add(user_session, 99, 1)
    view = carts.list(user_session)
    assert view.lines == ()
    assert view.total == Decimal("0.00")
    assert carts.quantity_of(user_session, 99) == 1

    catalog.products[99] = _product(99, "12.50", name="Restored product")
    view = carts.list(user_session)
    assert [(line.item.id, line.quantity) for line in view.lines] == [(99, 1)]
    assert view.total == Decimal("12.50")


def test_list_reflects_live_price(core, user_session, catalog_store):
    core.carts.add(user_session, 2, 2)
    core.products.update_product(2, price="25.00")
    view = core.carts.list(user_session)
    assert view.total == Decimal("50.00")


def test_concurrent_adds_do_not_lose_updates(core, user_session):
    core.carts.add(user_session, 5, 4)
    workers = 16
    barrier = threading.Barrier(workers)
    errors = []

    def add_one():
        try:
            barrier.wait(timeout=5)
            core.carts.add(user_session, 5, 1)
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)

    threads = [threading.Thread(target=add_one) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    assert core.carts.quantity_of(user_session, 5) == 4 + workers


def test_concurrent_mutations_on_different_keys_are_all_kept(core, user_session):
    barrier = threading.Barrier(10)

    def add(item_id):
        barrier.wait(timeout=5)
        core.carts.add(user_session, item_id, item_id)

    threads = [threading.Thread(target=add, args=(i,)) for i in range(1, 11)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert user_session.cart.items() == [(i, i) for i in range(1, 11)]


def test_carts_are_private_to_their_session(core, sessions):
    first, _ = sessions.authenticate(None, "user", "user123")
    second, _ = sessions.authenticate(None, "user", "user123")
    core.carts.add(first, 1, 1)
    assert core.carts.quantity_of(second, 1) == 0


def test_invalidated_session_rejects_cart_operations(core, sessions, user_session):
    core.carts.add(user_session, 1)
    sessions.logout(user_session.token)
    for operation in (
        lambda: core.carts.add(user_session, 1),
        lambda: core.carts.remove(user_session, 1),
        lambda: core.carts.list(user_session),
    ):
        with pytest.raises(UnauthorizedError):
            operation()
