"""Application tests for cart commands, run through current_domain.process."""

import json

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ClearCart, OpenCart, SyncCart
from ordering.catalog.product import CatalogProduct
from ordering.exceptions import CartItemNotFound, InsufficientStock, ProductNotFound, ProductUnavailable
from protean import current_domain


def _add(user_id="user-001", product_id="prod-001", quantity=1):
    return current_domain.process(
        AddToCart(user_id=user_id, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )


def _stored_cart(user_id="user-001"):
    return current_domain.repository_for(ShoppingCart).find_by_user(user_id)


class TestOpenCart:
    def test_first_access_creates_empty_cart(self):
        cart = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        assert len(cart.items) == 0
        assert _stored_cart().id == cart.id

    def test_second_access_returns_same_cart(self):
        first = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        second = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        assert first.id == second.id

    def test_carts_are_per_user(self):
        a = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        b = current_domain.process(OpenCart(user_id="user-002"), asynchronous=False)
        assert a.id != b.id


class TestAddToCart:
    def test_add_creates_cart_and_line(self, make_product):
        make_product(stock=5)
        _add(quantity=2)
        cart = _stored_cart()
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_merge_beyond_stock_fails_and_keeps_line(self, make_product):
        make_product(stock=3)
        _add(quantity=2)
        with pytest.raises(InsufficientStock) as exc_info:
            _add(quantity=2)
        assert exc_info.value.in_cart == 2
        assert _stored_cart().items[0].quantity == 2

    def test_unknown_product(self):
        with pytest.raises(ProductNotFound):
            _add(product_id="ghost")

    def test_inactive_product(self, make_product):
        make_product(is_active=False)
        with pytest.raises(ProductUnavailable):
            _add()


class TestUpdateAndRemove:
    def test_update_quantity(self, make_product):
        make_product(stock=10)
        cart = _add()
        item_id = str(cart.items[0].id)

        current_domain.process(
            UpdateCartQuantity(user_id="user-001", item_id=item_id, new_quantity=7),
            asynchronous=False,
        )
        assert _stored_cart().items[0].quantity == 7

    def test_update_beyond_stock(self, make_product):
        make_product(stock=4)
        item_id = str(_add().items[0].id)
        with pytest.raises(InsufficientStock):
            current_domain.process(
                UpdateCartQuantity(user_id="user-001", item_id=item_id, new_quantity=5),
                asynchronous=False,
            )
        assert _stored_cart().items[0].quantity == 1

    def test_update_unknown_item(self, make_product):
        make_product()
        _add()
        with pytest.raises(CartItemNotFound):
            current_domain.process(
                UpdateCartQuantity(user_id="user-001", item_id="nope", new_quantity=2),
                asynchronous=False,
            )

    def test_remove_item(self, make_product):
        make_product()
        item_id = str(_add().items[0].id)
        current_domain.process(RemoveFromCart(user_id="user-001", item_id=item_id), asynchronous=False)
        assert len(_stored_cart().items) == 0

    def test_remove_item_of_another_users_cart(self, make_product):
        make_product()
        item_id = str(_add(user_id="user-001").items[0].id)
        with pytest.raises(CartItemNotFound):
            current_domain.process(RemoveFromCart(user_id="user-002", item_id=item_id), asynchronous=False)


class TestClearCart:
    def test_clear(self, make_product):
        make_product("a")
        make_product("b")
        _add(product_id="a")
        _add(product_id="b")
        current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)
        assert len(_stored_cart().items) == 0


class TestReconciliation:
    def test_deleted_product_is_pruned_on_next_read(self, make_product):
        make_product("keep")
        doomed = make_product("gone")
        _add(product_id="keep")
        _add(product_id="gone")

        current_domain.repository_for(CatalogProduct)._dao.delete(doomed)

        cart = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        assert [str(i.product_id) for i in cart.items] == ["keep"]
        assert [str(i.product_id) for i in _stored_cart().items] == ["keep"]

    def test_inactive_product_stays_in_cart(self, make_product):
        product = make_product()
        _add()
        product.is_active = False
        current_domain.repository_for(CatalogProduct).add(product)

        cart = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        assert len(cart.items) == 1


class TestSyncCart:
    def _sync(self, items, user_id="user-001"):
        return current_domain.process(SyncCart(user_id=user_id, items=json.dumps(items)), asynchronous=False)

    def test_sync_replaces_contents(self, make_product):
        make_product("old")
        make_product("new", stock=5)
        _add(product_id="old")

        cart = self._sync([{"product_id": "new", "quantity": 3}])
        assert [(str(i.product_id), i.quantity) for i in cart.items] == [("new", 3)]

    def test_sync_caps_and_drops_without_failing(self, make_product):
        make_product("low", stock=2)
        make_product("off", is_active=False)
        make_product("empty", stock=0)

        cart = self._sync(
            [
                {"product_id": "low", "quantity": 9},
                {"product_id": "off", "quantity": 1},
                {"product_id": "empty", "quantity": 1},
                {"product_id": "ghost", "quantity": 1},
            ]
        )
        assert [(str(i.product_id), i.quantity) for i in _stored_cart().items] == [("low", 2)]
        assert cart.id == _stored_cart().id
