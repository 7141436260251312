"""Cart management: opening, clearing and syncing a user's cart."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.reconciliation import reconciled_cart
from ordering.catalog import get_catalog
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class OpenCart:
    """Fetch the user's cart, creating it on first access."""

    user_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class SyncCart:
    """Replace the cart with a client-side (offline) item list, best effort."""

    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        cart = reconciled_cart(command.user_id)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = reconciled_cart(command.user_id)
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    @handle(SyncCart)
    def sync_cart(self, command):
        requested_items = json.loads(command.items) if isinstance(command.items, str) else command.items

        catalog = get_catalog()
        requested = [
            (str(entry["product_id"]), int(entry["quantity"]), catalog.find(str(entry["product_id"])))
            for entry in requested_items
        ]

        cart = reconciled_cart(command.user_id)
        dropped = cart.sync(requested)
        current_domain.repository_for(ShoppingCart).add(cart)

        if dropped:
            logger.info("Cart sync dropped items", cart_id=str(cart.id), product_ids=dropped)
        return cart
