"""Cart item management: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.reconciliation import reconciled_cart
from ordering.catalog import get_catalog
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = get_catalog().get(command.product_id)

        cart = reconciled_cart(command.user_id)
        cart.add_item(product, command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = reconciled_cart(command.user_id)
        item = cart.get_item(command.item_id)
        product = get_catalog().get(str(item.product_id))

        cart.update_item_quantity(command.item_id, command.new_quantity, product)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = reconciled_cart(command.user_id)
        cart.remove_item(command.item_id)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart
