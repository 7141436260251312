"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartOpened:
    """A user's cart was created on first access."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All items were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemsPruned:
    """Lines whose product no longer exists were dropped while reading the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_ids = Text(required=True)  # JSON array


@ordering.event(part_of="ShoppingCart")
class CartSynced:
    """The cart was replaced with a client-side item list, minus what could not be kept."""

    __version__ = 1

    cart_id = Identifier(required=True)
    requested_count = Integer(required=True)
    kept_count = Integer(required=True)
    dropped_product_ids = Text()  # JSON array
