"""Order placement: the PlaceOrder command and its handler.

A signed-in user checks out their cart; a guest sends the item list with
the request. Either way the CheckoutOrchestrator does the work inside this
handler's Unit of Work, and a cart that was checked out is emptied in the
same transaction.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.checkout.orchestrator import CheckoutLine, CheckoutOrchestrator
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.pricing import DiscountDescriptor


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()  # Absent for guest checkouts
    items = Text()  # JSON: list of {product_id, quantity}; absent means "my cart"
    country = String(required=True, max_length=2)
    recipient_name = String(required=True, max_length=255)
    recipient_email = String(max_length=255)
    recipient_phone = String(max_length=50)
    shipping_address = String(required=True, max_length=500)
    shipping_city = String(required=True, max_length=100)
    shipping_state = String(max_length=100)
    shipping_zip_code = String(max_length=20)
    shipping_country = String(max_length=100)
    discount_kind = String(max_length=20)  # "percentage" or "fixed"
    discount_value = Float()
    placed_by = Identifier()


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart = None
        if command.items:
            entries = json.loads(command.items) if isinstance(command.items, str) else command.items
            lines = [CheckoutLine(product_id=str(e["product_id"]), quantity=int(e["quantity"])) for e in entries]
        elif command.user_id:
            # Not reconciled: a deleted product must fail validation, not vanish from the order
            cart = current_domain.repository_for(ShoppingCart).find_by_user(command.user_id)
            cart_lines = cart.lines if cart else []
            lines = [CheckoutLine(product_id=str(i.product_id), quantity=i.quantity) for i in cart_lines]
        else:
            raise ValidationError({"items": ["Guest checkout requires an item list"]})

        discount = None
        if command.discount_kind:
            discount = DiscountDescriptor(kind=command.discount_kind, value=command.discount_value or 0)

        order = CheckoutOrchestrator().submit(
            lines=lines,
            shipping={
                "recipient_name": command.recipient_name,
                "recipient_email": command.recipient_email,
                "recipient_phone": command.recipient_phone,
                "address": command.shipping_address,
                "city": command.shipping_city,
                "state": command.shipping_state,
                "zip_code": command.shipping_zip_code,
                "country": command.shipping_country or command.country,
            },
            country=command.country,
            user_id=command.user_id,
            discount=discount,
            placed_by=command.placed_by,
        )

        if cart is not None:
            cart.clear()
            current_domain.repository_for(ShoppingCart).add(cart)

        return order
