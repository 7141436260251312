"""Error kinds raised by the Ordering domain.

Every error derives from a Protean exception so that
``protean.integrations.fastapi.register_exception_handlers`` renders it
without extra wiring: not-found kinds become 404 responses and the rest
become 400 responses. Each kind stores its message under a distinct key
so a client can tell "out of stock" from "already delivered".
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class ProductNotFound(ObjectNotFoundError):
    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__({"product": [f"Product {product_id} not found"]})


class CartItemNotFound(ObjectNotFoundError):
    def __init__(self, item_id):
        self.item_id = str(item_id)
        super().__init__({"item_id": [f"Cart item {item_id} not found"]})


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, reference):
        self.reference = str(reference)
        super().__init__({"order": [f"Order {reference} not found"]})


class ProductUnavailable(ValidationError):
    """The product exists but is not currently for sale."""

    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__({"product": ["Product is not available"]})


class InsufficientStock(ValidationError):
    """Requested quantity exceeds live stock.

    ``in_cart`` is the quantity already held in the cart for the same
    product, when the request merges into an existing line.
    """

    def __init__(self, product_id, requested, available, in_cart=0):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        self.in_cart = in_cart

        if in_cart:
            message = f"Insufficient stock. Available: {available}, In cart: {in_cart}, Requested: {requested}"
        else:
            message = (
                f"Insufficient stock for product {product_id}. requested: {requested}, available: {available}"
            )
        super().__init__({"stock": [message]})


class InvalidTransition(ValidationError):
    """A state machine move that is not permitted from the current state."""

    def __init__(self, current, target, field="status"):
        self.current = current
        self.target = target
        super().__init__({field: [f"Cannot transition from {current} to {target}"]})
