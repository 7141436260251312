"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A priced order was created at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()  # None for guest checkouts
    country = String(required=True)
    currency = String(required=True)
    items = Text(required=True)  # JSON snapshot of order lines
    subtotal = Float(required=True)
    discount_amount = Float(required=True)
    vat_amount = Float(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryStatusChanged:
    """The order moved to a new delivery status. Mirrors the appended history entry."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_by = Identifier()
    notes = Text()
    tracking_number = String()
    carrier = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryNotesAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    notes = Text(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """Payment for the order was received."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    payment_reference = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String()
    refunded_at = DateTime(required=True)
