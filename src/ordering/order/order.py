"""Order aggregate (CQRS): a priced checkout snapshot with delivery and payment lifecycles.

The monetary snapshot (lines, subtotal, discount, VAT, total) is fixed at
creation and never recalculated, even if catalogue prices change later.
After creation only the status, payment, tracking and notes fields move.

Line items and the status history are embedded JSON documents rather than
child entities, so the snapshot is stored atomically with the order row.

Delivery state machine:
    PENDING → PROCESSING → SHIPPED → IN_TRANSIT → OUT_FOR_DELIVERY → DELIVERED
    Moves are forward only, and may skip steps (e.g. PROCESSING → DELIVERED).
    FAILED_DELIVERY, RETURNED and CANCELLED are reachable from any
    non-terminal state. DELIVERED and the three side branches are terminal.

Payment state machine:
    PENDING → PAID → REFUNDED
    PENDING → FAILED
    PENDING → CANCELLED

Every delivery status change appends exactly one StatusHistoryEntry, so
the last history entry always reflects the current delivery status.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, Identifier, String, Text, ValueObject

from ordering.domain import ordering
from ordering.exceptions import InvalidTransition
from ordering.order.events import (
    DeliveryNotesAdded,
    DeliveryStatusChanged,
    OrderPaid,
    OrderPlaced,
    PaymentCancelled,
    PaymentFailed,
    PaymentRefunded,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DeliveryStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED_DELIVERY = "FAILED_DELIVERY"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class PaymentMethod(Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    MOBILE_MONEY = "MOBILE_MONEY"
    BANK_TRANSFER = "BANK_TRANSFER"
    OTHER = "OTHER"


DELIVERY_PROGRESSION = [
    DeliveryStatus.PENDING,
    DeliveryStatus.PROCESSING,
    DeliveryStatus.SHIPPED,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.OUT_FOR_DELIVERY,
    DeliveryStatus.DELIVERED,
]

SIDE_BRANCHES = {
    DeliveryStatus.FAILED_DELIVERY,
    DeliveryStatus.RETURNED,
    DeliveryStatus.CANCELLED,
}

TERMINAL_DELIVERY_STATUSES = {DeliveryStatus.DELIVERED} | SIDE_BRANCHES

# State machine transition maps
_DELIVERY_TRANSITIONS = {
    status: set(DELIVERY_PROGRESSION[position + 1 :]) | SIDE_BRANCHES
    for position, status in enumerate(DELIVERY_PROGRESSION)
    if status not in TERMINAL_DELIVERY_STATUSES
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.CANCELLED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Embedded documents
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderLine:
    """Point-in-time copy of a purchased product's price and VAT."""

    product_id: str
    quantity: int
    price: float
    vat_percentage: float
    vat_amount: float

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    @classmethod
    def from_dict(cls, data):
        return cls(
            product_id=str(data["product_id"]),
            quantity=int(data["quantity"]),
            price=float(data["price"]),
            vat_percentage=float(data["vat_percentage"]),
            vat_amount=float(data["vat_amount"]),
        )


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One entry in the append-only delivery status audit log."""

    status: str
    timestamp: datetime
    updated_by: str | None = None
    notes: str | None = None

    def to_dict(self):
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "updated_by": self.updated_by,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            status=data["status"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            updated_by=data.get("updated_by"),
            notes=data.get("notes"),
        )


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingDetails:
    """Recipient and delivery address captured at checkout.

    Immutable once recorded: it is where this order goes, whatever the
    user's address book says later.
    """

    recipient_name = String(required=True, max_length=255)
    recipient_email = String(max_length=255)
    recipient_phone = String(max_length=50)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier()  # Nullable for guest checkouts
    country = String(required=True, max_length=2)
    currency = String(max_length=3, default="USD")
    items = Text(required=True)  # JSON array of order lines
    subtotal = Float(default=0.0)
    discount_amount = Float(default=0.0)
    vat_amount = Float(default=0.0)
    total_amount = Float(default=0.0)
    delivery_status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50)
    payment_reference = String(max_length=255)
    payment_notes = Text()
    paid_at = DateTime()
    tracking_number = String(max_length=255)
    carrier = String(max_length=100)
    estimated_delivery_date = Date()
    actual_delivery_date = DateTime()
    delivery_notes = Text()
    shipping = ValueObject(ShippingDetails)
    status_history = Text()  # JSON array of history entries
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def history_must_match_delivery_status(self):
        history = self.history
        if not history or history[-1].status != self.delivery_status:
            raise ValidationError({"status_history": ["Last history entry must match the current delivery status"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_number, user_id, country, currency, breakdown, shipping, placed_by=None):
        """Create a PENDING order from a price breakdown.

        Args:
            breakdown: ordering.pricing.PriceBreakdown for the checked-out items.
            shipping: Dict with recipient_name, recipient_email, recipient_phone,
                address, city, state, zip_code, country.
            placed_by: Actor recorded on the first history entry.
        """
        now = datetime.now(UTC)
        lines = [item.snapshot() for item in breakdown.items]
        first_entry = StatusHistoryEntry(
            status=DeliveryStatus.PENDING.value,
            timestamp=now,
            updated_by=str(placed_by) if placed_by else None,
            notes="Order placed",
        )

        order = cls(
            order_number=order_number,
            user_id=user_id,
            country=country,
            currency=currency,
            items=json.dumps(lines),
            subtotal=float(breakdown.subtotal),
            discount_amount=float(breakdown.discount_amount),
            vat_amount=float(breakdown.vat_amount),
            total_amount=float(breakdown.total_amount),
            delivery_status=DeliveryStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping=ShippingDetails(**shipping),
            status_history=json.dumps([first_entry.to_dict()]),
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id) if user_id else None,
                country=country,
                currency=currency,
                items=order.items,
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                vat_amount=order.vat_amount,
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Embedded document accessors
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[OrderLine]:
        return [OrderLine.from_dict(entry) for entry in json.loads(self.items or "[]")]

    @property
    def history(self) -> list[StatusHistoryEntry]:
        return [StatusHistoryEntry.from_dict(entry) for entry in json.loads(self.status_history or "[]")]

    def matches_contact(self, email=None, phone=None):
        """True when the supplied email or phone matches the recipient. Email is case-insensitive."""
        recipient_email = (self.shipping.recipient_email or "").lower()
        recipient_phone = self.shipping.recipient_phone or ""
        email_matches = bool(email) and bool(recipient_email) and recipient_email == email.strip().lower()
        phone_matches = bool(phone) and bool(recipient_phone) and recipient_phone == phone.strip()
        return email_matches or phone_matches

    # -------------------------------------------------------------------
    # Delivery lifecycle
    # -------------------------------------------------------------------
    def change_delivery_status(
        self,
        new_status,
        updated_by=None,
        notes=None,
        tracking_number=None,
        carrier=None,
        estimated_delivery_date=None,
    ):
        """Move to ``new_status`` and append the matching history entry."""
        target = _coerce(DeliveryStatus, new_status, "delivery_status")
        current = DeliveryStatus(self.delivery_status)
        if target not in _DELIVERY_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target.value, field="delivery_status")

        now = datetime.now(UTC)
        entry = StatusHistoryEntry(
            status=target.value,
            timestamp=now,
            updated_by=str(updated_by) if updated_by else None,
            notes=notes,
        )
        history = [e.to_dict() for e in self.history] + [entry.to_dict()]

        with atomic_change(self):
            self.delivery_status = target.value
            self.status_history = json.dumps(history)
            if tracking_number:
                self.tracking_number = tracking_number
            if carrier:
                self.carrier = carrier
            if estimated_delivery_date:
                self.estimated_delivery_date = estimated_delivery_date
            if target == DeliveryStatus.DELIVERED:
                self.actual_delivery_date = now
            self.updated_at = now

        self.raise_(
            DeliveryStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                updated_by=entry.updated_by,
                notes=notes,
                tracking_number=self.tracking_number,
                carrier=self.carrier,
                changed_at=now,
            )
        )

    def add_delivery_notes(self, notes):
        """Replace the delivery notes. Does not touch the status history."""
        if not notes or not notes.strip():
            raise ValidationError({"notes": ["Notes cannot be empty"]})

        self.delivery_notes = notes
        self.updated_at = datetime.now(UTC)

        self.raise_(DeliveryNotesAdded(order_id=str(self.id), notes=notes))

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def _assert_payment_transition(self, target):
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target.value, field="payment_status")

    def mark_as_paid(self, payment_method, payment_reference=None, notes=None):
        method = _coerce(PaymentMethod, payment_method, "payment_method")
        self._assert_payment_transition(PaymentStatus.PAID)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_method = method.value
        self.payment_reference = payment_reference
        self.payment_notes = notes
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_method=method.value,
                payment_reference=payment_reference,
                amount=self.total_amount,
                paid_at=now,
            )
        )

    def fail_payment(self, reason=None):
        self._assert_payment_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        if reason:
            self.payment_notes = reason
        self.updated_at = now

        self.raise_(PaymentFailed(order_id=str(self.id), reason=reason, failed_at=now))

    def cancel_payment(self, reason=None):
        self._assert_payment_transition(PaymentStatus.CANCELLED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.CANCELLED.value
        if reason:
            self.payment_notes = reason
        self.updated_at = now

        self.raise_(PaymentCancelled(order_id=str(self.id), reason=reason, cancelled_at=now))

    def refund_payment(self, reason=None):
        self._assert_payment_transition(PaymentStatus.REFUNDED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        if reason:
            self.payment_notes = reason
        self.updated_at = now

        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                amount=self.total_amount,
                reason=reason,
                refunded_at=now,
            )
        )


def _coerce(enum_cls, value, field):
    try:
        return value if isinstance(value, enum_cls) else enum_cls(value)
    except ValueError:
        raise ValidationError({field: [f"Unknown value {value!r}"]}) from None
