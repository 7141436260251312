"""Order timeline: the canonical delivery progression annotated with what has happened."""

from dataclasses import dataclass
from datetime import datetime

from ordering.order.order import DELIVERY_PROGRESSION, DeliveryStatus

STEP_LABELS = {
    DeliveryStatus.PENDING: "Order Placed",
    DeliveryStatus.PROCESSING: "Processing",
    DeliveryStatus.SHIPPED: "Shipped",
    DeliveryStatus.IN_TRANSIT: "In Transit",
    DeliveryStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    DeliveryStatus.DELIVERED: "Delivered",
    DeliveryStatus.FAILED_DELIVERY: "Failed Delivery",
    DeliveryStatus.RETURNED: "Returned",
    DeliveryStatus.CANCELLED: "Cancelled",
}


@dataclass(frozen=True)
class TimelineStep:
    id: str
    order: int
    status: str
    label: str
    timestamp: datetime | None
    is_completed: bool
    is_current: bool
    notes: str | None = None


class OrderTimeline:
    """Restartable, lazily computed sequence of TimelineStep.

    Covers every canonical step, reached or not. An order that left the
    happy path (failed delivery, returned, cancelled) gets that status as
    an extra final step. Each iteration recomputes the steps from the
    history captured when the timeline was built.
    """

    def __init__(self, order):
        self.order_id = str(order.id)
        self.current = DeliveryStatus(order.delivery_status)
        self.history = order.history

    def _statuses(self):
        statuses = list(DELIVERY_PROGRESSION)
        if self.current not in DELIVERY_PROGRESSION:
            statuses.append(self.current)
        return statuses

    def _reached_position(self, latest):
        if self.current in DELIVERY_PROGRESSION:
            return DELIVERY_PROGRESSION.index(self.current)
        reached = [DELIVERY_PROGRESSION.index(s) for s in latest if s in DELIVERY_PROGRESSION]
        return max(reached, default=0)

    def __iter__(self):
        latest = {}
        for entry in self.history:
            latest[DeliveryStatus(entry.status)] = entry
        reached = self._reached_position(latest)

        for position, status in enumerate(self._statuses()):
            if status in DELIVERY_PROGRESSION:
                is_completed = position <= reached
            else:
                is_completed = True
            entry = latest.get(status)

            yield TimelineStep(
                id=f"{self.order_id}:{status.value}",
                order=position + 1,
                status=status.value,
                label=STEP_LABELS[status],
                timestamp=entry.timestamp if entry and is_completed else None,
                is_completed=is_completed,
                is_current=status == self.current,
                notes=entry.notes if entry else None,
            )

    def __len__(self):
        return len(self._statuses())
