"""Order delivery: status changes and delivery notes, driven by administrators."""

import structlog
from protean import handle
from protean.fields import Date, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ChangeDeliveryStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    updated_by = Identifier()
    notes = Text()
    tracking_number = String(max_length=255)
    carrier = String(max_length=100)
    estimated_delivery_date = Date()


@ordering.command(part_of="Order")
class AddDeliveryNotes:
    order_id = Identifier(required=True)
    notes = Text(required=True)


@ordering.command_handler(part_of=Order)
class OrderDeliveryHandler:
    @handle(ChangeDeliveryStatus)
    def change_delivery_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        previous = order.delivery_status

        order.change_delivery_status(
            new_status=command.new_status,
            updated_by=command.updated_by,
            notes=command.notes,
            tracking_number=command.tracking_number,
            carrier=command.carrier,
            estimated_delivery_date=command.estimated_delivery_date,
        )
        repo.add(order)

        logger.info(
            "Delivery status changed",
            order_number=order.order_number,
            previous_status=previous,
            new_status=order.delivery_status,
            updated_by=command.updated_by,
        )
        return order

    @handle(AddDeliveryNotes)
    def add_delivery_notes(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.add_delivery_notes(command.notes)
        repo.add(order)
        return order
