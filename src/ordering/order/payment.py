"""Order payment: commands and handler.

Payment is recorded by an administrator once money has been received
(cash on delivery, mobile money, bank transfer...). Gateway integration
is out of scope.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)
    payment_reference = String(max_length=255)
    notes = Text()


@ordering.command(part_of="Order")
class FailPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class CancelPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class RefundPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(MarkOrderPaid)
    def mark_order_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.mark_as_paid(
            payment_method=command.payment_method,
            payment_reference=command.payment_reference,
            notes=command.notes,
        )
        repo.add(order)

        logger.info(
            "Order paid",
            order_number=order.order_number,
            payment_method=order.payment_method,
            amount=order.total_amount,
        )
        return order

    @handle(FailPayment)
    def fail_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.fail_payment(reason=command.reason)
        repo.add(order)
        return order

    @handle(CancelPayment)
    def cancel_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.cancel_payment(reason=command.reason)
        repo.add(order)
        return order

    @handle(RefundPayment)
    def refund_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.refund_payment(reason=command.reason)
        repo.add(order)

        logger.info("Order payment refunded", order_number=order.order_number, amount=order.total_amount)
        return order
