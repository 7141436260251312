"""Application tests for delivery and payment commands and the Order repository lookups."""

import json

import pytest
from ordering.checkout.placement import PlaceOrder
from ordering.exceptions import InvalidTransition, OrderNotFound
from ordering.order.delivery import AddDeliveryNotes, ChangeDeliveryStatus
from ordering.order.order import Order
from ordering.order.payment import CancelPayment, FailPayment, MarkOrderPaid, RefundPayment
from protean import current_domain


@pytest.fixture()
def place_order(make_product):
    make_product("prod-A", stock=100)

    def _place(user_id="user-001", email="aline@example.com", phone="+250788000000"):
        return current_domain.process(
            PlaceOrder(
                user_id=user_id,
                items=json.dumps([{"product_id": "prod-A", "quantity": 1}]),
                country="RW",
                recipient_name="Aline Uwase",
                recipient_email=email,
                recipient_phone=phone,
                shipping_address="KG 11 Ave",
                shipping_city="Kigali",
            ),
            asynchronous=False,
        )

    return _place


def _change(order_id, status, **kwargs):
    return current_domain.process(
        ChangeDeliveryStatus(order_id=str(order_id), new_status=status, updated_by="admin-001", **kwargs),
        asynchronous=False,
    )


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestDeliveryCommands:
    def test_status_change_is_persisted_with_history(self, place_order):
        order = place_order()
        _change(order.id, "PROCESSING", notes="Packing")

        stored = _reload(order)
        assert stored.delivery_status == "PROCESSING"
        assert [e.status for e in stored.history] == ["PENDING", "PROCESSING"]
        assert stored.history[-1].updated_by == "admin-001"

    def test_shipping_records_tracking(self, place_order):
        order = place_order()
        _change(order.id, "SHIPPED", tracking_number="TRK-9", carrier="DHL")
        stored = _reload(order)
        assert stored.tracking_number == "TRK-9"
        assert stored.carrier == "DHL"

    def test_rejected_change_is_not_persisted(self, place_order):
        order = place_order()
        _change(order.id, "CANCELLED")
        with pytest.raises(InvalidTransition):
            _change(order.id, "PROCESSING")

        stored = _reload(order)
        assert stored.delivery_status == "CANCELLED"
        assert len(stored.history) == 2

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            _change("missing", "PROCESSING")

    def test_delivery_notes(self, place_order):
        order = place_order()
        current_domain.process(AddDeliveryNotes(order_id=str(order.id), notes="Call on arrival"), asynchronous=False)
        stored = _reload(order)
        assert stored.delivery_notes == "Call on arrival"
        assert len(stored.history) == 1


class TestPaymentCommands:
    def test_mark_paid_then_refund(self, place_order):
        order = place_order()
        current_domain.process(
            MarkOrderPaid(order_id=str(order.id), payment_method="MOBILE_MONEY", payment_reference="MM-1"),
            asynchronous=False,
        )
        assert _reload(order).payment_status == "PAID"

        current_domain.process(RefundPayment(order_id=str(order.id), reason="Damaged"), asynchronous=False)
        stored = _reload(order)
        assert stored.payment_status == "REFUNDED"
        assert stored.payment_notes == "Damaged"

    def test_mark_paid_twice_rejected(self, place_order):
        order = place_order()
        current_domain.process(MarkOrderPaid(order_id=str(order.id), payment_method="CASH"), asynchronous=False)
        with pytest.raises(InvalidTransition):
            current_domain.process(MarkOrderPaid(order_id=str(order.id), payment_method="CASH"), asynchronous=False)

    def test_fail_and_cancel(self, place_order):
        failed = place_order()
        cancelled = place_order()
        current_domain.process(FailPayment(order_id=str(failed.id), reason="Declined"), asynchronous=False)
        current_domain.process(CancelPayment(order_id=str(cancelled.id)), asynchronous=False)
        assert _reload(failed).payment_status == "FAILED"
        assert _reload(cancelled).payment_status == "CANCELLED"


class TestOrderQueries:
    def test_find_for_user(self, place_order):
        place_order(user_id="user-001")
        place_order(user_id="user-001")
        place_order(user_id="user-002")

        orders = current_domain.repository_for(Order).find_for_user("user-001")
        assert len(orders) == 2
        assert all(o.user_id == "user-001" for o in orders)

    def test_find_by_number(self, place_order):
        order = place_order()
        repo = current_domain.repository_for(Order)
        assert repo.get_by_number(order.order_number).id == order.id
        assert repo.find_by_number("XX0000-0000000") is None
        with pytest.raises(OrderNotFound):
            repo.get_by_number("XX0000-0000000")

    def test_find_by_delivery_status(self, place_order):
        first = place_order()
        place_order()
        _change(first.id, "PROCESSING")

        repo = current_domain.repository_for(Order)
        assert [o.id for o in repo.find_by_delivery_status("PROCESSING")] == [first.id]
        assert len(repo.find_by_delivery_status("PENDING")) == 1


class TestTrackOrder:
    def test_track_by_email(self, place_order):
        order = place_order()
        tracked = current_domain.repository_for(Order).track(order.order_number, email="aline@example.com")
        assert tracked.id == order.id

    def test_track_by_phone(self, place_order):
        order = place_order()
        tracked = current_domain.repository_for(Order).track(order.order_number, phone="+250788000000")
        assert tracked.id == order.id

    def test_correct_email_with_wrong_phone(self, place_order):
        order = place_order()
        tracked = current_domain.repository_for(Order).track(
            order.order_number, email="aline@example.com", phone="+10000000000"
        )
        assert tracked.id == order.id

    def test_wrong_contact_looks_like_missing_order(self, place_order):
        order = place_order()
        with pytest.raises(OrderNotFound):
            current_domain.repository_for(Order).track(order.order_number, email="mallory@example.com")

    def test_unknown_number(self):
        with pytest.raises(OrderNotFound):
            current_domain.repository_for(Order).track("RW2610-9999999", email="aline@example.com")
