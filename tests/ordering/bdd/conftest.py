"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.exceptions import InvalidTransition
from ordering.order.order import Order
from ordering.pricing import PricedLineItem, price_items
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Order Given steps
# ---------------------------------------------------------------------------
@given("a placed order", target_fixture="order")
def placed_order():
    order = Order.create(
        order_number="RW2610-0000001",
        user_id="user-001",
        country="RW",
        currency="RWF",
        breakdown=price_items([PricedLineItem("prod-001", 2, "1500", "18")]),
        shipping={
            "recipient_name": "Aline Uwase",
            "recipient_email": "aline@example.com",
            "address": "KG 11 Ave",
            "city": "Kigali",
            "country": "RW",
        },
        placed_by="user-001",
    )
    order._events.clear()
    return order


@given("the order was shipped", target_fixture="order")
def shipped_order(order):
    order.change_delivery_status("SHIPPED", updated_by="admin-001")
    return order


@given(parsers.cfparse("the order is {status}"), target_fixture="order")
def order_in_terminal_state(order, status):
    if status == "DELIVERED":
        order.change_delivery_status("OUT_FOR_DELIVERY", updated_by="admin-001")
    order.change_delivery_status(status, updated_by="admin-001")
    return order


@given("the order was paid", target_fixture="order")
def paid_order(order):
    order.mark_as_paid("CASH")
    return order


# ---------------------------------------------------------------------------
# Order Then steps
# ---------------------------------------------------------------------------
@then("the order action fails with an invalid transition")
def _(error):
    assert isinstance(error["exc"], InvalidTransition)


@then(parsers.cfparse('the delivery status is "{status}"'))
def _(order, status):
    assert order.delivery_status == status
    assert order.history[-1].status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(order, status):
    assert order.payment_status == status
