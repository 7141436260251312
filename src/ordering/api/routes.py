"""FastAPI routes for the Ordering domain: cart, checkout, orders and order administration.

The caller's identity arrives in the ``X-User-Id`` header, set by the
authenticating gateway in front of this service. Admin routes record it
as the actor on status history entries.
"""

import json
from dataclasses import asdict
from decimal import Decimal

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    CartLineResponse,
    CartResponse,
    ChangeDeliveryStatusRequest,
    CheckoutRequest,
    DeliveryNotesRequest,
    MarkPaidRequest,
    OrderLineResponse,
    OrderResponse,
    PaymentReasonRequest,
    ShippingResponse,
    StatusHistoryResponse,
    SyncCartRequest,
    TimelineResponse,
    TimelineStepResponse,
    UpdateCartQuantityRequest,
)
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ClearCart, OpenCart, SyncCart
from ordering.catalog import get_catalog
from ordering.checkout.placement import PlaceOrder
from ordering.exceptions import OrderNotFound
from ordering.order.delivery import AddDeliveryNotes, ChangeDeliveryStatus
from ordering.order.order import Order
from ordering.order.payment import CancelPayment, FailPayment, MarkOrderPaid, RefundPayment
from ordering.order.timeline import OrderTimeline
from ordering.utils.money import round_money


def _require_user(x_user_id: str) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _cart_response(cart) -> CartResponse:
    catalog = get_catalog()
    lines = []
    subtotal = Decimal("0")
    for item in cart.lines:
        product = catalog.find(str(item.product_id))
        line_total = None
        if product is not None:
            line_total = round_money(product.price * item.quantity)
            subtotal += line_total
        lines.append(
            CartLineResponse(
                id=str(item.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                unit_price=float(product.price) if product else None,
                currency=product.currency if product else None,
                line_total=float(line_total) if line_total is not None else None,
                is_active=product.is_active if product else None,
            )
        )

    return CartResponse(
        id=str(cart.id),
        user_id=str(cart.user_id),
        items=lines,
        item_count=sum(item.quantity for item in cart.items),
        subtotal=float(subtotal),
        updated_at=cart.updated_at,
    )


def _order_response(order) -> OrderResponse:
    shipping = None
    if order.shipping:
        shipping = ShippingResponse(
            recipient_name=order.shipping.recipient_name,
            recipient_email=order.shipping.recipient_email,
            recipient_phone=order.shipping.recipient_phone,
            address=order.shipping.address,
            city=order.shipping.city,
            state=order.shipping.state,
            zip_code=order.shipping.zip_code,
            country=order.shipping.country,
        )

    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id) if order.user_id else None,
        country=order.country,
        currency=order.currency,
        items=[OrderLineResponse(**asdict(line), line_total=line.line_total) for line in order.lines],
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        vat_amount=order.vat_amount,
        total_amount=order.total_amount,
        delivery_status=order.delivery_status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        payment_reference=order.payment_reference,
        paid_at=order.paid_at,
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        estimated_delivery_date=order.estimated_delivery_date,
        actual_delivery_date=order.actual_delivery_date,
        delivery_notes=order.delivery_notes,
        shipping=shipping,
        status_history=[StatusHistoryResponse(**asdict(entry)) for entry in order.history],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _timeline_response(order) -> TimelineResponse:
    return TimelineResponse(
        order_number=order.order_number,
        current_status=order.delivery_status,
        steps=[TimelineStepResponse(**asdict(step)) for step in OrderTimeline(order)],
    )


def _own_order(order_id, user_id) -> Order:
    order = current_domain.repository_for(Order).load(order_id)
    if str(order.user_id) != str(user_id):
        raise OrderNotFound(order_id)
    return order


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(x_user_id: str = Header(default="")) -> CartResponse:
    cart = current_domain.process(OpenCart(user_id=_require_user(x_user_id)), asynchronous=False)
    return _cart_response(cart)


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, x_user_id: str = Header(default="")) -> CartResponse:
    command = AddToCart(
        user_id=_require_user(x_user_id),
        product_id=body.product_id,
        quantity=body.quantity,
    )
    cart = current_domain.process(command, asynchronous=False)
    return _cart_response(cart)


@cart_router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartQuantityRequest, x_user_id: str = Header(default="")
) -> CartResponse:
    command = UpdateCartQuantity(
        user_id=_require_user(x_user_id),
        item_id=item_id,
        new_quantity=body.quantity,
    )
    cart = current_domain.process(command, asynchronous=False)
    return _cart_response(cart)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, x_user_id: str = Header(default="")) -> CartResponse:
    command = RemoveFromCart(user_id=_require_user(x_user_id), item_id=item_id)
    cart = current_domain.process(command, asynchronous=False)
    return _cart_response(cart)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(x_user_id: str = Header(default="")) -> CartResponse:
    cart = current_domain.process(ClearCart(user_id=_require_user(x_user_id)), asynchronous=False)
    return _cart_response(cart)


@cart_router.put("/sync", response_model=CartResponse)
async def sync_cart(body: SyncCartRequest, x_user_id: str = Header(default="")) -> CartResponse:
    command = SyncCart(
        user_id=_require_user(x_user_id),
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    cart = current_domain.process(command, asynchronous=False)
    return _cart_response(cart)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, x_user_id: str = Header(default="")) -> OrderResponse:
    """Place an order.

    Signed-in callers check out their cart unless ``items`` is given;
    guests must send ``items``.
    """
    command = PlaceOrder(
        user_id=x_user_id or None,
        items=json.dumps([item.model_dump() for item in body.items]) if body.items else None,
        country=body.country.upper(),
        recipient_name=body.recipient_name,
        recipient_email=body.recipient_email,
        recipient_phone=body.recipient_phone,
        shipping_address=body.shipping_address,
        shipping_city=body.shipping_city,
        shipping_state=body.shipping_state,
        shipping_zip_code=body.shipping_zip_code,
        shipping_country=body.shipping_country,
        discount_kind=body.discount.kind if body.discount else None,
        discount_value=body.discount.value if body.discount else None,
        placed_by=x_user_id or None,
    )
    order = current_domain.process(command, asynchronous=False)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Order Router (customer-facing)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_my_orders(x_user_id: str = Header(default="")) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).find_for_user(_require_user(x_user_id))
    return [_order_response(order) for order in orders]


@order_router.get("/track", response_model=OrderResponse)
async def track_order(order_number: str, email: str | None = None, phone: str | None = None) -> OrderResponse:
    """Guest-friendly lookup by order number plus the recipient's email or phone."""
    if not email and not phone:
        raise HTTPException(status_code=400, detail="Provide the email or phone used at checkout")
    order = current_domain.repository_for(Order).track(order_number, email=email, phone=phone)
    return _order_response(order)


@order_router.get("/number/{order_number}", response_model=OrderResponse)
async def get_my_order_by_number(order_number: str, x_user_id: str = Header(default="")) -> OrderResponse:
    user_id = _require_user(x_user_id)
    order = current_domain.repository_for(Order).get_by_number(order_number)
    if str(order.user_id) != str(user_id):
        raise OrderNotFound(order_number)
    return _order_response(order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(order_id: str, x_user_id: str = Header(default="")) -> OrderResponse:
    return _order_response(_own_order(order_id, _require_user(x_user_id)))


@order_router.get("/{order_id}/timeline", response_model=TimelineResponse)
async def get_my_order_timeline(order_id: str, x_user_id: str = Header(default="")) -> TimelineResponse:
    return _timeline_response(_own_order(order_id, _require_user(x_user_id)))


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_order_router.get("", response_model=list[OrderResponse])
async def list_orders(delivery_status: str | None = None, user_id: str | None = None) -> list[OrderResponse]:
    repo = current_domain.repository_for(Order)
    if user_id:
        orders = repo.find_for_user(user_id)
        if delivery_status:
            orders = [o for o in orders if o.delivery_status == delivery_status]
    elif delivery_status:
        orders = repo.find_by_delivery_status(delivery_status)
    else:
        raise HTTPException(status_code=400, detail="Filter by delivery_status or user_id")
    return [_order_response(order) for order in orders]


@admin_order_router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get_by_number(order_number))


@admin_order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).load(order_id))


@admin_order_router.get("/{order_id}/timeline", response_model=TimelineResponse)
async def get_order_timeline(order_id: str) -> TimelineResponse:
    return _timeline_response(current_domain.repository_for(Order).load(order_id))


@admin_order_router.put("/{order_id}/delivery-status", response_model=OrderResponse)
async def change_delivery_status(
    order_id: str, body: ChangeDeliveryStatusRequest, x_user_id: str = Header(default="")
) -> OrderResponse:
    command = ChangeDeliveryStatus(
        order_id=order_id,
        new_status=body.status,
        updated_by=x_user_id or None,
        notes=body.notes,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
        estimated_delivery_date=body.estimated_delivery_date,
    )
    order = current_domain.process(command, asynchronous=False)
    return _order_response(order)


@admin_order_router.put("/{order_id}/notes", response_model=OrderResponse)
async def add_delivery_notes(order_id: str, body: DeliveryNotesRequest) -> OrderResponse:
    order = current_domain.process(AddDeliveryNotes(order_id=order_id, notes=body.notes), asynchronous=False)
    return _order_response(order)


@admin_order_router.put("/{order_id}/payment", response_model=OrderResponse)
async def mark_order_paid(order_id: str, body: MarkPaidRequest) -> OrderResponse:
    command = MarkOrderPaid(
        order_id=order_id,
        payment_method=body.payment_method,
        payment_reference=body.payment_reference,
        notes=body.notes,
    )
    order = current_domain.process(command, asynchronous=False)
    return _order_response(order)


@admin_order_router.put("/{order_id}/payment/failure", response_model=OrderResponse)
async def record_payment_failure(order_id: str, body: PaymentReasonRequest) -> OrderResponse:
    order = current_domain.process(FailPayment(order_id=order_id, reason=body.reason), asynchronous=False)
    return _order_response(order)


@admin_order_router.put("/{order_id}/payment/cancel", response_model=OrderResponse)
async def cancel_order_payment(order_id: str, body: PaymentReasonRequest) -> OrderResponse:
    order = current_domain.process(CancelPayment(order_id=order_id, reason=body.reason), asynchronous=False)
    return _order_response(order)


@admin_order_router.put("/{order_id}/payment/refund", response_model=OrderResponse)
async def refund_order_payment(order_id: str, body: PaymentReasonRequest) -> OrderResponse:
    order = current_domain.process(RefundPayment(order_id=order_id, reason=body.reason), asynchronous=False)
    return _order_response(order)
