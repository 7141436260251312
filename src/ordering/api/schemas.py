"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class SyncCartItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=0)


class SyncCartRequest(BaseModel):
    items: list[SyncCartItem]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "prod-001", "quantity": 2},
                        {"product_id": "prod-002", "quantity": 1},
                    ]
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class CheckoutItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class DiscountSchema(BaseModel):
    kind: Literal["percentage", "fixed"]
    value: float = Field(ge=0)


class CheckoutRequest(BaseModel):
    """Checkout of the caller's cart, or of ``items`` for a guest."""

    items: list[CheckoutItem] | None = None
    country: str = Field(min_length=2, max_length=2)
    recipient_name: str
    recipient_email: str | None = None
    recipient_phone: str | None = None
    shipping_address: str
    shipping_city: str
    shipping_state: str | None = None
    shipping_zip_code: str | None = None
    shipping_country: str | None = None
    discount: DiscountSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "country": "RW",
                    "recipient_name": "Aline Uwase",
                    "recipient_email": "aline@example.com",
                    "recipient_phone": "+250788000000",
                    "shipping_address": "KG 11 Ave",
                    "shipping_city": "Kigali",
                    "discount": {"kind": "percentage", "value": 10},
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Order Admin Request Schemas
# ---------------------------------------------------------------------------
class ChangeDeliveryStatusRequest(BaseModel):
    status: str
    notes: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    estimated_delivery_date: date | None = None


class DeliveryNotesRequest(BaseModel):
    notes: str = Field(min_length=1)


class MarkPaidRequest(BaseModel):
    payment_method: str
    payment_reference: str | None = None
    notes: str | None = None


class PaymentReasonRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartLineResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    unit_price: float | None = None
    currency: str | None = None
    line_total: float | None = None
    is_active: bool | None = None


class CartResponse(BaseModel):
    id: str
    user_id: str
    items: list[CartLineResponse]
    item_count: int
    subtotal: float
    updated_at: datetime | None = None


class OrderLineResponse(BaseModel):
    product_id: str
    quantity: int
    price: float
    vat_percentage: float
    vat_amount: float
    line_total: float


class StatusHistoryResponse(BaseModel):
    status: str
    timestamp: datetime
    updated_by: str | None = None
    notes: str | None = None


class ShippingResponse(BaseModel):
    recipient_name: str
    recipient_email: str | None = None
    recipient_phone: str | None = None
    address: str
    city: str
    state: str | None = None
    zip_code: str | None = None
    country: str


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str | None = None
    country: str
    currency: str
    items: list[OrderLineResponse]
    subtotal: float
    discount_amount: float
    vat_amount: float
    total_amount: float
    delivery_status: str
    payment_status: str
    payment_method: str | None = None
    payment_reference: str | None = None
    paid_at: datetime | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    estimated_delivery_date: date | None = None
    actual_delivery_date: datetime | None = None
    delivery_notes: str | None = None
    shipping: ShippingResponse | None = None
    status_history: list[StatusHistoryResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TimelineStepResponse(BaseModel):
    id: str
    order: int
    status: str
    label: str
    timestamp: datetime | None = None
    is_completed: bool
    is_current: bool
    notes: str | None = None


class TimelineResponse(BaseModel):
    order_number: str
    current_status: str
    steps: list[TimelineStepResponse]
