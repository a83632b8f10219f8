"""Cafe Schemas - Pydantic models for data contracts."""

from cafe_schemas.checkout import (
    CartLineItem,
    ItemKind,
    OrderCreateLine,
    OrderCreateRequest,
    PaymentBackUrls,
    PaymentRequest,
    PaymentResponse,
    Profile,
    Table,
    TableReservation,
    UserRecord,
    format_money,
)
from cafe_schemas.orders import (
    FulfillmentType,
    Order,
    OrderLineItem,
    OrderStatus,
    OrderStatusUpdate,
    PaymentMethod,
)

__all__ = [
    # Orders
    "FulfillmentType",
    "Order",
    "OrderLineItem",
    "OrderStatus",
    "OrderStatusUpdate",
    "PaymentMethod",
    # Checkout
    "CartLineItem",
    "ItemKind",
    "OrderCreateLine",
    "OrderCreateRequest",
    "PaymentBackUrls",
    "PaymentRequest",
    "PaymentResponse",
    "Profile",
    "UserRecord",
    "format_money",
    # Reservations
    "Table",
    "TableReservation",
]
