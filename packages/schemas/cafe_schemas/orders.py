"""Order store schemas - data contracts for orders held by the remote store."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Enums
# =============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FINALIZED = "finalized"


class PaymentMethod(str, Enum):
    """How the customer pays."""

    ONLINE = "online"
    IN_STORE = "in-store"


class FulfillmentType(str, Enum):
    """Order fulfillment type."""

    DELIVERY = "delivery"
    PICKUP = "pickup"


def _known_choice(enum_cls: type[Enum], value: Any) -> Any:
    """Return value when it names a member of enum_cls, None otherwise."""
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str) and value in {m.value for m in enum_cls}:
        return value
    return None


# =============================================================================
# Orders
# =============================================================================


class OrderLineItem(BaseModel):
    """Line item of an order as stored remotely."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    unit_price: Decimal = Field(alias="price", ge=0)
    quantity: int = Field(ge=1)
    subtotal: Decimal | None = None


class Order(BaseModel):
    """An order as last observed from the store.

    Only ``id``, ``status`` and the line items are required; everything
    else is informational and set by the store at creation time.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str = Field(min_length=1, validation_alias=AliasChoices("_id", "id"))
    status: OrderStatus
    items: list[OrderLineItem] = Field(alias="cartItems")

    email: str | None = None
    total: Decimal | None = Field(default=None, alias="valor")
    payment_method: PaymentMethod | None = Field(default=None, alias="paymentMethod")
    fulfillment_type: FulfillmentType | None = Field(default=None, alias="orderType")
    address: str | None = None

    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("payment_method", mode="before")
    @classmethod
    def _unknown_payment_method(cls, value: Any) -> Any:
        return _known_choice(PaymentMethod, value)

    @field_validator("fulfillment_type", mode="before")
    @classmethod
    def _unknown_fulfillment_type(cls, value: Any) -> Any:
        return _known_choice(FulfillmentType, value)

    @property
    def is_delivery(self) -> bool:
        return self.fulfillment_type is FulfillmentType.DELIVERY


class OrderStatusUpdate(BaseModel):
    """Body of a status transition request."""

    status: OrderStatus
