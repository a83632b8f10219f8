"""Checkout schemas - cart, profile, order creation and payment contracts."""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from cafe_schemas.orders import FulfillmentType, PaymentMethod

CENTS = Decimal("0.01")


def format_money(amount: Decimal) -> str:
    """Render an amount with two decimals, rounding half up."""
    return str(Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP))


# =============================================================================
# Cart
# =============================================================================


class ItemKind(str, Enum):
    """What a cart line represents."""

    COFFEE = "coffee"
    SNACK = "snack"
    RESERVATION = "reservation"


class CartLineItem(BaseModel):
    """One entry of the shopping cart. Entries are never merged."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    kind: ItemKind | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


# =============================================================================
# Profile & session
# =============================================================================


class Profile(BaseModel):
    """Customer checkout preferences, persisted as one object."""

    model_config = ConfigDict(populate_by_name=True)

    payment_method: PaymentMethod = Field(
        default=PaymentMethod.ONLINE, alias="paymentMethod"
    )
    fulfillment_type: FulfillmentType = Field(
        default=FulfillmentType.PICKUP, alias="orderType"
    )
    delivery_address: str | None = Field(default=None, alias="deliveryAddress")

    @classmethod
    def from_storage(cls, raw: object) -> "Profile":
        """
        Build a profile from a persisted object.

        Unknown payment methods fall back to online and unknown fulfillment
        types to pickup, so a stale stored value never blocks checkout.
        """
        if not isinstance(raw, dict):
            return cls()

        data = dict(raw)
        if data.get("paymentMethod") not in {m.value for m in PaymentMethod}:
            data["paymentMethod"] = PaymentMethod.ONLINE.value
        if data.get("orderType") not in {t.value for t in FulfillmentType}:
            data["orderType"] = FulfillmentType.PICKUP.value
        address = data.get("deliveryAddress")
        if address is not None and not isinstance(address, str):
            data["deliveryAddress"] = None

        return cls.model_validate(data)

    def to_storage(self) -> dict[str, str | None]:
        return self.model_dump(mode="json", by_alias=True)


class UserRecord(BaseModel):
    """Authenticated user as handed over by the login collaborator."""

    model_config = ConfigDict(extra="allow")

    email: str | None = None
    name: str | None = None
    picture: str | None = None
    sub: str | None = None


# =============================================================================
# Order creation
# =============================================================================


class OrderCreateLine(BaseModel):
    """Cart line as sent to the order store."""

    name: str
    unit_price: Decimal = Field(serialization_alias="price")
    quantity: int
    subtotal: Decimal

    @field_serializer("unit_price")
    def _price_as_number(self, value: Decimal) -> float:
        return float(value)

    @field_serializer("subtotal")
    def _subtotal_as_text(self, value: Decimal) -> str:
        return format_money(value)


class OrderCreateRequest(BaseModel):
    """Body of ``POST /pedidos``."""

    cart_items: list[OrderCreateLine] = Field(serialization_alias="cartItems")
    payment_method: PaymentMethod = Field(serialization_alias="paymentMethod")
    order_type: FulfillmentType = Field(serialization_alias="orderType")
    address: str
    total: Decimal = Field(serialization_alias="valor")
    email: str

    @field_serializer("total")
    def _total_as_text(self, value: Decimal) -> str:
        return format_money(value)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Payments
# =============================================================================


class PaymentBackUrls(BaseModel):
    """Where the payment provider sends the customer afterwards."""

    success: str
    failure: str
    pending: str


class PaymentRequest(BaseModel):
    """Body of ``POST /payments``."""

    title: str
    price: Decimal
    quantity: int = 1
    payment_method: str
    back_urls: PaymentBackUrls

    @field_serializer("price")
    def _price_as_number(self, value: Decimal) -> float:
        return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


class PaymentResponse(BaseModel):
    """Payment initiation result. A missing init_point is a soft failure."""

    model_config = ConfigDict(extra="allow")

    init_point: str | None = None
    preference_id: str | None = None
    external_reference: str | None = None


# =============================================================================
# Table reservations
# =============================================================================


class Table(BaseModel):
    """A bookable café table."""

    number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    fee: Decimal = Field(ge=0)


class TableReservation(BaseModel):
    """Reservation details kept on the client."""

    table_number: int = Field(alias="tableNumber")
    date: dt.date
    time: dt.time
    credit_card: str = Field(alias="creditCard")
    fee: Decimal

    model_config = ConfigDict(populate_by_name=True)
