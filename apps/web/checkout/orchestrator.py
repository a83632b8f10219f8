"""
Checkout orchestration.

Turns the cart into either an online payment (redirect to the provider) or
an in-store order created directly in the order store.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol

from cafe_schemas import (
    CartLineItem,
    FulfillmentType,
    Order,
    OrderCreateLine,
    OrderCreateRequest,
    PaymentBackUrls,
    PaymentMethod,
    PaymentRequest,
    Profile,
)

from apps.web.checkout.cart import Cart, describe_items
from apps.web.config import settings
from apps.web.core.exceptions import AuthenticationRequired, CafeError, ValidationError
from apps.web.core.notifications import Notifier
from apps.web.core.state import AppState
from apps.web.orders.adapters.base import OrderStore
from apps.web.payments.services import PaymentGateway

logger = logging.getLogger(__name__)


class CheckoutOutcome(str, Enum):
    COMPLETED = "completed"
    REDIRECTED = "redirected"
    LOGIN_REQUIRED = "login_required"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"


@dataclass(frozen=True)
class CheckoutResult:
    outcome: CheckoutOutcome
    order: Order | None = None
    redirect_url: str | None = None
    error: CafeError | None = None


class CheckoutUI(Protocol):
    """What the checkout needs from the hosting view."""

    def request_login(self) -> None:
        """Send the customer to the login collaborator."""
        ...

    def request_address_input(self) -> None:
        """Reveal the delivery address field."""
        ...

    def navigate(self, url: str) -> None:
        """Leave the app for an external URL."""
        ...


# =============================================================================
# Request builders
# =============================================================================


def build_payment_request(
    lines: list[CartLineItem] | tuple[CartLineItem, ...],
    total: Decimal,
    return_url: str,
    instrument: str,
) -> PaymentRequest:
    """One payment unit priced at the cart total, titled after its lines."""
    return PaymentRequest(
        title=describe_items(lines) or "Cafe Online order",
        price=total,
        quantity=1,
        payment_method=instrument,
        back_urls=PaymentBackUrls(success=return_url, failure=return_url, pending=return_url),
    )


def build_order_request(
    lines: list[CartLineItem] | tuple[CartLineItem, ...],
    total: Decimal,
    profile: Profile,
    address: str,
    email: str,
) -> OrderCreateRequest:
    return OrderCreateRequest(
        cart_items=[
            OrderCreateLine(
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in lines
        ],
        payment_method=profile.payment_method,
        order_type=profile.fulfillment_type,
        address=address,
        total=total,
        email=email,
    )


# =============================================================================
# Orchestrator
# =============================================================================


class CheckoutOrchestrator:
    """
    Cart operations plus the ``finalize_order`` flow.

    Preconditions are checked in order (signed in, non-empty cart, address
    for delivery) and none of them touches the network. While a submission
    is in flight ``busy`` is set and further finalize calls are ignored.
    """

    def __init__(
        self,
        state: AppState,
        store: OrderStore,
        payments: PaymentGateway,
        ui: CheckoutUI,
        notifier: Notifier | None = None,
        *,
        return_url: str | None = None,
        payment_instrument: str | None = None,
        pickup_label: str | None = None,
    ) -> None:
        self.state = state
        self.store = store
        self.payments = payments
        self.ui = ui
        self.notifier = notifier or state.notifier
        self.return_url = return_url or settings.CHECKOUT_RETURN_URL
        self.payment_instrument = payment_instrument or settings.PAYMENT_INSTRUMENT
        self.pickup_label = pickup_label or settings.PICKUP_ADDRESS_LABEL
        self.busy = False
        self.field_errors: dict[str, str] = {}

    @property
    def cart(self) -> Cart:
        return self.state.cart

    # =========================================================================
    # Cart
    # =========================================================================

    def add_item(self, item: CartLineItem) -> CartLineItem:
        return self.cart.add_item(item)

    def clear(self) -> None:
        self.cart.clear()

    def compute_total(self) -> Decimal:
        return self.cart.compute_total()

    @property
    def can_finalize(self) -> bool:
        """Whether the finalize button should be enabled."""
        return not self.busy and not self.cart.is_empty and not self.state.needs_address

    # =========================================================================
    # Finalize
    # =========================================================================

    async def finalize_order(self) -> CheckoutResult:
        """
        Submit the cart.

        Returns:
            CheckoutResult describing what happened. Transport failures are
            reported as ``failed`` with an error banner and the cart intact.

        Raises:
            ValidationError: If the cart is empty or a delivery order has no
                address. Nothing is sent.
        """
        if self.busy:
            logger.debug("Ignoring finalize while a submission is in flight")
            return CheckoutResult(CheckoutOutcome.IN_PROGRESS)

        try:
            self.state.require_user()
        except AuthenticationRequired as e:
            self.ui.request_login()
            return CheckoutResult(CheckoutOutcome.LOGIN_REQUIRED, error=e)

        self.field_errors.clear()
        if self.cart.is_empty:
            raise ValidationError("Your cart is empty.", field="cart")

        profile = self.state.profile
        address = self.state.resolve_delivery_address()
        if profile.fulfillment_type is FulfillmentType.DELIVERY and not address:
            message = "Please enter a delivery address."
            self.field_errors["address"] = message
            self.notifier.error(message)
            self.ui.request_address_input()
            raise ValidationError(message, field="address")

        self.busy = True
        try:
            if profile.payment_method is PaymentMethod.ONLINE:
                return await self._pay_online()
            return await self._place_in_store(profile, address)
        finally:
            self.busy = False

    async def _pay_online(self) -> CheckoutResult:
        request = build_payment_request(
            self.cart.items, self.compute_total(), self.return_url, self.payment_instrument
        )
        try:
            response = await self.payments.initiate_payment(request)
        except CafeError as e:
            logger.warning("Payment initiation failed: %s", e.message)
            self.notifier.error("Could not start the payment. Please try again.")
            return CheckoutResult(CheckoutOutcome.FAILED, error=e)

        if not response.init_point:
            logger.warning("Payment service returned no redirect target")
            self.notifier.error("Could not start the payment. Please try again.")
            return CheckoutResult(CheckoutOutcome.FAILED)

        # The cart stays until the customer is back from the provider.
        self.ui.navigate(response.init_point)
        return CheckoutResult(CheckoutOutcome.REDIRECTED, redirect_url=response.init_point)

    async def _place_in_store(self, profile: Profile, address: str) -> CheckoutResult:
        if profile.fulfillment_type is not FulfillmentType.DELIVERY:
            address = self.pickup_label
        request = build_order_request(
            self.cart.items, self.compute_total(), profile, address, self.state.email
        )
        try:
            order = await self.store.create_order(request)
        except CafeError as e:
            logger.warning("Order submission failed: %s", e.message)
            self.notifier.error("Could not place your order. Please try again.")
            return CheckoutResult(CheckoutOutcome.FAILED, error=e)

        logger.info(
            "Order %s placed (%s)",
            order.id if order else "<unknown>",
            profile.fulfillment_type.value,
        )
        self.cart.clear()
        self.notifier.success("Order placed! We'll get it ready.")
        return CheckoutResult(CheckoutOutcome.COMPLETED, order=order)
