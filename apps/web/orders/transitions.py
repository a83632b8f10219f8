"""Operator status transitions - approve, reject and finalize orders."""

import logging
from enum import Enum

from cafe_schemas import Order, OrderStatus

from apps.web.core.exceptions import CafeError, ValidationError
from apps.web.core.notifications import Notifier
from apps.web.orders.adapters.base import OrderStore
from apps.web.orders.polling import PollingScheduler
from apps.web.orders.registry import OrderRegistry

logger = logging.getLogger(__name__)


class TransitionAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FINALIZE = "finalize"


# action -> (required current status, target status)
TRANSITIONS: dict[TransitionAction, tuple[OrderStatus, OrderStatus]] = {
    TransitionAction.APPROVE: (OrderStatus.PENDING, OrderStatus.APPROVED),
    TransitionAction.REJECT: (OrderStatus.PENDING, OrderStatus.REJECTED),
    TransitionAction.FINALIZE: (OrderStatus.APPROVED, OrderStatus.FINALIZED),
}


def available_actions(order: Order) -> list[TransitionAction]:
    """Actions to offer for an order given its locally known status."""
    return [action for action, (required, _) in TRANSITIONS.items() if order.status is required]


class TransitionController:
    """
    Applies status transitions on behalf of the operator.

    The local precondition only decides what is offered; the store has the
    final word and may still refuse. After a transition succeeds every
    bucket is refreshed, because the order left one bucket for another.
    """

    def __init__(
        self,
        store: OrderStore,
        registry: OrderRegistry,
        scheduler: PollingScheduler,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.scheduler = scheduler
        self.notifier = notifier or Notifier()
        self.selected: Order | None = None

    # =========================================================================
    # Selection
    # =========================================================================

    def select(self, order_id: str) -> Order | None:
        order = self.registry.find(order_id)
        if order is None:
            raise ValidationError(f"Order {order_id} is not loaded", field="order")
        self.selected = order
        return order

    def clear_selection(self) -> None:
        self.selected = None

    # =========================================================================
    # Transitions
    # =========================================================================

    def can(self, action: TransitionAction | str, order_id: str) -> bool:
        """Whether the action should be enabled for the order."""
        required, _ = TRANSITIONS[TransitionAction(action)]
        order = self.registry.find(order_id)
        return order is not None and order.status is required

    async def approve(self, order_id: str) -> Order | None:
        return await self.apply(TransitionAction.APPROVE, order_id)

    async def reject(self, order_id: str) -> Order | None:
        return await self.apply(TransitionAction.REJECT, order_id)

    async def finalize(self, order_id: str) -> Order | None:
        return await self.apply(TransitionAction.FINALIZE, order_id)

    async def apply(self, action: TransitionAction | str, order_id: str) -> Order | None:
        """
        Request a transition from the store.

        The locally known status decides which actions are offered for an
        order; it is checked again here before any request is sent, so a
        stale or scripted call cannot submit a move from the wrong status.
        The store stays the authority and may still refuse.

        Returns:
            The updated order, or None when the store applied the change but
            its reply could not be read back. The buckets are refreshed in
            both cases.

        Raises:
            ValidationError: If the order is unknown or not in the required
                status. No request is made.
            TransportError: If the store refuses or cannot be reached. The
                registry and the selection are left as they were.
        """
        action = TransitionAction(action)
        required, target = TRANSITIONS[action]

        order = self.registry.find(order_id)
        if order is None:
            raise ValidationError(f"Order {order_id} is not loaded", field="order")
        if order.status is not required:
            raise ValidationError(
                f"Cannot {action.value} an order that is {order.status.value}",
                field="status",
            )

        try:
            updated = await self.store.update_status(order_id, target)
        except CafeError as e:
            logger.warning("Failed to %s order %s: %s", action.value, order_id, e.message)
            self.notifier.error(f"Could not {action.value} the order. Please try again.")
            raise

        logger.info("Order %s %s -> %s", order_id, required.value, target.value)
        self.clear_selection()
        await self.scheduler.refresh()
        return updated
