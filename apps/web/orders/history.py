"""Customer order history ("my orders")."""

import logging

from cafe_schemas import Order

from apps.web.core.state import AppState
from apps.web.orders.adapters.base import OrderStore

logger = logging.getLogger(__name__)


class CustomerOrders:
    """Orders submitted by one customer, newest first."""

    def __init__(self, store: OrderStore) -> None:
        self.store = store
        self.orders: list[Order] = []

    async def load(self, email: str) -> list[Order]:
        orders = await self.store.fetch_by_email(email)
        # Orders without a creation time sort last.
        self.orders = sorted(
            orders,
            key=lambda order: (order.created_at is not None, order.created_at),
            reverse=True,
        )
        logger.debug("Loaded %d orders for %s", len(self.orders), email)
        return self.orders

    async def load_for(self, state: AppState) -> list[Order]:
        """
        Load the signed-in customer's orders.

        Raises:
            AuthenticationRequired: If nobody is signed in.
        """
        state.require_user()
        return await self.load(state.email)
