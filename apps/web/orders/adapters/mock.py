"""In-memory order store for development and testing."""

import asyncio
import uuid
from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from cafe_schemas import Order, OrderCreateRequest, OrderLineItem, OrderStatus

from apps.web.core.exceptions import TransportError
from apps.web.orders.records import parse_order

SERVICE = "mock-order-store"

# Server-side view of the status progression.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.FINALIZED}),
    OrderStatus.REJECTED: frozenset(),
    OrderStatus.FINALIZED: frozenset(),
}


class InMemoryOrderStore:
    """
    Order store implementing the OrderStore protocol without a network.

    Every write bumps ``updated_at`` to a strictly increasing timestamp, the
    way the real store does. Failures can be injected per status bucket or
    for all writes.
    """

    def __init__(self, orders: Iterable[Order | dict[str, Any]] = ()) -> None:
        self._orders: dict[str, Order] = {}
        self._last_stamp = datetime(2025, 1, 1, tzinfo=UTC)
        self.fetch_calls: Counter[OrderStatus] = Counter()
        self.email_calls: Counter[str] = Counter()
        self.writes: list[tuple[str, Any]] = []
        self.fail_statuses: set[OrderStatus] = set()
        self.fail_writes = False
        for order in orders:
            self.add(order)

    def _tick(self) -> datetime:
        now = datetime.now(UTC)
        if now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    def add(self, order: Order | dict[str, Any]) -> Order:
        """Seed an order as if it already existed in the store."""
        if not isinstance(order, Order):
            order = parse_order(order)
        if order.updated_at is None:
            order = order.model_copy(update={"updated_at": self._tick()})
        self._orders[order.id] = order
        return order

    def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def touch(self, order_id: str) -> Order:
        """Simulate an edit made elsewhere: only the timestamp moves."""
        order = self._orders[order_id].model_copy(update={"updated_at": self._tick()})
        self._orders[order_id] = order
        return order

    def remove(self, order_id: str) -> None:
        self._orders.pop(order_id, None)

    # =========================================================================
    # OrderStore protocol
    # =========================================================================

    async def fetch_by_status(self, status: OrderStatus) -> list[Order]:
        status = OrderStatus(status)
        self.fetch_calls[status] += 1
        await asyncio.sleep(0)
        if status in self.fail_statuses:
            raise TransportError(
                f"GET /pedidos/status/{status.value} failed: 503",
                service=SERVICE,
                status_code=503,
            )
        return [order for order in self._orders.values() if order.status is status]

    async def fetch_by_email(self, email: str) -> list[Order]:
        self.email_calls[email] += 1
        await asyncio.sleep(0)
        return [order for order in self._orders.values() if order.email == email]

    async def create_order(self, request: OrderCreateRequest) -> Order:
        await asyncio.sleep(0)
        self._check_writable("POST /pedidos")
        stamp = self._tick()
        order = Order(
            id=uuid.uuid4().hex,
            status=OrderStatus.PENDING,
            items=[
                OrderLineItem(
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                )
                for line in request.cart_items
            ],
            email=request.email,
            total=request.total,
            payment_method=request.payment_method,
            fulfillment_type=request.order_type,
            address=request.address,
            created_at=stamp,
            updated_at=stamp,
        )
        self._orders[order.id] = order
        self.writes.append(("create", request.to_payload()))
        return order

    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        status = OrderStatus(status)
        await asyncio.sleep(0)
        path = f"PUT /pedidos/{order_id}/status"
        self._check_writable(path)

        order = self._orders.get(order_id)
        if order is None:
            raise TransportError(f"{path} failed: 404", service=SERVICE, status_code=404)
        if status not in ALLOWED_TRANSITIONS[order.status]:
            raise TransportError(
                f"{path} failed: 409",
                service=SERVICE,
                status_code=409,
                response_body=f"Cannot move order from {order.status.value} to {status.value}",
            )

        updated = order.model_copy(update={"status": status, "updated_at": self._tick()})
        self._orders[order_id] = updated
        self.writes.append(("status", {"id": order_id, "status": status.value}))
        return updated

    def _check_writable(self, path: str) -> None:
        if self.fail_writes:
            raise TransportError(f"{path} failed: 500", service=SERVICE, status_code=500)
