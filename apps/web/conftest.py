"""
Pytest configuration for client app tests.
"""

import asyncio
import heapq
import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from cafe_schemas import Order, UserRecord

from apps.web.core.notifications import Notifier
from apps.web.core.state import AppState
from apps.web.core.storage import MemoryStorage
from apps.web.orders.adapters.mock import InMemoryOrderStore
from apps.web.orders.registry import OrderRegistry

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


class FakeClock:
    """
    Virtual time for code that takes an injectable ``sleep``.

    ``sleep`` parks the caller until ``advance`` moves time past its
    deadline; timers due at the same instant fire in the order they were
    armed.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    async def sleep(self, delay: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), future))
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.settle()
        while self._timers and self._timers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._timers)
            self.now = deadline
            if not future.done():
                future.set_result(None)
            await self.settle()
        self.now = target
        await self.settle()

    async def settle(self) -> None:
        """Let every ready task run until nothing is left to do."""
        for _ in range(50):
            await asyncio.sleep(0)

    @property
    def pending(self) -> int:
        return sum(1 for _, _, future in self._timers if not future.done())


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at zero."""
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    """Create empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def notifier(clock: FakeClock) -> Notifier:
    """Create a notifier that dismisses banners on the fake clock."""
    return Notifier(timeout=3.0, sleep=clock.sleep)


@pytest.fixture
def state(storage: MemoryStorage, notifier: Notifier) -> AppState:
    """Create loaded application state with nobody signed in."""
    return AppState(storage, notifier, operator_emails=["staff@cafe.test"]).load()


@pytest.fixture
def customer() -> UserRecord:
    """A signed-in customer record."""
    return UserRecord(email="ana@example.com", name="Ana", sub="google-oauth2|123")


@pytest.fixture
def signed_in_state(state: AppState, customer: UserRecord) -> AppState:
    """Application state with the customer signed in."""
    state.sign_in(customer, {"access_token": "token-abc"})
    return state


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory building orders from wire-format records."""

    def _make(
        order_id: str = "order-1",
        status: str = "pending",
        updated_minutes: int = 0,
        **extra: Any,
    ) -> Order:
        stamp = BASE_TIME + timedelta(minutes=updated_minutes)
        record = {
            "_id": order_id,
            "status": status,
            "cartItems": [{"name": "Espresso", "price": 8.0, "quantity": 2}],
            "email": "ana@example.com",
            "valor": "16.00",
            "paymentMethod": "in-store",
            "orderType": "pickup",
            "address": "Retirada na loja",
            "createdAt": BASE_TIME.isoformat(),
            "updatedAt": stamp.isoformat(),
        }
        record.update(extra)
        return Order.model_validate(record)

    return _make


@pytest.fixture
def store() -> InMemoryOrderStore:
    """Create an empty in-memory order store."""
    return InMemoryOrderStore()


@pytest.fixture
def registry() -> OrderRegistry:
    """Create an empty order registry."""
    return OrderRegistry()
