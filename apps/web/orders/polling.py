"""
Order polling scheduler.

Keeps the registry in step with the store while the operator view is open:
one loading-visible full fetch on ``start()``, then quiet background fetches
every ``interval`` seconds until ``lifetime`` seconds after ``start()``.

States::

    IDLE --start()--> POLLING --lifetime elapsed--> STOPPED
                         ^                             |
                         +----------start()------------+
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from cafe_schemas import Order, OrderStatus

from apps.web.config import settings
from apps.web.core.exceptions import CafeError, MalformedOrder
from apps.web.core.scheduling import DelayedCall, PeriodicTask, Sleep
from apps.web.orders.adapters.base import OrderStore
from apps.web.orders.registry import OrderRegistry

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class PollingScheduler:
    """
    Drives bucket refreshes for the operator view.

    The four buckets are fetched concurrently; a failure in one of them is
    recorded in ``errors`` and leaves that bucket as it was without
    affecting the others or later cycles.
    """

    def __init__(
        self,
        store: OrderStore,
        registry: OrderRegistry,
        *,
        interval: float | None = None,
        lifetime: float | None = None,
        sleep: Sleep = asyncio.sleep,
        on_loading: Callable[[bool], None] | None = None,
        on_error: Callable[[OrderStatus, CafeError], None] | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.interval = settings.ORDER_POLL_INTERVAL if interval is None else interval
        self.lifetime = settings.ORDER_POLL_LIFETIME if lifetime is None else lifetime
        self.state = SchedulerState.IDLE
        self.errors: dict[OrderStatus, CafeError] = {}
        self.fetch_cycles = 0

        self._loading = False
        self._loading_holds = 0
        self._alive = True
        self._on_loading = on_loading
        self._on_error = on_error
        self._poller = PeriodicTask(self.poll, self.interval, sleep=sleep, name="order-poll")
        self._stopper = DelayedCall(
            self._expire, self.lifetime, sleep=sleep, name="order-poll-stop"
        )

    @property
    def loading(self) -> bool:
        return self._loading

    def _set_loading(self, value: bool) -> None:
        if value == self._loading:
            return
        self._loading = value
        if self._on_loading is not None:
            self._on_loading(value)

    def _hold_loading(self) -> None:
        self._loading_holds += 1
        self._set_loading(True)

    def _release_loading(self) -> None:
        # Overlapping cycles share the flag; it drops when the last one ends.
        self._loading_holds = max(0, self._loading_holds - 1)
        if not self._loading_holds:
            self._set_loading(False)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Begin (or restart) polling and perform the initial full fetch.

        Calling this while already polling re-arms both timers from zero
        instead of adding a second poller.

        Raises:
            RuntimeError: If the scheduler has been closed.
        """
        if not self._alive:
            raise RuntimeError("Cannot start a closed scheduler")

        self._cancel_timers()
        self.state = SchedulerState.POLLING
        self._stopper.start()
        self._poller.start()
        logger.info(
            "Order polling started (every %ss for %ss)", self.interval, self.lifetime
        )
        await self.refresh()

    def stop(self) -> None:
        """Cancel both timers and drop the loading signal."""
        self._cancel_timers()
        if self.state is SchedulerState.POLLING:
            self.state = SchedulerState.STOPPED
        self._loading_holds = 0
        self._set_loading(False)

    def close(self) -> None:
        """Tear down for good; results still in flight are discarded."""
        self._alive = False
        self.stop()
        self.state = SchedulerState.STOPPED

    def _cancel_timers(self) -> None:
        self._poller.cancel()
        self._stopper.cancel()

    def _expire(self) -> None:
        self.stop()
        logger.info("Order polling stopped after %ss (%d cycles)", self.lifetime, self.fetch_cycles)

    # =========================================================================
    # Fetch cycles
    # =========================================================================

    async def refresh(self) -> None:
        """Fetch every bucket and install the results with loading visible."""
        self._hold_loading()
        try:
            results = await self._fetch_all()
            if not self._alive:
                return
            for status, orders in results.items():
                self._install(status, orders, only_if_changed=False)
        finally:
            self._release_loading()

    async def poll(self) -> None:
        """Background cycle: loading is raised only if some bucket moved."""
        results = await self._fetch_all()
        if not self._alive or self.state is not SchedulerState.POLLING:
            return

        held = False
        try:
            for status, orders in results.items():
                if self._install(status, orders, only_if_changed=True) and not held:
                    self._hold_loading()
                    held = True
        finally:
            if held:
                self._release_loading()

    async def _fetch_all(self) -> dict[OrderStatus, list[Order]]:
        self.fetch_cycles += 1
        statuses = list(OrderStatus)
        results = await asyncio.gather(*(self._fetch_bucket(status) for status in statuses))
        return {
            status: orders
            for status, orders in zip(statuses, results, strict=True)
            if orders is not None
        }

    async def _fetch_bucket(self, status: OrderStatus) -> list[Order] | None:
        try:
            orders = await self.store.fetch_by_status(status)
        except CafeError as e:
            self._record_error(status, e)
            return None
        self.errors.pop(status, None)
        return orders

    def _install(self, status: OrderStatus, orders: list[Order], *, only_if_changed: bool) -> bool:
        try:
            if only_if_changed:
                return self.registry.apply_if_changed(status, orders)
            self.registry.replace_bucket(status, orders)
            return True
        except MalformedOrder as e:
            self._record_error(status, e)
            return False

    def _record_error(self, status: OrderStatus, error: CafeError) -> None:
        logger.warning("Keeping %s bucket after failed refresh: %s", status.value, error.message)
        self.errors[status] = error
        if self._on_error is not None:
            self._on_error(status, error)
