"""In-memory order buckets, one per status."""

import logging
from collections.abc import Callable, Iterable

from cafe_schemas import Order, OrderStatus

from apps.web.orders.changes import ensure_unique_ids, has_changed

logger = logging.getLogger(__name__)

ChangeListener = Callable[[OrderStatus, tuple[Order, ...]], None]


class OrderRegistry:
    """
    Holds the orders currently believed to exist in each status.

    Buckets are refreshed independently, so two buckets may reflect
    slightly different instants of the store.
    """

    def __init__(self, on_change: ChangeListener | None = None) -> None:
        self._buckets: dict[OrderStatus, tuple[Order, ...]] = {
            status: () for status in OrderStatus
        }
        self._listeners: list[ChangeListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def replace_bucket(self, status: OrderStatus | str, orders: Iterable[Order]) -> None:
        """
        Install ``orders`` as the content of ``status``.

        Raises:
            MalformedOrder: If ids repeat; the previous content is kept.
        """
        status = OrderStatus(status)
        bucket = tuple(orders)
        ensure_unique_ids(bucket)
        self._buckets[status] = bucket
        logger.debug("Bucket %s now holds %d orders", status.value, len(bucket))
        for listener in self._listeners:
            listener(status, bucket)

    def apply_if_changed(self, status: OrderStatus | str, orders: Iterable[Order]) -> bool:
        """
        Replace the bucket only when its content moved.

        Returns:
            True if the bucket was replaced.

        Raises:
            MalformedOrder: If ids repeat; the previous content is kept.
        """
        status = OrderStatus(status)
        fetched = tuple(orders)
        if not has_changed(self._buckets[status], fetched):
            return False
        self.replace_bucket(status, fetched)
        return True

    def get(self, status: OrderStatus | str) -> tuple[Order, ...]:
        return self._buckets[OrderStatus(status)]

    def find(self, order_id: str) -> Order | None:
        """Locate an order in any bucket by id."""
        for bucket in self._buckets.values():
            for order in bucket:
                if order.id == order_id:
                    return order
        return None

    def counts(self) -> dict[OrderStatus, int]:
        return {status: len(bucket) for status, bucket in self._buckets.items()}
