"""Change detection between the held bucket and a freshly fetched one."""

from collections.abc import Sequence

from cafe_schemas import Order

from apps.web.core.exceptions import MalformedOrder

_MISSING = object()


def ensure_unique_ids(orders: Sequence[Order]) -> None:
    """Raise MalformedOrder if two orders in one bucket share an id."""
    seen: set[str] = set()
    for order in orders:
        if order.id in seen:
            raise MalformedOrder(f"Duplicate order id {order.id!r} in bucket", order_id=order.id)
        seen.add(order.id)


def has_changed(current: Sequence[Order], fetched: Sequence[Order]) -> bool:
    """
    Decide whether ``fetched`` differs meaningfully from ``current``.

    Orders are compared by id and last-updated timestamp only, in one pass
    over each sequence.

    Raises:
        MalformedOrder: If ``fetched`` contains duplicate ids.
    """
    ensure_unique_ids(fetched)

    if len(current) != len(fetched):
        return True

    stamps = {order.id: order.updated_at for order in current}
    for order in fetched:
        if stamps.get(order.id, _MISSING) != order.updated_at:
            return True
    return False
