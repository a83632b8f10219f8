"""Order store adapters - remote store and in-memory double."""

from typing import Any

from apps.web.orders.adapters.base import OrderStore
from apps.web.orders.adapters.http import HttpOrderStore
from apps.web.orders.adapters.mock import InMemoryOrderStore


def get_store(mock: bool = False, **kwargs: Any) -> OrderStore:
    """
    Get an order store instance.

    Args:
        mock: If True, return an in-memory store instead of the HTTP one.
        **kwargs: Passed to the store constructor (e.g. base_url, http_client).

    Example:
        store = get_store()
        pending = await store.fetch_by_status(OrderStatus.PENDING)
    """
    if mock:
        return InMemoryOrderStore(**kwargs)
    return HttpOrderStore(**kwargs)


__all__ = [
    "HttpOrderStore",
    "InMemoryOrderStore",
    "OrderStore",
    "get_store",
]
