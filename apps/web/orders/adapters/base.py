"""Base order store protocol - interface to the remote source of truth."""

from typing import Protocol, runtime_checkable

from cafe_schemas import Order, OrderCreateRequest, OrderStatus


@runtime_checkable
class OrderStore(Protocol):
    """
    Protocol for the external order store.

    Methods are async; each call is one network round trip.
    """

    async def fetch_by_status(self, status: OrderStatus) -> list[Order]:
        """
        Get all orders currently in a status.

        Args:
            status: Bucket to fetch.

        Returns:
            Valid orders of the bucket; malformed records are dropped.

        Raises:
            TransportError: If the request fails.
            MalformedOrder: If the response is not a list of records.
        """
        ...

    async def fetch_by_email(self, email: str) -> list[Order]:
        """
        Get all orders submitted by a customer.

        Raises:
            TransportError: If the request fails.
            MalformedOrder: If the response is not a list of records.
        """
        ...

    async def create_order(self, request: OrderCreateRequest) -> Order | None:
        """
        Create an order from a checked-out cart.

        Returns:
            The created order, or None when the store accepted the order but
            its reply could not be read back.

        Raises:
            TransportError: If the request fails.
        """
        ...

    async def update_status(self, order_id: str, status: OrderStatus) -> Order | None:
        """
        Request a status transition. The store may refuse illegal ones.

        Returns:
            The updated order, or None when the store applied the change but
            its reply could not be read back.

        Raises:
            TransportError: If the request fails or the store refuses.
        """
        ...
