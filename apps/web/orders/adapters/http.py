"""HTTP order store adapter - talks to the café backend over httpx."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from cafe_schemas import Order, OrderCreateRequest, OrderStatus, OrderStatusUpdate

from apps.web.config import settings
from apps.web.core.exceptions import MalformedOrder, TransportError
from apps.web.orders.records import parse_order, parse_orders

logger = logging.getLogger(__name__)

SERVICE = "order-store"


class HttpOrderStore:
    """
    Order store adapter implementing the OrderStore protocol.

    Endpoints (relative to ``base_url``):
    - ``GET /pedidos/status/{status}``
    - ``GET /pedidos/email/{email}``
    - ``POST /pedidos``
    - ``PUT /pedidos/{id}/status``
    """

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            base_url: Store API root; defaults to settings.ORDER_STORE_URL.
            http_client: Optional HTTP client for dependency injection (testing).
            timeout: Request timeout when the adapter creates its own client.
        """
        self._base_url = (base_url or settings.ORDER_STORE_URL).rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT if timeout is None else timeout
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # HTTP Helpers
    # =========================================================================

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Make a request and require a 2xx response.

        Raises:
            TransportError: On network errors or non-2xx responses.
        """
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {path} failed: {e.response.status_code}",
                service=SERVICE,
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {path} request failed: {e}",
                service=SERVICE,
            ) from e
        return response

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Make a request and decode its JSON body.

        Raises:
            TransportError: On network errors, non-2xx responses or a body
                that is not JSON.
        """
        response = await self._send(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned a non-JSON body",
                service=SERVICE,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    @staticmethod
    def _unwrap(data: Any) -> Any:
        # Single-order responses come either bare or as {"order": {...}}.
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            return data["order"]
        return data

    def _accepted_order(self, method: str, path: str, response: httpx.Response) -> Order | None:
        """
        Read the order echoed by a successful write.

        The write already happened once the store answered 2xx, so a body
        that cannot be read is logged and reported as None, never raised.
        """
        try:
            return parse_order(self._unwrap(response.json()))
        except (ValueError, MalformedOrder) as e:
            logger.warning(
                "%s %s succeeded (%s) but the body is not an order: %s",
                method,
                path,
                response.status_code,
                e,
            )
            return None

    # =========================================================================
    # Order Operations
    # =========================================================================

    async def fetch_by_status(self, status: OrderStatus) -> list[Order]:
        status = OrderStatus(status)
        data = await self._request("GET", f"/pedidos/status/{status.value}")
        return parse_orders(data)

    async def fetch_by_email(self, email: str) -> list[Order]:
        data = await self._request("GET", f"/pedidos/email/{quote(email, safe='@')}")
        return parse_orders(data)

    async def create_order(self, request: OrderCreateRequest) -> Order | None:
        response = await self._send("POST", "/pedidos", json=request.to_payload())
        order = self._accepted_order("POST", "/pedidos", response)
        logger.info(
            "Created order %s for %s", order.id if order else "<unreadable>", request.email
        )
        return order

    async def update_status(self, order_id: str, status: OrderStatus) -> Order | None:
        status = OrderStatus(status)
        body = OrderStatusUpdate(status=status).model_dump(mode="json")
        path = f"/pedidos/{quote(str(order_id), safe='')}/status"
        response = await self._send("PUT", path, json=body)
        order = self._accepted_order("PUT", path, response)
        logger.info("Order %s moved to %s", order_id, status.value)
        return order
