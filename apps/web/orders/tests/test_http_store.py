"""Tests for HttpOrderStore - mocked order store API."""

import json
from decimal import Decimal

import httpx
import pytest
import respx
from cafe_schemas import (
    FulfillmentType,
    OrderCreateLine,
    OrderCreateRequest,
    OrderStatus,
    PaymentMethod,
)

from apps.web.core.exceptions import MalformedOrder, TransportError
from apps.web.orders.adapters import HttpOrderStore, InMemoryOrderStore, get_store
from apps.web.orders.adapters.base import OrderStore

BASE_URL = "https://store.test/api"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store() -> HttpOrderStore:
    """Create an HTTP store pointed at a fake API."""
    return HttpOrderStore(base_url=BASE_URL)


@pytest.fixture
def order_record() -> dict:
    return {
        "_id": "65f1",
        "status": "pending",
        "email": "ana@example.com",
        "cartItems": [{"name": "Latte", "price": 9.5, "quantity": 1, "subtotal": "9.50"}],
        "valor": "9.50",
        "paymentMethod": "in-store",
        "orderType": "pickup",
        "address": "Retirada na loja",
        "createdAt": "2025-03-01T09:00:00Z",
        "updatedAt": "2025-03-01T09:00:00Z",
    }


@pytest.fixture
def create_request() -> OrderCreateRequest:
    return OrderCreateRequest(
        cart_items=[
            OrderCreateLine(
                name="Espresso", unit_price=Decimal("8.0"), quantity=2, subtotal=Decimal("16.0")
            ),
            OrderCreateLine(
                name="Cheese bread", unit_price=Decimal("5"), quantity=1, subtotal=Decimal("5")
            ),
        ],
        payment_method=PaymentMethod.IN_STORE,
        order_type=FulfillmentType.PICKUP,
        address="Retirada na loja",
        total=Decimal("21"),
        email="ana@example.com",
    )


# =============================================================================
# Factory Tests
# =============================================================================


class TestGetStore:
    """Tests for the store factory."""

    def test_http_by_default(self):
        store = get_store(base_url=BASE_URL)

        assert isinstance(store, HttpOrderStore)
        assert isinstance(store, OrderStore)

    def test_mock(self):
        store = get_store(mock=True)

        assert isinstance(store, InMemoryOrderStore)
        assert isinstance(store, OrderStore)


# =============================================================================
# Fetch Tests
# =============================================================================


class TestFetchByStatus:
    """Tests for GET /pedidos/status/{status}."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_success(self, store, order_record):
        """Test fetching a bucket."""
        respx.get(f"{BASE_URL}/pedidos/status/pending").mock(
            return_value=httpx.Response(200, json=[order_record])
        )

        orders = await store.fetch_by_status(OrderStatus.PENDING)

        assert len(orders) == 1
        assert orders[0].id == "65f1"
        assert orders[0].total == Decimal("9.50")

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_drops_malformed_records(self, store, order_record):
        """Test that records with unknown statuses are skipped."""
        respx.get(f"{BASE_URL}/pedidos/status/approved").mock(
            return_value=httpx.Response(
                200,
                json=[
                    dict(order_record, status="approved"),
                    {"_id": "x", "status": "teleported", "cartItems": []},
                ],
            )
        )

        orders = await store.fetch_by_status("approved")

        assert [order.id for order in orders] == ["65f1"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_non_list_payload(self, store):
        respx.get(f"{BASE_URL}/pedidos/status/pending").mock(
            return_value=httpx.Response(200, json={"message": "ok"})
        )

        with pytest.raises(MalformedOrder):
            await store.fetch_by_status(OrderStatus.PENDING)

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_server_error(self, store):
        """Test that a 5xx response becomes a TransportError."""
        respx.get(f"{BASE_URL}/pedidos/status/finalized").mock(
            return_value=httpx.Response(500, text="boom")
        )

        with pytest.raises(TransportError) as exc_info:
            await store.fetch_by_status(OrderStatus.FINALIZED)

        assert exc_info.value.status_code == 500
        assert exc_info.value.service == "order-store"
        assert exc_info.value.response_body == "boom"

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_network_error(self, store):
        respx.get(f"{BASE_URL}/pedidos/status/pending").mock(
            side_effect=httpx.ConnectTimeout("timed out")
        )

        with pytest.raises(TransportError) as exc_info:
            await store.fetch_by_status(OrderStatus.PENDING)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_non_json(self, store):
        respx.get(f"{BASE_URL}/pedidos/status/pending").mock(
            return_value=httpx.Response(200, text="<!doctype html>")
        )

        with pytest.raises(TransportError):
            await store.fetch_by_status(OrderStatus.PENDING)


class TestFetchByEmail:
    """Tests for GET /pedidos/email/{email}."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_by_email(self, store, order_record):
        route = respx.get(f"{BASE_URL}/pedidos/email/ana@example.com").mock(
            return_value=httpx.Response(200, json=[order_record])
        )

        orders = await store.fetch_by_email("ana@example.com")

        assert route.called
        assert orders[0].email == "ana@example.com"


# =============================================================================
# Write Tests
# =============================================================================


class TestCreateOrder:
    """Tests for POST /pedidos."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_sends_wire_format(self, store, create_request, order_record):
        """Test the request body field names and money formats."""
        route = respx.post(f"{BASE_URL}/pedidos").mock(
            return_value=httpx.Response(201, json=order_record)
        )

        order = await store.create_order(create_request)

        assert order.id == "65f1"
        body = json.loads(route.calls.last.request.content)
        assert body == {
            "cartItems": [
                {"name": "Espresso", "price": 8.0, "quantity": 2, "subtotal": "16.00"},
                {"name": "Cheese bread", "price": 5.0, "quantity": 1, "subtotal": "5.00"},
            ],
            "paymentMethod": "in-store",
            "orderType": "pickup",
            "address": "Retirada na loja",
            "valor": "21.00",
            "email": "ana@example.com",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_wrapped_response(self, store, create_request, order_record):
        """Test that {"order": {...}} responses are unwrapped."""
        respx.post(f"{BASE_URL}/pedidos").mock(
            return_value=httpx.Response(201, json={"message": "created", "order": order_record})
        )

        order = await store.create_order(create_request)

        assert order.id == "65f1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_failure(self, store, create_request):
        respx.post(f"{BASE_URL}/pedidos").mock(return_value=httpx.Response(400, json={}))

        with pytest.raises(TransportError) as exc_info:
            await store.create_order(create_request)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_accepted_without_order_body(self, store, create_request, caplog):
        """Test that a 2xx reply without a readable order still counts as created."""
        respx.post(f"{BASE_URL}/pedidos").mock(
            return_value=httpx.Response(201, json={"message": "Pedido criado", "_id": "abc"})
        )

        order = await store.create_order(create_request)

        assert order is None
        assert "POST /pedidos succeeded (201)" in caplog.text


class TestUpdateStatus:
    """Tests for PUT /pedidos/{id}/status."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_status(self, store, order_record):
        route = respx.put(f"{BASE_URL}/pedidos/65f1/status").mock(
            return_value=httpx.Response(200, json=dict(order_record, status="approved"))
        )

        order = await store.update_status("65f1", OrderStatus.APPROVED)

        assert order.status is OrderStatus.APPROVED
        assert json.loads(route.calls.last.request.content) == {"status": "approved"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_status_conflict(self, store):
        """Test that a refused transition surfaces the status code."""
        respx.put(f"{BASE_URL}/pedidos/65f1/status").mock(
            return_value=httpx.Response(409, json={"error": "invalid transition"})
        )

        with pytest.raises(TransportError) as exc_info:
            await store.update_status("65f1", OrderStatus.FINALIZED)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_status_accepted_with_unreadable_body(self, store, caplog):
        """Test that an applied transition with a non-JSON reply is not an error."""
        respx.put(f"{BASE_URL}/pedidos/65f1/status").mock(
            return_value=httpx.Response(200, text="OK")
        )

        order = await store.update_status("65f1", OrderStatus.APPROVED)

        assert order is None
        assert "succeeded (200)" in caplog.text


class TestClientOwnership:
    """Tests for closing the HTTP client."""

    @pytest.mark.asyncio
    async def test_injected_client_stays_open(self):
        client = httpx.AsyncClient()
        store = HttpOrderStore(base_url=BASE_URL, http_client=client)

        await store.close()

        assert not client.is_closed
        await client.aclose()
