"""
Payment services - online payment initiation.

The payment collaborator creates a checkout preference and answers with the
provider URL (``init_point``) the customer must be sent to.
"""

import logging

import httpx
import pydantic
from cafe_schemas import PaymentRequest, PaymentResponse

from apps.web.config import settings
from apps.web.core.exceptions import TransportError

logger = logging.getLogger(__name__)

SERVICE = "payments"


class PaymentError(TransportError):
    """Error during payment initiation."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(
            message, service=SERVICE, status_code=status_code, response_body=response_body
        )


class PaymentGateway:
    """Client for ``POST /payments`` on the payment collaborator."""

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = (base_url or settings.PAYMENT_SERVICE_URL).rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT if timeout is None else timeout
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def initiate_payment(self, request: PaymentRequest) -> PaymentResponse:
        """
        Create a payment preference.

        Args:
            request: Title, price and callback URLs of the payment.

        Returns:
            PaymentResponse; ``init_point`` may be missing, which callers
            treat as a recoverable failure.

        Raises:
            PaymentError: If the request fails or the body cannot be read.
        """
        url = f"{self._base_url}/payments"
        try:
            response = await self._client.post(url, json=request.to_payload())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PaymentError(
                f"Payment initiation failed: {e.response.status_code}",
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.RequestError as e:
            raise PaymentError(f"Payment service unreachable: {e}") from e

        try:
            result = PaymentResponse.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as e:
            raise PaymentError(
                "Payment service returned an unreadable body",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        logger.info("Payment preference %s created", result.preference_id or "<unknown>")
        return result
