"""Client error taxonomy shared by the order and checkout apps."""


class CafeError(Exception):
    """Base exception for client errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransportError(CafeError):
    """Request to an external service failed (network, HTTP status or body)."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.response_body = response_body


class MalformedOrder(CafeError):
    """A fetched order record or bucket violates the order schema."""

    def __init__(self, message: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id


class ValidationError(CafeError):
    """User input or a requested action is not acceptable; nothing was sent."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthenticationRequired(CafeError):
    """The action needs a signed-in user."""
