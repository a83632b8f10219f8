"""Payments module - online payment initiation."""

from apps.web.payments.services import PaymentError, PaymentGateway

__all__ = [
    "PaymentError",
    "PaymentGateway",
]
