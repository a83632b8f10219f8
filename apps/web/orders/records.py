"""Parsing of raw order records fetched from the store."""

import logging
from typing import Any

import pydantic
from cafe_schemas import Order

from apps.web.core.exceptions import MalformedOrder

logger = logging.getLogger(__name__)


def _raw_id(raw: dict[str, Any]) -> str | None:
    value = raw.get("_id", raw.get("id"))
    return None if value is None else str(value)


def parse_order(raw: Any) -> Order:
    """
    Validate one raw record.

    Raises:
        MalformedOrder: If id, status or line items are missing or of the
            wrong type, or the status is not one of the known states.
    """
    if not isinstance(raw, dict):
        raise MalformedOrder(f"Expected an order object, got {type(raw).__name__}")

    try:
        return Order.model_validate(raw)
    except pydantic.ValidationError as e:
        fields = ", ".join(sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]}))
        raise MalformedOrder(
            f"Invalid order record ({fields or 'schema'})",
            order_id=_raw_id(raw),
        ) from e


def parse_orders(payload: Any) -> list[Order]:
    """
    Validate a list of raw records, dropping the malformed ones.

    Raises:
        MalformedOrder: If the payload itself is not a list.
    """
    if not isinstance(payload, list):
        raise MalformedOrder(f"Expected a list of orders, got {type(payload).__name__}")

    orders: list[Order] = []
    for raw in payload:
        try:
            orders.append(parse_order(raw))
        except MalformedOrder as e:
            logger.warning("Dropping malformed order %s: %s", e.order_id, e.message)
    return orders
