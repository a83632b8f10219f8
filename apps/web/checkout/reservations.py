"""Table reservations - booked on the client and charged through the cart."""

import datetime as dt
import logging

import pydantic
from cafe_schemas import CartLineItem, ItemKind, Table, TableReservation

from apps.web.core.exceptions import ValidationError
from apps.web.core.state import AppState

logger = logging.getLogger(__name__)


def mask_card_number(card_number: str) -> str:
    """Keep only the last four digits: ``**** **** **** 4242``."""
    digits = "".join(ch for ch in card_number if ch.isdigit())
    return f"**** **** **** {digits[-4:]}"


def reservation_key(table_number: int) -> str:
    return f"reservation_{table_number}"


class ReservationService:
    """
    Reserves tables for the signed-in customer.

    The reservation fee is added to the cart as its own line; the card is
    stored masked and is only charged by the café on a no-show.
    """

    def __init__(self, state: AppState) -> None:
        self.state = state

    def reserve(
        self,
        table: Table | None,
        date: dt.date | str | None,
        time: dt.time | str | None,
        card_number: str | None,
    ) -> TableReservation:
        """
        Persist a reservation and add its fee to the cart.

        Raises:
            ValidationError: If any field is missing or unparseable.
        """
        if table is None or not date or not time or not (card_number or "").strip():
            raise ValidationError("Please fill in all fields.", field="reservation")

        try:
            reservation = TableReservation(
                table_number=table.number,
                date=date,
                time=time,
                credit_card=mask_card_number(card_number),
                fee=table.fee,
            )
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            raise ValidationError(
                f"Invalid reservation: {error['msg']}", field=str(error["loc"][0])
            ) from e

        self.state.storage.write(
            reservation_key(table.number), reservation.model_dump(mode="json", by_alias=True)
        )
        self.state.cart.add_item(
            CartLineItem(
                name=f"Table {table.number} reservation",
                unit_price=table.fee,
                quantity=1,
                kind=ItemKind.RESERVATION,
            )
        )
        logger.info("Reserved table %d for %s %s", table.number, reservation.date, reservation.time)
        return reservation

    def get(self, table_number: int) -> TableReservation | None:
        raw = self.state.storage.read(reservation_key(table_number))
        if raw is None:
            return None
        try:
            return TableReservation.model_validate(raw)
        except pydantic.ValidationError:
            logger.warning("Ignoring unreadable reservation for table %d", table_number)
            return None
