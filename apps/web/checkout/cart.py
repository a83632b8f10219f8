"""Shopping cart - append-only line items with exact decimal totals."""

from collections.abc import Callable, Iterable, Iterator, Sequence
from decimal import Decimal

import pydantic
from cafe_schemas import CartLineItem, ItemKind, OrderLineItem

from apps.web.core.exceptions import ValidationError


def parse_quantity(raw: object) -> int:
    """Turn user input into a positive quantity, defaulting to 1."""
    try:
        quantity = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return max(1, quantity)


def describe_items(lines: Iterable[CartLineItem | OrderLineItem]) -> str:
    """Summarize lines as ``"Espresso (x2), Latte (x1)"``."""
    return ", ".join(f"{line.name} (x{line.quantity})" for line in lines)


class Cart:
    """
    Ordered cart entries.

    Adding the same product twice creates two entries; the cart is only
    ever emptied as a whole.
    """

    def __init__(
        self,
        items: Iterable[CartLineItem] = (),
        on_change: Callable[[Sequence[CartLineItem]], None] | None = None,
    ) -> None:
        self._items: list[CartLineItem] = list(items)
        self._on_change = on_change

    @property
    def items(self) -> tuple[CartLineItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CartLineItem]:
        return iter(tuple(self._items))

    @property
    def is_empty(self) -> bool:
        return not self._items

    def add_item(self, item: CartLineItem) -> CartLineItem:
        self._items.append(item)
        self._emit()
        return item

    def add(
        self,
        name: str,
        unit_price: Decimal | float | str,
        quantity: int = 1,
        kind: ItemKind | str | None = None,
    ) -> CartLineItem:
        """Validate and append a new entry."""
        try:
            item = CartLineItem(
                name=name, unit_price=unit_price, quantity=quantity, kind=kind
            )
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            raise ValidationError(
                f"Invalid cart item: {error['msg']}", field=str(error["loc"][0])
            ) from e
        return self.add_item(item)

    def clear(self) -> None:
        self._items = []
        self._emit()

    def compute_total(self) -> Decimal:
        # Exact accumulation; rounding belongs to presentation.
        return sum((item.subtotal for item in self._items), Decimal("0"))

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.items)
