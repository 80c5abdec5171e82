"""Cart input models for the discount engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tillrules.domain.campaign import to_decimal


@dataclass(frozen=True)
class LineItemData:
    """One cart entry: a product (and optional batch) at a price and quantity."""

    line_id: str
    product_id: str
    price: Decimal
    quantity: Decimal
    batch_id: str | None = None
    product_name: str | None = None
    # Manual override entered at the till. None means "not set".
    custom_discount_value: Decimal | None = None
    custom_discount_type: str = "percentage"
    custom_apply_fixed_once: bool = False

    def __post_init__(self) -> None:
        # Frozen, so normalise through object.__setattr__.
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        if self.custom_discount_value is not None:
            object.__setattr__(self, "custom_discount_value", to_decimal(self.custom_discount_value))

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def has_custom_discount(self) -> bool:
        return self.custom_discount_value is not None and self.custom_discount_value > 0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LineItemData:
        if not isinstance(raw, Mapping):
            raise ValueError(f"Cart line must be a table, got {raw!r}")
        missing = [key for key in ("line_id", "product_id", "price", "quantity") if raw.get(key) in (None, "")]
        if missing:
            raise ValueError(f"Cart line is missing {', '.join(missing)}: {dict(raw)!r}")
        custom_value = raw.get("custom_discount_value")
        batch_id = raw.get("batch_id")
        product_name = raw.get("product_name")
        return cls(
            line_id=str(raw["line_id"]),
            product_id=str(raw["product_id"]),
            price=raw["price"],
            quantity=raw["quantity"],
            batch_id=str(batch_id) if batch_id not in (None, "") else None,
            product_name=str(product_name) if product_name else None,
            custom_discount_value=custom_value if custom_value not in (None, "") else None,
            custom_discount_type=str(raw.get("custom_discount_type", "percentage")).strip().lower(),
            custom_apply_fixed_once=bool(raw.get("custom_apply_fixed_once", False)),
        )


class DiscountContext:
    """An ordered, immutable view of the cart being evaluated."""

    def __init__(self, items: Iterable[LineItemData]) -> None:
        self._items = tuple(items)
        seen: set[str] = set()
        for item in self._items:
            if item.line_id in seen:
                raise ValueError(f"Duplicate line id in cart: {item.line_id}")
            seen.add(item.line_id)

    @property
    def items(self) -> tuple[LineItemData, ...]:
        return self._items

    @property
    def total_quantity(self) -> Decimal:
        return sum((item.quantity for item in self._items), Decimal("0"))

    @property
    def original_subtotal(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    def items_for_product(self, product_id: str) -> list[LineItemData]:
        return [item for item in self._items if item.product_id == product_id]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"DiscountContext({len(self._items)} lines)"

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> DiscountContext:
        """Build a context from plain mappings (TOML tables, JSON bodies)."""
        return cls(LineItemData.from_mapping(row) for row in rows)
