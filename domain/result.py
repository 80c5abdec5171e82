"""Discount result model: where rules write discounts and totals are derived."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from tillrules.domain.context import DiscountContext, LineItemData

ZERO = Decimal("0")


@dataclass(frozen=True)
class AppliedRuleInfo:
    """Audit entry for one successful rule application."""

    rule_id: str
    discount_campaign_name: str
    source_rule_name: str
    total_calculated_discount: Decimal
    rule_type: str
    product_id_affected: str | None = None
    batch_id_affected: str | None = None
    applied_once: bool = False
    is_repeatable: bool = False
    # Units discounted by a buy-get rule on this line.
    units_affected: Decimal | None = None
    description: str = ""


@dataclass
class LineItemResult:
    """Discount state for a single cart line."""

    line_id: str
    product_id: str
    batch_id: str | None
    unit_price: Decimal
    quantity: Decimal
    applied_rules: list[AppliedRuleInfo] = field(default_factory=list)
    total_discount: Decimal = ZERO

    @classmethod
    def for_item(cls, item: LineItemData) -> LineItemResult:
        return cls(
            line_id=item.line_id,
            product_id=item.product_id,
            batch_id=item.batch_id,
            unit_price=item.price,
            quantity=item.quantity,
        )

    @property
    def original_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def net_price(self) -> Decimal:
        return self.original_total - self.total_discount

    @property
    def is_discounted(self) -> bool:
        return self.total_discount > 0

    def add_discount(self, info: AppliedRuleInfo) -> AppliedRuleInfo | None:
        """Record an item-level discount on this line.

        Only one item-level rule may discount a line. The amount is clamped to
        the line's value; the stored record carries the clamped amount.
        """
        if self.is_discounted:
            raise ValueError(f"Line {self.line_id} already discounted by {self.applied_rules[0].rule_id}")

        amount = min(info.total_calculated_discount, self.net_price)
        if amount <= 0:
            return None
        if amount != info.total_calculated_discount:
            info = replace(info, total_calculated_discount=amount)

        self.applied_rules.append(info)
        self.total_discount += amount
        return info


class DiscountResult:
    """Aggregate discount breakdown for one cart.

    Totals are only consistent after ``finalize()``, which must be called
    exactly once when all rule phases are done.
    """

    def __init__(self, context: DiscountContext) -> None:
        self.line_items: list[LineItemResult] = [LineItemResult.for_item(item) for item in context.items]
        self.cart_discounts: list[AppliedRuleInfo] = []
        self._by_line_id = {line.line_id: line for line in self.line_items}
        self._finalized = False

        self.original_subtotal = ZERO
        self.total_item_discount = ZERO
        self.total_cart_discount = ZERO
        self.total_discount = ZERO
        self.final_total = ZERO

    @classmethod
    def empty(cls) -> DiscountResult:
        result = cls(DiscountContext(()))
        result.finalize()
        return result

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def get_line_item(self, line_id: str) -> LineItemResult | None:
        return self._by_line_id.get(line_id)

    @property
    def subtotal_after_item_discounts(self) -> Decimal:
        return sum((line.net_price for line in self.line_items), ZERO)

    def add_cart_discount(self, info: AppliedRuleInfo) -> AppliedRuleInfo | None:
        """Record a cart-wide discount, clamped to what is left of the cart."""
        remaining = self.subtotal_after_item_discounts - sum(
            (entry.total_calculated_discount for entry in self.cart_discounts), ZERO
        )
        amount = min(info.total_calculated_discount, remaining)
        if amount <= 0:
            return None
        if amount != info.total_calculated_discount:
            info = replace(info, total_calculated_discount=amount)
        self.cart_discounts.append(info)
        return info

    def get_applied_rules_summary(self) -> list[AppliedRuleInfo]:
        """Every applied rule: line records in cart order, then cart records."""
        summary: list[AppliedRuleInfo] = []
        for line in self.line_items:
            summary.extend(line.applied_rules)
        summary.extend(self.cart_discounts)
        return summary

    def finalize(self) -> None:
        if self._finalized:
            raise RuntimeError("DiscountResult.finalize() called twice")

        self.original_subtotal = sum((line.original_total for line in self.line_items), ZERO)
        self.total_item_discount = sum((line.total_discount for line in self.line_items), ZERO)
        self.total_cart_discount = sum((entry.total_calculated_discount for entry in self.cart_discounts), ZERO)
        self.total_discount = self.total_item_discount + self.total_cart_discount
        self.final_total = self.original_subtotal - self.total_discount
        self._finalized = True

    def __repr__(self) -> str:
        return (
            f"DiscountResult(lines={len(self.line_items)}, subtotal={self.original_subtotal}, "
            f"discount={self.total_discount}, final={self.final_total}, finalized={self._finalized})"
        )
