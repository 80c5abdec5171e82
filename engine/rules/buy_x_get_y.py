"""Buy X, get Y rules."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from tillrules.domain.campaign import BuyGetRule
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.evaluator import HUNDRED, ZERO, validate_buy_get_rule
from tillrules.engine.rules.base import ItemRule
from tillrules.engine.tracing import DiscountTracer


class BuyXGetYRule(ItemRule):
    """Discount units of the "get" product once enough "buy" units are in the cart.

    The entitlement is ``floor(bought / buy_quantity) * get_quantity`` for a
    repeatable rule and exactly ``get_quantity`` otherwise. It is spent on
    get-product lines in cart order; units granted to earlier lines in the
    same result count against it.
    """

    kind = "buy_get"
    is_potentially_repeatable = True

    def __init__(
        self,
        config: BuyGetRule,
        campaign_name: str,
        product_names: Mapping[str, str] | None = None,
        tracer: DiscountTracer | None = None,
    ) -> None:
        super().__init__(tracer)
        self.config = config
        self.campaign_name = campaign_name
        self.product_names = dict(product_names or {})
        validation = validate_buy_get_rule(config)
        self.is_valid = validation.is_valid
        if not validation.is_valid:
            self.tracer.rule_invalid(self.get_id(), "buy_get_free", validation.errors)

    def get_id(self, item: LineItemData | None = None) -> str:
        return self.config.id

    def entitlement(self, context: DiscountContext) -> Decimal:
        """Units of the get product this cart is entitled to (0 if the threshold is unmet)."""
        bought = sum((line.quantity for line in context.items_for_product(self.config.buy_product_id)), ZERO)
        if bought < self.config.buy_quantity:
            return ZERO
        if self.config.is_repeatable:
            return (bought // self.config.buy_quantity) * self.config.get_quantity
        return self.config.get_quantity

    def units_already_granted(self, result: DiscountResult) -> Decimal:
        granted = ZERO
        for line in result.line_items:
            for info in line.applied_rules:
                if info.rule_id == self.get_id() and info.units_affected is not None:
                    granted += info.units_affected
        return granted

    def unit_discount(self, unit_price: Decimal) -> Decimal:
        if self.config.discount_type == "free":
            return unit_price
        if self.config.discount_type == "percentage":
            return unit_price * self.config.discount_value / HUNDRED
        return self.config.discount_value

    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        if not self.is_valid or item.product_id != self.config.get_product_id:
            return None

        remaining = self.entitlement(context) - self.units_already_granted(result)
        if remaining <= 0:
            return None

        units = min(item.quantity, remaining)
        if units <= 0:
            return None

        ceiling = item.price * units
        amount = max(ZERO, min(self.unit_discount(item.price) * units, ceiling))
        if amount <= 0:
            return None

        get_name = self.product_names.get(self.config.get_product_id) or item.product_name or item.product_id
        return self.record(
            result,
            item,
            AppliedRuleInfo(
                rule_id=self.get_id(),
                discount_campaign_name=self.campaign_name,
                source_rule_name=self.config.name,
                total_calculated_discount=amount,
                rule_type="buy_get_free",
                product_id_affected=item.product_id,
                batch_id_affected=item.batch_id,
                applied_once=not self.config.is_repeatable,
                is_repeatable=self.config.is_repeatable,
                units_affected=units,
                description=f"Offer: {self.config.name} ({units} x {get_name})",
            ),
        )
