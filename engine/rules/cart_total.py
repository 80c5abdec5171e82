"""Cart-wide rules, evaluated once after all item-level rules."""

from __future__ import annotations

from decimal import Decimal

from tillrules.domain.campaign import DiscountSet
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.evaluator import evaluate_rule
from tillrules.engine.rules.base import CartRule, RuleSlot
from tillrules.engine.tracing import DiscountTracer

# A cart-level fixed amount is granted once for the whole cart.
_CART_UNITS = Decimal("1")


class CartTotalRule(CartRule):
    """Price threshold on the subtotal after item discounts, then quantity threshold on total units."""

    kind = "cart_total"
    is_potentially_repeatable = False

    def __init__(self, campaign: DiscountSet, tracer: DiscountTracer | None = None) -> None:
        super().__init__(tracer)
        self.campaign = campaign
        self.slots = self.usable_slots(
            (
                RuleSlot(campaign.global_cart_price_rule, "campaign_global_cart_price"),
                RuleSlot(campaign.global_cart_quantity_rule, "campaign_global_cart_quantity", "quantity"),
            )
        )

    def get_id(self, item: LineItemData | None = None) -> str:
        return f"cart-total-{self.campaign.id}"

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        subtotal = result.subtotal_after_item_discounts
        total_quantity = context.total_quantity

        for slot in self.slots:
            test_value = total_quantity if slot.metric == "quantity" else subtotal
            amount = evaluate_rule(slot.config, subtotal, _CART_UNITS, subtotal, test_value)
            if amount <= 0:
                continue
            assert slot.config is not None

            stored = result.add_cart_discount(
                AppliedRuleInfo(
                    rule_id=f"{self.get_id()}-{slot.rule_type}",
                    discount_campaign_name=self.campaign.name,
                    source_rule_name=slot.config.name,
                    total_calculated_discount=amount,
                    rule_type=slot.rule_type,
                    applied_once=True,
                    description=f"Cart rule '{slot.config.name}' applied.",
                )
            )
            if stored is not None:
                self.tracer.rule_applied(stored, None)
                return
