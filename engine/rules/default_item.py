"""Campaign-wide default rules for lines nothing else discounted."""

from __future__ import annotations

from tillrules.domain.campaign import DiscountSet
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.evaluator import generate_rule_id
from tillrules.engine.rules.base import ItemRule, RuleSlot
from tillrules.engine.tracing import DiscountTracer

_DESCRIPTIONS = {
    "campaign_default_line_item_value": "Default line value rule",
    "campaign_default_line_item_quantity": "Default quantity rule",
    "campaign_default_specific_qty_threshold": "Default quantity threshold rule",
    "campaign_default_specific_unit_price": "Default unit price threshold rule",
}


class DefaultItemRule(ItemRule):
    """Lowest item-level priority.

    A line carrying any manual discount value, even zero, is left alone: the
    cashier chose the line's price explicitly.
    """

    kind = "default"
    is_potentially_repeatable = False

    def __init__(self, campaign: DiscountSet, tracer: DiscountTracer | None = None) -> None:
        super().__init__(tracer)
        self.campaign = campaign
        self.slots = self.usable_slots(
            (
                RuleSlot(campaign.default_line_item_value_rule, "campaign_default_line_item_value", "line_total"),
                RuleSlot(campaign.default_line_item_quantity_rule, "campaign_default_line_item_quantity", "quantity"),
                RuleSlot(
                    campaign.default_specific_qty_threshold_rule,
                    "campaign_default_specific_qty_threshold",
                    "quantity",
                ),
                RuleSlot(
                    campaign.default_specific_unit_price_threshold_rule,
                    "campaign_default_specific_unit_price",
                    "unit_price",
                ),
            )
        )

    def get_id(self, item: LineItemData | None = None) -> str:
        return f"default-{self.campaign.id}"

    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        if item.custom_discount_value is not None:
            self.tracer.rule_skipped(self.get_id(item), item.line_id, "manual discount value present")
            return None

        match = self.first_qualifying(self.slots, item)
        if match is None:
            return None
        slot, amount = match
        assert slot.config is not None

        return self.record(
            result,
            item,
            AppliedRuleInfo(
                rule_id=generate_rule_id("default", self.campaign.id, slot.rule_type, item.product_id),
                discount_campaign_name=self.campaign.name,
                source_rule_name=slot.config.name,
                total_calculated_discount=amount,
                rule_type=slot.rule_type,
                product_id_affected=item.product_id,
                batch_id_affected=item.batch_id,
                applied_once=slot.config.apply_fixed_once,
                description=f"{_DESCRIPTIONS[slot.rule_type]}: '{slot.config.name}' applied.",
            ),
        )
