"""Per-product rules."""

from __future__ import annotations

from tillrules.domain.campaign import ProductDiscountConfiguration
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.rules.base import ItemRule, RuleSlot
from tillrules.engine.tracing import DiscountTracer


class ProductLevelRule(ItemRule):
    """Applies the first qualifying product slot to lines of one product.

    Slots are tried in this order, each testing its own metric:
    line value (line total), line quantity (quantity), quantity threshold
    (quantity), unit price threshold (unit price).
    """

    kind = "product"
    is_potentially_repeatable = True

    def __init__(
        self,
        config: ProductDiscountConfiguration,
        campaign_name: str,
        tracer: DiscountTracer | None = None,
    ) -> None:
        super().__init__(tracer)
        self.config = config
        self.campaign_name = campaign_name
        self.slots = self.usable_slots(
            (
                RuleSlot(config.line_item_value_rule, "product_config_line_item_value", "line_total"),
                RuleSlot(config.line_item_quantity_rule, "product_config_line_item_quantity", "quantity"),
                RuleSlot(config.specific_qty_threshold_rule, "product_config_specific_qty_threshold", "quantity"),
                RuleSlot(config.specific_unit_price_threshold_rule, "product_config_specific_unit_price", "unit_price"),
            )
        )

    def get_id(self, item: LineItemData | None = None) -> str:
        return f"product-{self.config.id}"

    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        if not self.config.is_active_for_product_in_campaign:
            return None
        if item.product_id != self.config.product_id:
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
                rule_id=f"{self.get_id()}-{slot.rule_type}",
                discount_campaign_name=self.campaign_name,
                source_rule_name=slot.config.name,
                total_calculated_discount=amount,
                rule_type=slot.rule_type,
                product_id_affected=item.product_id,
                batch_id_affected=item.batch_id,
                applied_once=slot.config.apply_fixed_once,
                is_repeatable=self.is_potentially_repeatable,
                description=f"Product-specific rule '{slot.config.name}' applied.",
            ),
        )
