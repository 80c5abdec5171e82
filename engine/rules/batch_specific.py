"""Batch-specific rules.

Batch configuration predates product configuration but still outranks it:
a line whose batch matches is offered the batch rules first.
"""

from __future__ import annotations

from tillrules.domain.campaign import BatchDiscountConfiguration
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.rules.base import ItemRule, RuleSlot
from tillrules.engine.tracing import DiscountTracer


class BatchSpecificRule(ItemRule):
    kind = "batch"
    is_potentially_repeatable = True

    def __init__(
        self,
        config: BatchDiscountConfiguration,
        campaign_name: str,
        tracer: DiscountTracer | None = None,
    ) -> None:
        super().__init__(tracer)
        self.config = config
        self.campaign_name = campaign_name
        self.slots = self.usable_slots(
            (
                RuleSlot(config.line_item_value_rule, "batch_line_item_value", "line_total"),
                RuleSlot(config.line_item_quantity_rule, "batch_line_item_quantity", "quantity"),
            )
        )

    def get_id(self, item: LineItemData | None = None) -> str:
        return f"batch-{self.config.id}"

    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        if not self.config.is_active_for_batch_in_campaign:
            return None
        if item.batch_id is None or item.batch_id != self.config.product_batch_id:
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
                description=f"Batch-specific rule '{slot.config.name}' applied.",
            ),
        )
