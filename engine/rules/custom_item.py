"""Manual per-line discounts entered at the till."""

from __future__ import annotations

from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.evaluator import HUNDRED, ZERO, generate_rule_id
from tillrules.engine.rules.base import ItemRule

MANUAL_CAMPAIGN_NAME = "Manual Discount"


class CustomItemDiscountRule(ItemRule):
    """Highest priority: a manual override always beats campaign rules."""

    kind = "custom"
    is_potentially_repeatable = False

    def get_id(self, item: LineItemData | None = None) -> str:
        return f"custom-{item.line_id if item is not None else 'unknown'}"

    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        if not item.has_custom_discount:
            return None
        assert item.custom_discount_value is not None

        value = item.custom_discount_value
        line_total = item.line_total
        is_fixed = item.custom_discount_type == "fixed"
        if is_fixed:
            amount = value if item.custom_apply_fixed_once else value * item.quantity
        else:
            amount = line_total * value / HUNDRED
        amount = max(ZERO, min(amount, line_total))
        if amount <= 0:
            return None

        label = "Fixed" if is_fixed else "Percentage"
        return self.record(
            result,
            item,
            AppliedRuleInfo(
                rule_id=generate_rule_id("custom", item.line_id, "manual_discount", item.product_id),
                discount_campaign_name=MANUAL_CAMPAIGN_NAME,
                source_rule_name=f"Custom {label} Discount",
                total_calculated_discount=amount,
                rule_type="custom_item_discount",
                product_id_affected=item.product_id,
                batch_id_affected=item.batch_id,
                applied_once=is_fixed and item.custom_apply_fixed_once,
                description=f"Custom {item.custom_discount_type} discount of {value} applied manually.",
            ),
        )
