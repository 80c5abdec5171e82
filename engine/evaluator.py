"""Rule evaluation and validation helpers.

Everything here is pure: no logging, no state, identical output for
identical input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from tillrules.domain.campaign import BuyGetRule, SpecificDiscountRuleConfig

ZERO = Decimal("0")
HUNDRED = Decimal("100")

RULE_VALUE_TYPES = frozenset({"percentage", "fixed"})
BUY_GET_DISCOUNT_TYPES = frozenset({"percentage", "fixed", "free"})


@dataclass(frozen=True)
class RuleValidation:
    is_valid: bool
    errors: tuple[str, ...] = field(default_factory=tuple)


def evaluate_rule(
    rule_config: SpecificDiscountRuleConfig | None,
    unit_price: Decimal,
    quantity: Decimal,
    line_total: Decimal,
    test_value: Decimal | None = None,
) -> Decimal:
    """Compute the discount one rule grants on one line (or cart).

    Args:
        rule_config: The rule to evaluate. None or disabled yields 0.
        unit_price: Price of a single unit. Not used in the amount itself but
            kept so callers pass the full line metrics.
        quantity: Units in the line; fixed per-unit rules multiply by it.
        line_total: Value the discount is taken from and clamped to.
        test_value: Metric checked against the rule's min/max conditions.
            Defaults to ``line_total``.

    Returns:
        The discount, always within ``[0, line_total]``.
    """
    if rule_config is None or not rule_config.is_enabled:
        return ZERO

    value = line_total if test_value is None else test_value
    lower = rule_config.condition_min if rule_config.condition_min is not None else ZERO
    if value < lower:
        return ZERO
    if rule_config.condition_max is not None and value > rule_config.condition_max:
        return ZERO

    if rule_config.type == "fixed":
        if rule_config.apply_fixed_once:
            amount = rule_config.value
        else:
            amount = rule_config.value * quantity
    else:
        # Percentage is always taken from the whole line; "once" has no meaning here.
        amount = line_total * rule_config.value / HUNDRED

    return max(ZERO, min(amount, line_total))


def validate_rule_config(rule_config: SpecificDiscountRuleConfig) -> RuleValidation:
    """Check a rule configuration for problems that make it unusable."""
    errors: list[str] = []
    errors.extend(rule_config.problems)
    if not rule_config.name:
        errors.append("rule name is empty")
    if rule_config.type not in RULE_VALUE_TYPES:
        errors.append(f"unknown rule type {rule_config.type!r}")
    if rule_config.value < 0:
        errors.append(f"value must not be negative (got {rule_config.value})")
    if rule_config.type == "percentage" and rule_config.value > HUNDRED:
        errors.append(f"percentage above 100 (got {rule_config.value})")
    if rule_config.condition_min is not None and rule_config.condition_min < 0:
        errors.append(f"condition_min must not be negative (got {rule_config.condition_min})")
    if rule_config.condition_max is not None and rule_config.condition_max < 0:
        errors.append(f"condition_max must not be negative (got {rule_config.condition_max})")
    if (
        rule_config.condition_min is not None
        and rule_config.condition_max is not None
        and rule_config.condition_max < rule_config.condition_min
    ):
        errors.append(f"condition_max {rule_config.condition_max} is below condition_min {rule_config.condition_min}")
    return RuleValidation(is_valid=not errors, errors=tuple(errors))


def validate_buy_get_rule(rule: BuyGetRule) -> RuleValidation:
    errors: list[str] = []
    errors.extend(rule.problems)
    if not rule.name:
        errors.append("rule name is empty")
    if rule.buy_quantity <= 0:
        errors.append(f"buy_quantity must be positive (got {rule.buy_quantity})")
    if rule.get_quantity <= 0:
        errors.append(f"get_quantity must be positive (got {rule.get_quantity})")
    if rule.discount_type not in BUY_GET_DISCOUNT_TYPES:
        errors.append(f"unknown discount type {rule.discount_type!r}")
    if rule.discount_value < 0:
        errors.append(f"discount_value must not be negative (got {rule.discount_value})")
    if rule.discount_type == "percentage" and rule.discount_value > HUNDRED:
        errors.append(f"percentage above 100 (got {rule.discount_value})")
    return RuleValidation(is_valid=not errors, errors=tuple(errors))


def generate_rule_id(prefix: str, scope: str, rule_type: str, product_id: str | None = None) -> str:
    """Stable audit id, e.g. ``default-promo-1-campaign_default_line_item_value-sku-9``."""
    parts = [prefix, scope, rule_type]
    if product_id:
        parts.append(product_id)
    return "-".join(parts)
