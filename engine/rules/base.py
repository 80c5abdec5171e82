"""Contract shared by every discount rule kind.

Rules are strategies composed into an ordered pipeline by the engine.
Item-level rules expose ``apply_to_line`` (one line, one outcome); cart-level
rules only run once per cart through ``apply``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Literal

from tillrules.domain.campaign import SpecificDiscountRuleConfig
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine.evaluator import evaluate_rule, validate_rule_config
from tillrules.engine.tracing import DiscountTracer, LoggingTracer

Metric = Literal["line_total", "quantity", "unit_price"]


@dataclass(frozen=True)
class RuleSlot:
    """One candidate rule config and the line metric its conditions test."""

    config: SpecificDiscountRuleConfig | None
    rule_type: str
    metric: Metric = "line_total"


def line_metric(item: LineItemData, metric: Metric) -> Decimal:
    if metric == "quantity":
        return item.quantity
    if metric == "unit_price":
        return item.price
    return item.line_total


class DiscountRule(ABC):
    kind: ClassVar[str]
    is_potentially_repeatable: ClassVar[bool] = False

    def __init__(self, tracer: DiscountTracer | None = None) -> None:
        self.tracer: DiscountTracer = tracer or LoggingTracer()

    @abstractmethod
    def get_id(self, item: LineItemData | None = None) -> str:
        """Stable identity used for one-time-deal tracking."""

    @abstractmethod
    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        """Evaluate against the whole cart, writing discounts into ``result``."""

    def usable_slots(self, slots: Iterable[RuleSlot]) -> tuple[RuleSlot, ...]:
        """Drop empty/disabled slots; report and drop invalid ones."""
        usable: list[RuleSlot] = []
        for slot in slots:
            if slot.config is None or not slot.config.is_enabled:
                continue
            validation = validate_rule_config(slot.config)
            if not validation.is_valid:
                self.tracer.rule_invalid(self.get_id(), slot.rule_type, validation.errors)
                continue
            usable.append(slot)
        return tuple(usable)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_id()!r})"


class ItemRule(DiscountRule):
    @abstractmethod
    def apply_to_line(
        self, context: DiscountContext, result: DiscountResult, item: LineItemData
    ) -> AppliedRuleInfo | None:
        """Try this rule on one line; return the stored record if it applied."""

    def apply(self, context: DiscountContext, result: DiscountResult) -> None:
        for item in context.items:
            line = result.get_line_item(item.line_id)
            if line is None or line.is_discounted:
                continue
            self.apply_to_line(context, result, item)

    def first_qualifying(
        self, slots: Iterable[RuleSlot], item: LineItemData
    ) -> tuple[RuleSlot, Decimal] | None:
        """First slot (in order) granting a positive discount on ``item``."""
        for slot in slots:
            amount = evaluate_rule(
                slot.config,
                item.price,
                item.quantity,
                item.line_total,
                line_metric(item, slot.metric),
            )
            if amount > 0:
                return slot, amount
        return None

    def record(self, result: DiscountResult, item: LineItemData, info: AppliedRuleInfo) -> AppliedRuleInfo | None:
        line = result.get_line_item(item.line_id)
        if line is None or line.is_discounted:
            return None
        stored = line.add_discount(info)
        if stored is not None:
            self.tracer.rule_applied(stored, item.line_id)
        return stored


class CartRule(DiscountRule):
    pass
