"""Discount engine: builds the rule pipeline for a campaign and runs carts through it."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tillrules.domain.campaign import CatalogProduct, DiscountSet
from tillrules.domain.context import DiscountContext
from tillrules.domain.result import DiscountResult
from tillrules.engine.rules import (
    BatchSpecificRule,
    BuyXGetYRule,
    CartRule,
    CartTotalRule,
    CustomItemDiscountRule,
    DefaultItemRule,
    ItemRule,
    ProductLevelRule,
)
from tillrules.engine.tracing import DiscountTracer, LoggingTracer

logger = logging.getLogger(__name__)


class DiscountEngine:
    """Computes the discount breakdown of a cart under one campaign.

    The pipeline is fixed at construction:

    1. custom (manual) line discounts
    2. batch-specific rules, in campaign order
    3. product-level rules, in campaign order
    4. buy-X-get-Y rules, in campaign order
    5. campaign default item rules
    6. cart total rules (cart phase)

    Item-level rules are tried per line and the first one that discounts the
    line wins. With ``is_one_time_per_transaction`` set, a repeatable rule
    applies to at most one line per ``process()`` call.

    The engine holds no per-cart state, so one instance may serve any number
    of carts, concurrently.
    """

    def __init__(
        self,
        campaign: DiscountSet,
        catalog: Iterable[CatalogProduct] | None = None,
        tracer: DiscountTracer | None = None,
    ) -> None:
        if campaign is None:
            raise TypeError("DiscountEngine requires a campaign")

        self.campaign = campaign
        self.tracer: DiscountTracer = tracer or LoggingTracer()
        product_names = {product.id: product.name for product in catalog or ()}

        item_rules: list[ItemRule] = [CustomItemDiscountRule(self.tracer)]
        item_rules.extend(
            BatchSpecificRule(config, campaign.name, self.tracer) for config in campaign.batch_configurations
        )
        item_rules.extend(
            ProductLevelRule(config, campaign.name, self.tracer) for config in campaign.product_configurations
        )
        item_rules.extend(
            BuyXGetYRule(config, campaign.name, product_names, self.tracer) for config in campaign.buy_get_rules
        )
        item_rules.append(DefaultItemRule(campaign, self.tracer))

        self._item_rules: tuple[ItemRule, ...] = tuple(item_rules)
        self._cart_rules: tuple[CartRule, ...] = (CartTotalRule(campaign, self.tracer),)
        logger.debug(
            "Built pipeline for campaign %s: %d item rules, %d cart rules",
            campaign.id,
            len(self._item_rules),
            len(self._cart_rules),
        )

    @property
    def item_rules(self) -> tuple[ItemRule, ...]:
        return self._item_rules

    @property
    def cart_rules(self) -> tuple[CartRule, ...]:
        return self._cart_rules

    def describe_pipeline(self) -> list[tuple[str, str]]:
        """``(kind, rule id)`` for every rule, in evaluation order."""
        return [(rule.kind, rule.get_id()) for rule in (*self._item_rules, *self._cart_rules)]

    def process(self, context: DiscountContext) -> DiscountResult:
        """Evaluate ``context`` and return a finalized result."""
        if context is None:
            raise TypeError("DiscountEngine.process requires a DiscountContext")

        result = DiscountResult(context)
        one_time_deal = self.campaign.is_one_time_per_transaction
        applied_repeatable_ids: set[str] = set()
        logger.debug(
            "Processing %d lines under campaign %r (one-time deal %s)",
            len(context),
            self.campaign.name,
            "active" if one_time_deal else "inactive",
        )

        for item in context.items:
            line = result.get_line_item(item.line_id)
            assert line is not None
            for rule in self._item_rules:
                if line.is_discounted:
                    break
                rule_id = rule.get_id(item)
                if one_time_deal and rule.is_potentially_repeatable and rule_id in applied_repeatable_ids:
                    self.tracer.rule_skipped(rule_id, item.line_id, "one-time deal already used")
                    continue
                applied = rule.apply_to_line(context, result, item)
                if applied is not None and rule.is_potentially_repeatable:
                    applied_repeatable_ids.add(rule_id)

        for cart_rule in self._cart_rules:
            cart_rule.apply(context, result)

        result.finalize()
        return result
