"""Quote workflow: run a cart through a campaign for the till, CLI or server."""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from tillrules.domain.campaign import CatalogProduct, DiscountSet
from tillrules.domain.context import DiscountContext
from tillrules.domain.result import AppliedRuleInfo, DiscountResult
from tillrules.engine import DiscountEngine
from tillrules.runtime import EngineCache, get_logger

logger = get_logger(__name__)

QuoteStatus = Literal["ok", "error"]


@dataclass(frozen=True)
class QuoteRequest:
    """Inputs for one discount quote."""

    campaign: DiscountSet | None
    items: Sequence[Mapping[str, Any]] | DiscountContext
    catalog: Sequence[CatalogProduct] = field(default_factory=tuple)
    on: datetime.date | None = None


@dataclass(frozen=True)
class QuoteResult:
    """Outcome of a quote."""

    status: QuoteStatus
    result: DiscountResult | None = None
    error: str | None = None


def calculate_discounts_for_items(
    context: DiscountContext,
    campaign: DiscountSet | None,
    catalog: Sequence[CatalogProduct] = (),
    cache: EngineCache | None = None,
) -> DiscountResult:
    """Bridge from the till to the engine.

    No campaign or an empty cart yields an empty, finalized result.
    """
    if campaign is None or len(context) == 0:
        return DiscountResult.empty()
    if cache is not None:
        engine = cache.get(campaign, catalog)
    else:
        engine = DiscountEngine(campaign, catalog=catalog)
    return engine.process(context)


def run_quote(request: QuoteRequest, cache: EngineCache | None = None) -> QuoteResult:
    """Validate a quote request and compute its discount breakdown."""
    try:
        if isinstance(request.items, DiscountContext):
            context = request.items
        else:
            context = DiscountContext.from_rows(request.items)
    except ValueError as exc:
        return QuoteResult(status="error", error=f"Invalid cart: {exc}")

    campaign = request.campaign
    if campaign is not None:
        on = request.on or datetime.date.today()
        if not campaign.is_available(on):
            return QuoteResult(
                status="error",
                error=f"Campaign {campaign.id} is not available on {on.isoformat()}",
            )

    result = calculate_discounts_for_items(context, campaign, request.catalog, cache)
    logger.info(
        "Quoted %d lines under %s: subtotal %s, discount %s",
        len(context),
        campaign.id if campaign is not None else "no campaign",
        result.original_subtotal,
        result.total_discount,
    )
    return QuoteResult(status="ok", result=result)


def _rule_to_dict(info: AppliedRuleInfo) -> dict[str, Any]:
    return {
        "rule_id": info.rule_id,
        "campaign": info.discount_campaign_name,
        "rule_name": info.source_rule_name,
        "rule_type": info.rule_type,
        "amount": str(info.total_calculated_discount),
        "product_id": info.product_id_affected,
        "batch_id": info.batch_id_affected,
        "applied_once": info.applied_once,
        "is_repeatable": info.is_repeatable,
        "units": str(info.units_affected) if info.units_affected is not None else None,
        "description": info.description,
    }


def quote_to_dict(result: DiscountResult) -> dict[str, Any]:
    """JSON-ready breakdown; Decimals are rendered as strings."""
    return {
        "original_subtotal": str(result.original_subtotal),
        "total_item_discount": str(result.total_item_discount),
        "total_cart_discount": str(result.total_cart_discount),
        "total_discount": str(result.total_discount),
        "final_total": str(result.final_total),
        "lines": [
            {
                "line_id": line.line_id,
                "product_id": line.product_id,
                "batch_id": line.batch_id,
                "unit_price": str(line.unit_price),
                "quantity": str(line.quantity),
                "original_total": str(line.original_total),
                "discount": str(line.total_discount),
                "net_price": str(line.net_price),
            }
            for line in result.line_items
        ],
        "cart_discounts": [_rule_to_dict(info) for info in result.cart_discounts],
        "applied_rules": [_rule_to_dict(info) for info in result.get_applied_rules_summary()],
    }


def format_quote(result: DiscountResult) -> str:
    """Plain-text breakdown for terminals and logs."""
    rows = [("Line", "Product", "Qty", "Total", "Discount", "Net")]
    for line in result.line_items:
        rows.append(
            (
                line.line_id,
                line.product_id,
                str(line.quantity),
                str(line.original_total),
                str(line.total_discount),
                str(line.net_price),
            )
        )
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    out = ["  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in rows]

    applied = result.get_applied_rules_summary()
    if applied:
        out.append("")
        out.append("Applied rules:")
        for info in applied:
            target = info.product_id_affected or "cart"
            out.append(f"  {info.source_rule_name} [{info.rule_type}] on {target}: -{info.total_calculated_discount}")

    out.append("")
    for label, value in (
        ("Subtotal", result.original_subtotal),
        ("Item discounts", result.total_item_discount),
        ("Cart discount", result.total_cart_discount),
        ("Total discount", result.total_discount),
        ("Final total", result.final_total),
    ):
        out.append(f"{label + ':':<16}{_plain(value)}")
    return "\n".join(out)


def _plain(value: Decimal) -> str:
    return format(value, "f")
