"""End-to-end tests for DiscountEngine.process()."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from tillrules.domain.campaign import (
    BatchDiscountConfiguration,
    BuyGetRule,
    CatalogProduct,
    DiscountSet,
    ProductDiscountConfiguration,
    SpecificDiscountRuleConfig,
)
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.engine import DiscountEngine, RecordingTracer


def _rule(name: str, type: str, value: str, **extra) -> SpecificDiscountRuleConfig:
    return SpecificDiscountRuleConfig(is_enabled=True, name=name, type=type, value=Decimal(value), **extra)


def _cart(*rows: dict) -> DiscountContext:
    return DiscountContext.from_rows(rows)


def _discounts(result) -> dict[str, Decimal]:
    return {line.line_id: line.total_discount for line in result.line_items}


def test_default_value_rule_over_threshold() -> None:
    campaign = DiscountSet(
        id="spring",
        name="Spring",
        default_line_item_value_rule=_rule("10% over 400", "percentage", "10", condition_min=Decimal("400")),
    )
    result = DiscountEngine(campaign).process(_cart({"line_id": "l1", "product_id": "a", "price": 100, "quantity": 5}))

    assert result.is_finalized
    assert result.original_subtotal == Decimal("500")
    assert result.total_discount == Decimal("50")
    assert result.final_total == Decimal("450")
    (info,) = result.get_applied_rules_summary()
    assert info.rule_type == "campaign_default_line_item_value"
    assert info.rule_id == "default-spring-campaign_default_line_item_value-a"


def test_manual_discount_beats_product_rule() -> None:
    campaign = DiscountSet(
        id="spring",
        name="Spring",
        product_configurations=(
            ProductDiscountConfiguration(
                id="cfg-a",
                product_id="a",
                line_item_value_rule=_rule("Half price", "percentage", "50"),
            ),
        ),
    )
    cart = _cart(
        {
            "line_id": "l1",
            "product_id": "a",
            "price": 100,
            "quantity": 12,
            "custom_discount_value": 20,
            "custom_discount_type": "fixed",
        }
    )
    result = DiscountEngine(campaign).process(cart)

    assert result.total_item_discount == Decimal("240")
    assert [info.rule_type for info in result.get_applied_rules_summary()] == ["custom_item_discount"]


def test_repeatable_buy_get() -> None:
    campaign = DiscountSet(
        id="bogo",
        name="Bogo",
        buy_get_rules=(
            BuyGetRule(
                id="bogo-ab",
                name="Buy 2 A get B free",
                buy_product_id="a",
                buy_quantity=Decimal("2"),
                get_product_id="b",
                get_quantity=Decimal("1"),
                is_repeatable=True,
            ),
        ),
    )
    cart = _cart(
        {"line_id": "la", "product_id": "a", "price": 50, "quantity": 4},
        {"line_id": "lb", "product_id": "b", "price": 50, "quantity": 3},
    )
    result = DiscountEngine(campaign, catalog=[CatalogProduct("b", "Bottle")]).process(cart)

    assert _discounts(result) == {"la": 0, "lb": Decimal("100")}
    (info,) = result.get_applied_rules_summary()
    assert info.units_affected == Decimal("2")
    assert info.description == "Offer: Buy 2 A get B free (2 x Bottle)"


def test_cart_rule_below_threshold() -> None:
    campaign = DiscountSet(
        id="big-basket",
        name="Big basket",
        global_cart_price_rule=_rule("5% over 1000", "percentage", "5", condition_min=Decimal("1000")),
    )
    result = DiscountEngine(campaign).process(_cart({"line_id": "l1", "product_id": "a", "price": 95, "quantity": 10}))

    assert result.total_cart_discount == 0
    assert result.final_total == Decimal("950")


def test_cart_rule_runs_after_item_rules() -> None:
    campaign = DiscountSet(
        id="big-basket",
        name="Big basket",
        default_line_item_value_rule=_rule("10% off", "percentage", "10"),
        global_cart_price_rule=_rule("5% over 1000", "percentage", "5", condition_min=Decimal("1000")),
    )
    result = DiscountEngine(campaign).process(_cart({"line_id": "l1", "product_id": "a", "price": 200, "quantity": 10}))

    assert result.total_item_discount == Decimal("200")
    assert result.total_cart_discount == Decimal("90")
    assert result.final_total == Decimal("1710")
    assert [info.rule_type for info in result.get_applied_rules_summary()] == [
        "campaign_default_line_item_value",
        "campaign_global_cart_price",
    ]


def test_one_time_deal_falls_through_to_default_rule() -> None:
    campaign = DiscountSet(
        id="once",
        name="Once",
        is_one_time_per_transaction=True,
        product_configurations=(
            ProductDiscountConfiguration(
                id="cfg-a",
                product_id="a",
                line_item_value_rule=_rule("A 10%", "percentage", "10"),
            ),
        ),
        default_line_item_value_rule=_rule("Fiver", "fixed", "5", apply_fixed_once=True),
    )
    tracer = RecordingTracer()
    cart = _cart(
        {"line_id": "l1", "product_id": "a", "price": 100, "quantity": 1},
        {"line_id": "l2", "product_id": "a", "price": 100, "quantity": 1},
    )
    result = DiscountEngine(campaign, tracer=tracer).process(cart)

    assert _discounts(result) == {"l1": Decimal("10"), "l2": Decimal("5")}
    (skipped,) = tracer.of_kind("skipped")
    assert skipped.rule_id == "product-cfg-a"
    assert skipped.line_id == "l2"


def _batch_campaign(one_time: bool) -> DiscountSet:
    return DiscountSet(
        id="clearance",
        name="Clearance",
        is_one_time_per_transaction=one_time,
        batch_configurations=(
            BatchDiscountConfiguration(
                id="old",
                product_batch_id="b-old",
                line_item_value_rule=_rule("Old stock", "percentage", "20"),
            ),
        ),
    )


@pytest.mark.parametrize(("one_time", "expected"), [(True, 1), (False, 3)])
def test_one_time_deal_limits_repeatable_rule(one_time: bool, expected: int) -> None:
    cart = _cart(
        *(
            {"line_id": f"l{n}", "product_id": "shirt", "batch_id": "b-old", "price": 10, "quantity": 1}
            for n in range(3)
        )
    )
    result = DiscountEngine(_batch_campaign(one_time)).process(cart)
    assert sum(1 for line in result.line_items if line.is_discounted) == expected


def test_one_time_deal_does_not_limit_manual_discounts() -> None:
    campaign = DiscountSet(id="once", name="Once", is_one_time_per_transaction=True)
    cart = _cart(
        *(
            {"line_id": f"l{n}", "product_id": "a", "price": 10, "quantity": 1, "custom_discount_value": 10}
            for n in range(3)
        )
    )
    result = DiscountEngine(campaign).process(cart)
    assert result.total_item_discount == Decimal("3")


def test_one_time_tracking_is_per_process_call() -> None:
    engine = DiscountEngine(_batch_campaign(True))
    cart = _cart({"line_id": "l1", "product_id": "shirt", "batch_id": "b-old", "price": 10, "quantity": 1})
    first = engine.process(cart)
    second = engine.process(cart)
    assert first.total_discount == second.total_discount == Decimal("2")


def test_batch_rule_outranks_product_rule() -> None:
    campaign = DiscountSet(
        id="mixed",
        name="Mixed",
        batch_configurations=(
            BatchDiscountConfiguration(
                id="old",
                product_batch_id="b-old",
                line_item_value_rule=_rule("Old stock", "percentage", "20"),
            ),
        ),
        product_configurations=(
            ProductDiscountConfiguration(
                id="cfg-shirt",
                product_id="shirt",
                line_item_value_rule=_rule("Shirts half off", "percentage", "50"),
            ),
        ),
    )
    cart = _cart(
        {"line_id": "l1", "product_id": "shirt", "batch_id": "b-old", "price": 10, "quantity": 1},
        {"line_id": "l2", "product_id": "shirt", "batch_id": "b-new", "price": 10, "quantity": 1},
    )
    result = DiscountEngine(campaign).process(cart)
    assert _discounts(result) == {"l1": Decimal("2"), "l2": Decimal("5")}


def test_each_line_gets_at_most_one_item_rule() -> None:
    campaign = DiscountSet(
        id="stacked",
        name="Stacked",
        product_configurations=(
            ProductDiscountConfiguration(id="cfg-a", product_id="a", line_item_value_rule=_rule("A", "percentage", "10")),
            ProductDiscountConfiguration(id="cfg-a2", product_id="a", line_item_value_rule=_rule("A2", "percentage", "30")),
        ),
        default_line_item_value_rule=_rule("Everything", "percentage", "40"),
    )
    result = DiscountEngine(campaign).process(_cart({"line_id": "l1", "product_id": "a", "price": 10, "quantity": 1}))
    line = result.line_items[0]
    assert [info.source_rule_name for info in line.applied_rules] == ["A"]


def test_discounts_never_exceed_the_cart() -> None:
    campaign = DiscountSet(
        id="generous",
        name="Generous",
        default_line_item_quantity_rule=_rule("Huge", "fixed", "1000"),
        global_cart_quantity_rule=_rule("Even more", "fixed", "1000"),
    )
    cart = _cart(
        {"line_id": "l1", "product_id": "a", "price": 3, "quantity": 2},
        {"line_id": "l2", "product_id": "b", "price": "0.99", "quantity": 1},
    )
    result = DiscountEngine(campaign).process(cart)

    assert result.total_discount == result.original_subtotal == Decimal("6.99")
    assert result.final_total == 0
    assert all(line.net_price >= 0 for line in result.line_items)


def test_invalid_rule_is_reported_once_and_skipped() -> None:
    campaign = DiscountSet(
        id="broken",
        name="Broken",
        default_line_item_value_rule=_rule("Too much", "percentage", "150"),
        default_line_item_quantity_rule=_rule("Two off", "fixed", "2", apply_fixed_once=True),
    )
    tracer = RecordingTracer()
    engine = DiscountEngine(campaign, tracer=tracer)
    result = engine.process(_cart({"line_id": "l1", "product_id": "a", "price": 10, "quantity": 1}))
    engine.process(_cart({"line_id": "l1", "product_id": "a", "price": 10, "quantity": 1}))

    assert result.total_discount == Decimal("2")
    (event,) = tracer.of_kind("invalid")
    assert event.rule_id == "default-broken"
    assert "percentage above 100" in event.detail


def test_empty_cart_yields_zero_totals() -> None:
    result = DiscountEngine(DiscountSet(id="x", name="X")).process(DiscountContext(()))
    assert result.is_finalized
    assert result.final_total == 0
    assert result.get_applied_rules_summary() == []


def test_process_is_deterministic() -> None:
    campaign = DiscountSet(
        id="spring",
        name="Spring",
        default_line_item_value_rule=_rule("10%", "percentage", "10"),
    )
    engine = DiscountEngine(campaign)
    cart = _cart({"line_id": "l1", "product_id": "a", "price": "19.99", "quantity": 3})
    summaries = [engine.process(cart).get_applied_rules_summary() for _ in range(3)]
    assert summaries[0] == summaries[1] == summaries[2]


def test_engine_is_shareable_across_threads() -> None:
    engine = DiscountEngine(_batch_campaign(True))
    cart = _cart(
        {"line_id": "l1", "product_id": "shirt", "batch_id": "b-old", "price": 10, "quantity": 1},
        {"line_id": "l2", "product_id": "shirt", "batch_id": "b-old", "price": 10, "quantity": 1},
    )
    totals: list[Decimal] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(20):
            total = engine.process(cart).total_discount
            with lock:
                totals.append(total)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert set(totals) == {Decimal("2")}


def test_none_inputs_raise_type_error() -> None:
    with pytest.raises(TypeError):
        DiscountEngine(None)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        DiscountEngine(DiscountSet(id="x", name="X")).process(None)  # type: ignore[arg-type]


def test_describe_pipeline_order() -> None:
    campaign = DiscountSet(
        id="full",
        name="Full",
        batch_configurations=(BatchDiscountConfiguration(id="old", product_batch_id="b-old"),),
        product_configurations=(ProductDiscountConfiguration(id="cfg-a", product_id="a"),),
        buy_get_rules=(
            BuyGetRule(
                id="bogo",
                name="Bogo",
                buy_product_id="a",
                buy_quantity=Decimal("1"),
                get_product_id="b",
                get_quantity=Decimal("1"),
            ),
        ),
    )
    assert DiscountEngine(campaign).describe_pipeline() == [
        ("custom", "custom-unknown"),
        ("batch", "batch-old"),
        ("product", "product-cfg-a"),
        ("buy_get", "bogo"),
        ("default", "default-full"),
        ("cart_total", "cart-total-full"),
    ]


def test_line_item_data_built_directly() -> None:
    campaign = DiscountSet(id="x", name="X", default_line_item_value_rule=_rule("1%", "percentage", "1"))
    context = DiscountContext([LineItemData("l1", "a", Decimal("250"), Decimal("2"))])
    assert DiscountEngine(campaign).process(context).total_discount == Decimal("5")


def _bottle_offer(one_time: bool) -> DiscountSet:
    return DiscountSet(
        id="bottles",
        name="Bottles",
        is_one_time_per_transaction=one_time,
        buy_get_rules=(
            BuyGetRule(
                id="bogo-ab",
                name="Buy 2 A get B free",
                buy_product_id="a",
                buy_quantity=Decimal("2"),
                get_product_id="b",
                get_quantity=Decimal("1"),
                is_repeatable=True,
            ),
        ),
    )


@pytest.mark.parametrize(
    ("one_time", "expected"),
    [
        (False, {"la": 0, "lb1": Decimal("30"), "lb2": Decimal("30")}),
        (True, {"la": 0, "lb1": Decimal("30"), "lb2": 0}),
    ],
)
def test_buy_get_over_several_get_lines(one_time: bool, expected: dict[str, Decimal]) -> None:
    tracer = RecordingTracer()
    cart = _cart(
        {"line_id": "la", "product_id": "a", "price": 50, "quantity": 4},
        {"line_id": "lb1", "product_id": "b", "price": 30, "quantity": 1},
        {"line_id": "lb2", "product_id": "b", "price": 30, "quantity": 1},
    )
    result = DiscountEngine(_bottle_offer(one_time), tracer=tracer).process(cart)

    assert _discounts(result) == expected
    skipped = [(event.rule_id, event.line_id) for event in tracer.of_kind("skipped")]
    assert skipped == ([("bogo-ab", "lb2")] if one_time else [])


def test_buy_get_entitlement_moves_past_manually_discounted_line() -> None:
    cart = _cart(
        {"line_id": "la", "product_id": "a", "price": 50, "quantity": 4},
        {"line_id": "lb1", "product_id": "b", "price": 30, "quantity": 1, "custom_discount_value": 10},
        {"line_id": "lb2", "product_id": "b", "price": 30, "quantity": 2},
    )
    result = DiscountEngine(_bottle_offer(False)).process(cart)

    assert _discounts(result) == {"la": 0, "lb1": Decimal("3"), "lb2": Decimal("60")}
    offers = [info for info in result.get_applied_rules_summary() if info.rule_id == "bogo-ab"]
    assert [(info.product_id_affected, info.units_affected) for info in offers] == [("b", Decimal("2"))]
