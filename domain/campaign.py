"""Campaign (discount set) configuration models.

A campaign is the configuration root for the discount engine. It is loaded
once (from TOML or any other store) and stays immutable while carts are
evaluated against it.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from beancount.core.number import D

logger = logging.getLogger(__name__)

RuleValueType = Literal["percentage", "fixed"]
BuyGetDiscountType = Literal["percentage", "fixed", "free"]


def to_decimal(value: Any) -> Decimal:
    """Coerce config/cart numbers to Decimal.

    Floats go through ``str()`` so binary representation noise never reaches
    the arithmetic.
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got boolean {value!r}")
    if isinstance(value, float):
        return D(str(value))
    return D(value)


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return to_decimal(value)


def _lenient_decimal(raw: Mapping[str, Any], key: str, problems: list[str], default: Any = None) -> Decimal | None:
    """Parse one numeric rule field; an unparsable value is recorded in ``problems``."""
    value = raw.get(key, default)
    try:
        return _optional_decimal(value)
    except ValueError:
        problems.append(f"{key} {value!r} is not a number")
        return None


def table_entries(raw: Mapping[str, Any], key: str, owner: str) -> list[Mapping[str, Any]]:
    """Return the array of tables under ``key``, rejecting anything else."""
    entries = raw.get(key, [])
    if not isinstance(entries, list):
        raise ValueError(f"{owner}: '{key}' must be an array of tables")
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ValueError(f"{owner}: {key}[{index}] must be a table, got {entry!r}")
    return entries


@dataclass(frozen=True)
class SpecificDiscountRuleConfig:
    """The atomic discount unit: a conditional percentage or fixed amount."""

    is_enabled: bool
    name: str
    type: str
    value: Decimal
    condition_min: Decimal | None = None
    condition_max: Decimal | None = None
    apply_fixed_once: bool = False
    # Parse errors found while loading; a rule carrying any is never applied.
    problems: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SpecificDiscountRuleConfig:
        problems: list[str] = []
        value = _lenient_decimal(raw, "value", problems, default=0)
        return cls(
            is_enabled=bool(raw.get("is_enabled", True)),
            name=str(raw.get("name", "")).strip(),
            type=str(raw.get("type", "")).strip().lower(),
            value=value if value is not None else Decimal("0"),
            condition_min=_lenient_decimal(raw, "condition_min", problems),
            condition_max=_lenient_decimal(raw, "condition_max", problems),
            apply_fixed_once=bool(raw.get("apply_fixed_once", False)),
            problems=tuple(problems),
        )


def _rule_slot(raw: Any, label: str) -> SpecificDiscountRuleConfig | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        logger.warning("Ignoring rule slot %s: expected a table, got %r", label, raw)
        return None
    return SpecificDiscountRuleConfig.from_mapping(raw)


def _warn_unknown_slots(table: Mapping[str, Any], known: Iterable[str], owner: str, suffix: str = "") -> None:
    """Warn about keys that look like rule slots but match none."""
    known = set(known)
    for key in table:
        if key.endswith(suffix) and key not in known:
            logger.warning(
                "Ignoring unknown rule slot %s.%s (expected one of: %s)", owner, key, ", ".join(sorted(known))
            )


PRODUCT_RULE_SLOTS = (
    "line_item_value_rule",
    "line_item_quantity_rule",
    "specific_qty_threshold_rule",
    "specific_unit_price_threshold_rule",
)
BATCH_RULE_SLOTS = (
    "line_item_value_rule",
    "line_item_quantity_rule",
)


@dataclass(frozen=True)
class ProductDiscountConfiguration:
    """Per-product rule slots, tried in declaration order."""

    id: str
    product_id: str
    product_name_at_configuration: str = ""
    is_active_for_product_in_campaign: bool = True
    line_item_value_rule: SpecificDiscountRuleConfig | None = None
    line_item_quantity_rule: SpecificDiscountRuleConfig | None = None
    specific_qty_threshold_rule: SpecificDiscountRuleConfig | None = None
    specific_unit_price_threshold_rule: SpecificDiscountRuleConfig | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ProductDiscountConfiguration:
        config_id = str(raw.get("id", "")).strip()
        product_id = str(raw.get("product_id", "")).strip()
        if not config_id or not product_id:
            raise ValueError(f"Product configuration requires 'id' and 'product_id': {dict(raw)!r}")
        owner = f"product[{config_id}]"
        _warn_unknown_slots(raw, PRODUCT_RULE_SLOTS, owner, suffix="_rule")
        return cls(
            id=config_id,
            product_id=product_id,
            product_name_at_configuration=str(raw.get("product_name_at_configuration", "")),
            is_active_for_product_in_campaign=bool(raw.get("is_active_for_product_in_campaign", True)),
            **{slot: _rule_slot(raw.get(slot), f"{owner}.{slot}") for slot in PRODUCT_RULE_SLOTS},
        )


@dataclass(frozen=True)
class BatchDiscountConfiguration:
    """Per-batch rule slots.

    Batch-level configuration is the older of the two per-item mechanisms, but
    it still takes precedence over product-level configuration.
    """

    id: str
    product_batch_id: str
    is_active_for_batch_in_campaign: bool = True
    line_item_value_rule: SpecificDiscountRuleConfig | None = None
    line_item_quantity_rule: SpecificDiscountRuleConfig | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BatchDiscountConfiguration:
        config_id = str(raw.get("id", "")).strip()
        batch_id = str(raw.get("product_batch_id", "")).strip()
        if not config_id or not batch_id:
            raise ValueError(f"Batch configuration requires 'id' and 'product_batch_id': {dict(raw)!r}")
        owner = f"batch[{config_id}]"
        _warn_unknown_slots(raw, BATCH_RULE_SLOTS, owner, suffix="_rule")
        return cls(
            id=config_id,
            product_batch_id=batch_id,
            is_active_for_batch_in_campaign=bool(raw.get("is_active_for_batch_in_campaign", True)),
            **{slot: _rule_slot(raw.get(slot), f"{owner}.{slot}") for slot in BATCH_RULE_SLOTS},
        )


@dataclass(frozen=True)
class BuyGetRule:
    """Buy ``buy_quantity`` of one product, get ``get_quantity`` of another discounted."""

    id: str
    name: str
    buy_product_id: str
    buy_quantity: Decimal
    get_product_id: str
    get_quantity: Decimal
    discount_type: str = "free"
    discount_value: Decimal = Decimal("100")
    is_repeatable: bool = False
    problems: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BuyGetRule:
        rule_id = str(raw.get("id", "")).strip()
        buy_product_id = str(raw.get("buy_product_id", "")).strip()
        get_product_id = str(raw.get("get_product_id", "")).strip()
        if not rule_id or not buy_product_id or not get_product_id:
            raise ValueError(
                f"Buy-get rule requires 'id', 'buy_product_id' and 'get_product_id': {dict(raw)!r}"
            )
        problems: list[str] = []
        buy_quantity = _lenient_decimal(raw, "buy_quantity", problems, default=0)
        get_quantity = _lenient_decimal(raw, "get_quantity", problems, default=0)
        discount_value = _lenient_decimal(raw, "discount_value", problems, default=100)
        return cls(
            id=rule_id,
            name=str(raw.get("name", "")).strip(),
            buy_product_id=buy_product_id,
            buy_quantity=buy_quantity if buy_quantity is not None else Decimal("0"),
            get_product_id=get_product_id,
            get_quantity=get_quantity if get_quantity is not None else Decimal("0"),
            discount_type=str(raw.get("discount_type", "free")).strip().lower(),
            discount_value=discount_value if discount_value is not None else Decimal("0"),
            is_repeatable=bool(raw.get("is_repeatable", False)),
            problems=tuple(problems),
        )


@dataclass(frozen=True)
class CatalogProduct:
    """Minimal product view, used only for display names."""

    id: str
    name: str


DEFAULT_RULE_SLOTS = (
    "default_line_item_value_rule",
    "default_line_item_quantity_rule",
    "default_specific_qty_threshold_rule",
    "default_specific_unit_price_threshold_rule",
)
CART_RULE_SLOTS = (
    "global_cart_price_rule",
    "global_cart_quantity_rule",
)


@dataclass(frozen=True)
class DiscountSet:
    """A named bundle of discount rules (a campaign)."""

    id: str
    name: str
    description: str = ""
    is_active: bool = True
    is_default: bool = False
    is_one_time_per_transaction: bool = False
    valid_from: datetime.date | None = None
    valid_to: datetime.date | None = None
    product_configurations: tuple[ProductDiscountConfiguration, ...] = field(default_factory=tuple)
    batch_configurations: tuple[BatchDiscountConfiguration, ...] = field(default_factory=tuple)
    buy_get_rules: tuple[BuyGetRule, ...] = field(default_factory=tuple)
    default_line_item_value_rule: SpecificDiscountRuleConfig | None = None
    default_line_item_quantity_rule: SpecificDiscountRuleConfig | None = None
    default_specific_qty_threshold_rule: SpecificDiscountRuleConfig | None = None
    default_specific_unit_price_threshold_rule: SpecificDiscountRuleConfig | None = None
    global_cart_price_rule: SpecificDiscountRuleConfig | None = None
    global_cart_quantity_rule: SpecificDiscountRuleConfig | None = None

    def is_available(self, on: datetime.date) -> bool:
        """True when the campaign is active and ``on`` falls in its validity window."""
        if not self.is_active:
            return False
        if self.valid_from is not None and on < self.valid_from:
            return False
        if self.valid_to is not None and on > self.valid_to:
            return False
        return True

    def iter_rule_slots(self) -> Iterable[tuple[str, SpecificDiscountRuleConfig]]:
        """Yield ``(label, config)`` for every populated rule slot in the campaign."""
        for slot in DEFAULT_RULE_SLOTS + CART_RULE_SLOTS:
            config = getattr(self, slot)
            if config is not None:
                yield slot, config
        for batch in self.batch_configurations:
            for slot in BATCH_RULE_SLOTS:
                config = getattr(batch, slot)
                if config is not None:
                    yield f"batch[{batch.id}].{slot}", config
        for product in self.product_configurations:
            for slot in PRODUCT_RULE_SLOTS:
                config = getattr(product, slot)
                if config is not None:
                    yield f"product[{product.id}].{slot}", config


def _optional_date(raw: Any) -> datetime.date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime.datetime):
        return raw.date()
    if isinstance(raw, datetime.date):
        return raw
    return datetime.date.fromisoformat(str(raw))


# TOML key under [default_rules] / [cart_rules] -> DiscountSet field.
_DEFAULT_RULE_KEYS = {
    "line_item_value": "default_line_item_value_rule",
    "line_item_quantity": "default_line_item_quantity_rule",
    "specific_qty_threshold": "default_specific_qty_threshold_rule",
    "specific_unit_price_threshold": "default_specific_unit_price_threshold_rule",
}
_CART_RULE_KEYS = {
    "price": "global_cart_price_rule",
    "quantity": "global_cart_quantity_rule",
}


def build_discount_set(raw: Mapping[str, Any]) -> DiscountSet:
    """Build a campaign from an in-memory mapping (e.g. parsed TOML).

    Structure is checked strictly; rule contents are not; malformed rules are
    reported and skipped during evaluation instead.
    """
    campaign_id = str(raw.get("id", "")).strip()
    name = str(raw.get("name", "")).strip()
    if not campaign_id or not name:
        raise ValueError("Campaign requires non-empty 'id' and 'name'")

    owner = f"Campaign {campaign_id}"
    default_rules = raw.get("default_rules", {})
    cart_rules = raw.get("cart_rules", {})
    if not isinstance(default_rules, Mapping) or not isinstance(cart_rules, Mapping):
        raise ValueError(f"{owner}: 'default_rules' and 'cart_rules' must be tables")
    _warn_unknown_slots(default_rules, _DEFAULT_RULE_KEYS, "default_rules")
    _warn_unknown_slots(cart_rules, _CART_RULE_KEYS, "cart_rules")
    slots = {
        field_name: _rule_slot(default_rules.get(key), f"default_rules.{key}")
        for key, field_name in _DEFAULT_RULE_KEYS.items()
    }
    slots.update(
        (field_name, _rule_slot(cart_rules.get(key), f"cart_rules.{key}")) for key, field_name in _CART_RULE_KEYS.items()
    )

    return DiscountSet(
        id=campaign_id,
        name=name,
        description=str(raw.get("description", "")),
        is_active=bool(raw.get("is_active", True)),
        is_default=bool(raw.get("is_default", False)),
        is_one_time_per_transaction=bool(raw.get("is_one_time_per_transaction", False)),
        valid_from=_optional_date(raw.get("valid_from")),
        valid_to=_optional_date(raw.get("valid_to")),
        product_configurations=tuple(
            ProductDiscountConfiguration.from_mapping(entry)
            for entry in table_entries(raw, "product_configurations", owner)
        ),
        batch_configurations=tuple(
            BatchDiscountConfiguration.from_mapping(entry)
            for entry in table_entries(raw, "batch_configurations", owner)
        ),
        buy_get_rules=tuple(BuyGetRule.from_mapping(entry) for entry in table_entries(raw, "buy_get_rules", owner)),
        **slots,
    )
