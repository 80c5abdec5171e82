"""Core domain models for the discount engine.

This module provides the data models shared by the engine and its callers:
- DiscountSet and its nested rule configurations (campaigns)
- LineItemData, DiscountContext: the cart being evaluated
- DiscountResult, LineItemResult, AppliedRuleInfo: the discount breakdown

Usage:
    from tillrules.domain import DiscountContext, DiscountResult, DiscountSet
"""

from tillrules.domain.campaign import (
    BatchDiscountConfiguration,
    BuyGetRule,
    CatalogProduct,
    DiscountSet,
    ProductDiscountConfiguration,
    SpecificDiscountRuleConfig,
    build_discount_set,
    table_entries,
    to_decimal,
)
from tillrules.domain.context import DiscountContext, LineItemData
from tillrules.domain.result import AppliedRuleInfo, DiscountResult, LineItemResult

__all__ = [
    "AppliedRuleInfo",
    "BatchDiscountConfiguration",
    "BuyGetRule",
    "CatalogProduct",
    "DiscountContext",
    "DiscountResult",
    "DiscountSet",
    "LineItemData",
    "LineItemResult",
    "ProductDiscountConfiguration",
    "SpecificDiscountRuleConfig",
    "build_discount_set",
    "table_entries",
    "to_decimal",
]
