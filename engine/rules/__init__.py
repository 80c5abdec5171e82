"""Discount rule kinds, in engine priority order."""

from tillrules.engine.rules.base import CartRule, DiscountRule, ItemRule, RuleSlot
from tillrules.engine.rules.batch_specific import BatchSpecificRule
from tillrules.engine.rules.buy_x_get_y import BuyXGetYRule
from tillrules.engine.rules.cart_total import CartTotalRule
from tillrules.engine.rules.custom_item import CustomItemDiscountRule
from tillrules.engine.rules.default_item import DefaultItemRule
from tillrules.engine.rules.product_level import ProductLevelRule

__all__ = [
    "DiscountRule",
    "ItemRule",
    "CartRule",
    "RuleSlot",
    "CustomItemDiscountRule",
    "BatchSpecificRule",
    "ProductLevelRule",
    "BuyXGetYRule",
    "DefaultItemRule",
    "CartTotalRule",
]
