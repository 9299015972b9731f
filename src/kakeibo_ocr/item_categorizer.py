"""Keyword-based categorization of receipt line items."""

import logging
from typing import Dict, Optional

from .parsers.base import ParsedReceipt
from .rules import CategoryRules, get_default_rules, OTHER_CATEGORY

logger = logging.getLogger(__name__)

HEALTH_CATEGORY = '医療・健康'
DAILY_GOODS_CATEGORY = '日用品'
TRANSPORT_CATEGORY = '交通費'


def _match_keywords(name: str, rules: CategoryRules) -> Optional[str]:
    for category, keywords in rules.item_keywords.items():
        if any(keyword.lower() in name for keyword in keywords):
            return category
    return None


def auto_classify_category(item_name: str, store_name: Optional[str] = None,
                           rules: Optional[CategoryRules] = None) -> str:
    """
    Guess the category of one receipt item.

    Store hints are checked first: a pharmacy biases toward 医療・健康 unless
    the item reads as daily goods, and a fuel station means 交通費. Otherwise
    the item keyword dictionary is scanned in order.

    Args:
        item_name: Item name as printed on the receipt
        store_name: Store the item was bought at
        rules: Category vocabulary (bundled file by default)

    Returns:
        Category name, その他 when nothing matches
    """
    rules = rules or get_default_rules()
    name = (item_name or '').lower()

    if store_name:
        if any(keyword in store_name for keyword in rules.pharmacy_store_keywords):
            daily_goods = rules.item_keywords.get(DAILY_GOODS_CATEGORY, [])
            if any(keyword.lower() in name for keyword in daily_goods):
                return DAILY_GOODS_CATEGORY
            return HEALTH_CATEGORY
        if any(keyword in store_name for keyword in rules.fuel_store_keywords):
            return TRANSPORT_CATEGORY

    return _match_keywords(name, rules) or OTHER_CATEGORY


def categorize_receipt(receipt: ParsedReceipt, rules: Optional[CategoryRules] = None) -> str:
    """
    Receipt-level category: the one with the largest summed item spend.

    Items that classify as その他 are ignored; ties go to the category seen first.
    """
    totals: Dict[str, int] = {}
    for item in receipt.items:
        category = auto_classify_category(item.name, receipt.store_name, rules)
        if category == OTHER_CATEGORY:
            continue
        totals[category] = totals.get(category, 0) + item.price

    if not totals:
        return OTHER_CATEGORY

    # max() keeps the first of equal values, dicts keep insertion order
    best = max(totals.items(), key=lambda entry: entry[1])[0]
    logger.debug(f"Receipt category {best} from item totals {totals}")
    return best
