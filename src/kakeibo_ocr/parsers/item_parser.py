"""Line item extraction from normalized receipt lines."""

import re
import logging
from typing import Optional, List, Pattern, Set, Tuple
from .base import (
    BaseParser, ParseResult, ReceiptContext, ReceiptItem,
    AMOUNT, DEFAULT_ITEM_PATTERN, parse_amount,
)

logger = logging.getLogger(__name__)

# Totals, tax and payment lines are never purchased items
SUMMARY_KEYWORDS = re.compile(
    r'合計|総計|小計|税|対象|お預|預り|釣|おつり|お支払|支払|'
    r'お買上|現金|クレジット|点数|ポイント|残高|値引|割引|^計'
)

NAME_ONLY_LINE = re.compile(r'^[^\d¥]+$')
PRICE_ONLY_LINE = re.compile(r'^¥?' + AMOUNT + r'円?$')

# A counter followed by 入/パック/セット/袋 is a pack size, not a quantity
QUANTITY_PATTERNS = [
    re.compile(r'[x×*]\s*(\d+)', re.IGNORECASE),
    re.compile(r'(\d+)\s*(?:個|点|コ)(?!入|パック|セット|袋)'),
]

NAME_NOISE = re.compile(r'[¥\d,円*＊]')
_WHITESPACE_RE = re.compile(r'\s+')

MAX_ITEM_PRICE = 50000


def clean_item_name(raw_name: str) -> str:
    """Strip digits, currency symbols and asterisks, then collapse whitespace."""
    name = NAME_NOISE.sub('', raw_name)
    return _WHITESPACE_RE.sub(' ', name).strip()


def extract_quantity(raw_name: str) -> Tuple[str, int]:
    """Split a quantity marker (x2, ×2, 2個) off an item name."""
    for pattern in QUANTITY_PATTERNS:
        match = pattern.search(raw_name)
        if match:
            quantity = int(match.group(1))
            if quantity >= 1:
                stripped = raw_name[:match.start()] + ' ' + raw_name[match.end():]
                return stripped, quantity
    return raw_name, 1


def is_summary_line(line: str) -> bool:
    return bool(SUMMARY_KEYWORDS.search(line))


class ItemParser(BaseParser):
    """Extract purchased items using the active store item pattern."""

    def parse(self, context: ReceiptContext) -> ParseResult:
        """
        Extract line items.

        Each line is matched against the store's item pattern; a name-only line
        immediately followed by a price-only line is also accepted as one item.

        Args:
            context: Receipt context with normalized lines and store format

        Returns:
            ParseResult whose value is the deduplicated list of ReceiptItem
        """
        item_pattern = self._active_pattern(context)
        items: List[ReceiptItem] = []
        seen: Set[Tuple[str, int]] = set()
        lines = context.lines

        for idx, line in enumerate(lines):
            if is_summary_line(line):
                continue

            item = self._match_single_line(line, item_pattern)
            if item is None and idx + 1 < len(lines):
                item = self._match_split_line(line, lines[idx + 1])

            if item is None:
                continue

            key = (item.name, item.price)
            if key in seen:
                self.logger.debug(f"Duplicate item skipped: {item.name} ¥{item.price}")
                continue
            seen.add(key)
            items.append(item)

        confidence = 0.8 if items else 0.0
        result = ParseResult(
            value=items,
            confidence=confidence,
            metadata={'item_count': len(items)},
        )
        self._log_result(result, context)
        return result

    def _active_pattern(self, context: ReceiptContext) -> Pattern:
        if context.store_format is not None:
            return context.store_format.item_pattern
        return DEFAULT_ITEM_PATTERN

    def _match_single_line(self, line: str, item_pattern: Pattern) -> Optional[ReceiptItem]:
        match = item_pattern.match(line)
        if not match:
            return None
        return self._build_item(match.group(1), match.group(2))

    def _match_split_line(self, line: str, next_line: str) -> Optional[ReceiptItem]:
        """Name and price printed on consecutive lines."""
        if not NAME_ONLY_LINE.match(line):
            return None
        price_match = PRICE_ONLY_LINE.match(next_line)
        if not price_match:
            return None
        return self._build_item(line, price_match.group(1))

    def _build_item(self, raw_name: str, raw_price: str) -> Optional[ReceiptItem]:
        price = parse_amount(raw_price)
        if price is None or not 0 < price < MAX_ITEM_PRICE:
            return None

        raw_name, quantity = extract_quantity(raw_name)
        name = clean_item_name(raw_name)
        if not name or not re.search(r'\w', name):
            return None

        return ReceiptItem(name=name, price=price, quantity=quantity)
