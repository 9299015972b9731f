"""Simple single-format receipt parser kept as a fallback candidate."""

import re
import logging
from typing import List, Optional

from .base import ParsedReceipt, ReceiptItem, DEFAULT_STORE_NAME, AMOUNT, parse_amount
from .date_parser import DATE_PATTERNS, resolve_date
from .item_parser import clean_item_name, is_summary_line
from ..normalize import normalize_ocr_text

logger = logging.getLogger(__name__)

TOTAL_LINE = re.compile(r'合計|総計|計|小計|税込')
ITEM_LINE = re.compile(r'¥|円|\d{2,}')
NUMBER = re.compile(AMOUNT)

# Item prices at or above this share of the total are assumed to be the total itself
TOTAL_SHARE_LIMIT = 0.8


def extract_numbers(text: str) -> List[int]:
    """All positive integers in a line, comma groups included."""
    numbers = []
    for token in NUMBER.findall(text):
        value = parse_amount(token)
        if value:
            numbers.append(value)
    return numbers


class LegacyReceiptParser:
    """
    Format-agnostic parser: first line is the store, keyword lines carry the total.

    It has no notion of store formats, so it is weaker than the staged parser,
    but it is independent of it, which makes it a useful second opinion.
    """

    def parse(self, ocr_text: str) -> ParsedReceipt:
        lines = normalize_ocr_text(ocr_text)
        store_name = lines[0] if lines else ''

        total = 0
        for line in lines:
            if TOTAL_LINE.search(line):
                amounts = extract_numbers(line)
                if amounts:
                    total = max(amounts)

        items: List[ReceiptItem] = []
        for line in lines:
            if TOTAL_LINE.search(line) or is_summary_line(line) or not ITEM_LINE.search(line):
                continue
            if any(pattern.search(line) for pattern, _ in DATE_PATTERNS):
                continue
            amounts = extract_numbers(line)
            if not amounts:
                continue
            price = amounts[-1]
            name = clean_item_name(NUMBER.sub('', line))
            if not re.search(r'\w', name) or price <= 0:
                continue
            if total > 0 and price >= total * TOTAL_SHARE_LIMIT:
                continue
            items.append(ReceiptItem(name=name, price=price))

        if total == 0 and items:
            total = sum(item.price for item in items)

        if total == 0:
            all_numbers = [n for line in lines for n in extract_numbers(line)]
            if all_numbers:
                total = max(all_numbers)

        receipt = ParsedReceipt(
            store_name=store_name or DEFAULT_STORE_NAME,
            total=total,
            items=items,
            date=self._find_date(lines),
        )
        logger.debug(f"Legacy parse: store={receipt.store_name} total={receipt.total} items={len(items)}")
        return receipt

    def _find_date(self, lines: List[str]) -> Optional[str]:
        """Last recognizable date on the slip, as ISO string."""
        found = None
        for line in lines:
            for pattern, pattern_type in DATE_PATTERNS:
                match = pattern.search(line)
                if match:
                    resolved = resolve_date(match, pattern_type)
                    if resolved:
                        found = resolved.isoformat()
                        break
        return found
