"""Total amount extraction with store-specific and generic keyword patterns."""

import re
import logging
from typing import List, Tuple
from .base import BaseParser, ParseResult, ReceiptContext, AMOUNT, parse_amount
from .date_parser import DATE_PATTERNS

logger = logging.getLogger(__name__)

# Keyword-anchored total patterns applied to every receipt
GENERAL_TOTAL_PATTERNS = [
    re.compile(r'(?:合計|総計|計|小計|税込)[^\d]*¥?' + AMOUNT),
    re.compile(r'¥\s*' + AMOUNT + r'[^\d]*(?:合計|総計|計|小計)'),
    re.compile(AMOUNT + r'[^\d]*円[^\d]*(?:合計|総計|計)'),
]

# Last resort: any 2-5 digit (or comma grouped) token
NUMERIC_TOKEN = re.compile(r'(?<![\d,])(\d{1,3}(?:,\d{3})+|\d{2,5})(?![\d,])')
PLAUSIBLE_RANGE = (100, 100000)

# Confidence by the stage that produced the total
STAGE_CONFIDENCE = {
    'store': 0.9,
    'keyword': 0.8,
    'items_sum': 0.6,
    'numeric_scan': 0.3,
    'none': 0.0,
}


class AmountParser(BaseParser):
    """Extract the receipt total, preferring the largest keyword-anchored figure."""

    def parse(self, context: ReceiptContext) -> ParseResult:
        """
        Extract total amount from the receipt lines.

        The printed total is assumed to be the largest relevant figure on the
        slip, so the maximum candidate across the pattern stages wins.

        Args:
            context: Receipt context with normalized lines, store format and items

        Returns:
            ParseResult with amount in JPY (0 when nothing was found)
        """
        candidates: List[Tuple[int, str, str]] = []

        self._find_store_amounts(context, candidates)
        self._find_keyword_amounts(context, candidates)

        if candidates:
            amount, stage, source_line = max(candidates, key=lambda c: c[0])
            result = ParseResult(
                value=amount,
                confidence=STAGE_CONFIDENCE[stage],
                source_text=source_line,
                metadata={'stage': stage, 'candidates': sorted({c[0] for c in candidates})},
            )
        elif context.items:
            amount = sum(item.price for item in context.items)
            result = ParseResult(
                value=amount,
                confidence=STAGE_CONFIDENCE['items_sum'],
                metadata={'stage': 'items_sum', 'item_count': len(context.items)},
            )
        else:
            result = self._scan_numeric_tokens(context)

        self._log_result(result, context)
        return result

    def _find_store_amounts(self, context: ReceiptContext, candidates: List):
        """Apply the store format's total and tax-inclusive patterns."""
        store_format = context.store_format
        if store_format is None:
            return

        for pattern in list(store_format.total_patterns) + list(store_format.tax_patterns):
            for line in context.lines:
                match = pattern.search(line)
                if not match:
                    continue
                amount = parse_amount(match.group(1))
                if amount and amount > 0:
                    candidates.append((amount, 'store', line))

    def _find_keyword_amounts(self, context: ReceiptContext, candidates: List):
        """Apply the generic 合計/総計/計/小計/税込 patterns."""
        for pattern in GENERAL_TOTAL_PATTERNS:
            for line in context.lines:
                for match in pattern.finditer(line):
                    amount = parse_amount(match.group(1))
                    if amount and amount > 0:
                        candidates.append((amount, 'keyword', line))

    def _scan_numeric_tokens(self, context: ReceiptContext) -> ParseResult:
        """Largest plausible numeric token outside date lines."""
        low, high = PLAUSIBLE_RANGE
        best = 0
        best_line = ""

        for line in context.lines:
            if any(pattern.search(line) for pattern, _ in DATE_PATTERNS):
                continue
            for match in NUMERIC_TOKEN.finditer(line):
                amount = parse_amount(match.group(1))
                if amount and low <= amount <= high and amount > best:
                    best = amount
                    best_line = line

        if best:
            self.logger.debug(f"Numeric scan fallback picked ¥{best}")
            return ParseResult(
                value=best,
                confidence=STAGE_CONFIDENCE['numeric_scan'],
                source_text=best_line,
                metadata={'stage': 'numeric_scan'},
            )

        self.logger.warning("No amount candidates found")
        return ParseResult(value=0, confidence=STAGE_CONFIDENCE['none'], metadata={'stage': 'none'})
