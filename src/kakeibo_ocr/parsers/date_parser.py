"""Date parsing with Gregorian and Japanese era format support."""

import re
import logging
from typing import Optional
from datetime import date
from .base import BaseParser, ParseResult, ReceiptContext

logger = logging.getLogger(__name__)

# Japanese era mappings (令和1年 = 2019)
WAREKI_OFFSETS = {
    '令和': 2018,
    '平成': 1988,
    '昭和': 1925,
}

# Date shapes in priority order
DATE_PATTERNS = [
    (re.compile(r'(?<!\d)(\d{4})[/\-年.](\d{1,2})[/\-月.](\d{1,2})日?'), 'ymd'),     # YYYY/MM/DD
    (re.compile(r'(?<!\d)(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})(?!\d)'), 'mdy'),        # MM/DD/YYYY
    (re.compile(r'(?<!\d)(\d{2})[/\-.](\d{1,2})[/\-.](\d{1,2})(?!\d)'), 'short_ymd'), # YY/MM/DD
    (re.compile(r'(令和|平成|昭和)(\d{1,2}|元)年\s*(\d{1,2})月\s*(\d{1,2})日'), 'wareki'),
]

# Receipts outside this window are treated as misreads
VALID_YEARS = (2020, 2030)


def resolve_date(match: re.Match, pattern_type: str) -> Optional[date]:
    """Turn a pattern match into a calendar date, or None if invalid."""
    try:
        if pattern_type == 'ymd':
            year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
        elif pattern_type == 'mdy':
            month, day, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
        elif pattern_type == 'short_ymd':
            year = 2000 + int(match.group(1))
            month, day = int(match.group(2)), int(match.group(3))
        elif pattern_type == 'wareki':
            era_year = 1 if match.group(2) == '元' else int(match.group(2))
            year = WAREKI_OFFSETS[match.group(1)] + era_year
            month, day = int(match.group(3)), int(match.group(4))
        else:
            return None
    except (ValueError, KeyError):
        return None

    if not VALID_YEARS[0] <= year <= VALID_YEARS[1]:
        return None

    try:
        return date(year, month, day)
    except ValueError:
        return None


class DateParser(BaseParser):
    """Specialized parser for extracting dates from Japanese receipts."""

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the first valid date from the receipt lines.

        Args:
            context: Receipt context with normalized lines

        Returns:
            ParseResult with ISO date string, or None when no date was found
        """
        for line in context.lines:
            for pattern, pattern_type in DATE_PATTERNS:
                for match in pattern.finditer(line):
                    resolved = resolve_date(match, pattern_type)
                    if resolved is None:
                        self.logger.debug(f"Rejected date candidate '{match.group()}' ({pattern_type})")
                        continue

                    result = ParseResult(
                        value=resolved.isoformat(),
                        confidence=0.9 if pattern_type in ('ymd', 'wareki') else 0.7,
                        source_text=line,
                        metadata={'pattern_type': pattern_type, 'raw': match.group()},
                    )
                    self._log_result(result, context)
                    return result

        self.logger.debug("No valid date found")
        return None
