"""Parse short chat expense phrases such as "500 ランチ" or "6/29 4800 家賃"."""

import re
import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Optional, Dict, Any

from dateutil import parser as date_parser

from ..normalize import normalize_line

logger = logging.getLogger(__name__)

AMOUNT_TOKEN = re.compile(r'^¥?(\d+)円?$')
DATE_TOKEN = re.compile(r'^(?:\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{1,2}|\d{1,2}月\d{1,2}日?)$')
KANJI_MONTH_DAY = re.compile(r'^(\d{1,2})月(\d{1,2})日?$')

DEFAULT_DESCRIPTION = '支出'


@dataclass
class TextExpense:
    """Expense entered as free text."""
    amount: int
    date: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _resolve_date(token: str, today: date) -> str:
    """Resolve a date token to ISO format, defaulting to the current year."""
    kanji = KANJI_MONTH_DAY.match(token)
    if kanji:
        token = f"{kanji.group(1)}/{kanji.group(2)}"

    try:
        parsed = date_parser.parse(token, default=datetime(today.year, 1, 1))
    except (ValueError, OverflowError):
        logger.warning(f"Unrecognized date '{token}', using today")
        return today.isoformat()
    return parsed.date().isoformat()


def parse_text_expense(text: str, today: Optional[date] = None) -> Optional[TextExpense]:
    """
    Parse a chat message into amount, date and description.

    Args:
        text: Message text
        today: Reference date for missing dates and years (defaults to today)

    Returns:
        TextExpense, or None when the message contains no amount
    """
    today = today or date.today()
    tokens = normalize_line(text or '').split()

    amount_idx = None
    amount = 0
    for idx, token in enumerate(tokens):
        match = AMOUNT_TOKEN.match(token.replace(',', ''))
        if match:
            amount_idx = idx
            amount = int(match.group(1))
            break

    if amount_idx is None:
        logger.debug(f"No amount in message: {text!r}")
        return None

    date_idx = None
    for idx, token in enumerate(tokens):
        if idx != amount_idx and DATE_TOKEN.match(token):
            date_idx = idx
            break

    expense_date = _resolve_date(tokens[date_idx], today) if date_idx is not None else today.isoformat()

    description = ' '.join(
        token for idx, token in enumerate(tokens) if idx not in (amount_idx, date_idx)
    ) or DEFAULT_DESCRIPTION

    return TextExpense(amount=amount, date=expense_date, description=description)
