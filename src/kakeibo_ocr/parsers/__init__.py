"""Receipt parsing components - modular, maintainable parsers."""

from .base import ReceiptItem, ParsedReceipt, ReceiptContext, ParseResult
from .date_parser import DateParser
from .amount_parser import AmountParser
from .item_parser import ItemParser
from .legacy_parser import LegacyReceiptParser
from .text_parser import TextExpense, parse_text_expense

__all__ = [
    'ReceiptItem', 'ParsedReceipt', 'ReceiptContext', 'ParseResult',
    'DateParser', 'AmountParser', 'ItemParser', 'LegacyReceiptParser',
    'TextExpense', 'parse_text_expense',
]
