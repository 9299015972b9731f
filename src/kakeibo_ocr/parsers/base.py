"""Base classes and data types shared by the receipt parsers."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict, List
from dataclasses import dataclass, field, asdict
import logging
import re

from ..normalize import normalize_ocr_text

logger = logging.getLogger(__name__)

# Store name used when no merchant could be identified
DEFAULT_STORE_NAME = 'レシート'

# "1,234" or "1234"
AMOUNT = r'(\d{1,3}(?:,\d{3})+|\d+)'

# Name capture followed by a trailing price, e.g. "おにぎり ¥150"
DEFAULT_ITEM_PATTERN = re.compile(r'^(.+?)\s+¥?' + AMOUNT + r'円?$')


def parse_amount(raw: str) -> Optional[int]:
    """Convert a comma-grouped numeric token to int, or None."""
    cleaned = raw.replace(',', '').strip()
    if not cleaned.isdigit():
        return None
    return int(cleaned)


@dataclass
class ReceiptItem:
    """One purchased line item."""
    name: str
    price: int
    quantity: int = 1


@dataclass
class ParsedReceipt:
    """Structured result of one receipt parse."""
    store_name: str
    total: int
    items: List[ReceiptItem] = field(default_factory=list)
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParseResult:
    """Result of a parsing operation with confidence and metadata."""
    value: Any
    confidence: float
    source_text: str = ""
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


@dataclass
class ReceiptContext:
    """Context information about a receipt for parsing."""
    full_text: str
    lines: List[str] = None
    store_format: Any = None
    items: List[ReceiptItem] = None

    def __post_init__(self):
        if self.lines is None:
            self.lines = normalize_ocr_text(self.full_text)
        if self.items is None:
            self.items = []


class BaseParser(ABC):
    """Base class for all receipt parsers."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Parse the specific field from receipt context.

        Args:
            context: Receipt context with normalized lines

        Returns:
            ParseResult with value and confidence, or None if parsing failed
        """
        pass

    def _log_result(self, result: Optional[ParseResult], context: ReceiptContext):
        """Log parsing result for debugging."""
        if result:
            self.logger.info(f"Parsed: {result.value} (confidence: {result.confidence:.2f})")
        else:
            self.logger.warning("Parsing failed - no result")
