"""Store format definition used by the registry."""

from dataclasses import dataclass, field
from typing import Optional, List, Pattern
import re
import logging

from ..parsers.base import AMOUNT, DEFAULT_ITEM_PATTERN

logger = logging.getLogger(__name__)


def total_pattern(label: str) -> Pattern:
    """Build a "<label> ¥1,234" total pattern."""
    return re.compile(label + r'\s*¥?' + AMOUNT, re.IGNORECASE)


@dataclass(frozen=True)
class StoreFormat:
    """Keyword signature plus merchant-specific extraction patterns."""
    name: str
    keywords: List[str]
    total_patterns: List[Pattern]
    item_pattern: Pattern = DEFAULT_ITEM_PATTERN
    tax_patterns: List[Pattern] = field(default_factory=list)
    generic: bool = False

    def __post_init__(self):
        if not self.total_patterns:
            raise ValueError(f"Store format {self.name} needs at least one total pattern")
        if not self.item_pattern.pattern:
            raise ValueError(f"Store format {self.name} needs an item pattern")

    def matches(self, line: str) -> bool:
        """Case-insensitive substring match of any signature keyword."""
        line_lower = line.lower()
        return any(keyword.lower() in line_lower for keyword in self.keywords)


@dataclass(frozen=True)
class StoreMatch:
    """Outcome of store identification."""
    store_name: Optional[str]
    format: StoreFormat
    line_index: Optional[int] = None
