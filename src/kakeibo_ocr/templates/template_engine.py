"""Store format registry and selection."""

import logging
from typing import List, Optional, Dict
from .base_template import StoreFormat, StoreMatch
from .stores import BUILTIN_FORMATS, GENERIC

logger = logging.getLogger(__name__)

# Store names are printed at the top of the slip
STORE_SCAN_LINES = 10


class StoreFormatRegistry:
    """Ordered registry of known merchant formats with a generic fallback."""

    def __init__(self, formats: Optional[List[StoreFormat]] = None,
                 fallback: StoreFormat = GENERIC,
                 scan_lines: int = STORE_SCAN_LINES):
        """
        Initialize registry.

        Args:
            formats: Store formats in match priority order (built-ins by default)
            fallback: Format used when no signature matches
            scan_lines: Number of leading lines searched for a signature
        """
        self.formats: List[StoreFormat] = list(BUILTIN_FORMATS if formats is None else formats)
        self.fallback = fallback
        self.scan_lines = scan_lines

        logger.debug(f"Initialized StoreFormatRegistry with {len(self.formats)} formats")

    def identify(self, lines: List[str]) -> StoreMatch:
        """
        Return the first format whose keywords appear in the leading lines.

        Args:
            lines: Normalized receipt lines

        Returns:
            StoreMatch with store name (None for the generic fallback)
        """
        head = lines[:self.scan_lines]
        for store_format in self.formats:
            for line_idx, line in enumerate(head):
                if store_format.matches(line):
                    logger.info(f"Identified store: {store_format.name}")
                    return StoreMatch(store_format.name, store_format, line_idx)

        logger.info("No store format matched, using generic patterns")
        return StoreMatch(None, self.fallback)

    def add_format(self, store_format: StoreFormat):
        """Append a custom store format (lowest priority)."""
        if not isinstance(store_format, StoreFormat):
            raise ValueError("Store format must be a StoreFormat")
        self.formats.append(store_format)
        logger.info(f"Added custom store format: {store_format.name}")

    def get_supported_stores(self) -> Dict[str, List[str]]:
        """Map each store name to its signature keywords."""
        return {store_format.name: list(store_format.keywords) for store_format in self.formats}
