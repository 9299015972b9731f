"""Japanese receipt parsing using store formats and modular field parsers."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .normalize import normalize_ocr_text
from .parsers import DateParser, AmountParser, ItemParser, LegacyReceiptParser
from .parsers.base import ReceiptContext, ParsedReceipt, DEFAULT_STORE_NAME
from .templates import StoreFormatRegistry
from .templates.template_engine import STORE_SCAN_LINES
from .review import OCRConfidence, assess_ocr_confidence

logger = logging.getLogger(__name__)

# Normalized confidence below which the legacy parse may replace the primary one
FALLBACK_THRESHOLD = 0.5


@dataclass
class ReceiptAnalysis:
    """Final receipt plus the assessment of the primary parse."""
    receipt: ParsedReceipt
    primary: ParsedReceipt
    assessment: OCRConfidence
    used_fallback: bool = False
    store_format: Optional[str] = None
    confidence_scores: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'receipt': self.receipt.to_dict(),
            'confidence': self.assessment.confidence,
            'issues': list(self.assessment.issues),
            'suggestions': list(self.assessment.suggestions),
            'used_fallback': self.used_fallback,
            'store_format': self.store_format,
            'confidence_scores': dict(self.confidence_scores),
        }


class JapaneseReceiptParser:
    """
    Receipt parser combining the store format registry with field parsers.

    The primary parse identifies the store format, then extracts items, the
    total and the date. A legacy single-pass parse is always computed as a
    fallback candidate and wins only when the primary parse scores poorly
    and the legacy total is larger.
    """

    def __init__(self,
                 registry: Optional[StoreFormatRegistry] = None,
                 fallback_threshold: float = FALLBACK_THRESHOLD,
                 store_scan_lines: int = STORE_SCAN_LINES):
        """Initialize with specialized parser components and the format registry."""
        self.registry = registry or StoreFormatRegistry(scan_lines=store_scan_lines)
        self.fallback_threshold = fallback_threshold

        self.item_parser = ItemParser()
        self.amount_parser = AmountParser()
        self.date_parser = DateParser()
        self.legacy_parser = LegacyReceiptParser()

        logger.info(f"Initialized receipt parser with {len(self.registry.formats)} store formats")

    def parse(self, text: str) -> ParsedReceipt:
        """Primary parse only (store format + field parsers)."""
        receipt, _, _ = self._parse_primary(text)
        return receipt

    def parse_receipt(self, text: str) -> ReceiptAnalysis:
        """
        Parse a receipt and pick between the primary and legacy results.

        Args:
            text: Raw OCR text from receipt

        Returns:
            ReceiptAnalysis with the final receipt and confidence metadata
        """
        primary, store_format, scores = self._parse_primary(text)
        assessment = assess_ocr_confidence(text, primary)
        fallback = self.legacy_parser.parse(text)

        receipt = primary
        used_fallback = False
        if assessment.score < self.fallback_threshold and fallback.total > primary.total:
            # Whole record is replaced, store name and date included
            logger.info(f"Low confidence ({assessment.confidence}), using fallback parser: "
                        f"¥{primary.total} -> ¥{fallback.total}")
            receipt = fallback
            used_fallback = True

        return ReceiptAnalysis(
            receipt=receipt,
            primary=primary,
            assessment=assessment,
            used_fallback=used_fallback,
            store_format=store_format,
            confidence_scores=scores,
        )

    def _parse_primary(self, text: str):
        lines = normalize_ocr_text(text)
        match = self.registry.identify(lines)

        context = ReceiptContext(full_text=text or '', lines=lines, store_format=match.format)

        items_result = self.item_parser.parse(context)
        context.items = items_result.value

        amount_result = self.amount_parser.parse(context)
        date_result = self.date_parser.parse(context)

        receipt = ParsedReceipt(
            store_name=match.store_name or DEFAULT_STORE_NAME,
            total=amount_result.value,
            items=list(context.items),
            date=date_result.value if date_result else None,
        )
        scores = {
            'items': items_result.confidence,
            'amount': amount_result.confidence,
            'date': date_result.confidence if date_result else 0.0,
        }

        logger.info(f"Parsed receipt: store={receipt.store_name}, total=¥{receipt.total}, "
                    f"items={len(receipt.items)}, date={receipt.date}")
        return receipt, match.format.name, scores
