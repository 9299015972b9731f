"""OCR confidence scoring and review queue for uncertain extractions."""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from pathlib import Path

from .parsers.base import ParsedReceipt, DEFAULT_STORE_NAME

logger = logging.getLogger(__name__)

# Raw OCR text shorter than this is too little to trust
MIN_TEXT_LENGTH = 50
HIGH_TOTAL_LIMIT = 100000


@dataclass
class OCRConfidence:
    """0-100 heuristic quality estimate of one parse."""
    confidence: int
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def score(self) -> float:
        """Confidence normalized to [0, 1]."""
        return self.confidence / 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'confidence': self.confidence,
            'issues': list(self.issues),
            'suggestions': list(self.suggestions),
        }


def assess_ocr_confidence(raw_text: str, receipt: ParsedReceipt) -> OCRConfidence:
    """
    Score a parsed receipt by subtracting fixed penalties for each symptom.

    Args:
        raw_text: OCR text the receipt was parsed from
        receipt: Assembled receipt

    Returns:
        OCRConfidence with score in [0, 100] and one issue/suggestion per deduction
    """
    confidence = 100
    issues: List[str] = []
    suggestions: List[str] = []

    if receipt.total == 0:
        confidence -= 30
        issues.append('合計金額が検出されませんでした')
        suggestions.append('画像を明るく撮り直してください')
    elif receipt.total > HIGH_TOTAL_LIMIT:
        confidence -= 20
        issues.append('金額が高額すぎる可能性があります')
        suggestions.append('金額を手動で確認してください')

    if not receipt.store_name or receipt.store_name == DEFAULT_STORE_NAME:
        confidence -= 15
        issues.append('店舗名が検出されませんでした')
        suggestions.append('レシート上部を含む全体を撮影してください')

    if not receipt.items:
        confidence -= 20
        issues.append('商品情報が検出されませんでした')
        suggestions.append('文字がはっきり見える角度で撮影してください')

    if len(raw_text or '') < MIN_TEXT_LENGTH:
        confidence -= 25
        issues.append('読み取り文字数が少なすぎます')
        suggestions.append('より高解像度で撮影してください')

    confidence = max(0, min(100, confidence))
    if issues:
        logger.debug(f"OCR confidence {confidence}: {'; '.join(issues)}")

    return OCRConfidence(confidence=confidence, issues=issues, suggestions=suggestions)


@dataclass
class ReviewItem:
    """Represents a receipt that needs manual correction."""
    file_path: str
    reason: str
    suggested_store: Optional[str] = None
    suggested_total: Optional[int] = None
    suggested_date: Optional[str] = None
    suggested_category: Optional[str] = None
    confidence: Optional[int] = None
    suggestions: List[str] = field(default_factory=list)
    raw_snippet: str = ""


class ReviewQueue:
    """Manages receipts that need manual review."""

    def __init__(self, fallback_threshold: float = 0.5):
        """
        Initialize review queue.

        Args:
            fallback_threshold: Normalized confidence below which a receipt is queued
        """
        self.items: List[ReviewItem] = []
        self.fallback_threshold = fallback_threshold

    def should_review(self, assessment: OCRConfidence, used_fallback: bool = False) -> bool:
        """Low confidence or a legacy-parser override both need a human look."""
        return used_fallback or assessment.score < self.fallback_threshold

    def add_item(self,
                 file_path: str,
                 reason: str,
                 receipt: Optional[ParsedReceipt] = None,
                 category: Optional[str] = None,
                 confidence: Optional[int] = None,
                 suggestions: Optional[List[str]] = None,
                 raw_snippet: str = ""):
        """Add an item to the review queue."""
        item = ReviewItem(
            file_path=file_path,
            reason=reason,
            suggested_store=receipt.store_name if receipt else None,
            suggested_total=receipt.total if receipt else None,
            suggested_date=receipt.date if receipt else None,
            suggested_category=category,
            confidence=confidence,
            suggestions=list(suggestions or []),
            raw_snippet=raw_snippet,
        )
        self.items.append(item)
        logger.debug(f"Added to review queue: {Path(file_path).name} - {reason}")

    def add_from_analysis(self,
                          file_path: str,
                          raw_text: str,
                          receipt: ParsedReceipt,
                          assessment: OCRConfidence,
                          used_fallback: bool = False,
                          category: Optional[str] = None) -> bool:
        """
        Queue a receipt if its analysis is uncertain.

        Args:
            file_path: Source file of the OCR text
            raw_text: Raw OCR text for the snippet
            receipt: Final receipt after fallback selection
            assessment: Confidence assessment of the primary parse
            used_fallback: Whether the legacy parser result replaced the primary one
            category: Receipt-level category, if one was assigned

        Returns:
            True if the receipt was queued
        """
        if not self.should_review(assessment, used_fallback):
            return False

        reasons = list(assessment.issues)
        if used_fallback:
            reasons.append('簡易パーサーの結果を採用しました')
        reason = '; '.join(reasons) or 'low confidence'

        # First 200 chars, control characters removed for Excel
        snippet = (raw_text or '').replace('\n', ' ')[:200]
        snippet = ''.join(char for char in snippet if ord(char) >= 32 or char in '\t\r')
        if len(raw_text or '') > 200:
            snippet += "..."

        self.add_item(
            file_path=file_path,
            reason=reason,
            receipt=receipt,
            category=category,
            confidence=assessment.confidence,
            suggestions=assessment.suggestions,
            raw_snippet=snippet,
        )
        logger.info(f"Sending {Path(file_path).name} to review: {reason}")
        return True

    def get_summary(self) -> Dict[str, Any]:
        """Count queued receipts per issue."""
        reason_counts: Dict[str, int] = {}
        for item in self.items:
            for reason in item.reason.split('; '):
                reason_counts[reason] = reason_counts.get(reason, 0) + 1
        return {
            'total_items': len(self.items),
            'reason_counts': reason_counts,
        }

    def to_records(self) -> List[Dict[str, Any]]:
        """Rows for the export sheet."""
        return [
            {
                'File': Path(item.file_path).name,
                'Reason': item.reason,
                'Store': item.suggested_store,
                'Total': item.suggested_total,
                'Date': item.suggested_date,
                'Category': item.suggested_category,
                'Confidence': item.confidence,
                'Suggestions': ' / '.join(item.suggestions),
                'Snippet': item.raw_snippet,
            }
            for item in self.items
        ]

    def clear(self):
        self.items = []
