"""Kakeibo OCR - Turn Japanese receipt OCR text into categorized expense records."""

__version__ = "1.0.0"
__author__ = "Kakeibo OCR Team"
__email__ = ""

from .normalize import normalize_ocr_text
from .parse import JapaneseReceiptParser, ReceiptAnalysis
from .parsers import ParsedReceipt, ReceiptItem, parse_text_expense
from .review import OCRConfidence, ReviewQueue, ReviewItem, assess_ocr_confidence
from .categories import CategoryNormalizer, normalize_category_name, suggest_categories
from .classify import CategoryClassifier, ClassificationResult, fallback_classification, resolve_category
from .item_categorizer import auto_classify_category, categorize_receipt

__all__ = [
    'normalize_ocr_text',
    'JapaneseReceiptParser',
    'ReceiptAnalysis',
    'ParsedReceipt',
    'ReceiptItem',
    'parse_text_expense',
    'OCRConfidence',
    'ReviewQueue',
    'ReviewItem',
    'assess_ocr_confidence',
    'CategoryNormalizer',
    'normalize_category_name',
    'suggest_categories',
    'CategoryClassifier',
    'ClassificationResult',
    'fallback_classification',
    'resolve_category',
    'auto_classify_category',
    'categorize_receipt',
]
