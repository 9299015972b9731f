"""OCR text clean-up: full-width folding, whitespace collapsing and line splitting."""

import re
from typing import List

# U+FF10-FF19 -> ASCII digits
FULLWIDTH_DIGITS = str.maketrans('０１２３４５６７８９', '0123456789')

# Full-width currency and punctuation commonly emitted by Japanese OCR
FULLWIDTH_SYMBOLS = str.maketrans({
    '￥': '¥',
    '，': ',',
    '．': '.',
    '：': ':',
    '／': '/',
    '－': '-',
    '−': '-',
    '＊': '*',
    '（': '(',
    '）': ')',
    '％': '%',
    '＠': '@',
    '＃': '#',
    '＆': '&',
    '＋': '+',
    '　': ' ',
})

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_line(line: str) -> str:
    """Normalize a single line (digits, symbols, whitespace)."""
    line = line.translate(FULLWIDTH_DIGITS)
    line = line.translate(FULLWIDTH_SYMBOLS)
    return _WHITESPACE_RE.sub(' ', line).strip()


def normalize_ocr_text(ocr_text: str) -> List[str]:
    """
    Split raw OCR output into cleaned, non-empty lines.

    Args:
        ocr_text: Raw multi-line OCR text (may be empty or None)

    Returns:
        Ordered list of normalized lines
    """
    if not ocr_text:
        return []

    lines = [line.strip() for line in ocr_text.splitlines()]
    lines = [normalize_line(line) for line in lines if line]
    return [line for line in lines if line]
