"""Receipt formats for major Japanese chains.

Entries are tried in declaration order and the first keyword hit wins, so a
more specific signature must be listed before a broader one.
"""

import re

from ..parsers.base import AMOUNT
from .base_template import StoreFormat, DEFAULT_ITEM_PATTERN, total_pattern

# AEON prints a tax marker (外/内/※) after the price
AEON_ITEM_PATTERN = re.compile(r'^(.+?)\s+¥?' + AMOUNT + r'円?\s*(?:外|内|※|\*)?$')

SEVEN_ELEVEN = StoreFormat(
    name='セブン-イレブン',
    keywords=['セブン-イレブン', 'セブンイレブン', '7-Eleven', '7-ELEVEn'],
    total_patterns=[total_pattern('合計'), total_pattern('計')],
    tax_patterns=[total_pattern('税込')],
)

FAMILY_MART = StoreFormat(
    name='ファミリーマート',
    keywords=['ファミリーマート', 'FamilyMart', 'ファミマ'],
    total_patterns=[total_pattern('合計'), total_pattern('計')],
    tax_patterns=[total_pattern('税込み')],
)

LAWSON = StoreFormat(
    name='ローソン',
    keywords=['ローソン', 'LAWSON'],
    total_patterns=[total_pattern('合計'), total_pattern('計')],
    tax_patterns=[total_pattern('税込')],
)

AEON = StoreFormat(
    name='イオン',
    keywords=['イオン', 'AEON'],
    total_patterns=[total_pattern('合計金額'), total_pattern('お買上金額')],
    item_pattern=AEON_ITEM_PATTERN,
    tax_patterns=[total_pattern('税込')],
)

YODOBASHI = StoreFormat(
    name='ヨドバシカメラ',
    keywords=['ヨドバシカメラ', 'ヨドバシ', 'YODOBASHI'],
    total_patterns=[total_pattern('合計'), total_pattern('小計')],
    tax_patterns=[total_pattern('税込')],
)

GENERIC = StoreFormat(
    name='generic',
    keywords=[],
    total_patterns=[
        total_pattern('合計'),
        total_pattern('総計'),
        total_pattern('計'),
        total_pattern('小計'),
    ],
    item_pattern=DEFAULT_ITEM_PATTERN,
    generic=True,
)

BUILTIN_FORMATS = [SEVEN_ELEVEN, FAMILY_MART, LAWSON, AEON, YODOBASHI]
