"""Tests for DateParser component."""

from kakeibo_ocr.parsers.date_parser import DateParser
from kakeibo_ocr.parsers.base import ReceiptContext


class TestDateParser:
    """Test suite for DateParser."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = DateParser()

    def _parse(self, text):
        return self.parser.parse(ReceiptContext(full_text=text))

    def test_kanji_ymd(self):
        result = self._parse("2024年10月30日 14:30")

        assert result.value == "2024-10-30"
        assert result.confidence == 0.9
        assert result.metadata['pattern_type'] == 'ymd'

    def test_slash_ymd_with_single_digits(self):
        assert self._parse("2024/1/5 12:30").value == "2024-01-05"

    def test_month_day_year(self):
        result = self._parse("10/30/2024")

        assert result.value == "2024-10-30"
        assert result.confidence == 0.7

    def test_short_year(self):
        result = self._parse("24/10/30")

        assert result.value == "2024-10-30"
        assert result.metadata['pattern_type'] == 'short_ymd'

    def test_reiwa(self):
        result = self._parse("令和6年10月30日")

        assert result.value == "2024-10-30"
        assert result.metadata['pattern_type'] == 'wareki'

    def test_reiwa_gannen(self):
        assert self._parse("令和元年5月1日").value == "2019-05-01"

    def test_fullwidth_digits(self):
        assert self._parse("２０２４年１０月３０日").value == "2024-10-30"

    def test_invalid_calendar_date(self):
        assert self._parse("2024/13/45") is None

    def test_year_outside_window(self):
        assert self._parse("1999/01/01") is None

    def test_first_valid_date_wins(self):
        text = """
        2024/02/30
        2024/03/01
        2024/04/01
        """
        assert self._parse(text).value == "2024-03-01"

    def test_no_date(self):
        assert self._parse("合計 ¥500") is None
