"""Tests for OCR text normalization."""

from kakeibo_ocr.normalize import normalize_line, normalize_ocr_text


class TestNormalizeLine:
    """Test suite for single line normalization."""

    def test_fullwidth_digits_and_yen(self):
        assert normalize_line("合計　￥１，５００") == "合計 ¥1,500"

    def test_fullwidth_date_separators(self):
        assert normalize_line("２０２４／１０／３０") == "2024/10/30"

    def test_collapses_whitespace(self):
        assert normalize_line("  おにぎり    ¥150  ") == "おにぎり ¥150"


class TestNormalizeOcrText:
    """Test suite for multi-line OCR text splitting."""

    def test_empty_input(self):
        assert normalize_ocr_text("") == []
        assert normalize_ocr_text(None) == []

    def test_drops_blank_lines_and_keeps_order(self):
        text = """
        セブン-イレブン

        おにぎり ¥150

        お茶 ¥120
        """
        assert normalize_ocr_text(text) == ["セブン-イレブン", "おにぎり ¥150", "お茶 ¥120"]

    def test_windows_line_endings(self):
        assert normalize_ocr_text("A\r\nB\r\n") == ["A", "B"]
