"""Tests for the legacy single-pass receipt parser."""

from kakeibo_ocr.parsers.legacy_parser import LegacyReceiptParser, extract_numbers


class TestLegacyReceiptParser:
    """Test suite for LegacyReceiptParser."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = LegacyReceiptParser()

    def test_basic_receipt(self):
        text = """
        スーパーマルエツ
        2024/10/30
        牛乳 198円
        食パン 158円
        合計 356円
        """
        receipt = self.parser.parse(text)

        assert receipt.store_name == "スーパーマルエツ"
        assert receipt.total == 356
        assert [(item.name, item.price) for item in receipt.items] == [("牛乳", 198), ("食パン", 158)]
        assert receipt.date == "2024-10-30"

    def test_items_without_separating_space(self):
        receipt = self.parser.parse("マルエツ\n牛乳198円\n食パン158円")

        assert [(item.name, item.price) for item in receipt.items] == [("牛乳", 198), ("食パン", 158)]

    def test_total_falls_back_to_item_sum(self):
        receipt = self.parser.parse("店A\nりんご 100円\nみかん 200円")

        assert receipt.total == 300

    def test_tax_line_not_counted_in_item_sum(self):
        receipt = self.parser.parse("店A\nりんご 100円\nみかん 200円\n税額 30円")

        assert receipt.total == 300
        assert len(receipt.items) == 2

    def test_item_close_to_total_is_skipped(self):
        receipt = self.parser.parse("店\nお弁当 500円\n税込 500円")

        assert receipt.total == 500
        assert receipt.items == []

    def test_last_total_line_wins(self):
        receipt = self.parser.parse("店\n小計 1,000円\n合計 1,100円")

        assert receipt.total == 1100

    def test_last_date_wins(self):
        receipt = self.parser.parse("店\n2024/01/01\n2024/02/02\n合計 500円")

        assert receipt.date == "2024-02-02"

    def test_empty_text(self):
        receipt = self.parser.parse("")

        assert receipt.store_name == "レシート"
        assert receipt.total == 0
        assert receipt.items == []
        assert receipt.date is None


class TestExtractNumbers:
    """Test suite for extract_numbers helper."""

    def test_comma_groups(self):
        assert extract_numbers("1,234円 と 56") == [1234, 56]

    def test_zero_is_dropped(self):
        assert extract_numbers("0円") == []
