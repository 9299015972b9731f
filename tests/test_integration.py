"""Integration tests for the complete parsing system."""

from kakeibo_ocr.parse import JapaneseReceiptParser
from kakeibo_ocr.item_categorizer import categorize_receipt


class TestIntegration:
    """Integration tests for complete receipt parsing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = JapaneseReceiptParser()

    def test_seven_eleven_receipt(self):
        """Short convenience store slip parsed by the primary path."""
        text = "セブン-イレブン\nおにぎり ¥150\nお茶 ¥120\n合計 ¥270"

        analysis = self.parser.parse_receipt(text)
        receipt = analysis.receipt

        assert receipt.store_name == "セブン-イレブン"
        assert receipt.total == 270
        assert [(item.name, item.price) for item in receipt.items] == [("おにぎり", 150), ("お茶", 120)]
        assert receipt.date is None
        assert analysis.used_fallback is False
        assert analysis.store_format == "セブン-イレブン"
        # Only the short-text penalty applies
        assert analysis.assessment.confidence == 75

    def test_full_receipt_with_date(self):
        text = """
        セブンイレブン千代田店
        2024年10月30日 14:30

        ドリップコーヒー    ¥110
        おにぎり           ¥130
        お茶              ¥150

        小計              ¥390
        合計              ¥390
        お預り            ¥500
        おつり            ¥110
        """
        analysis = self.parser.parse_receipt(text)

        assert analysis.receipt.date == "2024-10-30"
        assert analysis.receipt.total == 390
        assert len(analysis.receipt.items) == 3
        assert analysis.confidence_scores['date'] == 0.9
        assert analysis.assessment.confidence == 100

    def test_aeon_receipt(self):
        text = """
        イオン 品川店
        2024/10/30
        牛乳 ¥198 外
        パン ¥158 外
        合計金額 ¥356
        """
        receipt = self.parser.parse(text)

        assert receipt.store_name == "イオン"
        assert receipt.total == 356
        assert [item.name for item in receipt.items] == ["牛乳", "パン"]
        assert receipt.date == "2024-10-30"

    def test_unknown_store_uses_default_name(self):
        receipt = self.parser.parse("マルエツ\nりんご ¥100\n合計 ¥100")

        assert receipt.store_name == "レシート"
        assert receipt.total == 100

    def test_item_sum_total_excludes_tax_line(self):
        text = "マルエツ\nおにぎり ¥150\nお茶 ¥120\n税額 ¥21"
        receipt = self.parser.parse(text)

        assert receipt.total == 270
        assert [item.name for item in receipt.items] == ["おにぎり", "お茶"]
        assert self.parser.parse_receipt(text).receipt.total == 270

    def test_low_confidence_uses_legacy_result(self):
        # No spacing between names and prices, so only the legacy parser finds items
        text = "マルエツ\n牛乳198円\n食パン158円"

        analysis = self.parser.parse_receipt(text)

        assert analysis.primary.total == 198
        assert analysis.assessment.confidence == 40
        assert analysis.used_fallback is True
        assert analysis.receipt.total == 356
        assert len(analysis.receipt.items) == 2

    def test_fallback_replaces_whole_record(self):
        """The legacy result overwrites every field, including a recognized store name."""
        text = "領収書\nセブン-イレブン\n牛乳98円\nパン88円"

        analysis = self.parser.parse_receipt(text)

        assert analysis.primary.store_name == "セブン-イレブン"
        assert analysis.primary.total == 0
        assert analysis.used_fallback is True
        assert analysis.receipt.total == 186
        assert analysis.receipt.store_name == "領収書"

    def test_fallback_not_used_when_total_not_larger(self):
        analysis = self.parser.parse_receipt("ありがとうございました")

        assert analysis.assessment.score < 0.5
        assert analysis.used_fallback is False
        assert analysis.receipt.total == 0

    def test_empty_text(self):
        analysis = self.parser.parse_receipt("")

        assert analysis.receipt.store_name == "レシート"
        assert analysis.receipt.total == 0
        assert analysis.assessment.confidence == 10
        assert len(analysis.assessment.issues) == 4

    def test_to_dict(self):
        analysis = self.parser.parse_receipt("セブン-イレブン\nおにぎり ¥150\nお茶 ¥120\n合計 ¥270")
        data = analysis.to_dict()

        assert data['receipt']['store_name'] == "セブン-イレブン"
        assert data['receipt']['items'][0] == {'name': 'おにぎり', 'price': 150, 'quantity': 1}
        assert data['confidence'] == 75
        assert set(data['confidence_scores']) == {'items', 'amount', 'date'}

    def test_receipt_category(self):
        receipt = self.parser.parse("セブン-イレブン\nおにぎり ¥150\nお茶 ¥120\n合計 ¥270")

        assert categorize_receipt(receipt) == "食費"
