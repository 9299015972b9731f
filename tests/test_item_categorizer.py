"""Tests for receipt item categorization."""

from kakeibo_ocr.item_categorizer import auto_classify_category, categorize_receipt
from kakeibo_ocr.parsers.base import ParsedReceipt, ReceiptItem


class TestAutoClassifyCategory:
    """Test suite for auto_classify_category."""

    def test_item_keyword(self):
        assert auto_classify_category("おにぎり 鮭") == "食費"
        assert auto_classify_category("洗剤") == "日用品"

    def test_case_insensitive(self):
        assert auto_classify_category("mri検査") == "医療・健康"

    def test_unknown_item(self):
        assert auto_classify_category("ねじ") == "その他"
        assert auto_classify_category("") == "その他"

    def test_pharmacy_defaults_to_health(self):
        assert auto_classify_category("ねじ", "ウエルシア薬局") == "医療・健康"
        assert auto_classify_category("風邪薬", "マツモトキヨシ ドラッグストア") == "医療・健康"

    def test_pharmacy_daily_goods(self):
        assert auto_classify_category("シャンプー", "マツモトキヨシ ドラッグストア") == "日用品"

    def test_fuel_station(self):
        assert auto_classify_category("レギュラー", "ENEOS 環八店") == "交通費"

    def test_other_store_uses_keywords(self):
        assert auto_classify_category("シャンプー", "スーパー") == "日用品"


class TestCategorizeReceipt:
    """Test suite for categorize_receipt."""

    def test_largest_spend_wins(self):
        receipt = ParsedReceipt(
            store_name="スーパー",
            total=670,
            items=[ReceiptItem("おにぎり", 150), ReceiptItem("洗剤", 400), ReceiptItem("お茶", 120)],
        )

        assert categorize_receipt(receipt) == "日用品"

    def test_summed_per_category(self):
        receipt = ParsedReceipt(
            store_name="スーパー",
            total=670,
            items=[ReceiptItem("おにぎり", 150), ReceiptItem("洗剤", 250), ReceiptItem("お茶", 120)],
        )

        assert categorize_receipt(receipt) == "食費"

    def test_unclassified_items_ignored(self):
        receipt = ParsedReceipt(
            store_name="スーパー",
            total=1100,
            items=[ReceiptItem("ねじ", 1000), ReceiptItem("お茶", 100)],
        )

        assert categorize_receipt(receipt) == "食費"

    def test_tie_goes_to_first_seen(self):
        receipt = ParsedReceipt(
            store_name="スーパー",
            total=200,
            items=[ReceiptItem("洗剤", 100), ReceiptItem("お茶", 100)],
        )

        assert categorize_receipt(receipt) == "日用品"

    def test_no_items(self):
        assert categorize_receipt(ParsedReceipt(store_name="レシート", total=0)) == "その他"
