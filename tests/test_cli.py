"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner
from openpyxl import load_workbook

from kakeibo_ocr.cli import ReceiptBatchProcessor, cli
from kakeibo_ocr.config import load_config


SEVEN_ELEVEN_TEXT = "セブン-イレブン\nおにぎり ¥150\nお茶 ¥120\n合計 ¥270"


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("classifier:\n  backend: none\n", encoding="utf-8")
    return path


class TestCli:
    """Test suite for the kakeibo commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_parse(self, tmp_path, config_path):
        text_file = tmp_path / "receipt.txt"
        text_file.write_text(SEVEN_ELEVEN_TEXT, encoding="utf-8")

        result = self.runner.invoke(cli, ["parse", str(text_file), "--config", str(config_path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['receipt']['total'] == 270
        assert data['receipt']['store_name'] == "セブン-イレブン"
        assert data['category'] == "食費"
        assert data['used_fallback'] is False

    def test_parse_missing_file(self, tmp_path):
        result = self.runner.invoke(cli, ["parse", str(tmp_path / "missing.txt")])

        assert result.exit_code != 0

    def test_classify_local(self, config_path):
        result = self.runner.invoke(cli, ["classify", "ランチ", "--config", str(config_path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['category'] == "食費"
        assert data['tier'] == "local"
        assert data['stats']['total_attempts'] == 0

    def test_classify_store_hint(self, config_path):
        result = self.runner.invoke(
            cli, ["classify", "ABC商会", "--store", "ユニクロ 銀座店", "--config", str(config_path)]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)['category'] == "衣服"

    def test_classify_default_category(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "classifier:\n  backend: none\ncategories: [食費, 雑費, その他]\ndefault_category: 雑費\n",
            encoding="utf-8",
        )

        result = self.runner.invoke(cli, ["classify", "ABC商会", "--config", str(path)])

        assert result.exit_code == 0
        assert json.loads(result.stdout)['category'] == "雑費"

    def test_text(self, config_path):
        result = self.runner.invoke(cli, ["text", "500 ランチ", "--config", str(config_path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['amount'] == 500
        assert data['description'] == "ランチ"
        assert data['category'] == "食費"

    def test_text_without_amount(self, config_path):
        result = self.runner.invoke(cli, ["text", "ランチ", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "no amount found" in result.output

    def test_normalize(self):
        result = self.runner.invoke(cli, ["normalize", "映画", "--allowed", "娯楽,その他"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['category'] == "娯楽"
        assert data['suggestions'][0]['name'] == "娯楽"

    def test_batch(self, tmp_path, config_path):
        input_dir = tmp_path / "ocr"
        (input_dir / "nested").mkdir(parents=True)
        (input_dir / "a.txt").write_text(SEVEN_ELEVEN_TEXT, encoding="utf-8")
        (input_dir / "nested" / "b.txt").write_text("ありがとうございました", encoding="utf-8")
        output = tmp_path / "out" / "expenses.xlsx"

        result = self.runner.invoke(
            cli, ["batch", "--in", str(input_dir), "--out", str(output), "--config", str(config_path)]
        )

        assert result.exit_code == 0
        assert "Successfully processed: 2" in result.stdout
        assert "Items needing review: 1" in result.stdout
        assert load_workbook(output).sheetnames == ["Expenses", "Review"]


class TestReceiptBatchProcessor:
    """Test suite for ReceiptBatchProcessor."""

    def test_process_single_file(self, tmp_path):
        text_file = tmp_path / "a.txt"
        text_file.write_text(SEVEN_ELEVEN_TEXT, encoding="utf-8")
        processor = ReceiptBatchProcessor(load_config())

        record = processor.process_single_file(text_file)

        assert record['file_name'] == "a.txt"
        assert record['total'] == 270
        assert record['category'] == "食費"
        assert record['confidence'] == 75
        assert processor.review_queue.items == []

    def test_low_confidence_file_queued(self, tmp_path):
        text_file = tmp_path / "b.txt"
        text_file.write_text("マルエツ\n牛乳198円\n食パン158円", encoding="utf-8")
        processor = ReceiptBatchProcessor(load_config())

        record = processor.process_single_file(text_file)

        assert record['used_fallback'] is True
        assert record['total'] == 356
        assert len(processor.review_queue.items) == 1

    def test_results_sorted(self, tmp_path):
        for name in ["c.txt", "a.txt", "b.txt"]:
            (tmp_path / name).write_text(SEVEN_ELEVEN_TEXT, encoding="utf-8")
        processor = ReceiptBatchProcessor(load_config(), max_workers=2)

        results = processor.process_batch(tmp_path)

        assert [record['file_name'] for record in results] == ["a.txt", "b.txt", "c.txt"]

    def test_empty_directory(self, tmp_path):
        processor = ReceiptBatchProcessor(load_config())

        assert processor.process_batch(tmp_path) == []
