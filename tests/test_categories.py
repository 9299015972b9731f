"""Tests for category name normalization."""

import pytest

from kakeibo_ocr.categories import (
    CategoryNormalizer, normalize_category_name, pick_available, suggest_categories,
)
from kakeibo_ocr.rules import get_default_rules


class TestCategoryNormalizer:
    """Test suite for CategoryNormalizer.normalize."""

    def setup_method(self):
        """Set up test fixtures."""
        self.normalizer = CategoryNormalizer()

    def test_keyword_rule_into_allowed_set(self):
        assert self.normalizer.normalize("映画", ["娯楽", "その他"]) == "娯楽"

    def test_canonical_passthrough(self):
        for category in get_default_rules().canonical_categories:
            assert self.normalizer.normalize(category) == category

    def test_allowed_exact_match(self):
        assert self.normalizer.normalize(" 趣味 ", ["趣味", "その他"]) == "趣味"

    def test_alias_substring(self):
        assert self.normalizer.normalize("ランチ代") == "食費"
        assert self.normalizer.normalize("外食", ["食費", "その他"]) == "食費"

    def test_alias_ignores_suffix_and_case(self):
        assert self.normalizer.normalize("etc") == "交通費"

    def test_case_insensitive_keyword_rule(self):
        assert self.normalizer.normalize("netflix") == "サブスク"

    def test_unknown_label(self):
        assert self.normalizer.normalize("よくわからない") == "その他"

    @pytest.mark.parametrize("value", ["", "   ", None, 123])
    def test_empty_or_invalid_input(self, value):
        assert self.normalizer.normalize(value) == "その他"

    @pytest.mark.parametrize("value", ["", "xyz", "映画", "ランチ", None, "医療", "その他", "趣味"])
    def test_result_always_in_allowed_set(self, value):
        allowed = ["趣味", "外食"]

        assert self.normalizer.normalize(value, allowed) in allowed

    def test_non_list_allowed_means_unrestricted(self):
        assert self.normalizer.normalize("映画", "食費") == "娯楽"
        assert self.normalizer.normalize("映画", {"食費": 1}) == "娯楽"

    def test_set_allowed_is_a_restriction(self):
        assert self.normalizer.normalize("映画", {"娯楽", "その他"}) == "娯楽"
        assert self.normalizer.normalize("映画", frozenset({"食費", "その他"})) == "食費"

    def test_sake_is_food_not_books(self):
        assert self.normalizer.normalize("日本酒") == "食費"
        assert self.normalizer.normalize("技術本") == "教育"

    def test_non_string_allowed_entries_ignored(self):
        assert self.normalizer.normalize("映画", [None, 3, "娯楽"]) == "娯楽"


class TestPickAvailable:
    """Test suite for pick_available."""

    def setup_method(self):
        """Set up test fixtures."""
        self.normalizer = CategoryNormalizer()

    def test_unrestricted(self):
        assert self.normalizer.pick_available("食費", None) == "食費"
        assert self.normalizer.pick_available("食費", []) == "食費"

    def test_target_present(self):
        assert self.normalizer.pick_available("旅行", ["旅行", "その他"]) == "旅行"

    def test_first_canonical_in_canonical_order(self):
        assert self.normalizer.pick_available("旅行", ["娯楽", "交通費"]) == "交通費"

    def test_other_before_first_entry(self):
        assert self.normalizer.pick_available("旅行", ["趣味", "その他"]) == "その他"

    def test_first_entry_last(self):
        assert self.normalizer.pick_available("旅行", ["趣味", "外食"]) == "趣味"

    def test_set_ordered_by_canonical_then_name(self):
        assert self.normalizer.pick_available("旅行", frozenset({"推し活", "ペット"})) == "ペット"
        assert self.normalizer.pick_available("旅行", {"遠征", "推し活"}) == "推し活"


class TestSuggest:
    """Test suite for fuzzy suggestions."""

    def setup_method(self):
        """Set up test fixtures."""
        self.normalizer = CategoryNormalizer()

    def test_normalized_category_first(self):
        suggestions = self.normalizer.suggest("交通")

        assert suggestions[0] == ("交通費", 1.0)
        assert len(suggestions) <= 3
        assert all(0.0 <= score <= 1.0 for _, score in suggestions)

    def test_no_duplicates(self):
        names = [name for name, _ in self.normalizer.suggest("医療", limit=5)]

        assert len(names) == len(set(names))

    def test_restricted_to_available(self):
        available = ["食費", "趣味", "その他"]

        for name, _ in self.normalizer.suggest("趣味の本", available):
            assert name in available

    def test_set_available(self):
        assert self.normalizer.suggest("交通", {"食費", "交通費"})[0] == ("交通費", 1.0)

    def test_empty_text(self):
        assert self.normalizer.suggest("") == [("その他", 0.0)]


class TestModuleFunctions:
    """Test suite for the bundled-vocabulary helpers."""

    def test_normalize_category_name(self):
        assert normalize_category_name("映画", ["娯楽", "その他"]) == "娯楽"

    def test_pick_available(self):
        assert pick_available("食費", ["その他"]) == "その他"

    def test_suggest_categories(self):
        assert suggest_categories("食")[0][0] == "食費"
