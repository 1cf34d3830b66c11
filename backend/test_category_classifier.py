"""Tests for app/services/category_classifier.py"""
from app.services.category_classifier import (
    CATEGORY_DESCRIPTIONS,
    CATEGORY_KEYWORDS,
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    classify,
    describe,
)


class TestClassify:
    def test_case_insensitive_match(self):
        assert classify("АМОКСИЦИЛЛИН 500мг капс") == "Antibiotik"

    def test_substring_match(self):
        assert classify("Мезим форте 20 таб") == "Qorin"

    def test_no_match_is_catch_all(self):
        assert classify("Бинт стерильный") == DEFAULT_CATEGORY
        assert classify("") == DEFAULT_CATEGORY

    def test_shared_keyword_resolves_by_priority(self):
        # клотримазол is listed for both Dermatalogiya and Ginekologiya
        assert classify("Клотримазол крем 1%") == "Dermatalogiya"

    def test_first_category_in_order_wins(self):
        # парацетамол (Og'riq qoldiruvchi) comes before витрум (Vitamin)
        assert classify("Витрум + парацетамол") == "Og'riq qoldiruvchi"

    def test_deterministic(self):
        name = "Кальций Д3 + Магний B6"
        assert {classify(name) for _ in range(20)} == {"Vitamin"}


class TestDescribe:
    def test_every_category_has_description(self):
        for category, _ in CATEGORY_KEYWORDS:
            assert describe(category) == CATEGORY_DESCRIPTIONS[category]

    def test_catch_all_description(self):
        assert describe(DEFAULT_CATEGORY) == DEFAULT_DESCRIPTION
        assert describe("nonexistent") == DEFAULT_DESCRIPTION
