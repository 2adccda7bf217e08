"""Unit tests for JSON location and free-text field extraction."""

from __future__ import annotations

import pytest

from nutrition_resolver.resolution.extraction import (
    extract_fields_from_text,
    extract_json_object,
    extract_serving_grams,
    find_balanced_end,
    locate_json_object,
)
from nutrition_resolver.schemas.product import NutrientField
from tests.fixtures.llm_responses import (
    CLEAN_JSON_REPLY,
    FENCED_JSON_REPLY,
    FREE_TEXT_REPLY,
    PROSE_JSON_REPLY,
)


pytestmark = pytest.mark.unit


class TestFindBalancedEnd:
    """Tests for the brace-balanced scan."""

    def test_nested_objects(self) -> None:
        """Should close at the matching outer brace."""
        text = 'x {"a": {"b": [1, 2]}} y'

        assert find_balanced_end(text, 2) == len(text) - 2

    def test_ignores_braces_in_strings(self) -> None:
        """Should skip braces inside string literals."""
        text = '{"a": "}{"}'

        assert find_balanced_end(text, 0) == len(text)

    def test_honors_escaped_quotes(self) -> None:
        """Should not end a string at an escaped quote."""
        text = r'{"a": "say \"}\" twice"}'

        assert find_balanced_end(text, 0) == len(text)

    @pytest.mark.parametrize("text", ['{"a": 1', '{"a": [1}', "{]"])
    def test_unbalanced_or_mismatched(self, text: str) -> None:
        """Should return None when the span never closes properly."""
        assert find_balanced_end(text, 0) is None


class TestLocateJsonObject:
    """Tests for locate_json_object."""

    def test_clean_reply(self) -> None:
        """Should parse a reply that is only a JSON object."""
        payload, start, end = locate_json_object(CLEAN_JSON_REPLY)

        assert payload["calories"] == 165
        assert (start, end) == (0, len(CLEAN_JSON_REPLY))

    def test_fenced_reply(self) -> None:
        """Should strip a markdown code fence."""
        payload = extract_json_object(FENCED_JSON_REPLY)

        assert payload is not None
        assert payload["fat_g"] == 10.5

    def test_object_embedded_in_prose(self) -> None:
        """Should find the object and report its span."""
        payload, start, end = locate_json_object(PROSE_JSON_REPLY)

        assert payload["product_name"] == "Choco {Crunch} Bar"
        assert payload["calories"] == 210
        assert PROSE_JSON_REPLY[start] == "{"
        assert PROSE_JSON_REPLY[end:].startswith(" Let me know")

    def test_skips_non_json_braces(self) -> None:
        """Should move past brace spans that do not decode."""
        text = 'Use {placeholder} values: {"calories": 90}'

        assert extract_json_object(text) == {"calories": 90}

    def test_arrays_are_not_objects(self) -> None:
        """Should ignore top-level arrays."""
        assert locate_json_object("[1, 2, 3]") is None

    def test_no_object(self) -> None:
        assert extract_json_object("no braces here") is None


class TestExtractFieldsFromText:
    """Tests for per-field regular expressions."""

    def test_sentence_forms(self) -> None:
        """Should read 'N calories' and 'Ng protein' phrasings."""
        fields = extract_fields_from_text(FREE_TEXT_REPLY)

        assert fields == {
            NutrientField.CALORIES: 150.0,
            NutrientField.PROTEIN: 12.0,
            NutrientField.FAT: 8.0,
            NutrientField.CARBS: 10.0,
        }

    def test_label_forms(self) -> None:
        """Should read 'field: value' phrasings."""
        text = "Calories: 230\nProtein: 3.5g\nCarbohydrates: 31\nFat: 11\nFiber: 2\nSugars: 14"

        fields = extract_fields_from_text(text)

        assert fields[NutrientField.CALORIES] == 230.0
        assert fields[NutrientField.PROTEIN] == 3.5
        assert fields[NutrientField.CARBS] == 31.0
        assert fields[NutrientField.FIBER] == 2.0
        assert fields[NutrientField.SUGAR] == 14.0

    def test_saturated_fat_is_not_fat(self) -> None:
        """Should not read saturated fat as total fat."""
        fields = extract_fields_from_text("saturated fat: 4, fat: 9")

        assert fields[NutrientField.FAT] == 9.0

    def test_out_of_range_values_ignored(self) -> None:
        """Should drop absurd calorie values."""
        assert NutrientField.CALORIES not in extract_fields_from_text("calories: 25000")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("This family pack has about 1,250 calories.", 1250.0),
            ("Calories: 1,200 kcal", 1200.0),
            ("Energy: 2,100.5 kcal", 2100.5),
            ("about 250 calories", 250.0),
        ],
    )
    def test_thousands_separators(self, text: str, expected: float) -> None:
        """Should read grouped digits as one number, not the last group."""
        assert extract_fields_from_text(text)[NutrientField.CALORIES] == expected

    def test_comma_between_values_is_not_grouping(self) -> None:
        fields = extract_fields_from_text("protein: 10, carbs: 20, fat: 5")

        assert fields[NutrientField.PROTEIN] == 10.0
        assert fields[NutrientField.CARBS] == 20.0


class TestExtractServingGrams:
    """Tests for serving size extraction."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("serving size: 30 g", 30.0),
            ("serving size: 1,500 g", 1500.0),
            ("per 170g serving", 170.0),
            ("a portion of 45g", None),
            ("no serving info", None),
        ],
    )
    def test_serving_phrases(self, text: str, expected: float | None) -> None:
        assert extract_serving_grams(text) == expected
