"""Unit tests for the nutrition estimate prompt and its output schema."""

from __future__ import annotations

import pytest

from nutrition_resolver.llm.prompts import AINutritionEstimate, NutritionEstimatePrompt
from nutrition_resolver.schemas.product import NutrientField


pytestmark = pytest.mark.unit


class TestNutritionEstimatePrompt:
    """Tests for prompt formatting and options."""

    def test_format_with_barcode(self) -> None:
        prompt = NutritionEstimatePrompt()

        text = prompt.format(product_name="  Aloo Bhujia ", barcode="8906010500375")

        assert text.splitlines()[:2] == ["Product: Aloo Bhujia", "Barcode: 8906010500375"]
        assert "UNKNOWN" in text

    def test_format_without_barcode(self) -> None:
        text = NutritionEstimatePrompt().format(product_name="Greek yogurt")

        assert "Barcode" not in text

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_format_requires_name(self, name: str | None) -> None:
        with pytest.raises(ValueError, match="product_name"):
            NutritionEstimatePrompt().format(product_name=name)

    def test_options(self) -> None:
        prompt = NutritionEstimatePrompt()

        assert prompt.get_options() == {"temperature": 0.1, "num_predict": 250}
        assert prompt.name == "NutritionEstimatePrompt"
        assert "UNKNOWN" in (prompt.system_prompt or "")


class TestAINutritionEstimate:
    """Tests for lenient validation of model answers."""

    def test_accepts_aliases_and_units(self) -> None:
        estimate = AINutritionEstimate.model_validate(
            {
                "name": " Masala Chips ",
                "kcal": "150 kcal",
                "protein": "2 g",
                "carbohydrates": "15,5g",
                "fat": 9.5,
                "serving_size": "28 g",
                "confidence": "65%",
            }
        )

        assert estimate.product_name == "Masala Chips"
        assert estimate.calories == 150.0
        assert estimate.protein_g == 2.0
        assert estimate.carbs_g == 15.5
        assert estimate.fat_g == 9.5
        assert estimate.serving_grams == 28.0
        assert estimate.confidence == pytest.approx(0.65)

    def test_unreadable_values_are_none(self) -> None:
        estimate = AINutritionEstimate.model_validate(
            {"product_name": "", "calories": "about a lot", "fat_g": True}
        )

        assert estimate.product_name is None
        assert estimate.calories is None
        assert estimate.fat_g is None

    def test_nutrients_only_stated_values(self) -> None:
        estimate = AINutritionEstimate.model_validate({"calories": 120, "fiber": 0})

        assert estimate.nutrients() == {
            NutrientField.CALORIES: 120.0,
            NutrientField.FIBER: 0.0,
        }

    def test_unknown_flag(self) -> None:
        assert AINutritionEstimate.model_validate({"unknown": True}).unknown
        assert not AINutritionEstimate.model_validate({}).unknown
