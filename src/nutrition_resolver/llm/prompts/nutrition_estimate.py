"""Nutrition estimate prompt for the AI fallback.

The model is asked for a single JSON object of per-serving values, or the
literal ``UNKNOWN`` when it does not recognize the product. Replies are
validated leniently: models write ``"12 g"`` as often as ``12``.
"""

from __future__ import annotations

import re
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from nutrition_resolver.schemas.product import NutrientField

from .base import BasePrompt


_LEADING_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER.search(value.replace(",", "."))
        if match is None:
            return None
        number = float(match.group())
        return number / 100 if "%" in value else number
    return None


class AINutritionEstimate(BaseModel):
    """Per-serving estimate returned by the model.

    Every nutrient is optional; ``None`` means the model did not state it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("product_name", "name", "food"),
    )
    calories: float | None = Field(
        default=None,
        validation_alias=AliasChoices("calories", "kcal", "energy", "energy_kcal"),
    )
    protein_g: float | None = Field(
        default=None,
        validation_alias=AliasChoices("protein_g", "protein", "proteins"),
    )
    carbs_g: float | None = Field(
        default=None,
        validation_alias=AliasChoices("carbs_g", "carbs", "carbohydrates", "carbohydrate"),
    )
    fat_g: float | None = Field(
        default=None,
        validation_alias=AliasChoices("fat_g", "fat", "total_fat"),
    )
    fiber_g: float | None = Field(
        default=None,
        validation_alias=AliasChoices("fiber_g", "fiber", "fibre"),
    )
    sugar_g: float | None = Field(
        default=None,
        validation_alias=AliasChoices("sugar_g", "sugar", "sugars"),
    )
    serving_grams: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "serving_grams", "serving_size_g", "serving_size", "weight_g"
        ),
    )
    confidence: float | None = None
    unknown: bool = Field(default=False, validation_alias=AliasChoices("unknown", "is_unknown"))

    @field_validator(
        "calories",
        "protein_g",
        "carbs_g",
        "fat_g",
        "fiber_g",
        "sugar_g",
        "serving_grams",
        "confidence",
        mode="before",
    )
    @classmethod
    def _lenient_number(cls, value: Any) -> float | None:
        return _coerce_number(value)

    @field_validator("product_name", mode="before")
    @classmethod
    def _blank_name(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def nutrients(self) -> dict[NutrientField, float]:
        """The nutrient values the model actually stated."""
        stated: dict[NutrientField, float] = {}
        for nutrient in NutrientField:
            value = getattr(self, nutrient.value)
            if value is not None:
                stated[nutrient] = value
        return stated


class NutritionEstimatePrompt(BasePrompt[AINutritionEstimate]):
    """Prompt for estimating nutrition of a named (or scanned) product.

    Example output:
        {"product_name": "Greek yogurt", "serving_grams": 170, "calories": 100,
         "protein_g": 17, "carbs_g": 6, "fat_g": 0.7, "fiber_g": 0,
         "sugar_g": 6, "confidence": 0.7}
    """

    output_schema: ClassVar[type[BaseModel]] = AINutritionEstimate

    system_prompt: ClassVar[str | None] = """You are a food nutrition database.
Given a packaged food product, report its nutrition for one typical serving.

Rules:
1. Answer with ONE JSON object and nothing else: no markdown, no explanations
2. Use these keys: product_name, serving_grams, calories, protein_g, carbs_g,
   fat_g, fiber_g, sugar_g, confidence
3. All nutrient values are plain numbers per serving (grams, kcal)
4. confidence is a number between 0 and 1
5. If you do not recognize the product, answer with the single word UNKNOWN
6. Never invent a product you cannot identify"""

    temperature: ClassVar[float] = 0.1
    max_tokens: ClassVar[int | None] = 250

    def format(self, **kwargs: Any) -> str:
        """Format the prompt with the product name and optional barcode.

        Args:
            **kwargs: Must include ``product_name``; may include ``barcode``.

        Raises:
            ValueError: If product_name is missing or blank.
        """
        product_name = str(kwargs.get("product_name") or "").strip()
        if not product_name:
            msg = "product_name is required"
            raise ValueError(msg)

        lines = [f"Product: {product_name}"]
        barcode = kwargs.get("barcode")
        if barcode:
            lines.append(f"Barcode: {barcode}")
        lines.append("")
        lines.append("Return the JSON object now, or UNKNOWN.")
        return "\n".join(lines)
