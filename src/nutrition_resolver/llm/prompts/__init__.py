"""LLM prompt templates."""

from nutrition_resolver.llm.prompts.base import BasePrompt
from nutrition_resolver.llm.prompts.nutrition_estimate import (
    AINutritionEstimate,
    NutritionEstimatePrompt,
)


__all__ = [
    "AINutritionEstimate",
    "BasePrompt",
    "NutritionEstimatePrompt",
]
