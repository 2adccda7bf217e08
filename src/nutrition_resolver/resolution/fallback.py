"""AI fallback: ask a language model when no structured source has data.

One completion request is made per resolution. The reply is parsed in three
steps, each less trusted than the last:

1. the whole reply (optionally inside a code fence) is one JSON object
2. a JSON object embedded in prose, found by a brace-balanced scan
3. per-field regular expressions over the prose

Refusals are recognized before any number is trusted.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from nutrition_resolver.llm.prompts import AINutritionEstimate, NutritionEstimatePrompt
from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.resolution.constants import (
    AI_DEFAULT_CONFIDENCE,
    AI_MAX_CONFIDENCE,
    AI_SOURCE_ID,
    AI_TEXT_EXTRACTION_CONFIDENCE,
)
from nutrition_resolver.resolution.exceptions import (
    AIFallbackRefusedError,
    AIFallbackUnparseableError,
)
from nutrition_resolver.resolution.extraction import (
    extract_fields_from_text,
    extract_serving_grams,
    locate_json_object,
)
from nutrition_resolver.resolution.validator import reconstruct_calories
from nutrition_resolver.schemas.product import NUTRIENT_FIELDS, Candidate, NutrientField


if TYPE_CHECKING:
    from collections.abc import Mapping

    from nutrition_resolver.llm.client.protocol import LLMClientProtocol


logger = get_logger(__name__)

DEFAULT_AI_TIMEOUT: Final[float] = 20.0

# Whole-reply answers that mean "I don't know".
REFUSAL_MARKERS: Final[frozenset[str]] = frozenset(
    {"unknown", "null", "none", "n/a", "na", "nil", "undefined"}
)

REFUSAL_PHRASES: Final[re.Pattern[str]] = re.compile(
    r"\b(?:"
    r"can(?:no|')t\s+(?:identify|determine|find|recogni[sz]e)"
    r"|unable\s+to\s+(?:identify|determine|find|recogni[sz]e)"
    r"|(?:do\s+not|don't)\s+(?:know|recogni[sz]e|have\s+(?:enough\s+)?information)"
    r"|not\s+(?:confident|sure|familiar)"
    r"|no\s+(?:reliable\s+)?information"
    r"|unknown\s+product"
    r")\b",
    re.IGNORECASE,
)

_ENERGY_FIELDS: Final[frozenset[NutrientField]] = frozenset(
    {NutrientField.CALORIES, NutrientField.PROTEIN, NutrientField.CARBS, NutrientField.FAT}
)


@dataclass(frozen=True, slots=True)
class AIEstimate:
    """A candidate recovered from a model reply, with its confidence."""

    candidate: Candidate
    confidence: float
    text_extracted: bool = False


def is_refusal_marker(text: str) -> bool:
    """Whether the entire reply is a bare "don't know" token."""
    token = text.strip().strip("`'\".!").strip().lower()
    return not token or token in REFUSAL_MARKERS


def contains_refusal(text: str) -> bool:
    return REFUSAL_PHRASES.search(text) is not None


def _clip_confidence(value: float | None) -> float:
    if value is None:
        return AI_DEFAULT_CONFIDENCE
    return max(0.0, min(value, AI_MAX_CONFIDENCE))


def _build_candidate(
    product_name: str,
    nutrients: Mapping[NutrientField, float],
    serving_grams: float | None,
) -> Candidate:
    if not _ENERGY_FIELDS & nutrients.keys():
        msg = "reply has no calories or macros"
        raise AIFallbackUnparseableError(msg)
    candidate = Candidate(
        product_name=product_name,
        source_id=AI_SOURCE_ID,
        serving_grams=serving_grams or 0.0,
        supplied_fields=tuple(f for f in NUTRIENT_FIELDS if f in nutrients),
        **{f.value: nutrients.get(f, 0.0) for f in NUTRIENT_FIELDS},
    )
    return reconstruct_calories(candidate)


class AIFallbackParser:
    """Turns a product name into an AI-estimated candidate.

    LLM transport errors (``LLMError`` subclasses) and ``TimeoutError``
    propagate; the orchestrator maps them to an unresolved result.
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        prompt: NutritionEstimatePrompt | None = None,
        *,
        timeout: float = DEFAULT_AI_TIMEOUT,
    ) -> None:
        self.llm_client = llm_client
        self.prompt = prompt or NutritionEstimatePrompt()
        self.timeout = timeout

    async def estimate(self, product_name: str, barcode: str | None = None) -> AIEstimate:
        """Ask the model about one product and parse its reply.

        Raises:
            AIFallbackRefusedError: The model does not know the product.
            AIFallbackUnparseableError: No calories or macros in the reply.
            TimeoutError: The request exceeded ``timeout``.
        """
        text = self.prompt.format(product_name=product_name, barcode=barcode)
        async with asyncio.timeout(self.timeout):
            completion = await self.llm_client.generate(
                text,
                system=self.prompt.system_prompt,
                options=self.prompt.get_options(),
            )
        logger.debug(
            "AI fallback reply received",
            prompt=self.prompt.name,
            model=completion.model,
            completion_tokens=completion.completion_tokens,
        )
        return self.parse_response(completion.raw_response, product_name)

    def parse_response(self, text: str, product_name: str) -> AIEstimate:
        """Parse a model reply into an estimate.

        Args:
            text: Raw model output.
            product_name: Name the model was asked about; used when the
                reply does not name the product itself.
        """
        if is_refusal_marker(text):
            msg = f"model answered {text.strip()[:20]!r}"
            raise AIFallbackRefusedError(msg)

        located = locate_json_object(text)
        if located is not None:
            payload, start, end = located
            if contains_refusal(text[:start] + text[end:]):
                msg = "model refused in prose around its JSON"
                raise AIFallbackRefusedError(msg)
            try:
                estimate = AINutritionEstimate.model_validate(payload)
            except ValidationError as e:
                logger.debug("AI JSON did not match the estimate schema", error=str(e))
            else:
                return self._from_estimate(estimate, product_name)

        if contains_refusal(text):
            msg = "model refused in prose"
            raise AIFallbackRefusedError(msg)

        fields = extract_fields_from_text(text)
        candidate = _build_candidate(product_name, fields, extract_serving_grams(text))
        logger.info(
            "AI fallback recovered values from free text",
            product_name=product_name,
            fields=sorted(f.value for f in fields),
        )
        return AIEstimate(
            candidate=candidate,
            confidence=AI_TEXT_EXTRACTION_CONFIDENCE,
            text_extracted=True,
        )

    def _from_estimate(self, estimate: AINutritionEstimate, product_name: str) -> AIEstimate:
        nutrients = estimate.nutrients()
        if estimate.unknown or not nutrients:
            msg = "model marked the product unknown"
            raise AIFallbackRefusedError(msg)
        candidate = _build_candidate(
            estimate.product_name or product_name,
            nutrients,
            estimate.serving_grams,
        )
        return AIEstimate(candidate=candidate, confidence=_clip_confidence(estimate.confidence))
