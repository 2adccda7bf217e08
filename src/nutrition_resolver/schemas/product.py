"""Domain types for nutrition resolution.

Queries, candidates and results are small immutable value objects that are
created per call. Only ``ResolutionResult`` outlives a call, inside the result
cache, which is why it knows how to rebuild itself from a plain mapping.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final


if TYPE_CHECKING:
    from collections.abc import Mapping


class QueryKind(StrEnum):
    """How the caller identified the product."""

    BARCODE = "barcode"
    PRODUCT_NAME = "product_name"


class ResolutionOrigin(StrEnum):
    """Which path produced the final answer."""

    CONSENSUS = "consensus"
    BEST_SINGLE = "best-single"
    AI_FALLBACK = "ai-fallback"
    UNRESOLVED = "unresolved"


class NutrientField(StrEnum):
    """The six numeric nutrition fields a provider may supply."""

    CALORIES = "calories"
    PROTEIN = "protein_g"
    CARBS = "carbs_g"
    FAT = "fat_g"
    FIBER = "fiber_g"
    SUGAR = "sugar_g"


NUTRIENT_FIELDS: Final[tuple[NutrientField, ...]] = tuple(NutrientField)

_NON_DIGITS = re.compile(r"\D")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_barcode(value: str) -> str:
    """Keep only the digits of a scanned or typed barcode."""
    return _NON_DIGITS.sub("", value)


def normalize_product_name(value: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    cleaned = _PUNCTUATION.sub(" ", value.lower()).replace("_", " ")
    return _WHITESPACE.sub(" ", cleaned).strip()


@dataclass(frozen=True, slots=True)
class Query:
    """A normalized product lookup request.

    Build instances with :meth:`barcode` or :meth:`product_name` so the value
    is always normalized before dispatch and cache keying.
    """

    kind: QueryKind
    value: str

    @classmethod
    def barcode(cls, raw: str) -> Query:
        return cls(QueryKind.BARCODE, normalize_barcode(raw))

    @classmethod
    def product_name(cls, raw: str) -> Query:
        return cls(QueryKind.PRODUCT_NAME, normalize_product_name(raw))

    @property
    def key(self) -> str:
        """Cache key for this query."""
        return f"{self.kind.value}:{self.value}"

    @property
    def is_barcode(self) -> bool:
        return self.kind is QueryKind.BARCODE


@dataclass(frozen=True, slots=True)
class Candidate:
    """One provider's answer, per serving.

    ``serving_grams`` is 0 when the portion size is unknown.
    ``supplied_fields`` lists the numeric fields the provider actually
    returned, as opposed to fields left at their 0 default.
    """

    product_name: str
    source_id: str
    brand: str | None = None
    category: str | None = None
    barcode: str | None = None
    serving_grams: float = 0.0
    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0
    sugar_g: float = 0.0
    supplied_fields: tuple[NutrientField, ...] = ()

    @property
    def macro_calories(self) -> float:
        """Energy implied by the macros (Atwater 4/4/9)."""
        return 4 * self.protein_g + 4 * self.carbs_g + 9 * self.fat_g

    @property
    def has_macros(self) -> bool:
        return self.protein_g > 0 or self.carbs_g > 0 or self.fat_g > 0

    @property
    def is_name_only(self) -> bool:
        """Product identified but no usable energy or macro data."""
        return self.calories == 0 and not self.has_macros

    @property
    def calorie_density(self) -> float | None:
        """kcal per 100 g, or None when the portion is unknown."""
        if self.serving_grams <= 0:
            return None
        return self.calories / self.serving_grams * 100

    def value_of(self, nutrient: NutrientField) -> float:
        return float(getattr(self, nutrient.value))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Candidate:
        """Rebuild a candidate from its serialized form."""
        return cls(
            product_name=str(data["product_name"]),
            source_id=str(data["source_id"]),
            brand=data.get("brand"),
            category=data.get("category"),
            barcode=data.get("barcode"),
            serving_grams=float(data["serving_grams"]),
            calories=float(data["calories"]),
            protein_g=float(data["protein_g"]),
            carbs_g=float(data["carbs_g"]),
            fat_g=float(data["fat_g"]),
            fiber_g=float(data["fiber_g"]),
            sugar_g=float(data["sugar_g"]),
            supplied_fields=tuple(NutrientField(f) for f in data["supplied_fields"]),
        )


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """A validated candidate with its reliability and accuracy scores."""

    candidate: Candidate
    accuracy_score: float
    reliability_score: float
    combined_score: float

    @property
    def source_id(self) -> str:
        return self.candidate.source_id


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """The single answer returned to the caller."""

    query_key: str
    origin: ResolutionOrigin
    confidence: float
    candidate: Candidate | None = None
    text_extracted: bool = False
    sources: tuple[str, ...] = field(default=())

    @property
    def is_resolved(self) -> bool:
        return self.origin is not ResolutionOrigin.UNRESOLVED and self.candidate is not None

    @classmethod
    def unresolved(cls, query_key: str) -> ResolutionResult:
        return cls(query_key=query_key, origin=ResolutionOrigin.UNRESOLVED, confidence=0.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResolutionResult:
        """Rebuild a result from its serialized form (see ``ResultCache``)."""
        candidate = data.get("candidate")
        return cls(
            query_key=str(data["query_key"]),
            origin=ResolutionOrigin(data["origin"]),
            confidence=float(data["confidence"]),
            candidate=Candidate.from_dict(candidate) if candidate is not None else None,
            text_extracted=bool(data.get("text_extracted", False)),
            sources=tuple(data.get("sources", ())),
        )
