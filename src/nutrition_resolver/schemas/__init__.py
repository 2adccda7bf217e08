"""Domain types and HTTP schemas."""

from nutrition_resolver.schemas.product import (
    NUTRIENT_FIELDS,
    Candidate,
    NutrientField,
    Query,
    QueryKind,
    ResolutionOrigin,
    ResolutionResult,
    ScoredCandidate,
    normalize_barcode,
    normalize_product_name,
)


__all__ = [
    "NUTRIENT_FIELDS",
    "Candidate",
    "NutrientField",
    "Query",
    "QueryKind",
    "ResolutionOrigin",
    "ResolutionResult",
    "ScoredCandidate",
    "normalize_barcode",
    "normalize_product_name",
]
