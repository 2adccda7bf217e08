"""Unit tests for unit normalization helpers."""

from __future__ import annotations

import pytest

from nutrition_resolver.providers.units import (
    kj_to_kcal,
    parse_serving_size,
    scale_from_100g,
    to_grams,
)


pytestmark = pytest.mark.unit


class TestToGrams:
    """Tests for to_grams."""

    @pytest.mark.parametrize(
        ("amount", "unit", "expected"),
        [
            (30, "g", 30.0),
            (1, "kg", 1000.0),
            (500, "mg", 0.5),
            (330, "ml", 330.0),
            (1.5, "L", 1500.0),
            (33, "cl", 330.0),
            (170, "GRM", 170.0),
        ],
    )
    def test_known_units(self, amount: float, unit: str, expected: float) -> None:
        assert to_grams(amount, unit) == pytest.approx(expected)

    def test_ounces(self) -> None:
        assert to_grams(1, "oz") == pytest.approx(28.3495, rel=1e-4)

    @pytest.mark.parametrize("unit", ["piece", "cup", "tbsp", ""])
    def test_unconvertible_units(self, unit: str) -> None:
        """Should return None for units without a mass."""
        assert to_grams(1, unit) is None


class TestParseServingSize:
    """Tests for parse_serving_size."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("30 g", 30.0),
            ("30g", 30.0),
            ("2 biscuits (25 g)", 25.0),
            ("1,5 l", 1500.0),
            ("250 ml", 250.0),
        ],
    )
    def test_labels(self, label: str, expected: float) -> None:
        assert parse_serving_size(label) == pytest.approx(expected)

    @pytest.mark.parametrize("label", [None, "", "1 piece", "a handful"])
    def test_no_quantity(self, label: str | None) -> None:
        assert parse_serving_size(label) is None


class TestConversions:
    """Tests for energy and portion scaling."""

    def test_kj_to_kcal(self) -> None:
        assert kj_to_kcal(418.4) == pytest.approx(100.0)

    def test_scale_from_100g(self) -> None:
        assert scale_from_100g(488.0, 50.0) == pytest.approx(244.0)
