"""Factory exports for convenient importing in tests."""

from tests.factories.candidates import build_candidate, build_per_100g, build_scored


__all__ = [
    "build_candidate",
    "build_per_100g",
    "build_scored",
]
