"""Recovering nutrition data from free-form model output.

Model replies come in three shapes: a clean JSON object, a JSON object
wrapped in prose or a code fence, or plain sentences. ``locate_json_object``
handles the first two with a brace-balanced scan that honors string literals
and escapes; ``extract_fields_from_text`` handles the last with per-field
regular expressions.
"""

from __future__ import annotations

import re
from typing import Any, Final

import orjson

from nutrition_resolver.schemas.product import NutrientField


_CLOSERS: Final[dict[str, str]] = {"}": "{", "]": "["}
_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)

# Thousands-grouped numbers ("1,250") are tried before plain ones.
_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"

# First matching pattern wins for each field.
FIELD_PATTERNS: Final[dict[NutrientField, tuple[re.Pattern[str], ...]]] = {
    NutrientField.CALORIES: (
        re.compile(rf"calories?\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"energy\s*[:=]\s*{_NUMBER}\s*kcal", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*(?:kcal|calories|cals?)\b", re.IGNORECASE),
    ),
    NutrientField.PROTEIN: (
        re.compile(rf"protein\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*g(?:rams?)?\s+(?:of\s+)?protein", re.IGNORECASE),
    ),
    NutrientField.CARBS: (
        re.compile(rf"carb(?:ohydrate)?s?\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*g(?:rams?)?\s+(?:of\s+)?carb(?:ohydrate)?s?", re.IGNORECASE),
    ),
    NutrientField.FAT: (
        re.compile(rf"(?<!saturated )(?<!trans )fat\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*g(?:rams?)?\s+(?:of\s+)?(?:total\s+)?fat", re.IGNORECASE),
    ),
    NutrientField.FIBER: (
        re.compile(rf"fib(?:er|re)\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*g(?:rams?)?\s+(?:of\s+)?(?:dietary\s+)?fib(?:er|re)", re.IGNORECASE),
    ),
    NutrientField.SUGAR: (
        re.compile(rf"sugars?\s*[:=]\s*{_NUMBER}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*g(?:rams?)?\s+(?:of\s+)?sugars?", re.IGNORECASE),
    ),
}

SERVING_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(rf"(?:serving(?:\s+size)?|portion|weight)\s*[:=]?\s*{_NUMBER}\s*g\b", re.IGNORECASE),
    re.compile(rf"per\s+{_NUMBER}\s*g\b", re.IGNORECASE),
)

MAX_TEXT_CALORIES: Final[float] = 10_000.0
MAX_TEXT_GRAMS: Final[float] = 1_000.0


def _to_float(matched: str) -> float:
    return float(matched.replace(",", ""))


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(1) if match else text


def find_balanced_end(text: str, start: int) -> int | None:
    """Index one past the bracket that closes the one at ``start``.

    Braces and brackets inside string literals are ignored, and a backslash
    escapes the next character inside a string. Returns None when the span is
    unbalanced or mismatched.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[char]:
                return None
            stack.pop()
            if not stack:
                return index + 1
    return None


def locate_json_object(text: str) -> tuple[dict[str, Any], int, int] | None:
    """Find the first JSON object in ``text``.

    Tries the whole (fence-stripped) reply first, then every ``{`` in order
    until a balanced span decodes to an object.

    Returns:
        ``(object, start, end)`` with the span's offsets in ``text``, or None.
    """
    stripped = _strip_code_fence(text.strip())
    if stripped.startswith("{") and stripped.endswith("}"):
        try:
            parsed = orjson.loads(stripped)
        except orjson.JSONDecodeError:
            pass
        else:
            if isinstance(parsed, dict):
                start = text.find(stripped)
                return parsed, start, start + len(stripped)

    position = text.find("{")
    while position != -1:
        end = find_balanced_end(text, position)
        if end is not None:
            try:
                parsed = orjson.loads(text[position:end])
            except orjson.JSONDecodeError:
                pass
            else:
                if isinstance(parsed, dict):
                    return parsed, position, end
        position = text.find("{", position + 1)
    return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in ``text``, or None."""
    located = locate_json_object(text)
    return located[0] if located is not None else None


def extract_fields_from_text(text: str) -> dict[NutrientField, float]:
    """Pull nutrient values out of prose with permissive patterns.

    Values outside sane bounds (calories 0 < v < 10000, grams 0 <= v < 1000)
    are ignored.
    """
    found: dict[NutrientField, float] = {}
    for nutrient, patterns in FIELD_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(text)
            if match is None:
                continue
            value = _to_float(match.group(1))
            if nutrient is NutrientField.CALORIES:
                if 0 < value < MAX_TEXT_CALORIES:
                    found[nutrient] = value
                    break
            elif 0 <= value < MAX_TEXT_GRAMS:
                found[nutrient] = value
                break
    return found


def extract_serving_grams(text: str) -> float | None:
    """Serving weight in grams mentioned in prose, if any."""
    for pattern in SERVING_PATTERNS:
        match = pattern.search(text)
        if match is not None:
            value = _to_float(match.group(1))
            if 0 < value < MAX_TEXT_GRAMS * 10:
                return value
    return None
