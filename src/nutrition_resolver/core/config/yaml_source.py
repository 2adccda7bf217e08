"""YAML settings source that layers environment overrides on base files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


CONFIG_DIR_ENV = "NUTRITION_RESOLVER_CONFIG_DIR"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in recursively.

    Nested dicts are merged key by key; any other value in ``override``
    replaces the one in ``base``. Neither input is mutated.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml_dir(directory: Path) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    if not directory.is_dir():
        return merged
    for yaml_file in sorted(directory.glob("*.yaml")):
        with yaml_file.open(encoding="utf-8") as f:
            merged = deep_merge(merged, yaml.safe_load(f) or {})
    return merged


class MultiYamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load ``config/base/*.yaml`` then merge ``config/environments/{APP_ENV}``.

    The config directory defaults to ``<project root>/config`` and can be
    pointed elsewhere with ``NUTRITION_RESOLVER_CONFIG_DIR``.
    """

    def __init__(self, settings_cls: type[Any], config_dir: Path | None = None) -> None:
        super().__init__(settings_cls)
        self._config_dir = config_dir or self._find_config_dir()
        self._app_env = os.getenv("APP_ENV", "development")
        self._yaml_data = deep_merge(
            _read_yaml_dir(self._config_dir / "base"),
            _read_yaml_dir(self._config_dir / "environments" / self._app_env),
        )

    @staticmethod
    def _find_config_dir() -> Path:
        override = os.getenv(CONFIG_DIR_ENV)
        if override:
            return Path(override)
        # src/nutrition_resolver/core/config/yaml_source.py -> project root
        return Path(__file__).resolve().parents[4] / "config"

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        """Return the merged YAML value for a top-level settings field."""
        value = self._yaml_data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, Any]:
        return self._yaml_data
