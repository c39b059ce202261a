"""YAML settings source layering base files with per-environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` on top of ``base``.

    Nested dictionaries are merged key by key; any other value in
    ``override`` replaces the one in ``base``. Neither input is mutated.

    Args:
        base: Lower-priority values.
        override: Higher-priority values.

    Returns:
        The merged dictionary.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_yaml_directory(directory: Path) -> dict[str, Any]:
    """Merge every ``*.yaml`` file in a directory, in file-name order.

    Args:
        directory: Directory to scan. A missing directory yields ``{}``.

    Returns:
        Merged contents of the directory.
    """
    merged: dict[str, Any] = {}
    if not directory.is_dir():
        return merged
    for path in sorted(directory.glob("*.yaml")):
        with path.open(encoding="utf-8") as handle:
            merged = deep_merge(merged, yaml.safe_load(handle) or {})
    return merged


class MultiYamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by ``config/base`` and ``config/environments``.

    Base files are merged first, then ``config/environments/{APP_ENV}``.
    ``CONFIG_DIR`` points the source at a different config root, which is
    handy for container images that mount configuration separately.
    """

    def __init__(self, settings_cls: type[Any]) -> None:
        super().__init__(settings_cls)
        self._config_dir = self._resolve_config_dir()
        self._app_env = os.getenv("APP_ENV", "development")
        base = load_yaml_directory(self._config_dir / "base")
        env = load_yaml_directory(self._config_dir / "environments" / self._app_env)
        self._yaml_data: dict[str, Any] = deep_merge(base, env)

    @staticmethod
    def _resolve_config_dir() -> Path:
        override = os.getenv("CONFIG_DIR")
        if override:
            return Path(override)
        # src/recipe_keeper/core/config/yaml_source.py -> project root
        return Path(__file__).resolve().parents[4] / "config"

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        """Return the YAML value for a top-level settings field."""
        value = self._yaml_data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, Any]:
        return self._yaml_data
