"""Layered settings loading: JSON files, then environment variables."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from src.commons.settings.models import Settings

ENVIRONMENTS = ("dev", "staging", "prod")


class ConfigurationError(Exception):
    """Raised when the merged configuration is not a valid ``Settings``."""

    def __init__(self, layers: list[str], error: ValidationError) -> None:
        self.layers = layers
        self.error = error
        super().__init__(
            f"Invalid configuration (layers: {', '.join(layers) or 'defaults'}):\n"
            f"{error}"
        )


class SettingsLoader:
    """Builds ``Settings`` from up to three layers.

    Later layers win, key by key:
    1. ``config/appsettings.json``
    2. ``config/appsettings.{environment}.json``
    3. ``TUBELY__SECTION__KEY`` environment variables

    Environment values stay strings and pydantic coerces them, so a numeric
    JWT secret stays a string. Values that look like JSON arrays or objects
    (``TUBELY__SERVER__CORS_ORIGINS='["https://a"]'``) are decoded first.
    """

    ENV_PREFIX = "TUBELY__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            config_dir: Directory with the JSON files; ``./config`` by default.
            environment: One of dev, staging, prod. Defaults to
                ``TUBELY__APP__ENVIRONMENT`` or ``dev``.

        Raises:
            ValueError: If the environment name is unknown.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )
        if self.environment not in ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment '{self.environment}', "
                f"expected one of {', '.join(ENVIRONMENTS)}"
            )

    def layers(self) -> list[tuple[str, dict[str, Any]]]:
        """Return the non-empty layers in the order they are applied."""
        candidates = [
            ("appsettings.json", self._load_json("appsettings.json")),
            (
                f"appsettings.{self.environment}.json",
                self._load_json(f"appsettings.{self.environment}.json"),
            ),
            ("environment", self._load_env_vars(os.environ)),
        ]
        return [(name, values) for name, values in candidates if values]

    def load(self) -> Settings:
        """Merge all layers and validate the result.

        Raises:
            ConfigurationError: If a value does not validate.
        """
        merged: dict[str, Any] = {}
        names: list[str] = []
        for name, values in self.layers():
            merged = self._deep_merge(merged, values)
            names.append(name)

        try:
            return Settings(**merged)
        except ValidationError as e:
            raise ConfigurationError(names, e) from e

    def _load_env_vars(self, environ: Mapping[str, str]) -> dict[str, Any]:
        """Nest ``TUBELY__`` variables by their ``__``-separated path.

        ``TUBELY__UPLOAD__MAX_VIDEO_BYTES=42`` becomes
        ``{"upload": {"max_video_bytes": "42"}}``.
        """
        result: dict[str, Any] = {}
        for key, value in environ.items():
            if not key.upper().startswith(self.ENV_PREFIX):
                continue
            *sections, field = key[len(self.ENV_PREFIX) :].lower().split("__")
            current = result
            for section in sections:
                current = current.setdefault(section, {})
            current[field] = self._coerce_value(value)
        return result

    def _coerce_value(self, value: str) -> Any:
        """Decode JSON arrays/objects; leave everything else to pydantic."""
        stripped = value.strip()
        if stripped.startswith(("[", "{")):
            try:
                return json.loads(stripped)
            except json.JSONDecodeError:
                pass
        return value

    def _load_json(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename
        if not path.is_file():
            return {}
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object")
        return data

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Recursively merge ``override`` into a copy of ``base``."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


class _SettingsHolder:
    instance: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Load settings once and return the cached instance afterwards.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Load again even if cached.
    """
    if _SettingsHolder.instance is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _SettingsHolder.instance = loader.load()
    return _SettingsHolder.instance


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    _SettingsHolder.instance = None
