"""YAML settings loader — parses, interpolates env vars, applies overrides, validates."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from deep_research.config.domain.observer import ConfigObserver
from deep_research.config.domain.settings import AppSettings
from deep_research.config.infrastructure.env_interpolation import resolve_env_vars
from deep_research.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
)


class YamlSettingsLoader:
    """Builds AppSettings from an optional YAML file plus explicit overrides."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(
        self, path: Path | None, overrides: Mapping[str, Any] | None = None
    ) -> AppSettings:
        """
        Load settings; *overrides* (CLI options) win over file values, None is skipped.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} reference without a fallback is
                unset (all collected first).
            ConfigValidationError: if the merged values violate the settings schema.
        """
        raw: dict[str, Any] = {}
        if path is not None:
            raw = _parse_yaml(path=path)
            raw = resolve_env_vars(raw)  # type: ignore[assignment]

        merged = {
            **raw,
            **{k: v for k, v in (overrides or {}).items() if v is not None},
        }
        settings = _build_settings(merged=merged)
        self._observer.config_loaded(
            path=str(path) if path is not None else "<defaults>", model=settings.model
        )
        return settings


def _parse_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except OSError as exc:
        raise ConfigLoadError(path=path, reason=str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"expected a mapping at the top level, got {type(data).__name__}"
        )
    return data


def _build_settings(merged: dict[str, Any]) -> AppSettings:
    try:
        return AppSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc
