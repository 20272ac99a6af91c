"""Configuration utilities for the Cloud Logging output."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from .errors import ConfigurationError


DEFAULT_SEVERITY_FIELD = "severity"
DEFAULT_TIMESTAMP_FIELD = "@timestamp"
DEFAULT_SEVERITY = "default"

_ENV_PREFIX = "GCL_OUTPUT_"


def _comma_tuple(value: str | None, *, default: tuple[str, ...]) -> tuple[str, ...]:
    """Convert a comma-separated string to a tuple."""

    if not value:
        return default

    return tuple(filter(None, (part.strip() for part in value.split(","))))


def _bool_env(value: str | None, default: bool) -> bool:
    """Convert a string to a boolean."""

    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _int_env(value: str | None, default: int) -> int:
    if value is None:
        return default

    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _optional(value: str | None) -> str | None:
    if value is None:
        return None

    value = value.strip()
    return value or None


@dataclass(frozen=True)
class OutputSettings:
    """Immutable output configuration, fixed at startup."""

    log_name: str
    project_id: str | None = None
    key_file: str | None = None
    severity_field: str = DEFAULT_SEVERITY_FIELD
    timestamp_field: str = DEFAULT_TIMESTAMP_FIELD
    default_severity: str = DEFAULT_SEVERITY
    strip_at_fields: bool = False
    strip_fields: tuple[str, ...] = ()
    workers: int = 1

    def with_overrides(self, **kwargs: Any) -> "OutputSettings":
        return validate_settings(replace(self, **kwargs))

    @property
    def strips_fields(self) -> bool:
        """Whether any payload filter is active."""

        return self.strip_at_fields or bool(self.strip_fields)


_OPTION_NAMES = frozenset(field.name for field in fields(OutputSettings))


def validate_settings(settings: OutputSettings) -> OutputSettings:
    """Check option types and required values, returning the settings unchanged."""

    if not isinstance(settings.log_name, str) or not settings.log_name.strip():
        raise ConfigurationError("log_name is required")

    for name in ("severity_field", "timestamp_field", "default_severity"):
        value = getattr(settings, name)
        if not isinstance(value, str) or not value:
            raise ConfigurationError(f"{name} must be a non-empty string")

    for name in ("project_id", "key_file"):
        value = getattr(settings, name)
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"{name} must be a string")

    if not isinstance(settings.strip_at_fields, bool):
        raise ConfigurationError("strip_at_fields must be a boolean")

    if not isinstance(settings.strip_fields, tuple) or not all(
        isinstance(item, str) for item in settings.strip_fields
    ):
        raise ConfigurationError("strip_fields must be a list of strings")

    if isinstance(settings.workers, bool) or not isinstance(settings.workers, int):
        raise ConfigurationError("workers must be an integer")
    if settings.workers < 1:
        raise ConfigurationError("workers must be at least 1")

    return settings


def settings_from_options(options: Mapping[str, Any]) -> OutputSettings:
    """Build settings from a host option mapping such as a pipeline config block."""

    unknown = sorted(set(options) - _OPTION_NAMES)
    if unknown:
        raise ConfigurationError(f"unknown option(s): {', '.join(unknown)}")

    if "log_name" not in options:
        raise ConfigurationError("log_name is required")

    values = dict(options)

    strip_fields = values.get("strip_fields")
    if strip_fields is not None:
        if isinstance(strip_fields, (str, bytes)) or not isinstance(
            strip_fields, (list, tuple)
        ):
            raise ConfigurationError("strip_fields must be a list of strings")
        values["strip_fields"] = tuple(strip_fields)
    else:
        values.pop("strip_fields", None)

    return validate_settings(OutputSettings(**values))


def load_settings(env: Mapping[str, str] | None = None) -> OutputSettings:
    """Build settings from ``GCL_OUTPUT_*`` environment variables."""

    source = os.environ if env is None else env

    def get(name: str, default: str | None = None) -> str | None:
        return source.get(_ENV_PREFIX + name, default)

    settings = OutputSettings(
        log_name=get("LOG_NAME", "") or "",
        project_id=_optional(get("PROJECT_ID")),
        key_file=_optional(get("KEY_FILE")),
        severity_field=get("SEVERITY_FIELD", DEFAULT_SEVERITY_FIELD),
        timestamp_field=get("TIMESTAMP_FIELD", DEFAULT_TIMESTAMP_FIELD),
        default_severity=get("DEFAULT_SEVERITY", DEFAULT_SEVERITY),
        strip_at_fields=_bool_env(get("STRIP_AT_FIELDS"), False),
        strip_fields=_comma_tuple(get("STRIP_FIELDS"), default=()),
        workers=max(1, _int_env(get("WORKERS"), 1)),
    )

    return validate_settings(settings)
