"""Run configuration: pydantic model plus JSON loading and validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import pydantic

from shared.error_codes import ErrorCode
from shared.exceptions import ValidationError

from .models import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DECIMAL_PLACES,
    DEFAULT_MAX_INTEGER,
    PROGRESS_SCALE,
    RunConfig,
)

# camelCase alias -> field name, so errors always name the Python field.
_FIELD_NAMES = {
    info.alias: name for name, info in RunConfig.model_fields.items() if info.alias
}


def validate_config(config: Mapping[str, Any] | RunConfig) -> RunConfig:
    """Validate a config mapping and return the typed model.

    Args:
        config: Raw mapping (snake_case or camelCase keys) or a ready model.

    Raises:
        ValidationError: If a field is unknown, missing a constraint or the
            fault index lies outside the index space.
    """
    if isinstance(config, RunConfig):
        return config
    try:
        return RunConfig.model_validate(dict(config))
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        loc = [_FIELD_NAMES.get(str(part), str(part)) for part in first.get("loc", ())]
        field = ".".join(loc) or None
        where = f" ({field})" if field else ""
        raise ValidationError(
            f"Invalid run config{where}: {first.get('msg', exc)}",
            field=field,
            errors=len(exc.errors()),
        ) from exc


def load_config(path: str | Path) -> RunConfig:
    """Load and validate a run config from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValidationError: If the file is not valid JSON or fails validation.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Config is not valid JSON: {exc}",
                error_code=ErrorCode.DESERIALIZATION_FAILED,
                path=str(config_path),
            ) from exc

    if not isinstance(raw, dict):
        raise ValidationError(
            "Config root must be a JSON object", path=str(config_path)
        )
    return validate_config(raw)


__all__ = [
    "RunConfig",
    "load_config",
    "validate_config",
    "DEFAULT_MAX_INTEGER",
    "DEFAULT_DECIMAL_PLACES",
    "DEFAULT_BATCH_SIZE",
    "PROGRESS_SCALE",
]
