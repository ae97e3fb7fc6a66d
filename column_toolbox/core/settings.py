from __future__ import annotations

import json
from typing import Any, Dict

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from column_toolbox.core.paths import settings_path


class Settings(BaseModel):
    model_config = ConfigDict(extra="allow")

    display_decimals: int = Field(2, ge=0, le=10)
    show_hints: bool = True


DEFAULT_SETTINGS: Dict[str, Any] = Settings().model_dump()


def _validated(stored: Dict[str, Any]) -> Dict[str, Any]:
    """Stored values over the defaults; invalid fields fall back to their default."""
    data = {**DEFAULT_SETTINGS, **stored}
    try:
        return Settings.model_validate(data).model_dump()
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning(f"Ignoring invalid settings {sorted(bad)}: {e}")
        for key in bad:
            data[key] = DEFAULT_SETTINGS[key]
        return Settings.model_validate(data).model_dump()


def load_settings() -> Dict[str, Any]:
    p = settings_path()
    if not p.exists():
        return dict(DEFAULT_SETTINGS)
    try:
        stored = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable settings file {p}: {e}")
        return dict(DEFAULT_SETTINGS)
    if not isinstance(stored, dict):
        logger.warning(f"Ignoring settings file {p}: expected a JSON object")
        return dict(DEFAULT_SETTINGS)
    return _validated(stored)


def save_settings(data: Dict[str, Any]) -> None:
    p = settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2), encoding="utf-8")
