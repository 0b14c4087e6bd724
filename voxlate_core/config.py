"""Configuration helpers for the voxlate service."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
import json
import logging
import os
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path(os.environ.get("VOXLATE_HOME", Path.home() / ".voxlate"))
SETTINGS_PATH = CONFIG_DIR / "settings.json"
ENV_PREFIX = "VOXLATE_"

DEFAULT_API_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the transcription/translation service."""

    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: float = 60.0
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    default_target_language: str = "en"
    transcribe_model: str = "whisper-large-v3"
    translate_model: str = "llama-3.3-70b-versatile"
    api_base_url: str = DEFAULT_API_BASE_URL
    upstream_timeout_seconds: float = 60.0
    staging_dir: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Settings":
        """Create :class:`Settings` from any mapping, ignoring unknown keys."""
        defaults = cls()
        return cls(
            rate_limit_max_requests=int(
                payload.get("rate_limit_max_requests", defaults.rate_limit_max_requests)
            ),
            rate_limit_window_seconds=float(
                payload.get("rate_limit_window_seconds", defaults.rate_limit_window_seconds)
            ),
            max_upload_bytes=int(payload.get("max_upload_bytes", defaults.max_upload_bytes)),
            default_target_language=str(
                payload.get("default_target_language") or defaults.default_target_language
            ),
            transcribe_model=str(payload.get("transcribe_model") or defaults.transcribe_model),
            translate_model=str(payload.get("translate_model") or defaults.translate_model),
            api_base_url=str(payload.get("api_base_url") or defaults.api_base_url),
            upstream_timeout_seconds=float(
                payload.get("upstream_timeout_seconds", defaults.upstream_timeout_seconds)
            ),
            staging_dir=_coerce_optional_str(payload.get("staging_dir")),
        )

    def to_mapping(self) -> dict[str, Any]:
        return asdict(self)


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from disk, then apply ``VOXLATE_*`` environment overrides."""

    settings_path = path or SETTINGS_PATH
    payload: dict[str, Any] = {}
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        LOGGER.debug("No settings.json found at %s; using defaults", settings_path)
    except OSError as exc:  # pragma: no cover - filesystem failure
        LOGGER.warning("Failed reading settings at %s: %s", settings_path, exc)
    else:
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Invalid JSON in %s: %s", settings_path, exc)
        else:
            if isinstance(loaded, dict):
                payload.update(loaded)
            else:
                LOGGER.warning("Ignoring non-object settings in %s", settings_path)

    payload.update(_env_overrides(os.environ if environ is None else environ))
    try:
        return Settings.from_mapping(payload)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Invalid settings value (%s); falling back to defaults", exc)
        return Settings()


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for field in fields(Settings):
        value = environ.get(ENV_PREFIX + field.name.upper())
        if value not in (None, ""):
            overrides[field.name] = value
    return overrides


def _coerce_optional_str(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


__all__ = [
    "Settings",
    "load_settings",
    "CONFIG_DIR",
    "SETTINGS_PATH",
]
