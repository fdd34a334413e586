"""Runtime settings resolved from environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CHAT_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_CHAT_MODEL = "gpt-4"
DEFAULT_VISION_MODEL = "gpt-4-vision-preview"


def _default_state_path() -> Path:
    """
    Return the default path of the state file inside the package data folder.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "state.json"


def resolve_state_path(env_value: Optional[str]) -> Path:
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return _default_state_path()


def _parse_log_level(value: Optional[str], default: int = logging.WARNING) -> int:
    if not value:
        return default
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def _parse_timeout(value: Optional[str], default: float = 60.0) -> float:
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return timeout if timeout > 0 else default


@dataclass(frozen=True)
class Settings:
    state_path: Path
    log_level: int = logging.WARNING
    chat_api_key: Optional[str] = None
    chat_url: str = DEFAULT_CHAT_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    vision_model: str = DEFAULT_VISION_MODEL
    chat_timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        api_key = env.get("SMARTHUB_CHAT_API_KEY") or env.get("OPENAI_API_KEY") or None
        return cls(
            state_path=resolve_state_path(env.get("SMARTHUB_STATE_PATH")),
            log_level=_parse_log_level(env.get("SMARTHUB_LOG_LEVEL")),
            chat_api_key=api_key.strip() if api_key else None,
            chat_url=(env.get("SMARTHUB_CHAT_URL") or DEFAULT_CHAT_URL).strip(),
            chat_model=(env.get("SMARTHUB_CHAT_MODEL") or DEFAULT_CHAT_MODEL).strip(),
            vision_model=(env.get("SMARTHUB_VISION_MODEL") or DEFAULT_VISION_MODEL).strip(),
            chat_timeout=_parse_timeout(env.get("SMARTHUB_CHAT_TIMEOUT")),
        )

    def with_state_path(self, path: Optional[str]) -> "Settings":
        if not path:
            return self
        return replace(self, state_path=resolve_state_path(path))


__all__ = ["Settings", "resolve_state_path"]
