# infrastructure/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from domain.exceptions import ConfigurationError


# .env at the project root, read before the process environment
_env_path = Path(__file__).parent.parent.parent / ".env"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")
_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
_LOGGERS = ("loguru", "console")


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    logger: str = "loguru"
    strict_context: bool = False
    raise_rollback_errors: bool = False
    record_events: bool = False


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_choice(name: str, raw: str, choices, *, upper: bool = False) -> str:
    value = raw.strip().upper() if upper else raw.strip().lower()
    if value not in choices:
        raise ConfigurationError(f"{name} must be one of {', '.join(choices)}, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from ``env``, or from the .env file merged under the
    process environment when ``env`` is None.
    """
    if env is None:
        merged = {k: v for k, v in dotenv_values(_env_path).items() if v is not None} if _env_path.exists() else {}
        merged.update(os.environ)
        env = merged

    defaults = Settings()
    return Settings(
        log_level=_parse_choice(
            "STEPFLOW_LOG_LEVEL", env.get("STEPFLOW_LOG_LEVEL", defaults.log_level), _LEVELS, upper=True
        ),
        logger=_parse_choice("STEPFLOW_LOGGER", env.get("STEPFLOW_LOGGER", defaults.logger), _LOGGERS),
        strict_context=_parse_bool("STEPFLOW_STRICT_CONTEXT", env.get("STEPFLOW_STRICT_CONTEXT", "false")),
        raise_rollback_errors=_parse_bool(
            "STEPFLOW_RAISE_ROLLBACK_ERRORS", env.get("STEPFLOW_RAISE_ROLLBACK_ERRORS", "false")
        ),
        record_events=_parse_bool("STEPFLOW_RECORD_EVENTS", env.get("STEPFLOW_RECORD_EVENTS", "false")),
    )
