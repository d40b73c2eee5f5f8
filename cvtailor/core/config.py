"""Runtime configuration and environment loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_SETTINGS: "Settings | None" = None

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.3-70b-versatile"
DEFAULT_DATABASE_URL = "sqlite:///./cvtailor.db"
DEFAULT_UPLOADS_DIR = "uploads/cvs"


def reset_settings() -> None:
    """Reset cached settings. Call after changing environment variables."""
    global _SETTINGS
    _SETTINGS = None


@dataclass(frozen=True)
class Settings:
    llm_api_key: str
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.3
    llm_timeout: float = 60.0
    database_url: str = DEFAULT_DATABASE_URL
    uploads_dir: str = DEFAULT_UPLOADS_DIR
    log_level: str = "INFO"


def load_env_file(path: str, *, override: bool = False) -> None:
    """Load key=value pairs from a .env-style file into os.environ.

    Keeps existing env values unless override=True.
    """
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'").strip('"')
        if not override and key in os.environ:
            continue
        os.environ[key] = value


def _required_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number, got '{raw}'.") from exc


def get_settings() -> Settings:
    """Load settings from my.env and environment variables."""
    global _SETTINGS
    if _SETTINGS is not None:
        return _SETTINGS

    env_file = os.getenv("CVTAILOR_ENV_FILE", "my.env")
    load_env_file(env_file)

    _SETTINGS = Settings(
        llm_api_key=_required_env("LLM_API_KEY"),
        llm_base_url=_optional_env("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
        llm_model=_optional_env("LLM_MODEL", DEFAULT_LLM_MODEL),
        llm_temperature=_float_env("LLM_TEMPERATURE", 0.3),
        llm_timeout=_float_env("LLM_TIMEOUT", 60.0),
        database_url=_optional_env("DATABASE_URL", DEFAULT_DATABASE_URL),
        uploads_dir=_optional_env("CVTAILOR_UPLOADS_DIR", DEFAULT_UPLOADS_DIR),
        log_level=_optional_env("LOG_LEVEL", "INFO").upper(),
    )
    return _SETTINGS
