from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, model_validator


DEFAULT_BASE_URL = "https://ezpassmaineturnpike.com"
DEFAULT_SESSION_FILE = "~/.ezpass/session.json"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config so a cron job only needs `.env`; YAML remains an optional override.
    """
    return {
        "portal": {
            "base_url": os.getenv("EZPASS_BASE_URL", DEFAULT_BASE_URL),
            "username": os.getenv("EZPASS_USERNAME", ""),
            "password": os.getenv("EZPASS_PASSWORD", ""),
            "timeout_seconds": os.getenv("EZPASS_TIMEOUT_SECONDS", "30"),
        },
        "session": {
            "file_path": os.getenv("EZPASS_SESSION_FILE", DEFAULT_SESSION_FILE),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
        "output": {
            "debug_dir": os.getenv("EZPASS_DEBUG_DIR", "data/debug"),
            "distinct_error_statuses": _env_bool("EZPASS_DISTINCT_ERROR_STATUSES", default=False),
        },
    }


class PortalConfig(BaseModel):
    """
    Maine Turnpike EZPass customer portal. Credentials may be empty here and supplied on the CLI.
    """

    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    password: str = Field(default="", repr=False)
    timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def _normalize_base_url(self) -> "PortalConfig":
        base_url = (self.base_url or "").strip() or DEFAULT_BASE_URL
        base_url = base_url.rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"portal.base_url must be a full URL like {DEFAULT_BASE_URL!r}")
        if self.timeout_seconds <= 0:
            raise ValueError("portal.timeout_seconds must be positive")
        self.base_url = base_url
        self.username = (self.username or "").strip()
        return self


class SessionConfig(BaseModel):
    file_path: str = DEFAULT_SESSION_FILE


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class OutputConfig(BaseModel):
    debug_dir: str = "data/debug"
    # Off by default: fatal errors exit 2 (same as Bronze), which existing automation expects.
    distinct_error_statuses: bool = False


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    session: SessionConfig = SessionConfig()
    logging: LoggingConfig = LoggingConfig()
    output: OutputConfig = OutputConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
