from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .types import Credentials

DEFAULT_CONFIG_PATH = Path("~/.config/fragmentctl/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "api_url": "FRAGMENTS_API_URL",
    "username": "FRAGMENTS_USERNAME",
    "password": "FRAGMENTS_PASSWORD",
    "token": "FRAGMENTS_TOKEN",
    "timeout_s": "FRAGMENTS_TIMEOUT_S",
    "log_level": "FRAGMENTS_LOG_LEVEL",
    "log_file": "FRAGMENTS_LOG_FILE",
}

SECRET_KEYS = {"password", "token"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("FRAGMENTS_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class FragmentsConfig:
    api_url: str = "http://localhost:8080"
    username: str | None = None
    password: str | None = None
    # Bearer token; takes precedence over username/password when set.
    token: str | None = None
    timeout_s: float = 10.0
    log_level: str = "WARNING"
    log_file: str | None = None

    def credentials(self) -> Credentials | None:
        if self.token:
            return Credentials(token=self.token)
        if self.username and self.password:
            return Credentials(username=self.username, password=self.password)
        return None

    def redacted(self) -> dict[str, Any]:
        data = dict(vars(self))
        for key in SECRET_KEYS:
            if data.get(key):
                data[key] = "***"
        return data


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def load_config(path: Path | None = None) -> FragmentsConfig:
    cfg = FragmentsConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: FragmentsConfig, data: dict[str, Any]) -> FragmentsConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key == "timeout_s":
            cfg.timeout_s = _parse_float(value, cfg.timeout_s, key=key)
            continue
        if key in {"api_url", "log_level"}:
            cfg_value = _optional_str(value)
            if cfg_value is not None:
                setattr(cfg, key, cfg_value)
            continue
        setattr(cfg, key, _optional_str(value))
    return cfg


def _apply_env(cfg: FragmentsConfig) -> FragmentsConfig:
    cfg.api_url = os.getenv("FRAGMENTS_API_URL", cfg.api_url)
    cfg.username = os.getenv("FRAGMENTS_USERNAME", cfg.username)
    cfg.password = os.getenv("FRAGMENTS_PASSWORD", cfg.password)
    cfg.token = os.getenv("FRAGMENTS_TOKEN", cfg.token)
    cfg.timeout_s = _parse_float(
        os.getenv("FRAGMENTS_TIMEOUT_S"), cfg.timeout_s, key="timeout_s"
    )
    cfg.log_level = os.getenv("FRAGMENTS_LOG_LEVEL", cfg.log_level)
    cfg.log_file = os.getenv("FRAGMENTS_LOG_FILE", cfg.log_file)
    return cfg
