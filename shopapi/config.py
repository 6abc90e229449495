"""Configuration management for the users and orders service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .tokens import TOKEN_TTL

_ENV_KEYS: Dict[str, str] = {
    "SHOP_HOST": "host",
    "SHOP_PORT": "port",
    "SHOP_DB_PATH": "database_path",
    "JWT_SECRET": "jwt_secret",
    "SHOP_TOKEN_TTL_HOURS": "token_ttl_hours",
}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service."""

    database_path: Path
    jwt_secret: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080
    token_ttl: timedelta = TOKEN_TTL

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw configuration values."""

        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        secret = data.get("jwt_secret")

        return Settings(
            database_path=database_path,
            jwt_secret=str(secret) if secret else None,
            host=str(data.get("host") or "0.0.0.0"),
            port=_parse_int(data.get("port", 8080), "port"),
            token_ttl=timedelta(
                hours=_parse_int(data.get("token_ttl_hours", _ttl_hours(TOKEN_TTL)), "token_ttl_hours")
            ),
        )


def _ttl_hours(ttl: timedelta) -> int:
    return int(ttl.total_seconds() // 3600)


def _parse_int(value: object, key: str) -> int:
    try:
        parsed = int(str(value))
    except ValueError as exc:
        raise ValueError(f"Configuration value '{key}' must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"Configuration value '{key}' must be positive")
    return parsed


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""

    env = os.environ if environ is None else environ
    if config_path is None and env.get("SHOP_CONFIG"):
        config_path = Path(env["SHOP_CONFIG"]).expanduser()

    raw: Dict[str, object] = {}
    base_path: Path | None = None
    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        raw.update(loaded)
        base_path = config_path.resolve(strict=False).parent

    for env_key, setting in _ENV_KEYS.items():
        value = env.get(env_key)
        if not value:
            continue
        if setting == "database_path":
            # Environment paths are relative to the working directory, not the YAML file.
            value = str(resolve_database_path(value))
        raw[setting] = value

    return Settings.from_dict(raw, base_path=base_path)


__all__ = ["Settings", "load_settings"]
