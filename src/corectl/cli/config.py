"""Configuration helpers for the corectl CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from corectl.client import home_dir_from_environment
from corectl.errors import ConfigError

DEFAULT_CORE_URL = "http://localhost:1999"
CORE_URL_ENV_VAR = "CHAINMINT_URL"
ACCESS_TOKEN_ENV_VAR = "CHAINMINT_ACCESS_TOKEN"
CONFIG_FILENAME = "config.toml"


@dataclass(frozen=True)
class CLIConfig:
    core_url: str = DEFAULT_CORE_URL
    home_dir: Path = field(default_factory=home_dir_from_environment)
    access_token: str | None = None


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    home_dir = home_dir_from_environment()
    config_path = Path(path) if path else home_dir / CONFIG_FILENAME

    source: dict[str, Any] = {}
    if config_path.exists():
        parsed = _load_toml(config_path)
        section = parsed.get("corectl")
        if isinstance(section, dict):
            source = section
        elif section is None:
            source = parsed
        else:
            raise ConfigError("[corectl] must be a table")
    elif path:
        raise ConfigError(f"config file not found: {config_path}")

    env_core_url = os.getenv(CORE_URL_ENV_VAR)
    configured_core_url = str(source.get("core_url", DEFAULT_CORE_URL)).strip()
    core_url = env_core_url.strip() if env_core_url else configured_core_url
    if not core_url:
        raise ConfigError("core_url must not be empty")

    env_access_token = os.getenv(ACCESS_TOKEN_ENV_VAR)
    access_token_raw = env_access_token if env_access_token else source.get("access_token")
    access_token = str(access_token_raw).strip() or None if access_token_raw else None

    return CLIConfig(core_url=core_url, home_dir=home_dir, access_token=access_token)
