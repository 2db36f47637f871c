from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "BMC_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-level overrides applied on top of ``config.toml``.

    ``None`` means the variable is unset and the config file value wins.
    """

    config_path: Path = DEFAULT_CONFIG_PATH
    output_dir: Path | None = None
    strict_formats: bool | None = None


def _flag(environ: Mapping[str, str], name: str) -> bool | None:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean flag, got {raw!r}")


def _path(environ: Mapping[str, str], name: str) -> Path | None:
    raw = environ.get(ENV_PREFIX + name, "").strip()
    return Path(raw).expanduser() if raw else None


def read_settings(environ: Mapping[str, str] | None = None) -> Settings:
    environ = os.environ if environ is None else environ
    return Settings(
        config_path=_path(environ, "CONFIG_PATH") or DEFAULT_CONFIG_PATH,
        output_dir=_path(environ, "OUTPUT_DIR"),
        strict_formats=_flag(environ, "STRICT_FORMATS"),
    )


@lru_cache
def get_settings() -> Settings:
    return read_settings()


__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "Settings", "get_settings", "read_settings"]
