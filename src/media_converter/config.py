from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .settings import DEFAULT_CONFIG_PATH


@dataclass(slots=True)
class RuntimeConfig:
    output_dir: Path = Path("converted")
    log_file: str | None = None
    max_file_size_mb: int = 50
    render_scale: float = 1.5
    quality: int = 92
    default_format: str = "jpeg"
    strict_formats: bool = False


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @property
    def max_file_size_bytes(self) -> int:
        return self.runtime.max_file_size_mb * 1024 * 1024


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    log_file = data.get("log_file")
    return RuntimeConfig(
        output_dir=Path(str(data.get("output_dir", "converted"))),
        log_file=str(log_file) if log_file else None,
        max_file_size_mb=int(data.get("max_file_size_mb", 50)),
        render_scale=float(data.get("render_scale", 1.5)),
        quality=int(data.get("quality", 92)),
        default_format=str(data.get("default_format", "jpeg")),
        strict_formats=bool(data.get("strict_formats", False)),
    )


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    runtime_data = raw.get("runtime") if isinstance(raw, Mapping) else None
    runtime = _build_runtime(runtime_data if isinstance(runtime_data, Mapping) else None)
    if runtime.render_scale <= 0:
        raise ValueError(f"render_scale must be positive, got {runtime.render_scale}")
    if not 1 <= runtime.quality <= 100:
        raise ValueError(f"quality must be between 1 and 100, got {runtime.quality}")
    return AppConfig(runtime=runtime)


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "output_dir": str(config.runtime.output_dir),
            "log_file": config.runtime.log_file,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "render_scale": config.runtime.render_scale,
            "quality": config.runtime.quality,
            "default_format": config.runtime.default_format,
            "strict_formats": config.runtime.strict_formats,
        },
    }
    return json.dumps(payload, indent=2)
