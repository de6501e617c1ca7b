from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

CONFIG_FILE = Path("config.toml")


@dataclass(slots=True)
class RuntimeConfig:
    output_dir: Path = Path("runs")
    log_file: str = "log.jsonl"
    summary_csv: str = "summary.csv"
    max_file_size_mb: int = 25
    enable_local_api: bool = False
    parallelism: int = 4


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    api: APIConfig = field(default_factory=APIConfig)

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
    defaults = RuntimeConfig()
    return RuntimeConfig(
        output_dir=Path(str(data.get("output_dir", defaults.output_dir))),
        log_file=str(data.get("log_file", defaults.log_file)),
        summary_csv=str(data.get("summary_csv", defaults.summary_csv)),
        max_file_size_mb=int(data.get("max_file_size_mb", defaults.max_file_size_mb)),
        enable_local_api=bool(data.get("enable_local_api", defaults.enable_local_api)),
        parallelism=max(1, int(data.get("parallelism", defaults.parallelism))),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    runtime_data = raw.get("runtime") if isinstance(raw, Mapping) else None
    api_data = raw.get("api") if isinstance(raw, Mapping) else None
    runtime = _build_runtime(runtime_data if isinstance(runtime_data, Mapping) else None)
    api = _build_api(api_data if isinstance(api_data, Mapping) else None)
    return AppConfig(runtime=runtime, api=api)


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "output_dir": str(config.runtime.output_dir),
            "log_file": config.runtime.log_file,
            "summary_csv": config.runtime.summary_csv,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "enable_local_api": config.runtime.enable_local_api,
            "parallelism": config.runtime.parallelism,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = ["APIConfig", "AppConfig", "CONFIG_FILE", "RuntimeConfig", "dump_config", "load_config"]
