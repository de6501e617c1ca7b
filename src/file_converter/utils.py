from __future__ import annotations

import hashlib
import os
import re
import shutil
import tempfile
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .config import AppConfig

SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(slots=True)
class RunPaths:
    run_id: str
    base_dir: Path
    log_file: Path

    def output_file(self, filename: str) -> Path:
        return self.base_dir / slugify(filename)


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "file"
    if len(normalized) > max_length:
        normalized = normalized[:max_length]
    return normalized


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def ensure_run_paths(config: AppConfig, run_id: str) -> RunPaths:
    base = config.runtime.output_dir / run_id
    base.mkdir(parents=True, exist_ok=True)
    return RunPaths(run_id=run_id, base_dir=base, log_file=base / config.runtime.log_file)


def atomic_write(path: Path, data: str | bytes, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode(encoding) if isinstance(data, str) else data
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp:
        tmp.write(payload)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def iter_files(paths: Iterable[Path]) -> Iterator[Path]:
    for path in paths:
        if path.is_file():
            yield path
        elif path.is_dir():
            for file_path in sorted(path.rglob("*")):
                if file_path.is_file():
                    yield file_path


def size_within_limit(path: Path, max_mb: int) -> bool:
    return path.stat().st_size <= max_mb * 1024 * 1024


def prune_runs(output_dir: Path, *, keep: int | None = None, older_than_s: float | None = None) -> list[Path]:
    """Delete run directories beyond *keep* newest or older than *older_than_s*."""

    if not output_dir.exists():
        return []
    runs = sorted(
        (entry for entry in output_dir.iterdir() if entry.is_dir()),
        key=lambda entry: entry.stat().st_mtime,
        reverse=True,
    )
    now = time.time()
    removed: list[Path] = []
    for index, run_dir in enumerate(runs):
        too_many = keep is not None and index >= keep
        too_old = older_than_s is not None and now - run_dir.stat().st_mtime > older_than_s
        if too_many or too_old:
            shutil.rmtree(run_dir)
            removed.append(run_dir)
    return removed


__all__ = [
    "RunPaths",
    "atomic_write",
    "ensure_run_paths",
    "generate_run_id",
    "iter_files",
    "prune_runs",
    "size_within_limit",
    "slugify",
]
