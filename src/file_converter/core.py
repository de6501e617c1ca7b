from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .config import AppConfig
from .detection import classify, guess_declared_type, output_filename
from .errors import ConversionError
from .executors import run_sync
from .logging import (
    BatchSummary,
    RunLogEntry,
    RunLogger,
    StageTimings,
    read_summary_csv,
    write_summary_csv,
)
from .models import BatchConversionResult, ConversionResult, SourceFile
from .router import convert
from .utils import RunPaths, atomic_write, ensure_run_paths, generate_run_id, iter_files, size_within_limit

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ConversionContext:
    run_id: str
    run_paths: RunPaths
    logger: RunLogger
    target: str
    declared_mime_type: str | None = None


class ConversionService:
    """Convert files on disk and keep per-run outputs and logs."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    async def convert_file(
        self,
        path: Path,
        target: str,
        *,
        run_id: str | None = None,
        declared_mime_type: str | None = None,
    ) -> ConversionResult:
        run_id = run_id or generate_run_id()
        run_paths = ensure_run_paths(self._config, run_id)
        context = _ConversionContext(
            run_id=run_id,
            run_paths=run_paths,
            logger=RunLogger(run_paths.log_file),
            target=target,
            declared_mime_type=declared_mime_type,
        )
        start = time.perf_counter()
        try:
            output_path, size_bytes = await self._convert_internal(path, context)
        except ConversionError as exc:
            self._log_failure(path, context, exc)
            raise

        elapsed = time.perf_counter() - start
        return ConversionResult(
            run_id=run_id,
            source_path=path,
            output_path=output_path,
            target=target,
            size_bytes=size_bytes,
            summary=f"Converted {path.name} -> {output_path} in {elapsed:.2f}s",
        )

    async def _convert_internal(
        self, path: Path, context: _ConversionContext
    ) -> tuple[Path, int]:
        read_start = time.perf_counter()
        source = await self._read_source(path, context.declared_mime_type)
        read_elapsed = (time.perf_counter() - read_start) * 1000

        convert_start = time.perf_counter()
        output = await convert(source, context.target)
        convert_elapsed = (time.perf_counter() - convert_start) * 1000

        output_path = context.run_paths.output_file(output_filename(path.name, context.target))
        write_start = time.perf_counter()
        await run_sync(atomic_write, output_path, output)
        write_elapsed = (time.perf_counter() - write_start) * 1000

        context.logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=str(path),
                status="success",
                category=self._category_value(source.name, source.declared_mime_type),
                target=context.target,
                error_code=None,
                timings=StageTimings(
                    read_ms=read_elapsed,
                    convert_ms=convert_elapsed,
                    write_ms=write_elapsed,
                ),
                output_path=str(output_path),
                size_bytes=len(output),
            )
        )
        return output_path, len(output)

    async def _read_source(self, path: Path, declared_mime_type: str | None) -> SourceFile:
        if not path.is_file():
            raise ConversionError(f"Source file does not exist: {path}", code="NOT_FOUND")
        if not size_within_limit(path, self._config.runtime.max_file_size_mb):
            raise ConversionError(f"File exceeds configured limit: {path.name}", code="SIZE_LIMIT")
        mime = declared_mime_type if declared_mime_type is not None else guess_declared_type(path)
        return await run_sync(SourceFile.from_path, path, mime)

    def _category_value(self, name: str, declared_mime_type: str | None) -> str | None:
        category = classify(name, declared_mime_type)
        return category.value if category else None

    def _log_failure(self, path: Path, context: _ConversionContext, exc: ConversionError) -> None:
        logger.warning("Conversion of %s failed: %s %s", path.name, exc.code, exc)
        size_bytes = path.stat().st_size if path.is_file() else 0
        mime = context.declared_mime_type
        if mime is None:
            mime = guess_declared_type(path)
        context.logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=str(path),
                status="failure",
                category=self._category_value(path.name, mime),
                target=context.target,
                error_code=exc.code,
                timings=StageTimings(0, 0, 0),
                output_path="",
                size_bytes=size_bytes,
            )
        )

    async def batch_convert(
        self,
        inputs: Sequence[Path],
        target: str,
        *,
        parallelism: int | None = None,
    ) -> BatchConversionResult:
        """Convert every file under *inputs* as independent concurrent jobs."""

        paths = list(iter_files(inputs))
        summary = BatchSummary(total=len(paths))
        limit = asyncio.Semaphore(max(1, parallelism or self._config.runtime.parallelism))

        async def _bounded(path: Path) -> ConversionResult:
            async with limit:
                return await self.convert_file(path, target)

        outcomes = await asyncio.gather(*(_bounded(path) for path in paths), return_exceptions=True)

        results: list[ConversionResult] = []
        failures: dict[str, str] = {}
        for path, outcome in zip(paths, outcomes):
            if isinstance(outcome, ConversionError):
                summary.record_error(outcome.code)
                failures[str(path)] = outcome.code
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
            summary.successes += 1

        if paths:
            self._write_batch_summary(summary)
        return BatchConversionResult(runs=results, failures=failures, summary=summary)

    def _write_batch_summary(self, summary: BatchSummary) -> None:
        summary_path = self._config.runtime.output_dir / self._config.runtime.summary_csv
        header, rows = read_summary_csv(summary_path)
        rows.append(summary.as_row(generate_run_id("batch")))
        write_summary_csv(summary_path, header, rows)


__all__ = [
    "BatchConversionResult",
    "ConversionError",
    "ConversionResult",
    "ConversionService",
]
