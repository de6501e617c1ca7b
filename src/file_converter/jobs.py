"""In-memory board of conversion jobs.

The board owns the job collection and is the only thing that mutates it.
Every job moves ``pending -> converting -> done | error`` and never leaves a
terminal state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from .compatibility import CompatibilityEntry, common_targets, compatible_targets, is_compatible, label_for
from .config import AppConfig
from .detection import Category, classify, output_filename
from .errors import ConversionError, UnsupportedConversion
from .models import SourceFile
from .router import convert
from .utils import atomic_write, generate_run_id

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    PENDING = "pending"
    CONVERTING = "converting"
    DONE = "done"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({JobStatus.DONE, JobStatus.ERROR})
_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.CONVERTING}),
    JobStatus.CONVERTING: frozenset({JobStatus.DONE, JobStatus.ERROR}),
    JobStatus.DONE: frozenset(),
    JobStatus.ERROR: frozenset(),
}


class InvalidJobTransition(RuntimeError):
    def __init__(self, job_id: str, current: JobStatus, requested: JobStatus) -> None:
        super().__init__(f"Job {job_id} cannot move from {current.value} to {requested.value}")
        self.job_id = job_id
        self.current = current
        self.requested = requested


class JobNotFound(KeyError):
    pass


@dataclass(slots=True)
class ConversionJob:
    job_id: str
    source: SourceFile
    category: Category
    target: str | None = None
    status: JobStatus = JobStatus.PENDING
    result: bytes | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def download_name(self) -> str | None:
        if self.status is not JobStatus.DONE or self.target is None:
            return None
        return output_filename(self.source.name, self.target)

    def _move(self, status: JobStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransition(self.job_id, self.status, status)
        self.status = status

    def start(self) -> None:
        self._move(JobStatus.CONVERTING)

    def succeed(self, data: bytes) -> None:
        if not data:
            raise ValueError("A finished job needs non-empty output bytes")
        self._move(JobStatus.DONE)
        self.result = data

    def fail(self, code: str, message: str) -> None:
        self._move(JobStatus.ERROR)
        self.result = None
        self.error_code = code
        self.error_message = message


@dataclass(slots=True)
class IntakeResult:
    accepted: list[ConversionJob] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)


class JobBoard:
    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._jobs: dict[str, ConversionJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def jobs(self) -> list[ConversionJob]:
        return list(self._jobs.values())

    def pending(self) -> list[ConversionJob]:
        return [job for job in self._jobs.values() if job.status is JobStatus.PENDING]

    def add_files(self, files: Iterable[SourceFile]) -> IntakeResult:
        """Accept every classifiable file as a pending job with a default target."""

        intake = IntakeResult()
        for source in files:
            category = classify(source.name, source.declared_mime_type)
            if category is None:
                intake.rejected[source.name] = "UNSUPPORTED_FORMAT"
                continue
            if source.size > self._config.max_file_size_bytes:
                intake.rejected[source.name] = "SIZE_LIMIT"
                continue
            targets = compatible_targets(category)
            job = ConversionJob(
                job_id=generate_run_id("job"),
                source=source,
                category=category,
                target=targets[0].mime_type if targets else None,
            )
            self._jobs[job.job_id] = job
            intake.accepted.append(job)
        if intake.has_rejections:
            logger.info("Rejected %d unsupported file(s): %s", len(intake.rejected), ", ".join(intake.rejected))
        return intake

    def get(self, job_id: str) -> ConversionJob:
        try:
            return self._jobs[job_id]
        except KeyError as exc:
            raise JobNotFound(job_id) from exc

    def set_target(self, job_id: str, target: str) -> ConversionJob:
        job = self.get(job_id)
        if job.status is not JobStatus.PENDING:
            raise InvalidJobTransition(job_id, job.status, JobStatus.PENDING)
        if not is_compatible(job.category, target):
            raise UnsupportedConversion(f"{job.category.value} files cannot be converted to {label_for(target)}")
        job.target = target
        return job

    def apply_global_target(self, target: str) -> list[ConversionJob]:
        """Set *target* on every pending job that supports it; others keep theirs."""

        updated: list[ConversionJob] = []
        for job in self.pending():
            if is_compatible(job.category, target):
                job.target = target
                updated.append(job)
        return updated

    def common_targets(self) -> tuple[CompatibilityEntry, ...]:
        return common_targets(job.category for job in self.pending())

    def remove(self, job_id: str) -> ConversionJob:
        job = self.get(job_id)
        if job.status is JobStatus.CONVERTING:
            raise RuntimeError(f"Job {job_id} is converting and cannot be removed")
        return self._jobs.pop(job_id)

    def clear(self) -> None:
        if any(job.status is JobStatus.CONVERTING for job in self._jobs.values()):
            raise RuntimeError("Cannot clear the board while jobs are converting")
        self._jobs.clear()

    async def convert_all(self, *, parallelism: int | None = None) -> list[ConversionJob]:
        """Convert every pending job that has a target, concurrently."""

        batch = [(job, job.target) for job in self.pending() if job.target]
        if not batch:
            return []
        for job, _ in batch:
            job.start()
        limit = asyncio.Semaphore(max(1, parallelism or self._config.runtime.parallelism))
        outcomes = await asyncio.gather(
            *(self._run(job, target, limit) for job, target in batch), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return [job for job, _ in batch]

    async def _run(self, job: ConversionJob, target: str, limit: asyncio.Semaphore) -> None:
        async with limit:
            try:
                output = await convert(job.source, target)
            except ConversionError as exc:
                logger.warning("Job %s (%s) failed: %s %s", job.job_id, job.source.name, exc.code, exc)
                job.fail(exc.code, str(exc))
                return
            except Exception as exc:  # pragma: no cover - unexpected paths
                logger.exception("Job %s (%s) failed unexpectedly", job.job_id, job.source.name)
                job.fail("UNKNOWN", str(exc))
                raise
        job.succeed(output)

    def save(self, job_id: str, directory: Path) -> Path:
        job = self.get(job_id)
        name = job.download_name
        if name is None or job.result is None:
            raise InvalidJobTransition(job_id, job.status, JobStatus.DONE)
        destination = directory / name
        atomic_write(destination, job.result)
        return destination


__all__ = [
    "ConversionJob",
    "IntakeResult",
    "InvalidJobTransition",
    "JobBoard",
    "JobNotFound",
    "JobStatus",
]
