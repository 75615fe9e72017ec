"""Background import jobs backed by a bounded worker pool."""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum

from fairplay.models import BatchImportResult, ImportTarget
from fairplay.trace_context import trace_context
from fairplay.utils import Now, get_logger

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 100

BatchRunner = Callable[[list[ImportTarget], int], BatchImportResult]


class JobStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_FINISHED = {JobStatus.COMPLETED, JobStatus.FAILED}


@dataclass
class ImportJob:
    """Snapshot of one submitted batch import."""

    job_id: str
    targets: list[ImportTarget]
    limit: int
    status: JobStatus = JobStatus.QUEUED
    submitted_at: datetime = field(default_factory=Now.as_datetime)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    result: BatchImportResult | None = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in _FINISHED

    def to_dict(self) -> dict[str, object]:
        return {
            "job_id": self.job_id,
            "status": str(self.status),
            "limit": self.limit,
            "targets": [target.model_dump() for target in self.targets],
            "submitted_at": self.submitted_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "result": self.result.model_dump(mode="json") if self.result else None,
            "error": self.error,
        }


class ImportJobRegistry:
    """Explicit registry of import jobs keyed by job id.

    Jobs run on a ``ThreadPoolExecutor`` of ``max_workers`` threads; extra
    submissions wait in ``queued``. Finished jobs are kept up to
    ``history_limit``, oldest evicted first.
    """

    def __init__(
        self,
        runner: BatchRunner,
        *,
        max_workers: int = 3,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._runner = runner
        self._history_limit = max(history_limit, 1)
        self._executor = ThreadPoolExecutor(
            max_workers=max(max_workers, 1), thread_name_prefix="import-job"
        )
        self._jobs: OrderedDict[str, ImportJob] = OrderedDict()
        self._lock = threading.Lock()

    def submit(
        self,
        targets: Sequence[ImportTarget | Mapping[str, object]],
        limit: int,
    ) -> str:
        job_targets = [
            target if isinstance(target, ImportTarget) else ImportTarget.model_validate(target)
            for target in targets
        ]
        job = ImportJob(job_id=uuid.uuid4().hex, targets=job_targets, limit=limit)
        with self._lock:
            self._jobs[job.job_id] = job
        self._executor.submit(self._run, job.job_id)
        logger.info("Queued import job %s for %s targets", job.job_id, len(job_targets))
        return job.job_id

    def get(self, job_id: str) -> ImportJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def list(self) -> list[ImportJob]:
        with self._lock:
            return [replace(job) for job in reversed(self._jobs.values())]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(self, job_id: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = JobStatus.RUNNING
            job.started_at = Now.as_datetime()
            targets, limit = list(job.targets), job.limit
        with trace_context(op_id=f"job:{job_id}"):
            try:
                result = self._runner(targets, limit)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.exception("Import job %s failed", job_id)
                self._finish(job_id, JobStatus.FAILED, error=str(exc))
                return
        self._finish(job_id, JobStatus.COMPLETED, result=result)

    def _finish(
        self,
        job_id: str,
        status: JobStatus,
        *,
        result: BatchImportResult | None = None,
        error: str | None = None,
    ) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = status
            job.result = result
            job.error = error
            job.finished_at = Now.as_datetime()
            self._prune_history()
        logger.info("Import job %s %s", job_id, status)

    def _prune_history(self) -> None:
        finished = [job_id for job_id, job in self._jobs.items() if job.finished]
        for job_id in finished[: max(len(finished) - self._history_limit, 0)]:
            del self._jobs[job_id]
