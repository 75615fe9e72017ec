import threading
import time
import unittest

from fairplay.app.import_jobs import ImportJobRegistry, JobStatus
from fairplay.models import BatchImportResult, ImportResult, ImportTarget
from fairplay.trace_context import get_op_id


def _wait_for(registry: ImportJobRegistry, job_id: str, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        job = registry.get(job_id)
        if job is not None and job.finished:
            return job
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish")


def _batch(targets: list[ImportTarget], limit: int) -> BatchImportResult:
    return BatchImportResult(
        results=[
            ImportResult(platform=target.platform, username=target.username, imported=limit)
            for target in targets
        ]
    )


class ImportJobRegistryTests(unittest.TestCase):
    def _registry(self, runner, **kwargs) -> ImportJobRegistry:
        registry = ImportJobRegistry(runner, **kwargs)
        self.addCleanup(registry.shutdown)
        return registry

    def test_job_completes_with_batch_result(self) -> None:
        registry = self._registry(_batch)

        job_id = registry.submit([{"platform": "lichess", "username": "bob"}], 7)
        job = _wait_for(registry, job_id)

        self.assertEqual(job.status, JobStatus.COMPLETED)
        self.assertEqual(job.result.total_imported, 7)
        self.assertIsNotNone(job.started_at)
        self.assertIsNotNone(job.finished_at)
        payload = job.to_dict()
        self.assertEqual(payload["status"], "completed")
        self.assertEqual(payload["targets"], [{"platform": "lichess", "username": "bob"}])
        self.assertEqual(payload["result"]["total_imported"], 7)
        self.assertIsNone(payload["error"])

    def test_job_failure_is_captured(self) -> None:
        def _boom(targets, limit):
            raise RuntimeError("database locked")

        registry = self._registry(_boom)

        job = _wait_for(registry, registry.submit([], 5))

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(job.error, "database locked")
        self.assertIsNone(job.result)

    def test_jobs_beyond_worker_pool_wait_in_queue(self) -> None:
        release = threading.Event()
        started = threading.Event()

        def _blocking(targets, limit):
            started.set()
            release.wait(5)
            return _batch(targets, limit)

        registry = self._registry(_blocking, max_workers=1)
        first = registry.submit([ImportTarget(platform="chess_com", username="a")], 1)
        second = registry.submit([ImportTarget(platform="chess_com", username="b")], 1)
        self.assertTrue(started.wait(5))

        self.assertEqual(registry.get(first).status, JobStatus.RUNNING)
        self.assertEqual(registry.get(second).status, JobStatus.QUEUED)
        release.set()
        self.assertEqual(_wait_for(registry, second).status, JobStatus.COMPLETED)

    def test_get_returns_snapshot(self) -> None:
        registry = self._registry(_batch)
        job_id = registry.submit([], 1)
        _wait_for(registry, job_id)

        snapshot = registry.get(job_id)
        snapshot.status = JobStatus.FAILED

        self.assertEqual(registry.get(job_id).status, JobStatus.COMPLETED)
        self.assertIsNone(registry.get("missing"))

    def test_list_is_newest_first_and_history_is_bounded(self) -> None:
        registry = self._registry(_batch, max_workers=1, history_limit=2)
        job_ids = [registry.submit([], index + 1) for index in range(4)]

        registry.shutdown(wait=True)
        listed = [job.job_id for job in registry.list()]
        self.assertEqual(listed, [job_ids[3], job_ids[2]])

    def test_runner_sees_job_operation_id(self) -> None:
        seen: list[str | None] = []

        def _runner(targets, limit):
            seen.append(get_op_id())
            return _batch(targets, limit)

        registry = self._registry(_runner)
        job_id = registry.submit([], 1)
        _wait_for(registry, job_id)

        self.assertEqual(seen, [f"job:{job_id}"])


if __name__ == "__main__":
    unittest.main()
