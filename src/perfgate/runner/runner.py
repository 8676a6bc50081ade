"""Benchmark runner: executes workloads and records raw measurements.

Sequential runs bracket a single invocation with two samples. Concurrent
runs launch a thread pool, give every iteration its own sample bracket and
collect the per-iteration measurements through a lock-guarded list. The
runner never retries and never cancels siblings when one worker fails.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import TYPE_CHECKING

from perfgate.domain.models import ExecutionMode, LatencyStats, Measurement
from perfgate.sampling.sampler import ResourceSampler, elapsed

if TYPE_CHECKING:
    from collections.abc import Callable

    from perfgate.domain.models import BenchmarkSpec
    from perfgate.domain.protocols import Sampler

logger = logging.getLogger("perfgate.runner")


@dataclass(frozen=True)
class ConcurrentRun:
    """Outcome of a concurrent benchmark.

    ``measurements`` holds one entry per iteration (``workers * iterations``
    in total) in no particular inter-worker order. ``aggregate`` spans the
    whole run from first launch to last join.
    """

    measurements: tuple[Measurement, ...]
    aggregate: Measurement
    span: float
    workers: int

    @property
    def failures(self) -> int:
        return sum(m.failures for m in self.measurements)


class BenchmarkRunner:
    """Executes benchmark specs and produces measurements."""

    def __init__(self, sampler: Sampler | None = None) -> None:
        self._sampler: Sampler = sampler or ResourceSampler()

    def measure(self, name: str, fn: Callable[[], object], items: int = 1) -> Measurement:
        """Time a single invocation of ``fn``.

        A raised exception is captured in the measurement together with the
        duration and memory observed up to the failure.
        """
        before = self._sampler.sample()
        try:
            result = fn()
        except Exception as exc:  # noqa: BLE001
            after = self._sampler.sample()
            logger.debug("Workload %s failed: %s", name, exc)
            return Measurement(
                name=name,
                duration=elapsed(before, after),
                memory_before=before.memory_bytes,
                memory_after=after.memory_bytes,
                item_count=0,
                failures=1,
                error=str(exc) or type(exc).__name__,
                error_type=type(exc).__name__,
                memory_sampled=before.memory_available and after.memory_available,
                started_at=before.timestamp,
                finished_at=after.timestamp,
            )
        after = self._sampler.sample()
        return Measurement(
            name=name,
            duration=elapsed(before, after),
            memory_before=before.memory_bytes,
            memory_after=after.memory_bytes,
            item_count=items,
            memory_sampled=before.memory_available and after.memory_available,
            started_at=before.timestamp,
            finished_at=after.timestamp,
            result=result,
        )

    def run_sequential(self, spec: BenchmarkSpec) -> Measurement:
        """Run the workload once on the calling thread."""
        logger.debug("Running %s sequentially", spec.name)
        return self.measure(spec.name, spec.workload, spec.items)

    def run_concurrent(
        self,
        spec: BenchmarkSpec,
        worker_count: int,
        iterations_per_worker: int,
    ) -> ConcurrentRun:
        """Run ``worker_count`` threads of ``iterations_per_worker`` invocations each.

        Always joins every launched worker before returning. On
        ``KeyboardInterrupt`` queued work is cancelled, running workers are
        joined and the interrupt is re-raised.
        """
        if worker_count < 1 or iterations_per_worker < 1:
            msg = (
                "worker_count and iterations_per_worker must be >= 1, "
                f"got {worker_count}x{iterations_per_worker}"
            )
            raise ValueError(msg)

        results: list[Measurement] = []
        lock = threading.Lock()

        def _worker(index: int) -> None:
            for _ in range(iterations_per_worker):
                m = self.measure(f"{spec.name}[{index}]", spec.workload, spec.items)
                with lock:
                    results.append(m)

        logger.debug(
            "Running %s with %d workers x %d iterations",
            spec.name,
            worker_count,
            iterations_per_worker,
        )
        before = self._sampler.sample()
        executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix=f"perfgate-{spec.name}")
        try:
            futures = [executor.submit(_worker, i) for i in range(worker_count)]
            wait(futures)
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        after = self._sampler.sample()

        for future in futures:
            exc = future.exception()
            if exc is not None:
                # measure() captures workload errors, so this is a harness bug
                logger.error("Worker for %s crashed: %s", spec.name, exc)

        with lock:
            measurements = tuple(results)

        span = elapsed(before, after)
        expected = worker_count * iterations_per_worker
        succeeded = sum(1 for m in measurements if not m.failed)
        failures = expected - succeeded
        first_error = next((m for m in measurements if m.failed), None)
        # Partial failures show up in the success ratio; only a total wipe-out
        # is reported as a workload error on the aggregate.
        error: str | None = None
        error_type: str | None = None
        if succeeded == 0:
            detail = first_error.error if first_error is not None else "no iterations completed"
            error = f"all {expected} iterations failed; first: {detail}"
            error_type = first_error.error_type if first_error is not None else "WorkerCrash"
        aggregate = Measurement(
            name=spec.name,
            duration=span,
            memory_before=before.memory_bytes,
            memory_after=after.memory_bytes,
            item_count=spec.items * succeeded,
            iterations=expected,
            failures=failures,
            error=error,
            error_type=error_type,
            memory_sampled=before.memory_available and after.memory_available,
            started_at=before.timestamp,
            finished_at=after.timestamp,
            latency=LatencyStats.from_durations([m.duration for m in measurements]),
        )
        return ConcurrentRun(
            measurements=measurements,
            aggregate=aggregate,
            span=span,
            workers=worker_count,
        )

    def run(self, spec: BenchmarkSpec) -> Measurement:
        """Run ``spec`` in its declared mode and return one measurement."""
        if spec.mode is ExecutionMode.CONCURRENT:
            return self.run_concurrent(spec, spec.workers, spec.iterations).aggregate
        return self.run_sequential(spec)
