"""Harness: drives a run from registration to a persisted report.

For each registered benchmark, in registration order, the harness asks the
runner for a measurement, evaluates it against the benchmark's threshold and
records the verdict with the aggregator. An optional run budget is checked
between benchmarks; once it is spent, or the run is interrupted, the
remaining benchmarks are recorded as not executed so the run still
finalizes with a complete report.
"""

from __future__ import annotations

import logging
import os
import platform
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import psutil

from perfgate.console import console
from perfgate.domain.errors import RunStateError
from perfgate.domain.models import ExecutionMode
from perfgate.evaluation.evaluator import evaluate, not_executed
from perfgate.reporting.aggregator import Aggregator
from perfgate.reporting.store import persist
from perfgate.runner.runner import BenchmarkRunner

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from perfgate.domain.models import BenchmarkSpec, RunReport, Verdict
    from perfgate.domain.protocols import Evaluator, ReportWriter

logger = logging.getLogger("perfgate.harness")


def environment(suite: str) -> dict[str, str]:
    """Descriptors of the host the run executed on."""
    return {
        "suite": suite,
        "python_version": platform.python_version(),
        "python_implementation": platform.python_implementation(),
        "platform": platform.platform(),
        "machine": platform.machine(),
        "cpu_count": str(os.cpu_count() or 0),
        "pid": str(os.getpid()),
        "psutil_version": psutil.__version__,
    }


class Harness:
    """Runs a set of benchmarks and produces a RunReport."""

    def __init__(
        self,
        suite: str = "default",
        *,
        runner: BenchmarkRunner | None = None,
        evaluator: Evaluator = evaluate,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.suite = suite
        self._runner = runner or BenchmarkRunner()
        self._evaluate = evaluator
        self._clock = clock
        self._aggregator = Aggregator(suite)
        self._interrupted = False
        self._timed_out = False

    @property
    def aggregator(self) -> Aggregator:
        return self._aggregator

    @property
    def report(self) -> RunReport | None:
        return self._aggregator.report

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    def register(self, spec: BenchmarkSpec) -> None:
        """Declare a benchmark; ConfigurationError surfaces immediately."""
        self._aggregator.register(spec)

    def register_all(self, specs: Iterable[BenchmarkSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def _skip_remaining(self, specs: list[BenchmarkSpec], reason: str) -> None:
        for spec in specs:
            self._record(spec.name, not_executed(spec.name, reason))

    def _record(self, name: str, verdict: Verdict) -> None:
        self._aggregator.record(name, verdict)
        console.verdict_line(
            name, verdict.passed, verdict.measurement.duration, list(verdict.reasons)
        )

    def run(self, timeout: float | None = None) -> RunReport:
        """Execute every registered benchmark and finalize the run.

        Args:
            timeout: Optional run budget in seconds, checked before each
                benchmark. Benchmarks are never cut off mid-flight.

        Returns:
            The finalized report.
        """
        specs = list(self._aggregator.registered)
        deadline = self._clock() + timeout if timeout is not None else None
        self._aggregator.start()
        console.run_header(self.suite, datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S"))
        logger.info("Starting run %s with %d benchmarks", self.suite, len(specs))

        for index, spec in enumerate(specs):
            if deadline is not None and self._clock() >= deadline:
                self._timed_out = True
                logger.warning("Run budget of %.1fs exhausted before %s", timeout, spec.name)
                console.warning(f"Run budget of {timeout:.1f}s exhausted; skipping the rest")
                self._skip_remaining(specs[index:], "run budget exhausted")
                break

            console.step(index + 1, len(specs), spec.name)
            if spec.mode is ExecutionMode.CONCURRENT:
                console.step_detail(f"{spec.workers} workers x {spec.iterations} iterations")
            try:
                measurement = self._runner.run(spec)
            except KeyboardInterrupt:
                self._interrupted = True
                logger.warning("Run interrupted during %s", spec.name)
                console.warning("Interrupted; recording the remaining benchmarks as not executed")
                self._skip_remaining(specs[index:], "run interrupted")
                break

            verdict = self._evaluate(measurement, spec.threshold)
            logger.info(
                "%s: %s in %.3fs", spec.name, "passed" if verdict.passed else "failed", measurement.duration
            )
            self._record(spec.name, verdict)

        report = self._aggregator.finalize(environment(self.suite))
        for warning in report.warnings:
            console.warning(warning)
        console.run_result(
            report.summary.total,
            report.summary.passed,
            report.summary.success_ratio,
            report.duration,
            report.summary.readiness.value,
        )
        return report

    def persist(self, destination: Path, writer: ReportWriter | None = None) -> Path:
        """Write the finalized report and mark the run persisted.

        Raises:
            RunStateError: if the run has not been finalized.
            PersistenceError: if the write fails; the in-memory report stays
                available through ``report`` so the caller can retry.
        """
        report = self._aggregator.report
        if report is None:
            msg = "Cannot persist before the run is finalized"
            raise RunStateError(msg)
        path = persist(report, destination, writer)
        self._aggregator.mark_persisted(path)
        return path
