"""Aggregator: owns a run's registrations, verdicts and lifecycle.

Lifecycle: PENDING -> RUNNING -> FINALIZED -> PERSISTED. Registration is only
allowed while PENDING, verdicts are append-only and the report is built once.
Verdicts are reported in registration order regardless of completion order.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from perfgate.domain.errors import ConfigurationError, RunStateError
from perfgate.domain.models import Readiness, RunPhase, RunReport, RunSummary
from perfgate.reporting.recommendations import GENERAL_RECOMMENDATIONS, recommend_for

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from pathlib import Path

    from perfgate.domain.models import BenchmarkSpec, Verdict

logger = logging.getLogger("perfgate.aggregator")

# Success-ratio floors for the readiness tiers below READY.
NEARLY_READY_RATIO = 0.8
NEEDS_OPTIMIZATION_RATIO = 0.6


def readiness_for(success_ratio: float, all_passed: bool, critical_failed: int = 0) -> Readiness:
    """Map a run outcome to a tier. A critical failure caps it at NEEDS_OPTIMIZATION."""
    if all_passed:
        return Readiness.READY
    if critical_failed == 0 and success_ratio >= NEARLY_READY_RATIO:
        return Readiness.NEARLY_READY
    if success_ratio >= NEEDS_OPTIMIZATION_RATIO:
        return Readiness.NEEDS_OPTIMIZATION
    return Readiness.NOT_READY


def summarize(verdicts: Iterable[Verdict], critical_names: Collection[str] | None = None) -> RunSummary:
    """Count verdicts. An empty run is a degenerate pass with ratio 1.0.

    ``critical_names`` selects the critical benchmarks; ``None`` treats every
    verdict as critical.
    """
    items = list(verdicts)
    total = len(items)
    passed = sum(1 for v in items if v.passed)
    critical = [v for v in items if critical_names is None or v.name in critical_names]
    critical_passed = sum(1 for v in critical if v.passed)
    ratio = passed / total if total else 1.0
    all_passed = passed == total
    return RunSummary(
        total=total,
        passed=passed,
        failed=total - passed,
        success_ratio=ratio,
        ready=all_passed,
        readiness=readiness_for(ratio, all_passed, len(critical) - critical_passed),
        degenerate=total == 0,
        critical_total=len(critical),
        critical_passed=critical_passed,
    )


class Aggregator:
    """Collects verdicts for one run and produces its report."""

    def __init__(self, suite: str = "default") -> None:
        self.suite = suite
        self._lock = threading.Lock()
        self._specs: dict[str, BenchmarkSpec] = {}
        self._verdicts: dict[str, Verdict] = {}
        self._phase = RunPhase.PENDING
        self._started_at: datetime | None = None
        self._report: RunReport | None = None
        self._persisted_to: Path | None = None

    # -- Introspection --------------------------------------------------------

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def registered(self) -> tuple[BenchmarkSpec, ...]:
        return tuple(self._specs.values())

    @property
    def pending(self) -> tuple[str, ...]:
        """Names registered but still lacking a verdict, in registration order."""
        with self._lock:
            return tuple(n for n in self._specs if n not in self._verdicts)

    @property
    def report(self) -> RunReport | None:
        return self._report

    @property
    def persisted_to(self) -> Path | None:
        return self._persisted_to

    # -- Transitions ----------------------------------------------------------

    def _move_to(self, phase: RunPhase) -> None:
        logger.debug("Run %s: %s -> %s", self.suite, self._phase.value, phase.value)
        self._phase = phase

    def register(self, spec: BenchmarkSpec) -> None:
        """Declare a benchmark. Duplicate names are rejected."""
        with self._lock:
            if self._phase is not RunPhase.PENDING:
                msg = f"Cannot register {spec.name!r}: run is already {self._phase.value}"
                raise RunStateError(msg)
            if spec.name in self._specs:
                msg = f"Duplicate benchmark name: {spec.name!r}"
                raise ConfigurationError(msg)
            self._specs[spec.name] = spec
        logger.debug("Registered benchmark %s", spec.name)

    def start(self) -> None:
        """Move PENDING -> RUNNING and stamp the start time."""
        with self._lock:
            self._start_locked()

    def _start_locked(self) -> None:
        if self._phase is RunPhase.RUNNING:
            return
        if self._phase is not RunPhase.PENDING:
            msg = f"Cannot start a run that is {self._phase.value}"
            raise RunStateError(msg)
        self._move_to(RunPhase.RUNNING)
        self._started_at = datetime.now(UTC)

    def record(self, name: str, verdict: Verdict) -> None:
        """Append the verdict for ``name``. Each name is recorded exactly once."""
        with self._lock:
            if name not in self._specs:
                msg = f"Unknown benchmark: {name!r}"
                raise ConfigurationError(msg)
            if self._phase in (RunPhase.FINALIZED, RunPhase.PERSISTED):
                msg = f"Cannot record {name!r}: run is already {self._phase.value}"
                raise RunStateError(msg)
            if name in self._verdicts:
                msg = f"Verdict for {name!r} already recorded"
                raise RunStateError(msg)
            self._start_locked()
            self._verdicts[name] = verdict

    def finalize(self, environment: dict[str, str] | None = None) -> RunReport:
        """Build the report. Every registered benchmark must have a verdict."""
        with self._lock:
            if self._phase in (RunPhase.FINALIZED, RunPhase.PERSISTED):
                msg = f"Run is already {self._phase.value}"
                raise RunStateError(msg)
            missing = [n for n in self._specs if n not in self._verdicts]
            if missing:
                msg = f"Cannot finalize: no verdict for {', '.join(missing)}"
                raise RunStateError(msg)
            # An empty run still passes through RUNNING.
            self._start_locked()

            finished_at = datetime.now(UTC)
            started_at = self._started_at or finished_at
            verdicts = tuple(self._verdicts[n] for n in self._specs)
            summary = summarize(verdicts, {n for n, s in self._specs.items() if s.critical})

            warnings: list[str] = []
            if summary.degenerate:
                warnings.append("No benchmarks were registered; the run passes trivially")
            if any(not v.measurement.memory_sampled for v in verdicts if v.measurement.iterations):
                warnings.append(
                    "Memory sampling was unavailable for some benchmarks; memory growth reads as zero"
                )

            self._report = RunReport(
                suite=self.suite,
                started_at=started_at,
                finished_at=finished_at,
                duration=(finished_at - started_at).total_seconds(),
                environment=dict(environment or {}),
                inputs={n: s.inputs() for n, s in self._specs.items()},
                thresholds={n: s.threshold.to_dict() for n, s in self._specs.items()},
                verdicts=verdicts,
                summary=summary,
                recommendations=tuple(recommend_for(verdicts)),
                general_recommendations=GENERAL_RECOMMENDATIONS,
                warnings=tuple(warnings),
            )
            self._move_to(RunPhase.FINALIZED)

        logger.info(
            "Run %s finalized: %d/%d passed (%.0f%%)",
            self.suite,
            summary.passed,
            summary.total,
            summary.success_ratio * 100,
        )
        return self._report

    def mark_persisted(self, path: Path) -> None:
        """FINALIZED -> PERSISTED. Terminal."""
        with self._lock:
            if self._phase is not RunPhase.FINALIZED:
                msg = f"Cannot persist a run that is {self._phase.value}"
                raise RunStateError(msg)
            self._move_to(RunPhase.PERSISTED)
            self._persisted_to = path
