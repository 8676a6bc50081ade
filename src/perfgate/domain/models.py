"""Core data types for perfgate.

All types are frozen dataclasses with complete type annotations.
This module has ZERO imports from outside the Python standard library.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from perfgate.domain.errors import ConfigurationError


class ExecutionMode(Enum):
    """How the runner drives a benchmark's workload."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class Complexity(Enum):
    """Cost class of a simulated application endpoint."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ViolationKind(Enum):
    """Category of a failed check; also the key for recommendations."""

    WORKLOAD_ERROR = "workload_error"
    DURATION = "duration"
    THROUGHPUT = "throughput"
    MEMORY = "memory"
    SUCCESS_RATIO = "success_ratio"
    MEASUREMENT = "measurement"
    NOT_EXECUTED = "not_executed"


class RunPhase(Enum):
    """Lifecycle of a single benchmark run."""

    PENDING = "pending"
    RUNNING = "running"
    FINALIZED = "finalized"
    PERSISTED = "persisted"


class Readiness(Enum):
    """Overall verdict tier derived from the run's success ratio."""

    READY = "ready"
    NEARLY_READY = "nearly_ready"
    NEEDS_OPTIMIZATION = "needs_optimization"
    NOT_READY = "not_ready"


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Threshold:
    """Performance bounds a benchmark must satisfy.

    Every bound is optional. A threshold with no bounds always passes.
    Durations are seconds, throughput is items per second and memory growth
    is bytes.
    """

    max_duration: float | None = None
    min_throughput: float | None = None
    max_memory_growth: int | None = None
    min_success_ratio: float | None = None

    def __post_init__(self) -> None:
        for name in ("max_duration", "min_throughput", "max_memory_growth", "min_success_ratio"):
            value = getattr(self, name)
            if value is None:
                continue
            if not math.isfinite(value) or value < 0:
                msg = f"Threshold {name} must be a finite non-negative number, got {value}"
                raise ConfigurationError(msg)
        if self.max_memory_growth is not None and (
            isinstance(self.max_memory_growth, bool) or not isinstance(self.max_memory_growth, int)
        ):
            msg = f"Threshold max_memory_growth must be a whole number of bytes, got {self.max_memory_growth!r}"
            raise ConfigurationError(msg)
        if self.min_success_ratio is not None and self.min_success_ratio > 1:
            msg = f"Threshold min_success_ratio must be within [0, 1], got {self.min_success_ratio}"
            raise ConfigurationError(msg)

    @property
    def is_empty(self) -> bool:
        return (
            self.max_duration is None
            and self.min_throughput is None
            and self.max_memory_growth is None
            and self.min_success_ratio is None
        )

    def to_dict(self) -> dict[str, float | int]:
        """Return the declared bounds, omitting unset ones."""
        bounds = {
            "max_duration": self.max_duration,
            "min_throughput": self.min_throughput,
            "max_memory_growth": self.max_memory_growth,
            "min_success_ratio": self.min_success_ratio,
        }
        return {k: v for k, v in bounds.items() if v is not None}


@dataclass(frozen=True)
class BenchmarkSpec:
    """One named, measured unit of work.

    ``items`` is the number of items a single workload invocation processes
    and drives the throughput calculation. ``workers`` and ``iterations``
    only matter in concurrent mode. A failing ``critical`` benchmark keeps
    the run out of the top readiness tiers.
    """

    name: str
    workload: Callable[[], object]
    threshold: Threshold = field(default_factory=Threshold)
    items: int = 1
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    workers: int = 1
    iterations: int = 1
    description: str = ""
    critical: bool = True

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Benchmark name must not be empty"
            raise ConfigurationError(msg)
        if self.items < 0:
            msg = f"Benchmark {self.name!r}: items must be >= 0, got {self.items}"
            raise ConfigurationError(msg)
        if self.workers < 1 or self.iterations < 1:
            msg = (
                f"Benchmark {self.name!r}: workers and iterations must be >= 1, "
                f"got {self.workers}x{self.iterations}"
            )
            raise ConfigurationError(msg)

    def inputs(self) -> dict[str, object]:
        """JSON-safe description of what was declared for this benchmark."""
        return {
            "description": self.description,
            "mode": self.mode.value,
            "items": self.items,
            "workers": self.workers,
            "iterations": self.iterations,
            "critical": self.critical,
        }


# ---------------------------------------------------------------------------
# Measurements and verdicts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Sample:
    """A point-in-time reading of the clock and process memory."""

    timestamp: float
    memory_bytes: int
    memory_available: bool = True


def _nearest_rank(ordered: list[float], pct: float) -> float:
    rank = max(1, math.ceil(pct / 100 * len(ordered)))
    return ordered[rank - 1]


@dataclass(frozen=True)
class LatencyStats:
    """Response-time spread over the iterations of a concurrent run.

    Percentiles use the nearest-rank method, so each one is an observed
    iteration duration.
    """

    count: int
    mean: float
    p50: float
    p95: float
    p99: float
    max: float

    @classmethod
    def from_durations(cls, durations: list[float]) -> LatencyStats | None:
        if not durations:
            return None
        ordered = sorted(durations)
        return cls(
            count=len(ordered),
            mean=sum(ordered) / len(ordered),
            p50=_nearest_rank(ordered, 50),
            p95=_nearest_rank(ordered, 95),
            p99=_nearest_rank(ordered, 99),
            max=ordered[-1],
        )

    def to_dict(self) -> dict[str, float | int]:
        return {
            "count": self.count,
            "mean": self.mean,
            "p50": self.p50,
            "p95": self.p95,
            "p99": self.p99,
            "max": self.max,
        }


@dataclass(frozen=True)
class Measurement:
    """Raw outcome of executing a benchmark (or one iteration of it).

    ``error_type`` is set exactly when ``error`` is. Partial failures of a
    concurrent run only show in ``failures``.
    """

    name: str
    duration: float
    memory_before: int
    memory_after: int
    item_count: int
    iterations: int = 1
    failures: int = 0
    error: str | None = None
    error_type: str | None = None
    memory_sampled: bool = True
    started_at: float = 0.0
    finished_at: float = 0.0
    latency: LatencyStats | None = None
    result: object = field(default=None, compare=False, repr=False)

    @property
    def raw_memory_delta(self) -> int:
        return self.memory_after - self.memory_before

    @property
    def memory_delta(self) -> int:
        """Memory growth in bytes, clamped at zero; shrinkage never counts as a bonus."""
        return max(0, self.raw_memory_delta)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def succeeded(self) -> int:
        return self.iterations - self.failures

    @property
    def success_ratio(self) -> float:
        if self.iterations == 0:
            return 1.0
        return self.succeeded / self.iterations


@dataclass(frozen=True)
class Violation:
    """A single failed check with the bound and the observed value."""

    kind: ViolationKind
    message: str
    limit: float | None = None
    actual: float | None = None


@dataclass(frozen=True)
class Verdict:
    """Pass/fail outcome for one benchmark."""

    name: str
    passed: bool
    violations: tuple[Violation, ...]
    measurement: Measurement

    @property
    def reasons(self) -> tuple[str, ...]:
        return tuple(v.message for v in self.violations)

    @property
    def kinds(self) -> tuple[ViolationKind, ...]:
        seen: list[ViolationKind] = []
        for v in self.violations:
            if v.kind not in seen:
                seen.append(v.kind)
        return tuple(seen)


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunSummary:
    """Summary counts for a finalized run."""

    total: int
    passed: int
    failed: int
    success_ratio: float
    ready: bool
    readiness: Readiness
    degenerate: bool = False
    critical_total: int = 0
    critical_passed: int = 0

    @property
    def critical_failed(self) -> int:
        return self.critical_total - self.critical_passed

    @property
    def non_critical_total(self) -> int:
        return self.total - self.critical_total

    @property
    def non_critical_passed(self) -> int:
        return self.passed - self.critical_passed


@dataclass(frozen=True)
class RunReport:
    """Everything a run produced, in registration order."""

    suite: str
    started_at: datetime
    finished_at: datetime
    duration: float
    environment: dict[str, str]
    inputs: dict[str, dict[str, object]]
    thresholds: dict[str, dict[str, float | int]]
    verdicts: tuple[Verdict, ...]
    summary: RunSummary
    recommendations: tuple[str, ...] = ()
    general_recommendations: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def failed_verdicts(self) -> tuple[Verdict, ...]:
        return tuple(v for v in self.verdicts if not v.passed)

    def verdict(self, name: str) -> Verdict | None:
        """Return the verdict recorded for ``name``, if any."""
        for v in self.verdicts:
            if v.name == name:
                return v
        return None
