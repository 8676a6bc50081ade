"""Shared pytest fixtures and test factories for perfgate.

Provides:
- A fake clock shared by a fake sampler and a fake latency provider, so
  simulated sleeps advance measured time deterministically
- Fake report writers
- Factory functions for domain models with sensible defaults
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from perfgate.console import configure
from perfgate.domain.models import (
    BenchmarkSpec,
    Measurement,
    RunReport,
    Sample,
    Threshold,
    Verdict,
    Violation,
    ViolationKind,
)
from perfgate.reporting.aggregator import Aggregator

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


# ── Fake Port Implementations ─────────────────────────────────────────────


class FakeClock:
    """Thread-safe manual clock."""

    def __init__(self, start: float = 100.0) -> None:
        self._lock = threading.Lock()
        self._now = start

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


class FakeSampler:
    """Sampler reading a FakeClock.

    Every sample advances the clock by ``tick`` and the memory reading by
    ``memory_step``. ``memory=None`` simulates a host that cannot report
    memory.
    """

    def __init__(
        self,
        clock: FakeClock | None = None,
        *,
        tick: float = 0.0,
        memory: int | None = 10_000_000,
        memory_step: int = 0,
    ) -> None:
        self.clock = clock or FakeClock()
        self._tick = tick
        self._memory = memory
        self._memory_step = memory_step
        self._lock = threading.Lock()
        self.calls = 0

    def sample(self) -> Sample:
        with self._lock:
            self.calls += 1
            self.clock.advance(self._tick)
            if self._memory is None:
                return Sample(timestamp=self.clock(), memory_bytes=0, memory_available=False)
            reading = self._memory
            self._memory += self._memory_step
            return Sample(timestamp=self.clock(), memory_bytes=reading)


class ClockLatency:
    """LatencyProvider that advances a FakeClock instead of sleeping."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.requested: list[float] = []

    def delay(self, seconds: float) -> None:
        self.requested.append(seconds)
        self.clock.advance(seconds)


class RecordingWriter:
    """ReportWriter keeping payloads in memory."""

    def __init__(self) -> None:
        self.written: dict[Path, bytes] = {}

    def write(self, path: Path, data: bytes) -> None:
        self.written[path] = data


class FailingWriter:
    """ReportWriter that always fails with ``exc``."""

    def __init__(self, exc: Exception | None = None) -> None:
        self._exc = exc or OSError("disk full")
        self.attempts = 0

    def write(self, path: Path, data: bytes) -> None:
        self.attempts += 1
        raise self._exc


# ── Domain Model Factories ───────────────────────────────────────────────


def make_measurement(
    name: str = "bench",
    duration: float = 1.0,
    memory_before: int = 1000,
    memory_after: int = 1000,
    item_count: int = 1,
    **kwargs: object,
) -> Measurement:
    """Create a Measurement with sensible defaults."""
    return Measurement(
        name=name,
        duration=duration,
        memory_before=memory_before,
        memory_after=memory_after,
        item_count=item_count,
        **kwargs,  # type: ignore[arg-type]
    )


def make_spec(
    name: str = "bench",
    workload: Callable[[], object] | None = None,
    threshold: Threshold | None = None,
    **kwargs: object,
) -> BenchmarkSpec:
    """Create a BenchmarkSpec with a no-op workload by default."""
    return BenchmarkSpec(
        name=name,
        workload=workload or (lambda: None),
        threshold=threshold or Threshold(),
        **kwargs,  # type: ignore[arg-type]
    )


def make_verdict(
    name: str = "bench",
    *,
    passed: bool = True,
    kinds: tuple[ViolationKind, ...] = (),
    duration: float = 1.0,
) -> Verdict:
    """Create a Verdict; a failing one gets one violation per kind."""
    if not passed and not kinds:
        kinds = (ViolationKind.DURATION,)
    violations = tuple(Violation(kind=k, message=f"{k.value} violated") for k in kinds)
    return Verdict(
        name=name,
        passed=passed,
        violations=violations,
        measurement=make_measurement(name=name, duration=duration),
    )


def make_report(
    outcomes: dict[str, bool] | None = None,
    suite: str = "unit",
) -> RunReport:
    """Finalize an Aggregator with one verdict per ``outcomes`` entry."""
    if outcomes is None:
        outcomes = {"fast": True, "slow": False}
    aggregator = Aggregator(suite)
    for name in outcomes:
        aggregator.register(make_spec(name, threshold=Threshold(max_duration=1.0)))
    for name, passed in outcomes.items():
        aggregator.record(name, make_verdict(name, passed=passed))
    return aggregator.finalize({"suite": suite, "python_version": "3.12.0"})


# ── Pytest Fixtures ──────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def plain_console() -> Iterator[None]:
    """Keep every test on the plain-text console."""
    configure(backend="plain")
    yield
    configure(backend="plain")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sampler(clock: FakeClock) -> FakeSampler:
    return FakeSampler(clock)


@pytest.fixture
def latency(clock: FakeClock) -> ClockLatency:
    return ClockLatency(clock)


@pytest.fixture
def spec_factory() -> Callable[..., BenchmarkSpec]:
    """Provide the make_spec factory function."""
    return make_spec


@pytest.fixture
def measurement_factory() -> Callable[..., Measurement]:
    """Provide the make_measurement factory function."""
    return make_measurement


@pytest.fixture
def sample_report() -> RunReport:
    """A finalized two-benchmark report with one failure."""
    return make_report()


@pytest.fixture
def verdict_factory() -> Callable[..., Verdict]:
    """Provide the make_verdict factory function."""
    return make_verdict


@pytest.fixture
def report_factory() -> Callable[..., RunReport]:
    """Provide the make_report factory function."""
    return make_report


@pytest.fixture
def sampler_factory(clock: FakeClock) -> Callable[..., FakeSampler]:
    """Build FakeSamplers sharing the test's clock."""

    def _factory(**kwargs: object) -> FakeSampler:
        return FakeSampler(clock, **kwargs)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def failing_writer() -> FailingWriter:
    return FailingWriter()
