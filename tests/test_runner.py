"""Tests for the benchmark runner."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import pytest

from perfgate.domain.models import BenchmarkSpec, ExecutionMode, Threshold
from perfgate.evaluation.evaluator import evaluate
from perfgate.runner import runner as runner_module
from perfgate.runner.runner import BenchmarkRunner
from perfgate.workloads import simulations
from perfgate.workloads.latency import NullLatency

if TYPE_CHECKING:
    from collections.abc import Callable

    from perfgate.domain.protocols import LatencyProvider, Sampler


class _EveryOtherFails:
    """Workload failing on every second call, safe across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.calls = 0

    def __call__(self) -> int:
        with self._lock:
            self.calls += 1
            n = self.calls
        if n % 2 == 0:
            msg = f"call {n} failed"
            raise RuntimeError(msg)
        return n


class TestSequential:
    def test_measures_duration_and_memory(
        self, sampler_factory: Callable[..., Sampler], spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        sampler = sampler_factory(tick=0.5, memory=1000, memory_step=250)
        runner = BenchmarkRunner(sampler)
        m = runner.run_sequential(spec_factory("seq", workload=lambda: "done", items=40))

        assert m.name == "seq"
        assert m.duration == pytest.approx(0.5)
        assert m.memory_before == 1000
        assert m.memory_after == 1250
        assert m.item_count == 40
        assert m.result == "done"
        assert not m.failed
        assert m.finished_at > m.started_at

    def test_workload_exception_captured(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        def boom() -> None:
            msg = "database unavailable"
            raise ConnectionError(msg)

        m = BenchmarkRunner(sampler).run_sequential(spec_factory("bad", workload=boom, items=10))

        assert m.failed
        assert m.error == "database unavailable"
        assert m.error_type == "ConnectionError"
        assert m.failures == 1
        assert m.item_count == 0
        assert m.success_ratio == 0.0

    def test_exception_without_message_uses_type_name(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        def boom() -> None:
            raise ValueError

        m = BenchmarkRunner(sampler).run_sequential(spec_factory("bad", workload=boom))
        assert m.error == "ValueError"

    def test_duration_includes_latency(
        self,
        sampler: Sampler,
        latency: LatencyProvider,
        spec_factory: Callable[..., BenchmarkSpec],
    ) -> None:
        spec = spec_factory("slow", workload=lambda: latency.delay(1.5))
        m = BenchmarkRunner(sampler).run_sequential(spec)
        assert m.duration == pytest.approx(1.5)

    def test_unavailable_memory_flagged(
        self, sampler_factory: Callable[..., Sampler], spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        runner = BenchmarkRunner(sampler_factory(memory=None))
        m = runner.run_sequential(spec_factory())
        assert not m.memory_sampled
        assert m.memory_delta == 0


class TestConcurrent:
    @pytest.mark.parametrize(("workers", "iterations"), [(1, 1), (3, 4), (8, 2)])
    def test_produces_workers_times_iterations(
        self,
        sampler: Sampler,
        spec_factory: Callable[..., BenchmarkSpec],
        workers: int,
        iterations: int,
    ) -> None:
        run = BenchmarkRunner(sampler).run_concurrent(spec_factory("c", items=2), workers, iterations)

        assert len(run.measurements) == workers * iterations
        assert run.workers == workers
        assert run.aggregate.iterations == workers * iterations
        assert run.aggregate.item_count == 2 * workers * iterations
        assert run.failures == 0
        names = {m.name for m in run.measurements}
        assert names == {f"c[{i}]" for i in range(workers)}

    def test_failure_isolated_to_its_iteration(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        workload = _EveryOtherFails()
        run = BenchmarkRunner(sampler).run_concurrent(spec_factory("c", workload=workload), 4, 2)

        assert workload.calls == 8
        assert len(run.measurements) == 8
        assert run.failures == 4
        assert run.aggregate.failures == 4
        assert run.aggregate.success_ratio == 0.5
        # Partial failure is not an aggregate workload error
        assert run.aggregate.error is None
        assert run.aggregate.error_type is None

    def test_all_iterations_failing(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        def boom() -> None:
            msg = "nope"
            raise RuntimeError(msg)

        run = BenchmarkRunner(sampler).run_concurrent(spec_factory("c", workload=boom), 2, 2)
        assert run.aggregate.error is not None
        assert run.aggregate.error.startswith("all 4 iterations failed")
        assert "nope" in run.aggregate.error
        assert run.aggregate.error_type == "RuntimeError"
        assert run.aggregate.item_count == 0

    @pytest.mark.parametrize(("workers", "iterations"), [(0, 1), (1, 0)])
    def test_invalid_counts(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec], workers: int, iterations: int
    ) -> None:
        with pytest.raises(ValueError, match=">= 1"):
            BenchmarkRunner(sampler).run_concurrent(spec_factory(), workers, iterations)

    def test_span_covers_the_whole_run(
        self, sampler_factory: Callable[..., Sampler], spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        sampler = sampler_factory(tick=1.0)
        run = BenchmarkRunner(sampler).run_concurrent(spec_factory(), 2, 1)
        # 2 outer samples + 2 per iteration, each advancing the clock by 1s
        assert sampler.calls == 6  # type: ignore[attr-defined]
        assert run.span == pytest.approx(5.0)
        assert run.aggregate.duration == run.span

    def test_latency_spread_over_iterations(
        self,
        sampler: Sampler,
        latency: LatencyProvider,
        spec_factory: Callable[..., BenchmarkSpec],
    ) -> None:
        delays = iter([0.1 * n for n in range(1, 11)])
        spec = spec_factory("spread", workload=lambda: latency.delay(next(delays)))
        run = BenchmarkRunner(sampler).run_concurrent(spec, 1, 10)

        stats = run.aggregate.latency
        assert stats is not None
        assert stats.count == 10
        assert stats.mean == pytest.approx(0.55)
        assert stats.p50 == pytest.approx(0.5)
        assert stats.p95 == pytest.approx(1.0)
        assert stats.p99 == pytest.approx(1.0)
        assert stats.max == pytest.approx(1.0)

    def test_latency_from_sampler_tick(
        self, sampler_factory: Callable[..., Sampler], spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        run = BenchmarkRunner(sampler_factory(tick=0.5)).run_concurrent(spec_factory(), 1, 3)
        stats = run.aggregate.latency
        assert stats is not None
        assert stats.count == 3
        assert stats.mean == pytest.approx(0.5)
        assert stats.max == pytest.approx(0.5)

    def test_sequential_has_no_latency_spread(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        assert BenchmarkRunner(sampler).run_sequential(spec_factory()).latency is None

    def test_interrupt_joins_running_workers(
        self,
        sampler: Sampler,
        spec_factory: Callable[..., BenchmarkSpec],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        lock = threading.Lock()
        started: list[int] = []
        finished: list[int] = []

        def workload() -> None:
            with lock:
                started.append(1)
            time.sleep(0.05)
            with lock:
                finished.append(1)

        def interrupted_wait(*args: object, **kwargs: object) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(runner_module, "wait", interrupted_wait)
        with pytest.raises(KeyboardInterrupt):
            BenchmarkRunner(sampler).run_concurrent(spec_factory("halted", workload=workload), 3, 2)

        assert len(finished) == len(started)
        assert not [t for t in threading.enumerate() if t.name.startswith("perfgate-halted")]

    def test_ten_concurrent_sessions(self, session_spec: BenchmarkSpec) -> None:
        spec = session_spec
        run = BenchmarkRunner().run_concurrent(spec, 10, 1)
        verdict = evaluate(run.aggregate, spec.threshold)

        assert len(run.measurements) == 10
        assert run.aggregate.success_ratio == 1.0
        assert verdict.passed


@pytest.fixture
def session_spec() -> BenchmarkSpec:
    latency = NullLatency()
    return BenchmarkSpec(
        name="sessions",
        workload=lambda: simulations.user_session(latency),
        threshold=Threshold(min_success_ratio=1.0),
        mode=ExecutionMode.CONCURRENT,
        workers=10,
    )


class TestDispatch:
    def test_sequential_mode(self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]) -> None:
        m = BenchmarkRunner(sampler).run(spec_factory("s"))
        assert m.iterations == 1

    def test_concurrent_mode_returns_aggregate(
        self, sampler: Sampler, spec_factory: Callable[..., BenchmarkSpec]
    ) -> None:
        spec = spec_factory("c", mode=ExecutionMode.CONCURRENT, workers=3, iterations=2)
        m = BenchmarkRunner(sampler).run(spec)
        assert m.name == "c"
        assert m.iterations == 6
