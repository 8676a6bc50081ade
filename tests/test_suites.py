"""Tests for the built-in suites and the suite registry."""

from __future__ import annotations

import pytest

from perfgate.domain.errors import ConfigurationError
from perfgate.domain.models import ExecutionMode, Threshold
from perfgate.harness import Harness
from perfgate.suites import analytics, smoke
from perfgate.suites.registry import SUITES, build_specs, get_suite
from perfgate.workloads.latency import NullLatency

MB = 1024 * 1024


class TestAnalyticsSuite:
    def test_benchmarks_in_order(self) -> None:
        names = [s.name for s in analytics.build(NullLatency())]
        assert names == [
            "high_volume_processing",
            "dashboard_load",
            "api_analytics_summary",
            "api_metrics_endpoint",
            "api_dashboard_data",
            "api_real_time_metrics",
            "database_query",
            "memory_efficiency",
            "concurrent_operations",
        ]

    def test_thresholds(self) -> None:
        specs = {s.name: s for s in analytics.build(NullLatency())}
        assert specs["high_volume_processing"].threshold.min_throughput == pytest.approx(1_000_000 * 0.8 / 86_400)
        assert specs["high_volume_processing"].items == 10_000
        assert specs["dashboard_load"].threshold.max_duration == 3.0
        assert specs["api_metrics_endpoint"].threshold.max_duration == 2.0
        assert specs["database_query"].threshold.min_throughput == pytest.approx(10.0)
        assert specs["database_query"].items == 10
        assert specs["memory_efficiency"].threshold.max_memory_growth == 50 * MB

    def test_only_database_is_non_critical(self) -> None:
        non_critical = [s.name for s in analytics.build(NullLatency()) if not s.critical]
        assert non_critical == ["database_query"]

    def test_concurrent_operations(self) -> None:
        spec = next(s for s in analytics.build(NullLatency()) if s.name == "concurrent_operations")
        assert spec.mode is ExecutionMode.CONCURRENT
        assert spec.workers == 10
        assert spec.iterations == 1
        assert spec.threshold.min_success_ratio == 1.0
        assert spec.threshold.min_throughput == pytest.approx(8.0)

    def test_workloads_use_the_given_latency(self) -> None:
        latency = NullLatency()
        specs = {s.name: s for s in analytics.build(latency)}
        assert specs["database_query"].workload() == 10
        assert latency.calls == 10


class TestSmokeSuite:
    def test_passes_without_latency(self) -> None:
        harness = Harness("smoke")
        harness.register_all(smoke.build(NullLatency()))
        report = harness.run()
        assert report.summary.total == 3
        assert report.summary.ready, [v.reasons for v in report.failed_verdicts]


class TestRegistry:
    def test_known_suites(self) -> None:
        assert set(SUITES) == {"analytics", "smoke"}
        assert get_suite("smoke") is smoke.build

    def test_unknown_suite(self) -> None:
        with pytest.raises(ConfigurationError, match="available: analytics, smoke"):
            get_suite("nope")

    def test_overrides_replace_thresholds(self) -> None:
        override = Threshold(max_duration=9.0)
        specs = {s.name: s for s in build_specs("smoke", NullLatency(), {"sleep_within_budget": override})}
        assert specs["sleep_within_budget"].threshold == override
        assert specs["concurrent_sleep"].threshold.max_duration == 2.0

    def test_override_for_unknown_benchmark(self) -> None:
        with pytest.raises(ConfigurationError, match="dashboard_load"):
            build_specs("smoke", NullLatency(), {"dashboard_load": Threshold()})
