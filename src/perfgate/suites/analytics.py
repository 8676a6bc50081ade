"""Analytics monitoring suite.

Simulates the workload profile of an analytics dashboard deployment: bulk
metric ingestion, dashboard loads, API endpoints of varying cost, database
queries, a memory-heavy job and a burst of concurrent user sessions. Every
benchmark is critical except the database query check.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from perfgate.domain.models import BenchmarkSpec, Complexity, ExecutionMode, Threshold
from perfgate.workloads import simulations

if TYPE_CHECKING:
    from perfgate.domain.protocols import LatencyProvider

SECONDS_PER_DAY = 86_400

# Ingestion must sustain 80% of a million records a day.
TARGET_DAILY_RECORDS = 1_000_000
INGEST_RECORDS = 10_000

DASHBOARD_MAX_SECONDS = 3.0
API_MAX_SECONDS = 2.0
QUERY_MAX_SECONDS = 0.1
QUERIES_PER_RUN = 10
MEMORY_MAX_GROWTH = 50 * 1024 * 1024

# 10 simulated users stand in for a 100-user target; 80% of it must hold.
CONCURRENT_USERS = 10
TARGET_CONCURRENT_USERS = 100
USER_SCALE_FACTOR = 10

API_ENDPOINTS: tuple[tuple[str, Complexity], ...] = (
    ("analytics_summary", Complexity.MEDIUM),
    ("metrics_endpoint", Complexity.HIGH),
    ("dashboard_data", Complexity.MEDIUM),
    ("real_time_metrics", Complexity.LOW),
)


def _run_queries(latency: LatencyProvider) -> int:
    for _ in range(QUERIES_PER_RUN):
        simulations.run_query(latency)
    return QUERIES_PER_RUN


def build(latency: LatencyProvider) -> list[BenchmarkSpec]:
    """Benchmarks of the analytics suite, in execution order."""
    specs = [
        BenchmarkSpec(
            name="high_volume_processing",
            workload=partial(simulations.process_batch, INGEST_RECORDS, latency),
            threshold=Threshold(min_throughput=TARGET_DAILY_RECORDS * 0.8 / SECONDS_PER_DAY),
            items=INGEST_RECORDS,
            description=f"Transform {INGEST_RECORDS} metric records in batches of 1000",
        ),
        BenchmarkSpec(
            name="dashboard_load",
            workload=partial(simulations.load_dashboard, latency),
            threshold=Threshold(max_duration=DASHBOARD_MAX_SECONDS),
            description="Aggregate metrics, chart a week and load recent activity",
        ),
    ]
    specs.extend(
        BenchmarkSpec(
            name=f"api_{endpoint}",
            workload=partial(simulations.call_endpoint, complexity, latency),
            threshold=Threshold(max_duration=API_MAX_SECONDS),
            description=f"{complexity.value} complexity endpoint",
        )
        for endpoint, complexity in API_ENDPOINTS
    )
    specs.extend(
        [
            BenchmarkSpec(
                name="database_query",
                workload=partial(_run_queries, latency),
                threshold=Threshold(min_throughput=1 / QUERY_MAX_SECONDS),
                items=QUERIES_PER_RUN,
                description=f"{QUERIES_PER_RUN} queries; mean query time bounded at {QUERY_MAX_SECONDS}s",
                critical=False,
            ),
            BenchmarkSpec(
                name="memory_efficiency",
                workload=partial(simulations.churn_memory, latency),
                threshold=Threshold(max_memory_growth=MEMORY_MAX_GROWTH),
                description="Build, process and discard three 5000-row datasets",
            ),
            BenchmarkSpec(
                name="concurrent_operations",
                workload=partial(simulations.user_session, latency),
                threshold=Threshold(
                    min_throughput=TARGET_CONCURRENT_USERS * 0.8 / USER_SCALE_FACTOR,
                    min_success_ratio=1.0,
                ),
                mode=ExecutionMode.CONCURRENT,
                workers=CONCURRENT_USERS,
                iterations=1,
                description=f"{CONCURRENT_USERS} simultaneous user sessions",
            ),
        ]
    )
    return specs
