"""Simulated application operations used by the built-in suites.

These stand in for the application under test: record processing, dashboard
loading, API endpoints, database queries, memory-heavy jobs and user
sessions. Each one takes a ``LatencyProvider`` for its simulated I/O.
"""

from __future__ import annotations

import gc
import random
from collections import defaultdict
from typing import TYPE_CHECKING

from perfgate.workloads.generators import METRIC_TYPES, PLATFORMS, batched, random_records, random_series
from perfgate.workloads.latency import profile_for

if TYPE_CHECKING:
    from perfgate.domain.models import Complexity
    from perfgate.domain.protocols import LatencyProvider


def process_batch(record_count: int, latency: LatencyProvider, *, batch_size: int = 1000) -> int:
    """Transform ``record_count`` records in batches. Returns the processed count."""
    rng = random.Random()
    processed = 0
    for batch in batched(random_records(record_count), batch_size):
        for i, record in enumerate(batch):
            record["scale"] = rng.uniform(0.8, 1.2)
            processed += 1
            if i % 100 == 0:
                latency.delay(0.0001)
    return processed


def load_dashboard(latency: LatencyProvider) -> dict[str, object]:
    """Aggregate metrics, prepare a week of chart points and load recent activity."""
    rng = random.Random()
    aggregates: list[dict[int, float]] = []
    for _ in range(30):
        buckets: dict[int, list[int]] = defaultdict(list)
        for value in random_series(100):
            buckets[value // 100].append(value)
        aggregates.append({k: sum(v) / len(v) for k, v in buckets.items()})
        latency.delay(0.01)

    chart: list[dict[str, int]] = []
    for day in range(7):
        chart.append(
            {"day": day, "reach": rng.randint(1000, 5000), "engagement": rng.randint(100, 500)}
        )
        latency.delay(0.005)

    activity: list[str] = []
    for _ in range(20):
        activity.append(rng.choice(("sync", "report", "alert")))
        latency.delay(0.002)

    return {"aggregates": aggregates, "chart": chart, "activity": activity}


def call_endpoint(complexity: Complexity, latency: LatencyProvider) -> object:
    """Simulate one API call whose cost is set by its complexity class."""
    profile = profile_for(complexity)
    latency.delay(profile.delay)
    if profile.rounds:
        rng = random.Random()
        return [
            sum(n * rng.random() for n in range(1, profile.payload_size + 1)) / profile.payload_size
            for _ in range(profile.rounds)
        ]
    values = random_series(profile.payload_size, upper=10_000)
    if profile.payload_size > 100:
        counts: dict[int, int] = defaultdict(int)
        for v in values:
            counts[v // 1000] += 1
        return dict(counts)
    return values


def run_query(latency: LatencyProvider) -> dict[str, list[dict[str, object]]]:
    """Simulate a query: base latency, then 50 rows grouped by platform."""
    latency.delay(0.01)
    rng = random.Random()
    grouped: dict[str, list[dict[str, object]]] = defaultdict(list)
    for i in range(50):
        row: dict[str, object] = {
            "id": i,
            "platform": rng.choice(PLATFORMS[:2]),
            "metric_type": rng.choice(METRIC_TYPES),
            "value": rng.randrange(1000),
        }
        grouped[str(row["platform"])].append(row)
    return dict(grouped)


def churn_memory(latency: LatencyProvider, *, datasets: int = 3, rows: int = 5000) -> int:
    """Build, process and discard datasets. Returns the number of rows processed."""
    kept: list[list[dict[str, object]]] = []
    processed = 0
    for i in range(datasets):
        dataset: list[dict[str, object]] = []
        for j in range(rows):
            data = random_series(20)
            dataset.append(
                {"id": f"{i}_{j}", "data": data, "processed": True, "average": sum(data) / len(data)}
            )
        processed += len(dataset)
        kept.append(dataset)
        latency.delay(0.05)
    kept.clear()
    gc.collect()
    return processed


_SESSION_DELAYS: tuple[float, ...] = (0.1, 0.05, 0.15)  # view, filter, report


def user_session(latency: LatencyProvider, *, operations: int = 5) -> int:
    """Cycle through dashboard view, data filter and report generation."""
    for op in range(operations):
        latency.delay(_SESSION_DELAYS[op % len(_SESSION_DELAYS)])
    return operations
