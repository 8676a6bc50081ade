"""Recommendation text keyed by failure category."""

from __future__ import annotations

from typing import TYPE_CHECKING

from perfgate.domain.models import ViolationKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from perfgate.domain.models import RunReport, Verdict

RECOMMENDATIONS: dict[ViolationKind, str] = {
    ViolationKind.WORKLOAD_ERROR: "Fix failing workloads before tuning performance",
    ViolationKind.DURATION: "Add a caching layer and optimize the slow queries on this path",
    ViolationKind.THROUGHPUT: "Consider batching and parallel processing to raise throughput",
    ViolationKind.MEMORY: "Consider object pooling or streaming to cut memory growth",
    ViolationKind.SUCCESS_RATIO: "Add connection pooling and load balancing for concurrent load",
    ViolationKind.MEASUREMENT: "Check the timer and sampler; the measurement could not be evaluated",
    ViolationKind.NOT_EXECUTED: "Raise the run budget or shrink workloads so every benchmark runs",
}

GENERAL_RECOMMENDATIONS: tuple[str, ...] = (
    "Set up production performance monitoring",
    "Run performance benchmarks automatically to catch regressions",
    "Monitor real-world usage patterns and tune accordingly",
    "Alert on performance threshold breaches",
)


def recommend_for(verdicts: Iterable[Verdict]) -> list[str]:
    """Recommendation texts for every failing verdict, deduplicated in first-seen order."""
    result: list[str] = []
    for verdict in verdicts:
        if verdict.passed:
            continue
        for kind in verdict.kinds:
            text = RECOMMENDATIONS[kind]
            if text not in result:
                result.append(text)
    return result


def recommend(report: RunReport) -> list[str]:
    """Recommendations derived from a report's failing verdicts."""
    return recommend_for(report.verdicts)
