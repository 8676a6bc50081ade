"""Smoke suite: a quick self-check of the harness on this host."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from perfgate.domain.models import BenchmarkSpec, ExecutionMode, Threshold
from perfgate.workloads.generators import random_bytes, random_text

if TYPE_CHECKING:
    from perfgate.domain.protocols import LatencyProvider

PAYLOAD_BYTES = 1024 * 1024


def _payloads() -> int:
    random_bytes(PAYLOAD_BYTES)
    random_text(10_000)
    return PAYLOAD_BYTES


def build(latency: LatencyProvider) -> list[BenchmarkSpec]:
    return [
        BenchmarkSpec(
            name="sleep_within_budget",
            workload=partial(latency.delay, 0.1),
            threshold=Threshold(max_duration=1.0),
            description="0.1s of simulated latency against a 1s budget",
        ),
        BenchmarkSpec(
            name="payload_generation",
            workload=_payloads,
            threshold=Threshold(min_throughput=1.0, max_memory_growth=64 * 1024 * 1024),
            description="1 MiB of random bytes and 10,000 words of text",
        ),
        BenchmarkSpec(
            name="concurrent_sleep",
            workload=partial(latency.delay, 0.05),
            threshold=Threshold(max_duration=2.0, min_success_ratio=1.0),
            mode=ExecutionMode.CONCURRENT,
            workers=4,
            iterations=2,
            description="4 workers x 2 iterations of 0.05s latency",
        ),
    ]
