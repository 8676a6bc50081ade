"""Latency providers and the endpoint complexity table.

Simulated workloads never call ``time.sleep`` directly; they ask a
``LatencyProvider``. Tests substitute ``NullLatency`` to run at full speed.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from perfgate.domain.models import Complexity


class SleepLatency:
    """Real latency: sleeps for the requested time multiplied by ``scale``."""

    def __init__(self, scale: float = 1.0) -> None:
        if scale < 0:
            msg = f"Latency scale must be >= 0, got {scale}"
            raise ValueError(msg)
        self.scale = scale

    def delay(self, seconds: float) -> None:
        wait = seconds * self.scale
        if wait > 0:
            time.sleep(wait)


class NullLatency:
    """Zero latency. Counts requests so tests can see what would have slept."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.calls = 0
        self.requested = 0.0

    def delay(self, seconds: float) -> None:
        with self._lock:
            self.calls += 1
            self.requested += seconds


@dataclass(frozen=True)
class EndpointProfile:
    """Simulated cost of one endpoint call."""

    delay: float
    payload_size: int
    rounds: int = 0


COMPLEXITY_PROFILES: dict[Complexity, EndpointProfile] = {
    # Simple data retrieval
    Complexity.LOW: EndpointProfile(delay=0.05, payload_size=10),
    # Moderate processing: bucket 500 values
    Complexity.MEDIUM: EndpointProfile(delay=0.2, payload_size=500),
    # Complex aggregation: 50 rounds over 100 values
    Complexity.HIGH: EndpointProfile(delay=0.4, payload_size=100, rounds=50),
}


def profile_for(complexity: Complexity) -> EndpointProfile:
    return COMPLEXITY_PROFILES[complexity]
