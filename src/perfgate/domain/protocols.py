"""Protocol interfaces for perfgate collaborators.

All ports are defined as typing.Protocol: any class with matching method
signatures satisfies them without inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from perfgate.domain.models import Measurement, Sample, Threshold, Verdict


class Sampler(Protocol):
    """Reads the clock and the current process memory."""

    def sample(self) -> Sample:
        """Return a timestamp and a best-effort memory reading."""
        ...


class LatencyProvider(Protocol):
    """Stands in for network or database latency inside simulated workloads."""

    def delay(self, seconds: float) -> None:
        """Block for (roughly) ``seconds`` of simulated I/O."""
        ...


class Evaluator(Protocol):
    """Turns a measurement and its threshold into a verdict."""

    def __call__(self, measurement: Measurement, threshold: Threshold) -> Verdict:
        ...


class ReportWriter(Protocol):
    """Destination for serialized reports."""

    def write(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` so readers never see a partial file."""
        ...
