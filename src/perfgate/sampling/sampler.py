"""Clock and process-memory sampling.

Memory is the resident set size of the current process as reported by
psutil. Sampling is best-effort: when the host refuses to report memory the
sample carries zero bytes and ``memory_available=False`` instead of raising.

Memory is a process-global quantity. Under concurrent benchmarks a
per-iteration delta includes allocations made by sibling workers, so treat it
as an approximation rather than an attribution.
"""

from __future__ import annotations

import logging
import time

import psutil

from perfgate.domain.models import Sample

logger = logging.getLogger("perfgate.sampler")


class ResourceSampler:
    """Sampler implementation backed by ``time.perf_counter`` and psutil."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process
        self._available = True
        self._warned = False

    @property
    def available(self) -> bool:
        """Whether the most recent sample managed to read memory."""
        return self._available

    def _rss(self) -> int | None:
        try:
            if self._process is None:
                self._process = psutil.Process()
            return int(self._process.memory_info().rss)
        except (psutil.Error, OSError) as exc:
            if not self._warned:
                logger.debug("Memory sampling unavailable: %s", exc)
                self._warned = True
            return None

    def sample(self) -> Sample:
        timestamp = time.perf_counter()
        rss = self._rss()
        self._available = rss is not None
        return Sample(
            timestamp=timestamp,
            memory_bytes=rss if rss is not None else 0,
            memory_available=rss is not None,
        )


def elapsed(before: Sample, after: Sample) -> float:
    """Seconds between two samples."""
    return after.timestamp - before.timestamp
