"""Synthetic payload generators.

Output shape is deterministic and content is random. Each call builds its
own ``random.Random`` so concurrent workers never share generator state.
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

T = TypeVar("T")

PLATFORMS: tuple[str, ...] = ("facebook", "instagram", "twitter")
METRIC_TYPES: tuple[str, ...] = ("reach", "engagement", "impressions")

_VOCABULARY: tuple[str, ...] = (
    "brand", "campaign", "content", "audience", "launch", "metric", "report",
    "engagement", "channel", "message", "persona", "variant", "journey",
    "review", "asset", "insight", "budget", "timeline", "growth", "signal",
)  # fmt: skip


def _check_size(name: str, value: int) -> None:
    if value < 0:
        msg = f"{name} must be >= 0, got {value}"
        raise ValueError(msg)


def random_bytes(size: int) -> bytes:
    """Return exactly ``size`` random bytes."""
    _check_size("size", size)
    return random.Random().randbytes(size)


def random_text(word_count: int, *, vocabulary: Sequence[str] | None = None) -> str:
    """Return exactly ``word_count`` space-separated words."""
    _check_size("word_count", word_count)
    words = vocabulary or _VOCABULARY
    rng = random.Random()
    return " ".join(rng.choice(words) for _ in range(word_count))


def random_records(count: int) -> list[dict[str, object]]:
    """Return ``count`` synthetic analytics metric records."""
    _check_size("count", count)
    rng = random.Random()
    now = time.time()
    return [
        {
            "id": i,
            "platform": rng.choice(PLATFORMS),
            "metric_type": rng.choice(METRIC_TYPES),
            "value": rng.randint(100, 10_000),
            "timestamp": now,
        }
        for i in range(count)
    ]


def random_series(count: int, *, upper: int = 1000) -> list[int]:
    """Return ``count`` integers in ``[0, upper)``."""
    _check_size("count", count)
    rng = random.Random()
    return [rng.randrange(upper) for _ in range(count)]


def batched(items: Iterable[T], batch_size: int) -> Iterator[list[T]]:
    """Yield consecutive chunks of ``batch_size``; the last one may be short."""
    if batch_size < 1:
        msg = f"batch_size must be >= 1, got {batch_size}"
        raise ValueError(msg)
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch
