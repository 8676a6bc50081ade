"""Threshold evaluation: measurement + threshold -> verdict.

Checks run in a fixed order (workload error, duration, throughput, memory
growth, success ratio) and every violated check is recorded, so a verdict's
reasons are complete rather than first-failure-only.
"""

from __future__ import annotations

import logging

from perfgate.domain.errors import MeasurementError
from perfgate.domain.models import Measurement, Threshold, Verdict, Violation, ViolationKind

logger = logging.getLogger("perfgate.evaluator")

_MB = 1024 * 1024


def compute_throughput(measurement: Measurement) -> float:
    """Items per second.

    Raises:
        MeasurementError: if the duration is zero or negative.
    """
    if measurement.duration <= 0:
        msg = (
            f"{measurement.name}: cannot compute throughput from non-positive "
            f"duration {measurement.duration!r}"
        )
        raise MeasurementError(msg)
    return measurement.item_count / measurement.duration


def _format_bytes(value: float) -> str:
    return f"{value / _MB:.2f}MB"


def evaluate(measurement: Measurement, threshold: Threshold) -> Verdict:
    """Compare ``measurement`` against ``threshold``.

    A recorded workload error always fails the verdict. Partial failures of a
    concurrent run fail it too unless a ``min_success_ratio`` bound decides.
    """
    violations: list[Violation] = []

    if measurement.error is not None:
        violations.append(
            Violation(
                kind=ViolationKind.WORKLOAD_ERROR,
                message=f"workload error: {measurement.error}",
            )
        )
    elif measurement.failures > 0 and threshold.min_success_ratio is None:
        violations.append(
            Violation(
                kind=ViolationKind.WORKLOAD_ERROR,
                message=f"{measurement.failures}/{measurement.iterations} iterations failed",
                actual=float(measurement.failures),
            )
        )

    if threshold.max_duration is not None and measurement.duration > threshold.max_duration:
        violations.append(
            Violation(
                kind=ViolationKind.DURATION,
                message=(
                    f"duration {measurement.duration:.3f}s exceeds max "
                    f"{threshold.max_duration:.3f}s"
                ),
                limit=threshold.max_duration,
                actual=measurement.duration,
            )
        )

    if threshold.min_throughput is not None:
        try:
            rate = compute_throughput(measurement)
        except MeasurementError as exc:
            violations.append(Violation(kind=ViolationKind.MEASUREMENT, message=str(exc)))
        else:
            if rate < threshold.min_throughput:
                violations.append(
                    Violation(
                        kind=ViolationKind.THROUGHPUT,
                        message=(
                            f"throughput {rate:.2f}/s below min "
                            f"{threshold.min_throughput:.2f}/s"
                        ),
                        limit=threshold.min_throughput,
                        actual=rate,
                    )
                )
    elif measurement.duration < 0:
        violations.append(
            Violation(
                kind=ViolationKind.MEASUREMENT,
                message=f"{measurement.name}: negative duration {measurement.duration!r}",
                actual=measurement.duration,
            )
        )

    if threshold.max_memory_growth is not None:
        growth = measurement.memory_delta
        if growth > threshold.max_memory_growth:
            violations.append(
                Violation(
                    kind=ViolationKind.MEMORY,
                    message=(
                        f"memory growth {_format_bytes(growth)} exceeds max "
                        f"{_format_bytes(threshold.max_memory_growth)}"
                    ),
                    limit=float(threshold.max_memory_growth),
                    actual=float(growth),
                )
            )

    if threshold.min_success_ratio is not None:
        ratio = measurement.success_ratio
        if ratio < threshold.min_success_ratio:
            violations.append(
                Violation(
                    kind=ViolationKind.SUCCESS_RATIO,
                    message=(
                        f"success ratio {ratio:.2%} below min "
                        f"{threshold.min_success_ratio:.2%}"
                    ),
                    limit=threshold.min_success_ratio,
                    actual=ratio,
                )
            )

    verdict = Verdict(
        name=measurement.name,
        passed=not violations,
        violations=tuple(violations),
        measurement=measurement,
    )
    if not verdict.passed:
        logger.info("%s failed: %s", measurement.name, "; ".join(verdict.reasons))
    return verdict


def not_executed(name: str, reason: str) -> Verdict:
    """Failing verdict for a benchmark the run never started."""
    return Verdict(
        name=name,
        passed=False,
        violations=(Violation(kind=ViolationKind.NOT_EXECUTED, message=f"not executed: {reason}"),),
        measurement=Measurement(
            name=name,
            duration=0.0,
            memory_before=0,
            memory_after=0,
            item_count=0,
            iterations=0,
            memory_sampled=False,
        ),
    )
