"""Named benchmark suites and threshold overrides."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from perfgate.domain.errors import ConfigurationError
from perfgate.suites import analytics, smoke

if TYPE_CHECKING:
    from perfgate.domain.models import BenchmarkSpec, Threshold
    from perfgate.domain.protocols import LatencyProvider

SuiteFactory = Callable[["LatencyProvider"], list["BenchmarkSpec"]]

SUITES: dict[str, SuiteFactory] = {
    "analytics": analytics.build,
    "smoke": smoke.build,
}


def get_suite(name: str) -> SuiteFactory:
    try:
        return SUITES[name]
    except KeyError:
        msg = f"Unknown suite {name!r}; available: {', '.join(sorted(SUITES))}"
        raise ConfigurationError(msg) from None


def build_specs(
    name: str,
    latency: LatencyProvider,
    overrides: Mapping[str, Threshold] | None = None,
) -> list[BenchmarkSpec]:
    """Build a suite's specs, replacing thresholds named in ``overrides``.

    An override for a benchmark the suite does not define is a configuration
    error rather than a silent no-op.
    """
    specs = get_suite(name)(latency)
    overrides = overrides or {}
    known = {s.name for s in specs}
    unknown = sorted(set(overrides) - known)
    if unknown:
        msg = f"Threshold overrides for unknown benchmarks in suite {name!r}: {', '.join(unknown)}"
        raise ConfigurationError(msg)
    return [
        dataclasses.replace(s, threshold=overrides[s.name]) if s.name in overrides else s
        for s in specs
    ]
