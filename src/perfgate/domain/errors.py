"""Error taxonomy for perfgate.

Workload and measurement errors are captured into verdicts by the harness.
Configuration errors abort registration. Persistence errors abort only the
persist step.
"""


class PerfgateError(Exception):
    """Base class for all harness errors."""


class WorkloadError(PerfgateError):
    """Raised when a benchmarked operation itself fails."""


class MeasurementError(PerfgateError):
    """Raised when a measurement cannot support a comparison.

    The usual cause is a non-positive duration for a throughput calculation.
    """


class ConfigurationError(PerfgateError):
    """Raised for invalid declarations: duplicate names, bad thresholds, bad config files."""


class PersistenceError(PerfgateError):
    """Raised when a report cannot be written or read back."""


class RunStateError(PerfgateError):
    """Raised when a run lifecycle transition is not allowed."""
