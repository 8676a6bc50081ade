"""Path constants and configuration loading.

Configuration lives in ``.perfgate/config.yaml`` by default. Every key is
optional; CLI flags override whatever the file sets.

Example::

    suite: analytics
    output_dir: tmp/perf
    run_timeout: 300
    latency_scale: 0.5
    thresholds:
      analytics:
        dashboard_load:
          max_duration: 2.5
        memory_efficiency:
          max_memory_growth_mb: 80
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from perfgate.domain.errors import ConfigurationError
from perfgate.domain.models import Threshold

# .perfgate/ directory structure
PERFGATE_DIR = ".perfgate"
CONFIG_FILE = "config.yaml"
LOGS_DIR = "logs"
REPORTS_DIR = "reports"
LOG_FILE = "perfgate.log"

DEFAULT_SUITE = "analytics"
DEFAULT_REPORT_PREFIX = "performance_report"

_MB = 1024 * 1024


def perfgate_dir(project_root: Path) -> Path:
    """Return the .perfgate directory path for a project."""
    return project_root / PERFGATE_DIR


def config_file(project_root: Path) -> Path:
    """Return the config.yaml path."""
    return perfgate_dir(project_root) / CONFIG_FILE


def logs_dir(project_root: Path) -> Path:
    """Return the logs directory path."""
    return perfgate_dir(project_root) / LOGS_DIR


def reports_dir(project_root: Path) -> Path:
    """Return the default report output directory."""
    return perfgate_dir(project_root) / REPORTS_DIR


@dataclass(frozen=True)
class HarnessConfig:
    """Settings for a harness run."""

    suite: str = DEFAULT_SUITE
    output_dir: Path | None = None
    report_prefix: str = DEFAULT_REPORT_PREFIX
    run_timeout: float | None = None
    latency_scale: float = 1.0
    console: str = "auto"
    log_level: str = "INFO"
    thresholds: dict[str, dict[str, Threshold]] = field(
        default_factory=lambda: dict[str, dict[str, Threshold]]()
    )

    def overrides_for(self, suite: str) -> dict[str, Threshold]:
        """Threshold overrides declared for ``suite``."""
        return self.thresholds.get(suite, {})

    def resolved_output_dir(self, project_root: Path) -> Path:
        if self.output_dir is None:
            return reports_dir(project_root)
        if self.output_dir.is_absolute():
            return self.output_dir
        return project_root / self.output_dir


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_THRESHOLD_KEYS = frozenset(
    {"max_duration", "min_throughput", "max_memory_growth", "max_memory_growth_mb", "min_success_ratio"}
)
_TOP_LEVEL_KEYS = frozenset(
    {"suite", "output_dir", "report_prefix", "run_timeout", "latency_scale", "console", "log_level", "thresholds"}
)
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})


def _number(where: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{where} must be a number, got {value!r}"
        raise ConfigurationError(msg)
    if not math.isfinite(value):
        msg = f"{where} must be a finite number, got {value!r}"
        raise ConfigurationError(msg)
    return float(value)


def _string(where: str, value: object) -> str:
    if not isinstance(value, str) or not value:
        msg = f"{where} must be a non-empty string, got {value!r}"
        raise ConfigurationError(msg)
    return value


def threshold_from_mapping(name: str, data: object) -> Threshold:
    """Build a Threshold from a config mapping.

    ``max_memory_growth`` is bytes; ``max_memory_growth_mb`` is a convenience
    alias in mebibytes. Setting both is an error.
    """
    if not isinstance(data, dict):
        msg = f"thresholds.{name} must be a mapping, got {type(data).__name__}"
        raise ConfigurationError(msg)
    unknown = set(data) - _THRESHOLD_KEYS
    if unknown:
        msg = f"thresholds.{name}: unknown keys {', '.join(sorted(map(str, unknown)))}"
        raise ConfigurationError(msg)
    if "max_memory_growth" in data and "max_memory_growth_mb" in data:
        msg = f"thresholds.{name}: set max_memory_growth or max_memory_growth_mb, not both"
        raise ConfigurationError(msg)

    where = f"thresholds.{name}"
    memory: int | None = None
    if "max_memory_growth" in data:
        count = _number(f"{where}.max_memory_growth", data["max_memory_growth"])
        if not count.is_integer():
            msg = f"{where}.max_memory_growth must be a whole number of bytes, got {data['max_memory_growth']!r}"
            raise ConfigurationError(msg)
        memory = int(count)
    elif "max_memory_growth_mb" in data:
        memory = round(_number(f"{where}.max_memory_growth_mb", data["max_memory_growth_mb"]) * _MB)

    def _opt(key: str) -> float | None:
        return _number(f"{where}.{key}", data[key]) if key in data else None

    return Threshold(
        max_duration=_opt("max_duration"),
        min_throughput=_opt("min_throughput"),
        max_memory_growth=memory,
        min_success_ratio=_opt("min_success_ratio"),
    )


def config_from_mapping(data: dict[str, Any]) -> HarnessConfig:
    """Validate a parsed YAML mapping and build a HarnessConfig."""
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        msg = f"Unknown config keys: {', '.join(sorted(map(str, unknown)))}"
        raise ConfigurationError(msg)

    kwargs: dict[str, Any] = {}

    if "suite" in data:
        kwargs["suite"] = _string("suite", data["suite"])
    if "output_dir" in data:
        kwargs["output_dir"] = Path(_string("output_dir", data["output_dir"]))
    if "report_prefix" in data:
        kwargs["report_prefix"] = _string("report_prefix", data["report_prefix"])
    if data.get("run_timeout") is not None:
        timeout = _number("run_timeout", data["run_timeout"])
        if timeout <= 0:
            msg = f"run_timeout must be positive, got {timeout}"
            raise ConfigurationError(msg)
        kwargs["run_timeout"] = timeout
    if "latency_scale" in data:
        scale = _number("latency_scale", data["latency_scale"])
        if scale < 0:
            msg = f"latency_scale must be >= 0, got {scale}"
            raise ConfigurationError(msg)
        kwargs["latency_scale"] = scale
    if "console" in data:
        backend = _string("console", data["console"])
        if backend not in ("auto", "rich", "plain"):
            msg = f"console must be auto, rich or plain, got {backend!r}"
            raise ConfigurationError(msg)
        kwargs["console"] = backend
    if "log_level" in data:
        level = _string("log_level", data["log_level"]).upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}, got {level!r}"
            raise ConfigurationError(msg)
        kwargs["log_level"] = level
    if "thresholds" in data:
        raw = data["thresholds"] or {}
        if not isinstance(raw, dict):
            msg = "thresholds must map suite names to benchmark bounds"
            raise ConfigurationError(msg)
        by_suite: dict[str, dict[str, Threshold]] = {}
        for suite, benches in raw.items():
            if not isinstance(benches, dict):
                msg = f"thresholds.{suite} must map benchmark names to bounds"
                raise ConfigurationError(msg)
            by_suite[str(suite)] = {
                str(k): threshold_from_mapping(f"{suite}.{k}", v) for k, v in benches.items()
            }
        kwargs["thresholds"] = by_suite

    return HarnessConfig(**kwargs)


def load_config(path: Path | None = None, project_root: Path | None = None) -> HarnessConfig:
    """Load configuration from ``path`` (or the project's default location).

    A missing default file yields defaults; an explicitly given path must
    exist. Malformed YAML or invalid values raise ``ConfigurationError``.
    """
    if path is None:
        path = config_file(project_root or Path.cwd())
        if not path.exists():
            return HarnessConfig()
    elif not path.exists():
        msg = f"Config file not found: {path}"
        raise ConfigurationError(msg)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot read config {path}: {exc}"
        raise ConfigurationError(msg) from exc
    if data is None:
        return HarnessConfig()
    if not isinstance(data, dict):
        msg = f"Config {path} must be a mapping at the top level"
        raise ConfigurationError(msg)
    return config_from_mapping(data)
