"""Report persistence: JSON serialization and atomic writes.

Reports are written to a temporary file next to the destination, flushed,
fsynced and renamed into place, so a reader never observes a partial report.
Write and read failures surface as ``PersistenceError``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from perfgate.domain.errors import PersistenceError
from perfgate.domain.models import (
    LatencyStats,
    Measurement,
    Readiness,
    RunReport,
    RunSummary,
    Verdict,
    Violation,
    ViolationKind,
)

if TYPE_CHECKING:
    from perfgate.domain.protocols import ReportWriter

logger = logging.getLogger("perfgate.store")

FORMAT_VERSION = 1
_RESULT_REPR_LIMIT = 200


class _EnumEncoder(json.JSONEncoder):
    """JSON encoder that serializes Enum values as their .value strings."""

    def default(self, o: object) -> object:
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _measurement_to_dict(m: Measurement) -> dict[str, object]:
    throughput = m.item_count / m.duration if m.duration > 0 else None
    result = None if m.result is None else repr(m.result)[:_RESULT_REPR_LIMIT]
    return {
        "duration": m.duration,
        "memory_before": m.memory_before,
        "memory_after": m.memory_after,
        "memory_delta": m.memory_delta,
        "memory_raw_delta": m.raw_memory_delta,
        "memory_sampled": m.memory_sampled,
        "item_count": m.item_count,
        "throughput": throughput,
        "iterations": m.iterations,
        "failures": m.failures,
        "success_ratio": m.success_ratio,
        "error": m.error,
        "error_type": m.error_type,
        "latency": m.latency.to_dict() if m.latency is not None else None,
        "result": result,
    }


def _verdict_to_dict(v: Verdict) -> dict[str, object]:
    return {
        "passed": v.passed,
        "reasons": list(v.reasons),
        "violations": [
            {"kind": x.kind, "message": x.message, "limit": x.limit, "actual": x.actual}
            for x in v.violations
        ],
        "measurement": _measurement_to_dict(v.measurement),
    }


def report_to_dict(report: RunReport) -> dict[str, object]:
    """Convert a RunReport to a JSON-serializable dict (enums still as members)."""
    s = report.summary
    return {
        "format_version": FORMAT_VERSION,
        "suite": report.suite,
        "execution": {
            "started_at": report.started_at,
            "finished_at": report.finished_at,
            "duration": report.duration,
            "environment": report.environment,
        },
        "inputs": report.inputs,
        "thresholds": report.thresholds,
        "results": {v.name: _verdict_to_dict(v) for v in report.verdicts},
        "summary": {
            "total": s.total,
            "passed": s.passed,
            "failed": s.failed,
            "success_ratio": s.success_ratio,
            "ready": s.ready,
            "readiness": s.readiness,
            "degenerate": s.degenerate,
            "critical": {"total": s.critical_total, "passed": s.critical_passed, "failed": s.critical_failed},
            "non_critical": {
                "total": s.non_critical_total,
                "passed": s.non_critical_passed,
                "failed": s.non_critical_total - s.non_critical_passed,
            },
        },
        "recommendations": list(report.recommendations),
        "general_recommendations": list(report.general_recommendations),
        "warnings": list(report.warnings),
    }


def _measurement_from_dict(name: str, data: dict[str, Any]) -> Measurement:
    return Measurement(
        name=name,
        duration=float(data["duration"]),
        memory_before=int(data["memory_before"]),
        memory_after=int(data["memory_after"]),
        item_count=int(data["item_count"]),
        iterations=int(data.get("iterations", 1)),
        failures=int(data.get("failures", 0)),
        error=data.get("error"),
        error_type=data.get("error_type"),
        memory_sampled=bool(data.get("memory_sampled", True)),
        latency=LatencyStats(**data["latency"]) if data.get("latency") else None,
    )


def _verdict_from_dict(name: str, data: dict[str, Any]) -> Verdict:
    violations = tuple(
        Violation(
            kind=ViolationKind(x["kind"]),
            message=x["message"],
            limit=x.get("limit"),
            actual=x.get("actual"),
        )
        for x in data.get("violations", [])
    )
    return Verdict(
        name=name,
        passed=bool(data["passed"]),
        violations=violations,
        measurement=_measurement_from_dict(name, data["measurement"]),
    )


def report_from_dict(data: dict[str, Any]) -> RunReport:
    """Reconstruct a RunReport from a deserialized JSON dict.

    Workload results are not restored; they only survive as a truncated repr
    in the document.
    """
    execution = data["execution"]
    s = data["summary"]
    critical = s.get("critical", {})
    return RunReport(
        suite=data["suite"],
        started_at=datetime.fromisoformat(execution["started_at"]),
        finished_at=datetime.fromisoformat(execution["finished_at"]),
        duration=float(execution["duration"]),
        environment=dict(execution.get("environment", {})),
        inputs=dict(data.get("inputs", {})),
        thresholds=dict(data.get("thresholds", {})),
        verdicts=tuple(_verdict_from_dict(n, v) for n, v in data["results"].items()),
        summary=RunSummary(
            total=int(s["total"]),
            passed=int(s["passed"]),
            failed=int(s["failed"]),
            success_ratio=float(s["success_ratio"]),
            ready=bool(s["ready"]),
            readiness=Readiness(s["readiness"]),
            degenerate=bool(s.get("degenerate", False)),
            critical_total=int(critical.get("total", 0)),
            critical_passed=int(critical.get("passed", 0)),
        ),
        recommendations=tuple(data.get("recommendations", ())),
        general_recommendations=tuple(data.get("general_recommendations", ())),
        warnings=tuple(data.get("warnings", ())),
    )


def dumps(report: RunReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False, cls=_EnumEncoder) + "\n"


# ---------------------------------------------------------------------------
# Writing and reading
# ---------------------------------------------------------------------------


class AtomicFileWriter:
    """ReportWriter that writes to a temp file in the same directory, then renames."""

    def write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise


def report_path(directory: Path, prefix: str, started_at: datetime) -> Path:
    """Run-scoped report path: ``<dir>/<prefix>_<YYYYmmdd_HHMMSS>.json``."""
    return directory / f"{prefix}_{started_at.strftime('%Y%m%d_%H%M%S')}.json"


def persist(report: RunReport, destination: Path, writer: ReportWriter | None = None) -> Path:
    """Serialize ``report`` to ``destination`` atomically.

    Raises:
        PersistenceError: if serialization or the write fails.
    """
    writer = writer or AtomicFileWriter()
    try:
        payload = dumps(report).encode("utf-8")
        writer.write(destination, payload)
    except (OSError, TypeError, ValueError) as exc:
        msg = f"Failed to write report to {destination}: {exc}"
        raise PersistenceError(msg) from exc
    logger.info("Report written to %s", destination)
    return destination


def load_report(path: Path) -> RunReport:
    """Read a persisted report back.

    Raises:
        PersistenceError: if the file is missing, unreadable or malformed.
    """
    try:
        data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        return report_from_dict(data)
    except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as exc:
        msg = f"Failed to read report {path}: {exc}"
        raise PersistenceError(msg) from exc


class ReportStore:
    """Saves reports under a base directory with run-scoped names."""

    def __init__(self, base_dir: Path, prefix: str = "performance_report", writer: ReportWriter | None = None) -> None:
        self._base = base_dir
        self._prefix = prefix
        self._writer = writer

    @property
    def base_dir(self) -> Path:
        return self._base

    def path_for(self, report: RunReport) -> Path:
        return report_path(self._base, self._prefix, report.started_at)

    def save(self, report: RunReport) -> Path:
        return persist(report, self.path_for(report), self._writer)

    def load(self, path: Path) -> RunReport:
        return load_report(path)

    def list_reports(self) -> list[Path]:
        """Saved reports for this prefix, oldest first."""
        if not self._base.is_dir():
            return []
        return sorted(self._base.glob(f"{self._prefix}_*.json"))
