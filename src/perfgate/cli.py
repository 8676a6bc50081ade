"""
perfgate CLI -- run benchmark suites and gate on their thresholds.

Usage:
  perfgate run [SUITE] [--output PATH] [--config FILE] [--timeout SECONDS]
               [--latency-scale X] [--no-latency] [--verbose | --quiet] [--plain]
  perfgate list
  perfgate show REPORT

Exit codes: 0 every benchmark passed, 1 a benchmark failed, 2 configuration
error, 3 the report could not be written or read, 130 interrupted.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from perfgate.config import LOG_FILE, HarnessConfig, load_config, logs_dir
from perfgate.console import configure, console
from perfgate.domain.errors import ConfigurationError, PersistenceError
from perfgate.harness import Harness
from perfgate.reporting.recommendations import recommend
from perfgate.reporting.store import load_report, report_path
from perfgate.suites.registry import SUITES, build_specs
from perfgate.workloads.latency import NullLatency, SleepLatency

if TYPE_CHECKING:
    from types import FrameType

    from perfgate.domain.models import RunReport
    from perfgate.domain.protocols import LatencyProvider

logger = logging.getLogger("perfgate")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_PERSISTENCE = 3
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Setup helpers
# ---------------------------------------------------------------------------


def _setup_logging(project_root: Path, level: int) -> None:
    """Configure file logging to .perfgate/logs/perfgate.log."""
    log_dir = logs_dir(project_root)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_dir / LOG_FILE),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        level=level,
    )


def _log_level(args: argparse.Namespace, config: HarnessConfig) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.WARNING
    return logging.getLevelName(config.log_level)


def _latency(args: argparse.Namespace, config: HarnessConfig) -> LatencyProvider:
    if args.no_latency:
        return NullLatency()
    scale = args.latency_scale if args.latency_scale is not None else config.latency_scale
    if scale < 0:
        msg = f"--latency-scale must be >= 0, got {scale}"
        raise ConfigurationError(msg)
    return SleepLatency(scale)


def _destination(args: argparse.Namespace, config: HarnessConfig, project_root: Path, report: RunReport) -> Path:
    """Resolve ``--output``: a ``.json`` path is used as is, anything else is a directory."""
    if args.output is not None:
        output = Path(args.output)
        if output.suffix == ".json":
            return output
        return report_path(output, config.report_prefix, report.started_at)
    return report_path(config.resolved_output_dir(project_root), config.report_prefix, report.started_at)


def _raise_interrupt(signum: int, frame: FrameType | None) -> None:
    raise KeyboardInterrupt


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_outcome(report: RunReport) -> None:
    """Itemized failures followed by recommendations."""
    failed = report.failed_verdicts
    if failed:
        rows = [[v.name, reason] for v in failed for reason in v.reasons]
        console.table(["Benchmark", "Reason"], rows, title="Failures")
        console.kv(
            {str(i): text for i, text in enumerate(recommend(report), start=1)},
            title="Recommendations",
        )
    if report.general_recommendations:
        console.kv(
            {str(i): text for i, text in enumerate(report.general_recommendations, start=1)},
            title="General recommendations",
        )


def _render_report(report: RunReport) -> None:
    summary = report.summary
    console.panel(
        f"Suite {report.suite} -- {report.started_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        title="perfgate report",
        style="green" if summary.ready else "red",
    )
    console.kv(
        {
            "Total": str(summary.total),
            "Passed": str(summary.passed),
            "Failed": str(summary.failed),
            "Success ratio": f"{summary.success_ratio:.0%}",
            "Critical passed": f"{summary.critical_passed}/{summary.critical_total}",
            "Non-critical passed": f"{summary.non_critical_passed}/{summary.non_critical_total}",
            "Readiness": summary.readiness.value,
            "Duration": f"{report.duration:.2f}s",
        },
        title="Summary",
    )
    console.table(
        ["Benchmark", "Result", "Duration", "p95"],
        [
            [
                v.name,
                "PASS" if v.passed else "FAIL",
                f"{v.measurement.duration:.3f}s",
                f"{v.measurement.latency.p95:.3f}s" if v.measurement.latency is not None else "-",
            ]
            for v in report.verdicts
        ],
        title="Results",
    )
    for warning in report.warnings:
        console.warning(warning)
    _render_outcome(report)


# ---------------------------------------------------------------------------
# CLI commands
# ---------------------------------------------------------------------------


def cmd_run(args: argparse.Namespace) -> int:
    """Run a suite, persist its report and return the exit code."""
    project_root = Path.cwd()
    try:
        config = load_config(Path(args.config) if args.config else None, project_root)
    except ConfigurationError as exc:
        console.error(str(exc))
        return EXIT_CONFIG

    configure(backend="plain" if args.plain else config.console)
    _setup_logging(project_root, _log_level(args, config))

    suite = args.suite or config.suite
    timeout = args.timeout if args.timeout is not None else config.run_timeout
    try:
        if timeout is not None and timeout <= 0:
            msg = f"--timeout must be positive, got {timeout}"
            raise ConfigurationError(msg)
        specs = build_specs(suite, _latency(args, config), config.overrides_for(suite))
        harness = Harness(suite)
        harness.register_all(specs)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        console.error(str(exc))
        return EXIT_CONFIG

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        report = harness.run(timeout)
    except KeyboardInterrupt:
        logger.warning("Run of %s interrupted outside a benchmark", suite)
        console.error("Interrupted")
        return EXIT_INTERRUPTED
    finally:
        signal.signal(signal.SIGTERM, previous)

    _render_outcome(report)

    destination = _destination(args, config, project_root, report)
    try:
        path = harness.persist(destination)
    except PersistenceError as exc:
        logger.error("Persistence failed: %s", exc)
        console.error(str(exc))
        return EXIT_PERSISTENCE
    console.success(f"Report written to {path}")

    if harness.interrupted:
        return EXIT_INTERRUPTED
    return EXIT_OK if report.summary.ready else EXIT_FAILED


def cmd_list() -> int:
    """Show every suite and its benchmarks."""
    latency = NullLatency()
    rows: list[list[str]] = []
    for name in sorted(SUITES):
        for spec in build_specs(name, latency):
            mode = spec.mode.value
            if spec.workers > 1 or spec.iterations > 1:
                mode = f"{mode} {spec.workers}x{spec.iterations}"
            rows.append([name, spec.name, mode, "yes" if spec.critical else "no", spec.description])
    console.table(["Suite", "Benchmark", "Mode", "Critical", "Description"], rows, title="Suites")
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    """Render a persisted report."""
    try:
        report = load_report(Path(args.report))
    except PersistenceError as exc:
        console.error(str(exc))
        return EXIT_PERSISTENCE
    _render_report(report)
    return EXIT_OK if report.summary.ready else EXIT_FAILED


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perfgate",
        description="perfgate -- concurrent performance benchmark gate",
    )
    sub = parser.add_subparsers(dest="command")

    # perfgate run
    run_p = sub.add_parser("run", help="Run a benchmark suite")
    run_p.add_argument("suite", nargs="?", default=None, help="Suite name (default: from config)")
    run_p.add_argument("--output", default=None, help="Report file (.json) or directory")
    run_p.add_argument("--config", default=None, help="Config file (default: .perfgate/config.yaml)")
    run_p.add_argument("--timeout", type=float, default=None, help="Run budget in seconds")
    run_p.add_argument("--latency-scale", type=float, default=None, help="Multiply simulated latency")
    run_p.add_argument("--no-latency", action="store_true", help="Skip simulated latency entirely")
    verbosity = run_p.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    run_p.add_argument("--plain", action="store_true", help="Plain-text console output")

    # perfgate list
    sub.add_parser("list", help="List suites and their benchmarks")

    # perfgate show
    show_p = sub.add_parser("show", help="Render a persisted report")
    show_p.add_argument("report", help="Path to a report JSON file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the `perfgate` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        code = cmd_run(args)
    elif args.command == "list":
        configure(backend="auto")
        code = cmd_list()
    elif args.command == "show":
        configure(backend="auto")
        code = cmd_show(args)
    else:
        parser.print_help()
        code = EXIT_CONFIG
    sys.exit(code)


if __name__ == "__main__":
    main()
