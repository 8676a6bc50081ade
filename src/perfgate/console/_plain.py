"""perfgate.console._plain -- print()-based backend.

Used for CI logs, redirected output and ``--plain``. Errors go to stderr so a
failing run still leaves a readable report on stdout.
"""

from __future__ import annotations

import sys

_WIDTH = 60
_PREFIX = {"info": "", "success": "[ok] ", "warning": "[warn] ", "error": "[error] "}


def _columns(headers: list[str], rows: list[list[str]]) -> list[int]:
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(str(cell)))
    return widths


def _line(cells: list[str], widths: list[int]) -> str:
    padded = [str(cells[i]) if i < len(cells) else "" for i in range(len(widths))]
    return "  " + "  ".join(c.ljust(w) for c, w in zip(padded, widths, strict=True))


class PlainBackend:
    """ConsoleProtocol implementation with no third-party dependencies."""

    def _say(self, kind: str, message: str) -> None:
        stream = sys.stderr if kind == "error" else sys.stdout
        print(f"  {_PREFIX[kind]}{message}", file=stream)

    def info(self, message: str) -> None:
        self._say("info", message)

    def success(self, message: str) -> None:
        self._say("success", message)

    def warning(self, message: str) -> None:
        self._say("warning", message)

    def error(self, message: str) -> None:
        self._say("error", message)

    # -- Blocks -------------------------------------------------------------

    def panel(self, content: str, *, title: str = "", style: str = "") -> None:
        print()
        print(f" {title} ".center(_WIDTH, "=") if title else "=" * _WIDTH)
        for line in content.splitlines():
            print(f"  {line}")
        print("=" * _WIDTH)

    def table(self, headers: list[str], rows: list[list[str]], *, title: str = "") -> None:
        if title:
            print(f"\n  {title}:")
        if not headers:
            return
        widths = _columns(headers, rows)
        print(_line(headers, widths))
        print(_line(["-" * w for w in widths], widths))
        for row in rows:
            print(_line(row, widths))

    def kv(self, data: dict[str, str], *, title: str = "") -> None:
        if title:
            print(f"\n  {title}:")
        pad = max((len(k) for k in data), default=0)
        for key, value in data.items():
            print(f"  {key:>{pad}}: {value}")

    # -- Benchmark run ------------------------------------------------------

    def run_header(self, suite: str, timestamp: str) -> None:
        print()
        print("#" * _WIDTH)
        print(f"  perfgate {suite} @ {timestamp} UTC")
        print("#" * _WIDTH)

    def step(self, current: int, total: int, description: str) -> None:
        print(f"\n  [{current}/{total}] {description}")

    def step_detail(self, message: str) -> None:
        print(f"    {message}")

    def verdict_line(self, name: str, passed: bool, duration: float, reasons: list[str]) -> None:
        print(f"  {name}: {'PASS' if passed else 'FAIL'} ({duration:.3f}s)")
        for reason in reasons:
            print(f"      - {reason[:120]}")

    def run_result(
        self,
        total: int,
        passed: int,
        success_ratio: float,
        elapsed: float,
        readiness: str,
    ) -> None:
        print()
        print(f"== {passed}/{total} passed | {success_ratio:.0%} | {elapsed:.1f}s | {readiness} ==")
