"""perfgate.console._protocol -- the interface every output backend provides."""

from __future__ import annotations

from typing import Protocol


class ConsoleProtocol(Protocol):
    """Terminal output used by the harness and the CLI.

    A run prints ``run_header``, then one ``step`` (and optional
    ``step_detail``) plus one ``verdict_line`` per benchmark, then a closing
    ``run_result``. Reports are rendered with ``panel``, ``table`` and ``kv``.
    """

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None:
        """Write *message* to the error stream."""
        ...

    def panel(self, content: str, *, title: str = "", style: str = "") -> None: ...

    def table(self, headers: list[str], rows: list[list[str]], *, title: str = "") -> None:
        """Render *rows* under *headers*; short rows are padded with blanks."""
        ...

    def kv(self, data: dict[str, str], *, title: str = "") -> None: ...

    def run_header(self, suite: str, timestamp: str) -> None: ...

    def step(self, current: int, total: int, description: str) -> None:
        """Announce benchmark *current* of *total*."""
        ...

    def step_detail(self, message: str) -> None: ...

    def verdict_line(self, name: str, passed: bool, duration: float, reasons: list[str]) -> None:
        """Report one benchmark's outcome with every violated bound in *reasons*."""
        ...

    def run_result(
        self,
        total: int,
        passed: int,
        success_ratio: float,
        elapsed: float,
        readiness: str,
    ) -> None: ...
