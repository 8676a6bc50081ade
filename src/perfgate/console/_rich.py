"""perfgate.console._rich -- Rich backend for interactive terminals."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "blue",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "pass": "green",
        "fail": "red",
        "counter": "bold cyan",
    }
)

_GLYPH = {"info": "", "success": "✓ ", "warning": "⚠ ", "error": "✗ "}


def _grid(title: str, *, show_header: bool = True) -> Table:
    return Table(title=title or None, box=box.SIMPLE, show_header=show_header, show_edge=False)


class RichBackend:
    """ConsoleProtocol implementation backed by Rich."""

    def __init__(self, console: Console | None = None) -> None:
        if console is None:
            console = Console(highlight=False)
        console.push_theme(_THEME)
        self._out = console

    def _say(self, kind: str, message: str) -> None:
        self._out.print(f"  {_GLYPH[kind]}{escape(message)}", style=kind)

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
        self._out.print(Panel(escape(content), title=title or None, border_style=style or "dim"))

    def table(self, headers: list[str], rows: list[list[str]], *, title: str = "") -> None:
        grid = _grid(title)
        for header in headers:
            grid.add_column(header)
        for row in rows:
            grid.add_row(*(escape(str(cell)) for cell in row))
        self._out.print(grid)

    def kv(self, data: dict[str, str], *, title: str = "") -> None:
        grid = _grid(title, show_header=False)
        grid.add_column(justify="right", style="bold")
        grid.add_column()
        for key, value in data.items():
            grid.add_row(escape(key), escape(value))
        self._out.print(grid)

    # -- Benchmark run ------------------------------------------------------

    def run_header(self, suite: str, timestamp: str) -> None:
        self._out.print()
        self._out.print(Rule(f" perfgate {escape(suite)} ", style="bold", align="left"))
        self._out.print(f"  [dim]{timestamp} UTC[/]")

    def step(self, current: int, total: int, description: str) -> None:
        self._out.print(f"\n  [counter]\\[{current}/{total}][/] {escape(description)}")

    def step_detail(self, message: str) -> None:
        self._out.print(f"    [dim]{escape(message)}[/]")

    def verdict_line(self, name: str, passed: bool, duration: float, reasons: list[str]) -> None:
        mark = "[pass]PASS[/]" if passed else "[fail]FAIL[/]"
        self._out.print(f"  {mark} {escape(name)} [dim]{duration:.3f}s[/]")
        for reason in reasons:
            self._out.print(f"      [fail]-[/] {escape(reason[:120])}")

    def run_result(
        self,
        total: int,
        passed: int,
        success_ratio: float,
        elapsed: float,
        readiness: str,
    ) -> None:
        self._out.print()
        self._out.print(
            Rule(
                f" {passed}/{total} passed | {success_ratio:.0%} | {elapsed:.1f}s | {readiness} ",
                style="pass" if passed == total else "fail",
            )
        )
