"""perfgate.console -- terminal output for benchmark runs.

Modules import the ``console`` proxy and write through it::

    from perfgate.console import console

    console.step(2, 9, "dashboard_load")

The CLI picks the backend once at startup with ``configure()``; until then
output is plain text.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from perfgate.console._plain import PlainBackend

if TYPE_CHECKING:
    from perfgate.console._protocol import ConsoleProtocol

BACKENDS: tuple[str, ...] = ("auto", "rich", "plain")

_backend: ConsoleProtocol = PlainBackend()


def _wants_rich(backend: str) -> bool:
    if backend == "auto":
        return sys.stdout.isatty()
    return backend == "rich"


def configure(*, backend: str = "auto") -> None:
    """Select the output backend: ``rich``, ``plain``, or ``auto`` (Rich on a TTY)."""
    global _backend  # noqa: PLW0603

    if backend not in BACKENDS:
        msg = f"Unknown console backend {backend!r}; expected one of {', '.join(BACKENDS)}"
        raise ValueError(msg)

    if _wants_rich(backend):
        from perfgate.console._rich import RichBackend

        _backend = RichBackend()
    else:
        _backend = PlainBackend()


def get_console() -> ConsoleProtocol:
    return _backend


class _ConsoleProxy:
    """Forwards attribute access to whichever backend is current."""

    def __getattr__(self, name: str) -> object:
        return getattr(_backend, name)


console: ConsoleProtocol = _ConsoleProxy()  # type: ignore[assignment]
