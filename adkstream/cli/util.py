"""
Utility functions for the CLI.

Interrupt handling, logging setup and cancellable requests.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
import contextlib
import logging
import signal
import sys
import threading
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler

from .._exceptions import RequestCancelled

if TYPE_CHECKING:
    from .._types import AggregatedResult
    from ..client import CoordinatorClient

CANCELLED_EXIT = 130  # POSIX: 128 + SIGINT (2)
_POLL_INTERVAL = 0.1  # seconds


def _print_cancelled(msg: str = "✖ Cancelled by user") -> None:
    """Print cancellation message to stderr."""
    sys.stderr.write("\n" + msg + "\n")
    sys.stderr.flush()


@contextlib.contextmanager
def _suppress_tracebacks() -> Generator[None, None, None]:
    """Context manager that suppresses KeyboardInterrupt tracebacks."""
    old_hook = sys.excepthook

    def _quiet_excepthook(exc_type: type, exc: BaseException, tb: Any) -> Any:
        if exc_type is KeyboardInterrupt:
            _print_cancelled()
            sys.exit(CANCELLED_EXIT)
        return old_hook(exc_type, exc, tb)

    sys.excepthook = _quiet_excepthook
    try:
        yield
    finally:
        sys.excepthook = old_hook


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route library logs through rich. Warnings only unless verbose."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    root = logging.getLogger("adkstream")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def send_cancellable(client: CoordinatorClient, message: str) -> AggregatedResult | None:
    """
    Send ``message`` on a worker thread so Ctrl-C cancels just this request.

    Returns:
        The result, or None when the user cancelled.

    Raises:
        Whatever the worker raised other than RequestCancelled.
    """
    cancel = threading.Event()
    outcome: dict[str, Any] = {}

    def _worker() -> None:
        try:
            outcome["result"] = client.send_message(message, cancel=cancel)
        except RequestCancelled:
            pass
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=_worker, name="adkstream-send", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(_POLL_INTERVAL)
    except KeyboardInterrupt:
        cancel.set()
        _print_cancelled("✖ Request cancelled")
        return None
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("result")


def graceful_main(fn: Callable[[list[str]], int], argv: list[str]) -> int:
    """
    Run fn(argv) and handle Ctrl-C/SIGTERM nicely.

    Returns:
        Exit code (130 for cancelled, or fn's return value)
    """

    # Handle SIGTERM like Ctrl-C
    def _term(_signum: int, _frame: Any) -> None:
        raise KeyboardInterrupt()

    old_term = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGTERM, _term)

    try:
        with _suppress_tracebacks():
            return int(fn(argv) or 0)
    except KeyboardInterrupt:
        _print_cancelled()
        return CANCELLED_EXIT
    finally:
        signal.signal(signal.SIGTERM, old_term)
