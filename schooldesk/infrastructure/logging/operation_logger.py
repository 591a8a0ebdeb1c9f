"""ANSI-colored console logging for record store operations.

Each store operation has its own color and icon so mutations, resyncs and
exports can be told apart at a glance in the terminal: green for create,
yellow for update, magenta for delete, blue for resync, cyan for export.
Failures are always red.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Operation Definitions ────────────────────────────────────────────

class StoreOperation:
    """Predefined store operations with colors and icons."""

    CREATE = ("CREATE", _Colors.GREEN, "➕")
    UPDATE = ("UPDATE", _Colors.YELLOW, "✏️")
    DELETE = ("DELETE", _Colors.MAGENTA, "🗑️")
    RESYNC = ("RESYNC", _Colors.BLUE, "🔄")
    EXPORT = ("EXPORT", _Colors.CYAN, "📤")


def _format_details(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())


# ── OperationLogger ──────────────────────────────────────────────────

class OperationLogger:
    """Color-coded logger for record store operations.

    Usage:
        log = OperationLogger("RecordStore")
        with log.timed_step(StoreOperation.CREATE, "Creating grade", author="Ms. A"):
            result = await backend.create(record)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, operation: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = operation
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_complete(self, operation: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = operation
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_error(self, operation: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a failed operation in red."""
        label, _, icon = operation
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.debug(formatted)

    @contextmanager
    def timed_step(self, operation: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(StoreOperation.RESYNC, "Replacing collection"):
                ...
        """
        self.step_start(operation, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(operation, f"{message} — failed after {elapsed:.3f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(operation, f"{message} — {elapsed:.3f}s", **kwargs)
