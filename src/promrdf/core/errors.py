"""
Errors and exit codes for promrdf commands.

Only failures that make a whole command pointless are raised as
``PromRdfError``; a single unreachable target or malformed exposition line
is reported inside the scan instead.

Exit codes:

==== ==========================================================
0    success, including scans where some targets failed
10   configuration error (bad setting, unreadable inventory)
11   provider error (cluster unreachable or listing not allowed)
13   store error (graph store unreadable, corrupt or unwritable)
127  unexpected internal error
130  interrupted
==== ==========================================================
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    STORE_ERROR = 13
    UNKNOWN_ERROR = 127
    INTERRUPTED = 130


class PromRdfError(Exception):
    """
    A fatal command error.

    Args:
        message: Human-readable summary
        details: Context rendered as ``key=value`` after the message
    """

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PromRdfError):
    exit_code = ExitCode.CONFIG_ERROR


class DiscoveryError(PromRdfError):
    """The cluster could not be listed; nothing was scraped."""

    exit_code = ExitCode.PROVIDER_ERROR


class StoreError(PromRdfError):
    exit_code = ExitCode.STORE_ERROR


F = TypeVar("F", bound=Callable[..., int])


def format_error_message(error: PromRdfError) -> str:
    """``message (key=value, ...)``"""
    if not error.details:
        return error.message
    context = ", ".join(f"{key}={value}" for key, value in error.details.items())
    return f"{error.message} ({context})"


def main_with_error_handling(*, show_traceback: bool = False) -> Callable[[F], F]:
    """
    Turn exceptions escaping a command function into exit codes.

    ``PromRdfError`` maps to its own ``exit_code`` and is printed to stderr,
    ``KeyboardInterrupt`` maps to 130 and anything else to 127. Every
    failure is also logged, so ``--log-format json`` captures it.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except PromRdfError as e:
                logger.error(
                    "command_failed",
                    command=func.__name__,
                    error_type=type(e).__name__,
                    exit_code=int(e.exit_code),
                    **e.details,
                )
                _print_error(format_error_message(e))
                return e.exit_code
            except KeyboardInterrupt:
                logger.info("command_interrupted", command=func.__name__)
                return ExitCode.INTERRUPTED
            except Exception as e:
                logger.error(
                    "command_crashed",
                    command=func.__name__,
                    error_type=type(e).__name__,
                    message=str(e),
                )
                _print_error(f"Unexpected error: {e}")
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def _print_error(message: str) -> None:
    from promrdf.cli.ux import error

    error(message)
