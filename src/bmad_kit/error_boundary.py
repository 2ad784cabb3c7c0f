"""Error boundary handling for CLI commands.

This module provides a decorator to catch well-known exceptions at CLI entry
points and display clean error messages without stack traces.
"""

import functools
import os
from collections.abc import Callable
from typing import Any

import click

from bmad_kit.errors import BmadKitError

DEBUG_ENV_VAR = "BMAD_KIT_DEBUG"


def cli_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    Catches:
        - BmadKitError: Definition, overlay and manifest failures
        - FileNotFoundError: Missing files/directories
        - ValueError: Invalid input or configuration
        - OSError: Permission denied and other filesystem errors

    All other exceptions bubble up normally with full stack traces. With
    BMAD_KIT_DEBUG set, caught exceptions bubble up too.

    Example:
        @click.command()
        @cli_error_boundary
        def my_command():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (BmadKitError, FileNotFoundError, ValueError, OSError) as e:
            if os.environ.get(DEBUG_ENV_VAR):
                raise
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
