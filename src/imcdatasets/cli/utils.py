"""Console, logging setup and error handling shared by CLI commands."""

from __future__ import annotations

import functools
import logging
import traceback
from typing import Any, Callable

from rich.console import Console
from rich.logging import RichHandler

console = Console()

# Set by the --verbose flag on the top-level CLI group.
verbose: bool = False


def configure_logging(debug: bool = False) -> None:
    """Route package logging through a Rich handler on the shared console."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=debug)
    logger = logging.getLogger("imcdatasets")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator wrapping CLI commands with standard error handling.

    Catches DatasetError (exit 1) and unexpected exceptions (exit 2).
    With --verbose, unexpected errors include the full traceback.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        from imcdatasets.core.exceptions import DatasetError

        try:
            return func(*args, **kwargs)
        except SystemExit:
            raise
        except DatasetError as e:
            console.print(f"[red]Error:[/red] {e}")
            if verbose:
                console.print(traceback.format_exc())
            raise SystemExit(1)
        except Exception as e:
            if verbose:
                console.print(f"[red]Internal error:[/red] {e}")
                console.print(traceback.format_exc())
            else:
                console.print(
                    f"[red]Internal error:[/red] {type(e).__name__}: {e}\n"
                    "[dim]Use --verbose for the full traceback.[/dim]"
                )
            raise SystemExit(2)

    return wrapper
