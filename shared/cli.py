"""Console output helpers shared by the click commands."""

import functools
import sys
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def info(message: str) -> None:
    """Print an informational message."""
    err_console.print(f"[cyan]ℹ[/cyan] {message}")


def success(message: str) -> None:
    """Print a success message."""
    err_console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[bold red]✗[/bold red] {message}")


def create_table(title: Optional[str] = None, **kwargs: Any) -> Table:
    """Create a rich table with the house style."""
    return Table(title=title, show_header=True, header_style="bold magenta", **kwargs)


def print_table(table: Table, to_stderr: bool = False) -> None:
    """Render a table to the console."""
    (err_console if to_stderr else console).print(table)


def handle_errors(func: Callable) -> Callable:
    """
    Turn uncaught exceptions into an error line and exit code 1.

    ``SystemExit`` and click's own exceptions pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (SystemExit, click.exceptions.ClickException, click.exceptions.Abort, click.exceptions.Exit):
            raise
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            error(f"Unexpected error: {e}")
            sys.exit(1)

    return wrapper
