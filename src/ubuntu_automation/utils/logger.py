"""
Logging utilities for the CLI
Rich console handler plus a persistent log file
"""

import logging
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.errors import CommandError, InterruptedOperation, ProvisionError

console = Console(stderr=True)

# Global debug flag
_DEBUG_MODE = False

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def set_debug_mode(debug: bool):
    """Enable or disable debug mode globally"""
    global _DEBUG_MODE
    _DEBUG_MODE = debug

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)


def is_debug_mode() -> bool:
    """Check if debug mode is enabled"""
    return _DEBUG_MODE


def _file_handler(log_file: Optional[Path]) -> Optional[logging.Handler]:
    """File handler for log_file, None if the file cannot be opened"""
    if log_file is None:
        return None
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(debug: bool = False, log_file: Optional[Path] = None):
    """Setup logging configuration"""
    handlers = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=debug,
            show_time=debug,
            show_path=debug
        )
    ]

    file_handler = _file_handler(log_file)
    if file_handler is not None:
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    set_debug_mode(debug)

    # Chatty third-party loggers
    for name in ("httpx", "httpcore", "urllib3", "docker"):
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_file is not None and file_handler is None:
        logging.getLogger(__name__).debug("Log file %s not writable, console only", log_file)


def log_exception(e: Exception, context: str = ""):
    """Log an exception with context and stack trace in debug mode"""
    error_msg = str(e)
    error_type = type(e).__name__

    if context:
        console.print(f"[red]❌ {context}[/red]")

    console.print(f"[red]Error: {error_type}: {error_msg}[/red]")
    logging.getLogger("ubuntu_automation").debug("%s: %s: %s", context, error_type, error_msg)

    tip = getattr(e, "tip", None)
    if tip:
        console.print(f"[yellow]💡 {tip}[/yellow]")

    if is_debug_mode():
        console.print("[dim]Stack trace:[/dim]")
        console.print("[dim]" + "".join(traceback.format_tb(e.__traceback__)) + "[/dim]")

        if isinstance(e, CommandError):
            console.print(f"[dim]Command: {' '.join(e.argv)} (exit {e.returncode})[/dim]")
    elif not tip:
        console.print("[yellow]💡 Tip: Run with --debug flag for detailed stack trace[/yellow]")


def debug_print(message: str):
    """Print debug message only in debug mode"""
    if is_debug_mode():
        console.print(f"[dim cyan]DEBUG: {message}[/dim cyan]")


@contextmanager
def handle_errors(context: str):
    """Turn provisioning failures into exit code 1"""
    try:
        yield
    except InterruptedOperation as e:
        console.print(f"\n[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(1)
    except ProvisionError as e:
        log_exception(e, context)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Interrupted by user[/yellow]")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        log_exception(e, context)
        raise typer.Exit(1)
