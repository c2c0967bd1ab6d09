"""
Run command implementation for Port Keeper
"""
import logging
import signal
import threading
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import Config, ConfigurationUnavailable
from ..keeper import PortKeeper, RETRY_INTERVAL
from ..ports.base import EventType, ReservationEvent, ReservationListener
from ..ports.resolver import InvalidSpecification

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

# How often the foreground thread checks that the keeper thread is alive
SHUTDOWN_POLL = 0.5

SHUTDOWN_SIGNALS = [signal.SIGINT, signal.SIGTERM]
if hasattr(signal, "SIGHUP"):
    SHUTDOWN_SIGNALS.append(signal.SIGHUP)


class ConsoleListener(ReservationListener):
    """Prints '+', '-' and 'E' lines for reservation events"""

    def __init__(self, out: Console = console, err: Console = err_console):
        self.out = out
        self.err = err

    def notify(self, event: ReservationEvent) -> None:
        line = event.render()
        if event.is_error:
            self.err.print(line, style="bold red", markup=False, highlight=False)
        else:
            style = "green" if event.type is EventType.BOUND else None
            self.out.print(line, style=style, markup=False, highlight=False)


def _install_signal_handlers(shutdown: threading.Event) -> dict:
    """Route shutdown signals to the event; returns the previous handlers"""
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on the main thread, signal handlers not installed")
        return {}

    def handler(signum, frame):
        logger.debug(f"Received signal {signum}, shutting down")
        shutdown.set()

    previous = {}
    for signum in SHUTDOWN_SIGNALS:
        previous[signum] = signal.signal(signum, handler)
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _wait_for_shutdown(keeper: PortKeeper, shutdown: threading.Event) -> None:
    """Block until a shutdown signal arrives or the keeper thread ends"""
    while not shutdown.is_set():
        if keeper.wait(SHUTDOWN_POLL):
            break


def run_command(
    config_file: Optional[Path] = None,
    ports: Optional[str] = None,
    exclude: Optional[str] = None,
    interval: float = RETRY_INTERVAL
):
    """Reserve the configured ports until a shutdown signal arrives"""
    try:
        config = Config.from_options(config_file, ports=ports, exclude=exclude)
    except ConfigurationUnavailable as e:
        err_console.print(f"Configuration error: {str(e)}", style="bold red", markup=False)
        raise typer.Exit(code=1)

    keeper = PortKeeper(listener=ConsoleListener(), interval=interval)
    shutdown = threading.Event()
    previous_handlers = _install_signal_handlers(shutdown)

    try:
        try:
            resolved = keeper.start(config.ports, config.ports_exclude)
        except InvalidSpecification as e:
            err_console.print(f"Invalid port specification: {str(e)}", style="bold red", markup=False)
            raise typer.Exit(code=1)

        if not resolved:
            err_console.print("[bold yellow]! No ports left to reserve after exclusions")
            return

        logger.debug(f"Keeping {len(resolved)} ports")
        _wait_for_shutdown(keeper, shutdown)

        if keeper.failed:
            err_console.print(f"Port keeper stopped unexpectedly: {keeper.error}", style="bold red", markup=False)
            raise typer.Exit(code=1)
    finally:
        keeper.stop()
        _restore_signal_handlers(previous_handlers)
