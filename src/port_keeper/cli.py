"""
Command-line interface for Port Keeper
"""
from typing import Optional
from pathlib import Path

import typer

from .lib.keeper import RETRY_INTERVAL
from .lib.utils import configure_logging
from .lib.cmd import (
    # Command implementations
    run_command,
    resolve_command,
    init_command
)

app = typer.Typer(help="Port Keeper - hold TCP ports open until they are needed")

@app.callback()
def callback(
    debug: bool = typer.Option(False, '--debug', '-d', help='Enable debug logging')
):
    """Reserve TCP ports by binding and holding listening sockets"""
    configure_logging(debug=debug)

@app.command()
def run(
    config: Optional[Path] = typer.Option(None, '--config', '-c', help='Path to config file'),
    ports: Optional[str] = typer.Option(None, '--ports', '-p', help='Ports to reserve, e.g. "5000-5010,6000" (overrides config)'),
    exclude: Optional[str] = typer.Option(None, '--exclude', '-x', help='Ports to leave out, e.g. "5005"'),
    interval: float = typer.Option(RETRY_INTERVAL, '--interval', '-i', min=0.1, help='Seconds between retries of unavailable ports')
):
    """
    Reserve ports until interrupted

    Ports that are busy at startup are retried until they become free.
    Every held port is released on SIGINT or SIGTERM.
    """
    return run_command(config_file=config, ports=ports, exclude=exclude, interval=interval)

@app.command()
def resolve(
    config: Optional[Path] = typer.Option(None, '--config', '-c', help='Path to config file'),
    ports: Optional[str] = typer.Option(None, '--ports', '-p', help='Ports to reserve (overrides config)'),
    exclude: Optional[str] = typer.Option(None, '--exclude', '-x', help='Ports to leave out'),
    check: bool = typer.Option(False, '--check', help='Also show whether each port is currently free')
):
    """Show the ports that would be reserved"""
    return resolve_command(config_file=config, ports=ports, exclude=exclude, check=check)

@app.command()
def init(
    config: Optional[Path] = typer.Option(None, '--config', '-c', help='Where to write the config file')
):
    """Initialize Port Keeper configuration"""
    return init_command(config_file=config)

def main():
    """Main entry point"""
    app()

if __name__ == "__main__":
    main()
