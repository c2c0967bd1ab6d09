"""
Resolve command implementation for Port Keeper
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import Config, ConfigurationUnavailable
from ..ports.resolver import resolve, InvalidSpecification
from ..utils import get_port_status

console = Console()

def resolve_command(
    config_file: Optional[Path] = None,
    ports: Optional[str] = None,
    exclude: Optional[str] = None,
    check: bool = False
):
    """Show which ports would be reserved, without holding any of them"""
    try:
        config = Config.from_options(config_file, ports=ports, exclude=exclude)
        resolved = resolve(config.ports, config.ports_exclude)
    except ConfigurationUnavailable as e:
        console.print(f"Configuration error: {e}", style="bold red", markup=False)
        raise typer.Exit(code=1)
    except InvalidSpecification as e:
        console.print(f"Invalid port specification: {e}", style="bold red", markup=False)
        raise typer.Exit(code=1)

    if not resolved:
        console.print("[bold yellow]! No ports left to reserve after exclusions")
        return

    console.print(f"{len(resolved)} ports would be reserved:")
    if not check:
        console.print(", ".join(str(port) for port in resolved), highlight=False)
        return

    for port, status in get_port_status(resolved).items():
        color = "green" if status == "available" else "yellow"
        console.print(f"  {port} [{color}]{status}")
