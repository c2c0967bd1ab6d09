"""
Init command implementation for Port Keeper
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import Config
from ..ports.resolver import resolve

console = Console()

def init_command(config_file: Optional[Path] = None):
    """Initialize Port Keeper configuration"""
    try:
        config = Config.initialize_interactive(config_file)
        ports = resolve(config.ports, config.ports_exclude)
        console.print("[bold green]✓ Configuration initialized successfully!")
        console.print(f"\n{len(ports)} ports will be reserved by 'port-keeper run'.")
    except Exception as e:
        console.print(f"Error: {str(e)}", style="bold red", markup=False)
        raise typer.Exit(code=1)
