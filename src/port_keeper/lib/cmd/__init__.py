"""
Command implementations for Port Keeper
"""

# Command implementations
from .keep import run_command, ConsoleListener
from .resolve import resolve_command
from .init import init_command

__all__ = [
    'run_command',
    'ConsoleListener',
    'resolve_command',
    'init_command'
]
