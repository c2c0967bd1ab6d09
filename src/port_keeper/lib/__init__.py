"""
Core library for Port Keeper
"""

from .config import Config, ConfigurationUnavailable
from .keeper import PortKeeper, KeeperState

# Import utils module, not individual functions
import port_keeper.lib.utils as utils

__all__ = [
    "Config",
    "ConfigurationUnavailable",
    "PortKeeper",
    "KeeperState",
    "utils"
]
