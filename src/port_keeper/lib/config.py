"""
Configuration management for Port Keeper
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
import yaml
from rich.prompt import Prompt

from .ports.resolver import resolve

# Load environment variables from .env file
load_dotenv()

CONFIG_DIR = Path("~/.config/port-keeper").expanduser()
CONFIG_FILE = CONFIG_DIR / "config.yaml"

PORTS_KEY = "ports"
EXCLUDE_KEY = "ports.exclude"

ENV_CONFIG = "PORT_KEEPER_CONFIG"
ENV_PORTS = "PORT_KEEPER_PORTS"
ENV_EXCLUDE = "PORT_KEEPER_PORTS_EXCLUDE"


def _as_spec(value) -> Optional[str]:
    """Normalize a YAML value (string, int or list) into a comma-separated spec"""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ",".join(str(item).strip() for item in value)
    return str(value).strip()


@dataclass
class Config:
    """Configuration data"""
    ports: str = ""
    ports_exclude: Optional[str] = None

    @staticmethod
    def default_path() -> Path:
        """Config file location, honouring PORT_KEEPER_CONFIG"""
        env_path = os.getenv(ENV_CONFIG)
        if env_path:
            return Path(env_path).expanduser()
        return CONFIG_FILE

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> 'Config':
        """
        Load configuration from file

        Environment variables take precedence over the config file. When
        PORT_KEEPER_PORTS is set the file is optional.

        Args:
            path: Config file (defaults to default_path())

        Raises:
            ConfigurationUnavailable: If no usable configuration is found
        """
        config_path = Path(path).expanduser() if path else cls.default_path()
        env_ports = os.getenv(ENV_PORTS)
        env_exclude = os.getenv(ENV_EXCLUDE)

        data = {}
        if config_path.exists():
            data = cls._read(config_path)
        elif not env_ports:
            raise ConfigurationUnavailable(
                f"Configuration not found at {config_path}. Please run 'port-keeper init' first."
            )

        config = cls(
            ports=_as_spec(data.get(PORTS_KEY)) or "",
            ports_exclude=_as_spec(data.get(EXCLUDE_KEY))
        )

        if env_ports:
            config.ports = env_ports.strip()
        if env_exclude is not None:
            config.ports_exclude = env_exclude.strip()

        if not config.ports:
            raise ConfigurationUnavailable(f"Required key '{PORTS_KEY}' missing from {config_path}")

        return config

    @classmethod
    def from_options(
        cls,
        path: Optional[Union[str, Path]] = None,
        ports: Optional[str] = None,
        exclude: Optional[str] = None
    ) -> 'Config':
        """
        Build configuration from command-line options

        --ports replaces the config file entirely; --exclude overrides
        whatever exclusions the file or environment define.
        """
        if ports:
            return cls(ports=ports.strip(), ports_exclude=exclude)

        config = cls.load(path)
        if exclude is not None:
            config.ports_exclude = exclude
        return config

    @staticmethod
    def _read(config_path: Path) -> dict:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationUnavailable(f"Cannot read {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationUnavailable(f"Cannot parse {config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationUnavailable(f"Expected a mapping of keys in {config_path}")
        return data

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Save configuration to file"""
        config_path = Path(path).expanduser() if path else self.default_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {PORTS_KEY: self.ports}
        if self.ports_exclude:
            data[EXCLUDE_KEY] = self.ports_exclude

        with open(config_path, 'w') as f:
            yaml.safe_dump(data, f, default_flow_style=False)

        return config_path

    @classmethod
    def initialize_interactive(cls, path: Optional[Union[str, Path]] = None) -> 'Config':
        """Initialize configuration interactively"""
        print("Welcome to Port Keeper setup!")
        print("\nPorts can be single values or ranges, separated by commas (e.g. 5000-5010,6000).")

        ports = Prompt.ask("Ports to reserve", default=os.getenv(ENV_PORTS, ""))
        exclude = Prompt.ask("Ports to leave out (leave empty for none)", default=os.getenv(ENV_EXCLUDE, ""))

        config = cls(ports=ports.strip(), ports_exclude=exclude.strip() or None)
        if not config.ports:
            raise ConfigurationUnavailable("At least one port or range is required")

        # Refuse to save a specification that run would reject
        resolve(config.ports, config.ports_exclude)

        config.save(path)
        return config


class ConfigurationUnavailable(Exception):
    """Configuration cannot be read"""
    pass
