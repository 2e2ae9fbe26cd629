"""Configuration file loading.

Non-secret defaults for a deployment can live in a TOML file
(~/.azdsc/config.toml, or the path given with --config). Command line
options and environment variables always take precedence.

Security:
- The client secret is never read from the config file
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import tomli

from azdsc.exceptions import ConfigError

logger = logging.getLogger(__name__)

FORBIDDEN_KEYS = {"client_secret", "secret", "password"}


@dataclass
class DeploymentConfig:
    """Defaults loaded from the config file. Every field is optional."""

    tenant_id: str | None = None
    subscription_id: str | None = None
    client_id: str | None = None
    resource_group: str | None = None
    account_name: str | None = None
    vm_base_name: str | None = None
    vm_count: int | None = None
    configuration_path: str | None = None
    configuration_name: str | None = None
    module_name: str | None = None
    module_uri: str | None = None
    poll_interval: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentConfig":
        """Create from dictionary.

        Raises:
            ConfigError: If a secret or unknown key is present, or a value
                has the wrong type
        """
        forbidden = FORBIDDEN_KEYS & set(data)
        if forbidden:
            raise ConfigError(
                f"Secrets must not be stored in config files (found: {', '.join(sorted(forbidden))}). "
                "Use --client-secret or AZURE_CLIENT_SECRET."
            )

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        vm_count = data.get("vm_count")
        if vm_count is not None and (isinstance(vm_count, bool) or not isinstance(vm_count, int)):
            raise ConfigError(f"vm_count must be an integer, got: {vm_count!r}")

        poll_interval = data.get("poll_interval")
        if poll_interval is not None:
            if isinstance(poll_interval, bool) or not isinstance(poll_interval, (int, float)):
                raise ConfigError(f"poll_interval must be a number, got: {poll_interval!r}")
            poll_interval = float(poll_interval)

        values = {k: v for k, v in data.items() if k not in ("vm_count", "poll_interval")}
        for key, value in values.items():
            if not isinstance(value, str):
                raise ConfigError(f"{key} must be a string, got: {value!r}")

        return cls(**values, vm_count=vm_count, poll_interval=poll_interval)


class ConfigManager:
    """Locate and load the azdsc config file."""

    DEFAULT_CONFIG_DIR = Path.home() / ".azdsc"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> DeploymentConfig:
        """Load configuration.

        Args:
            custom_path: Explicit config file path. A missing explicit file
                is an error; a missing default file yields empty defaults.

        Returns:
            DeploymentConfig

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        if custom_path:
            path = Path(custom_path).expanduser()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
        else:
            path = cls.DEFAULT_CONFIG_FILE
            if not path.exists():
                logger.debug(f"No config file at {path}, using defaults")
                return DeploymentConfig()

        try:
            with path.open("rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        logger.debug(f"Loaded config from {path}")
        return DeploymentConfig.from_dict(data)
