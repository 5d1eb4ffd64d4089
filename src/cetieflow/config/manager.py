"""Per-user configuration stored in the application data directory."""
import json
import re
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from cetieflow.utils.exceptions import ConfigError
from cetieflow.utils.paths import get_app_dir

_GUID = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


@dataclass
class Config:
    """User configuration."""
    client_id: str
    tenant_id: str
    log_level: str = "INFO"
    # Both default to files under the application data directory
    token_cache_path: Optional[str] = None
    scratch_dir: Optional[str] = None


class ConfigManager:
    """Loads, saves and validates the user configuration."""

    def __init__(self, config_dir: Optional[Path] = None, file_name: str = "config.json"):
        self.config_dir = config_dir or get_app_dir()
        self.config_file = self.config_dir / file_name
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load_config(self) -> Optional[Config]:
        """Load configuration from file, None when it was never saved."""
        if not self.config_file.exists():
            return None

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        known = {f.name for f in fields(Config)}
        try:
            return Config(**{k: v for k, v in config_dict.items() if k in known})
        except TypeError as e:
            raise ConfigError(f"Failed to load configuration: {e}")

    def save_config(self, config: Config) -> None:
        """Save configuration as JSON."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(asdict(config), f, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def validate_config(self, config: Config) -> tuple[bool, str]:
        """Validate configuration values."""
        if not config.client_id:
            return False, "Application (client) ID is required"

        if not _GUID.match(config.client_id):
            return False, "Application (client) ID must be a GUID"

        if not config.tenant_id:
            return False, "Tenant ID is required"

        if config.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return False, f"Unknown log level: {config.log_level}"

        return True, "Configuration is valid"
