"""Application settings loader from YAML configuration."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import yaml

from cetieflow.utils.exceptions import ConfigError


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str
    app_version: str

    # Logging
    log_level: str
    log_max_file_size_mb: int
    log_backup_count: int

    # Graph API
    graph_base_url: str
    graph_timeout_seconds: int
    site_path: str
    search_path: str
    templates_path: str
    archive_path: str

    # Authentication
    authority_host: str
    scopes: List[str]

    # Affaire folder conventions
    photos_folder: str
    pv_folder: str
    validation_file: str
    reminder_file: str
    photo_extensions: List[str]
    web_edit_extensions: List[str]
    template_extensions: List[str]
    client_fallback: str

    # Paths (relative to the application data directory)
    scratch_dir: str
    config_file: str
    token_cache_file: str

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML file."""
        if config_path is None:
            override = os.getenv("CETIEFLOW_SETTINGS")
            config_path = Path(override) if override else Path(__file__).parent / "config.yaml"

        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        try:
            return cls(
                app_name=config["app"]["name"],
                app_version=str(config["app"]["version"]),
                log_level=config["logging"]["level"],
                log_max_file_size_mb=config["logging"]["max_file_size_mb"],
                log_backup_count=config["logging"]["backup_count"],
                graph_base_url=config["graph"]["base_url"].rstrip("/"),
                graph_timeout_seconds=config["graph"]["timeout_seconds"],
                site_path=config["graph"]["site_path"],
                search_path=config["graph"]["search_path"].strip("/"),
                templates_path=config["graph"]["templates_path"].strip("/"),
                archive_path=config["graph"]["archive_path"],
                authority_host=config["auth"]["authority_host"].rstrip("/"),
                scopes=list(config["auth"]["scopes"]),
                photos_folder=config["affaire"]["photos_folder"],
                pv_folder=config["affaire"]["pv_folder"],
                validation_file=config["affaire"]["validation_file"],
                reminder_file=config["affaire"]["reminder_file"],
                photo_extensions=[ext.lower() for ext in config["affaire"]["photo_extensions"]],
                web_edit_extensions=[ext.lower() for ext in config["affaire"]["web_edit_extensions"]],
                template_extensions=[ext.lower() for ext in config["affaire"]["template_extensions"]],
                client_fallback=config["affaire"]["client_fallback"],
                scratch_dir=config["paths"]["scratch_dir"],
                config_file=config["paths"]["config_file"],
                token_cache_file=config["paths"]["token_cache_file"],
            )
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Invalid settings file {config_path}: missing {e}")

    def authority_for(self, tenant_id: str) -> str:
        return f"{self.authority_host}/{tenant_id}"


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings
