"""
Configuration management for SoulLink Sync

Handles configuration loading with sensible defaults and environment overrides
for the replication client and the reference document server.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Optional


@dataclass
class DatabaseConfig:
    """Database configuration for the reference document server."""

    url: str = "sqlite:///soullink_sync.db"
    echo: bool = False


@dataclass
class ServerConfig:
    """Reference document server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    max_document_bytes: int = 1024 * 1024  # Reject larger PUT bodies


@dataclass
class SyncConfig:
    """Replication client configuration."""

    remote_url: str = "http://127.0.0.1:8000"
    state_path_template: str = "trackers/{tracker_id}/state"
    http_timeout_secs: float = 10.0

    # Write retry policy (exponential backoff with jitter)
    write_max_attempts: int = 4
    write_backoff_base_secs: float = 0.5
    write_backoff_max_secs: float = 30.0
    write_backoff_jitter_ratio: float = 0.2


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "SoulLink Sync"
    version: str = "1.0.0"
    description: str = "Shared tracker documents for cooperative SoulLink runs"

    default_game_version: str = "gen5_sw"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"

    is_development: bool = False


@dataclass
class SoulLinkSyncConfig:
    """Complete configuration for SoulLink Sync."""

    app: AppConfig
    sync: SyncConfig
    server: ServerConfig
    database: DatabaseConfig

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "sync": asdict(self.sync),
            "server": asdict(self.server),
            "database": asdict(self.database),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SoulLinkSyncConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            sync=SyncConfig(**data.get("sync", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
        )


class ConfigManager:
    """Manages configuration loading, saving, and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[SoulLinkSyncConfig] = None

    def detect_environment(self) -> Dict[str, Any]:
        """Read the SOULLINK_* environment variables that override config values."""
        env_info: Dict[str, Any] = {}

        env_info["debug"] = os.getenv("SOULLINK_DEBUG", "0") == "1"
        env_info["log_dir"] = os.getenv("SOULLINK_LOG_DIR")
        env_info["log_to_file"] = os.getenv("SOULLINK_LOG_TO_FILE")
        env_info["remote_url"] = os.getenv("SOULLINK_REMOTE_URL")
        env_info["database_url"] = os.getenv("SOULLINK_DATABASE_URL")
        env_info["write_retries"] = os.getenv("SOULLINK_WRITE_RETRIES")
        env_info["default_game_version"] = os.getenv("SOULLINK_DEFAULT_GAME_VERSION")

        return env_info

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path for the config file, if one is configured."""
        config_file = os.getenv("SOULLINK_CONFIG_FILE")
        return Path(config_file) if config_file else None

    def apply_environment(self, config: SoulLinkSyncConfig) -> SoulLinkSyncConfig:
        """Apply environment overrides on top of a loaded configuration."""
        env_info = self.detect_environment()

        if env_info["debug"]:
            config.app.log_level = "DEBUG"
            config.server.debug = True
        if env_info["log_dir"]:
            config.app.log_dir = env_info["log_dir"]
        if env_info["log_to_file"] is not None:
            config.app.log_to_file = env_info["log_to_file"].lower() in ("1", "true")
        if env_info["remote_url"]:
            config.sync.remote_url = env_info["remote_url"]
        if env_info["database_url"]:
            config.database.url = env_info["database_url"]
        if env_info["default_game_version"]:
            config.app.default_game_version = env_info["default_game_version"]
        if env_info["write_retries"]:
            try:
                config.sync.write_max_attempts = max(1, int(env_info["write_retries"]))
            except ValueError:
                logging.warning(
                    f"Ignoring invalid SOULLINK_WRITE_RETRIES value: {env_info['write_retries']!r}"
                )

        return config

    def create_default_config(self) -> SoulLinkSyncConfig:
        """Create default configuration."""
        return SoulLinkSyncConfig(
            app=AppConfig(),
            sync=SyncConfig(),
            server=ServerConfig(),
            database=DatabaseConfig(),
        )

    def load_config(self) -> SoulLinkSyncConfig:
        """Load configuration from file or create default."""
        self.config_file = self.get_config_file_path()

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                config = SoulLinkSyncConfig.from_dict(data)
                logging.info(f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError, TypeError) as e:
                logging.warning(f"Failed to load config from {self.config_file}: {e}")
                logging.info("Creating default configuration")
                config = self.create_default_config()
        else:
            config = self.create_default_config()

        self.config = self.apply_environment(config)
        return self.config

    def save_config(self, config: Optional[SoulLinkSyncConfig] = None) -> bool:
        """Save configuration to the configured file."""
        if config is None:
            config = self.config

        if config is None:
            logging.error("No configuration to save")
            return False

        if self.config_file is None:
            self.config_file = self.get_config_file_path()
        if self.config_file is None:
            logging.error("No config file path configured (set SOULLINK_CONFIG_FILE)")
            return False

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logging.info(f"Saved configuration to {self.config_file}")
            return True

        except OSError as e:
            logging.error(f"Failed to save config to {self.config_file}: {e}")
            return False

    def get(self) -> SoulLinkSyncConfig:
        """Return the loaded configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def reset(self) -> None:
        """Forget the cached configuration so the next access reloads it."""
        self.config = None


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> SoulLinkSyncConfig:
    """Get the current configuration."""
    return config_manager.get()


def reload_config() -> SoulLinkSyncConfig:
    """Re-read the config file and environment."""
    config_manager.reset()
    return config_manager.get()
