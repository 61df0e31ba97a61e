# Taskboard — configuration
# Override paths and credentials via taskboard.yaml or environment variables.

import logging
import os
import sys

import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

from .storage import DEFAULT_DB

CONFIG_PATH = Path("taskboard.yaml")


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class Config:
    """Runtime configuration for the board, its CLI and server."""

    # Storage
    db_path: str = str(DEFAULT_DB)

    # Admin credentials
    admin_username: str = "admin"
    default_admin_password: str = "password123"
    min_password_length: int = 6

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    log_level: str = "INFO"

    def resolve_paths(self):
        """Apply environment overrides and expand ~."""
        env_db = os.environ.get("TASKBOARD_DB")
        if env_db:
            self.db_path = env_db
        self.db_path = str(Path(self.db_path).expanduser())

    def validate(self):
        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigError(f"port must be an integer in 1..65535, got: {self.port!r}")
        if not isinstance(self.min_password_length, int) or self.min_password_length < 1:
            raise ConfigError(
                f"min_password_length must be a positive integer, got: {self.min_password_length!r}"
            )
        if not self.admin_username:
            raise ConfigError("admin_username must not be empty")

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """
        Load config from YAML.

        An explicitly named file (argument or TASKBOARD_CONFIG) must exist
        and parse; the default ./taskboard.yaml falls back to defaults.
        """
        explicit = path or os.environ.get("TASKBOARD_CONFIG")
        cfg_path = Path(explicit) if explicit else CONFIG_PATH
        known = {f.name for f in fields(cls)}

        if not cfg_path.exists():
            if explicit:
                raise ConfigError(f"Config file not found: {cfg_path}")
            return cls._defaults()

        try:
            with open(cfg_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path}: expected a mapping at top level")
            cfg = cls(**{k: v for k, v in data.items() if k in known})
            cfg.resolve_paths()
            cfg.validate()
        except (OSError, yaml.YAMLError) as e:
            if explicit:
                raise ConfigError(f"Cannot read config {cfg_path}: {e}")
            logging.getLogger(__name__).warning(f"Ignoring unreadable {cfg_path}: {e}")
            return cls._defaults()
        except ConfigError as e:
            if explicit:
                raise
            logging.getLogger(__name__).warning(f"Ignoring invalid {cfg_path}: {e}")
            return cls._defaults()
        return cfg

    @classmethod
    def _defaults(cls) -> "Config":
        cfg = cls()
        cfg.resolve_paths()
        return cfg


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
