"""
Configuration Manager for BrandSync

Loads configuration from the package config.json and provides
easy access to spreadsheet and client settings. Secrets come from
the environment (see EnvConfig).
"""
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Any
import logging

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

# Default configuration file location
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.json"

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
DEFAULT_HEADER_ROW = 2
DEFAULT_SERIAL_COLUMN = "s_no"
DEFAULT_BASE_URL = "http://localhost:8000"


class SpreadsheetConfig:
    """Settings describing the backing spreadsheet."""

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.id = data.get("id")
        self.header_row = int(data.get("header_row", DEFAULT_HEADER_ROW))
        self.serial_column = data.get("serial_column", DEFAULT_SERIAL_COLUMN)
        self.scopes = data.get("scopes") or list(DEFAULT_SCOPES)

        if self.header_row < 1:
            raise ValueError(f"header_row must be >= 1, got {self.header_row}")

    @property
    def spreadsheet_id(self) -> Optional[str]:
        """Spreadsheet key; GOOGLE_SHEET_ID overrides the file value."""
        return os.getenv("GOOGLE_SHEET_ID") or self.id

    def to_dict(self) -> Dict[str, Any]:
        return self.data


class ConfigManager:
    """Manages application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.config_data: Dict[str, Any] = {}
        self.spreadsheet = SpreadsheetConfig({})
        self.client_settings: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from JSON file."""
        if not self.config_path.exists():
            logger.warning(f"Configuration file not found: {self.config_path}, using defaults")
            return

        try:
            with open(self.config_path, 'r') as f:
                self.config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        self.spreadsheet = SpreadsheetConfig(self.config_data.get("spreadsheet", {}))
        self.client_settings = self.config_data.get("client", {})
        logger.info(f"Loaded configuration from {self.config_path}")

    @property
    def base_url(self) -> str:
        return os.getenv("BRANDSYNC_BASE_URL") or self.client_settings.get("base_url", DEFAULT_BASE_URL)

    def reload(self):
        """Reload configuration from file."""
        self.config_data = {}
        self.spreadsheet = SpreadsheetConfig({})
        self.client_settings = {}
        self._load_config()


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """Get or create the global configuration manager."""
    global _config_manager
    if _config_manager is None or config_path is not None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_spreadsheet_config() -> SpreadsheetConfig:
    """Convenience function to get the spreadsheet settings."""
    return get_config_manager().spreadsheet


# Environment variables configuration
class EnvConfig:
    """Manages environment variables."""

    @staticmethod
    def get_service_account_info() -> Dict[str, str]:
        """
        Build service account info for google-auth.

        SERVICE_ACCOUNT_CREDENTIALS (full JSON) wins; otherwise the
        GOOGLE_CLIENT_EMAIL / GOOGLE_PRIVATE_KEY pair is used.
        """
        json_env = os.getenv("SERVICE_ACCOUNT_CREDENTIALS")
        if json_env:
            try:
                return json.loads(json_env)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"SERVICE_ACCOUNT_CREDENTIALS is not valid JSON: {e}")

        email = os.getenv("GOOGLE_CLIENT_EMAIL")
        private_key = os.getenv("GOOGLE_PRIVATE_KEY")
        if not email or not private_key:
            raise ConfigurationError("Missing GOOGLE_PRIVATE_KEY or GOOGLE_CLIENT_EMAIL in environment")

        return {
            "type": "service_account",
            "client_email": email,
            # .env files usually carry the key with escaped newlines
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    @staticmethod
    def get_scopes() -> List[str]:
        return get_spreadsheet_config().scopes
