# sakuracloud_plugin/config/defaults.py
from typing import Dict, Any, List, Optional
from enum import Enum
import copy
import os
import json
import logging

from sakuracloud_plugin.domain.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class LogLevel(str, Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class LogDestination(str, Enum):
    """Log destination enumeration."""
    FILE = "file"
    STDOUT = "stdout"
    BOTH = "both"

CONFIG_FILE_NAME = "sakuracloud_config.json"

DEFAULT_CONFIG = {
    # SakuraCloud API credentials
    "SAKURACLOUD_ACCESS_TOKEN": "${SAKURACLOUD_ACCESS_TOKEN:}",
    "SAKURACLOUD_ACCESS_TOKEN_SECRET": "${SAKURACLOUD_ACCESS_TOKEN_SECRET:}",

    # Target zone
    "SAKURACLOUD_ZONE": "${SAKURACLOUD_ZONE:is1b}",
    "SAKURACLOUD_ZONES": ["is1a", "is1b", "tk1a", "tk1v"],

    # API client
    "SAKURACLOUD_API_ROOT_URL": "${SAKURACLOUD_API_ROOT_URL:https://secure.sakura.ad.jp/cloud}",
    "SAKURACLOUD_TIMEOUT_SEC": "${SAKURACLOUD_TIMEOUT_SEC:1200}",
    "SAKURACLOUD_REQUEST_TIMEOUT_SEC": 300,
    "SAKURACLOUD_RETRY_MAX": "${SAKURACLOUD_RETRY_MAX:10}",
    "SAKURACLOUD_RETRY_INTERVAL_SEC": "${SAKURACLOUD_RETRY_INTERVAL_SEC:5}",
    "SAKURACLOUD_POLLING_INTERVAL_SEC": "${SAKURACLOUD_POLLING_INTERVAL_SEC:5}",
    "SAKURACLOUD_TRACE": "${SAKURACLOUD_TRACE:false}",

    # Directory holding the lock files of shared parent objects
    "SAKURACLOUD_LOCK_DIR": "${SAKURACLOUD_PLUGIN_LOCKDIR:/tmp/sakuracloud-plugin-locks}",

    # Data source behaviour
    "SAKURACLOUD_FILTER_NO_RESULT_ERROR": "${SAKURACLOUD_FILTER_NO_RESULT_ERROR:false}",

    # Object storage (S3 compatible)
    "OBJECT_STORAGE_CONFIG": {
        "endpoint_url": "https://b.sakurastorage.jp",
        "region_name": "jp-north-1",
        "api_host": "b.sakurastorage.jp",
        "cached_host": "c.sakurastorage.jp"
    },

    # Logging configuration
    "LOGGING_CONFIG": {
        "level": "${LOG_LEVEL:INFO}",
        "destination": "${LOG_DESTINATION:file}",
        "file": {
            "path": "${SAKURACLOUD_PLUGIN_LOGDIR:/tmp}/sakuracloud-plugin.log",
            "max_size_mb": 10,
            "backup_count": 5,
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        },
        "stdout": {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        }
    },

    # Validation ranges and rules
    "VALIDATION_RULES": {
        "SAKURACLOUD_TIMEOUT_SEC": {
            "min": 1,
            "type": "int"
        },
        "SAKURACLOUD_RETRY_MAX": {
            "min": 0,
            "max": 100,
            "type": "int"
        },
        "SAKURACLOUD_RETRY_INTERVAL_SEC": {
            "min": 0,
            "max": 600,
            "type": "int"
        },
        "SAKURACLOUD_POLLING_INTERVAL_SEC": {
            "min": 0,
            "max": 600,
            "type": "int"
        },
        "credential_fields": [
            "SAKURACLOUD_ACCESS_TOKEN",
            "SAKURACLOUD_ACCESS_TOKEN_SECRET"
        ]
    }
}

_TRUE_VALUES = ("1", "true", "yes", "on")


def as_bool(value: Any) -> bool:
    """Interpret a configuration value such as "true" or "0" as a boolean."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


class ConfigurationManager:
    """
    Manages plugin configuration with defaults and overrides.

    This class handles:
    - Loading default configuration
    - Applying configuration file overrides
    - Applying environment variable overrides
    - Variable interpolation
    - Configuration validation
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration manager with defaults.

        Args:
            config_file: Optional path to configuration file. If not provided,
                        will look in SAKURACLOUD_PLUGIN_CONFDIR/sakuracloud_config.json
        """
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_file:
            self._load_config_file(config_file)
        else:
            default_config_path = os.path.join(
                os.environ.get('SAKURACLOUD_PLUGIN_CONFDIR', ''),
                CONFIG_FILE_NAME
            )
            if os.path.exists(default_config_path):
                self._load_config_file(default_config_path)

        # Environment variables have the highest priority
        self._load_env_vars()

        self.validate_config()

    def _load_config_file(self, config_path: str) -> None:
        """Load configuration from file."""
        try:
            with open(config_path, 'r') as f:
                user_config = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}")
        self.update_config(user_config)
        logger.debug(f"Loaded configuration file {config_path}")

    def _load_env_vars(self) -> None:
        """Load and apply environment variable overrides."""
        direct_mappings = [
            "SAKURACLOUD_ACCESS_TOKEN",
            "SAKURACLOUD_ACCESS_TOKEN_SECRET",
            "SAKURACLOUD_ZONE",
            "SAKURACLOUD_API_ROOT_URL",
            "SAKURACLOUD_TIMEOUT_SEC",
            "SAKURACLOUD_RETRY_MAX",
            "SAKURACLOUD_RETRY_INTERVAL_SEC",
            "SAKURACLOUD_POLLING_INTERVAL_SEC",
            "SAKURACLOUD_TRACE",
            "SAKURACLOUD_FILTER_NO_RESULT_ERROR"
        ]

        for env_var in direct_mappings:
            if env_var in os.environ:
                self._config[env_var] = os.environ[env_var]

    def _interpolate_values(self, config: Any) -> Any:
        """Interpolate ${VAR} and ${VAR:default} references in configuration values."""
        if isinstance(config, str):
            if "${" not in config:
                return config
            result = config
            while "${" in result:
                start = result.index("${")
                end = result.find("}", start)
                if end < 0:
                    break
                var_name = result[start + 2:end]
                if ":" in var_name:
                    var_name, default = var_name.split(":", 1)
                    value = os.environ.get(var_name, default)
                else:
                    value = os.environ.get(var_name, "")
                result = result[:start] + value + result[end + 1:]
            return result
        elif isinstance(config, dict):
            return {k: self._interpolate_values(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._interpolate_values(v) for v in config]
        return config

    def update_config(self, user_config: Dict[str, Any]) -> None:
        """
        Update configuration with user-provided values.

        Args:
            user_config: Configuration dictionary from user config file
        """
        def deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> None:
            for key, value in source.items():
                if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                    deep_update(target[key], value)
                else:
                    target[key] = value

        deep_update(self._config, user_config)

    def get_config(self) -> Dict[str, Any]:
        """
        Get the complete configuration with all interpolations applied.

        Returns:
            Dict containing the complete configuration
        """
        return self._interpolate_values(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        return self.get_config().get(key, default)

    def validate_credentials(self) -> None:
        """
        Ensure API credentials are configured.

        Raises:
            ConfigurationError: If a credential is missing
        """
        config = self.get_config()
        missing = [
            field for field in config["VALIDATION_RULES"]["credential_fields"]
            if not config.get(field)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing SakuraCloud credentials: {', '.join(missing)}",
                missing_fields=missing
            )

    def validate_config(self) -> None:
        """
        Validate the configuration.

        Validates:
        - Zone is one of the allowed zones
        - Numeric values are within allowed ranges
        - Logging level and destination are known values

        Raises:
            ConfigurationError: If configuration is invalid with detailed error messages
        """
        config = self.get_config()
        errors: List[str] = []

        zone = config.get("SAKURACLOUD_ZONE")
        if zone not in config["SAKURACLOUD_ZONES"]:
            errors.append(
                f"SAKURACLOUD_ZONE must be one of {', '.join(config['SAKURACLOUD_ZONES'])}: got {zone}"
            )

        api_root = config.get("SAKURACLOUD_API_ROOT_URL", "")
        if not api_root.startswith(("http://", "https://")):
            errors.append(f"SAKURACLOUD_API_ROOT_URL must be an http(s) URL: got {api_root}")

        log_config = config["LOGGING_CONFIG"]
        log_level = log_config["level"].upper()
        if log_level not in LogLevel.__members__:
            errors.append(f"Invalid log level: {log_level}")

        log_dest = log_config["destination"].lower()
        try:
            LogDestination(log_dest)
        except ValueError:
            errors.append(f"Invalid log destination: {log_dest}. Must be one of: {', '.join(d.value for d in LogDestination)}")

        for field, rules in config["VALIDATION_RULES"].items():
            if isinstance(rules, dict) and rules.get("type") == "int":
                value = config.get(field)
                if value is None:
                    continue
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    errors.append(f"{field} must be an integer")
                    continue
                if "min" in rules and value < rules["min"]:
                    errors.append(f"{field} must be at least {rules['min']}")
                if "max" in rules and value > rules["max"]:
                    errors.append(f"{field} must be at most {rules['max']}")

        if errors:
            raise ConfigurationError("Invalid configuration:\n" + "\n".join(errors))
