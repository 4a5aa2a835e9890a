"""
Configuration service for loading and validating bootstrap settings.
"""
import os
import configparser
from typing import Optional, Dict, Any
import logging

from ..models.config import Config, ConfigValidationError, ConfigValidationResult


DEFAULT_CONFIG_CONTENT = """# Citus auto SSL configuration file

[postgres]
data_directory = /var/lib/postgresql/data
server_version_num = 160000
ssl_available = true

[ssl]
# 0 keeps notBefore == notAfter on generated certificates
certificate_validity_days = 0

[admin]
host = 127.0.0.1
port = 5433

[app]
log_level = INFO
log_file_path = logs/autossl.log
"""


class ConfigService:
    """Service for loading and validating application configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> Config:
        """
        Get the loaded configuration.

        Raises:
            ValueError: If no configuration has been loaded
        """
        if self._config is None:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_path: str) -> Config:
        """
        Load configuration from a property file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = self._load_config_file(config_path)
        config = self._create_config_from_data(config_data)

        validation_result = self.validate_config(config)

        if validation_result.has_errors():
            error_summary = validation_result.get_error_summary()
            raise ValueError(f"Configuration validation failed:\n{error_summary}")

        if validation_result.has_warnings():
            warning_summary = validation_result.get_error_summary()
            self.logger.warning(f"Configuration warnings:\n{warning_summary}")

        self._config = config
        return config

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration data from file."""
        config_parser = configparser.ConfigParser()

        try:
            config_parser.read(config_path)
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        # Flatten to section.key
        config_data = {}
        for section in config_parser.sections():
            for key, value in config_parser.items(section):
                config_data[f"{section}.{key}"] = value

        for key, value in config_parser.defaults().items():
            config_data.setdefault(key, value)

        return config_data

    def _create_config_from_data(self, config_data: Dict[str, Any]) -> Config:
        """Create Config object from configuration data."""
        config_mapping = {
            "postgres.data_directory": ("data_directory", str),
            "data_directory": ("data_directory", str),
            "postgres.server_version_num": ("server_version_num", int),
            "server_version_num": ("server_version_num", int),
            "postgres.ssl_available": ("ssl_available", bool),
            "ssl_available": ("ssl_available", bool),

            "ssl.certificate_validity_days": ("certificate_validity_days", int),
            "certificate_validity_days": ("certificate_validity_days", int),

            "admin.host": ("admin_host", str),
            "admin_host": ("admin_host", str),
            "admin.port": ("admin_port", int),
            "admin_port": ("admin_port", int),

            "app.log_level": ("log_level", str),
            "log_level": ("log_level", str),
            "app.log_file_path": ("log_file_path", str),
            "log_file_path": ("log_file_path", str),
        }

        config_kwargs = {}

        for config_key, raw_value in config_data.items():
            if config_key in config_mapping:
                field_name, field_type = config_mapping[config_key]
                try:
                    if field_type == bool:
                        value = self._parse_bool(raw_value)
                    elif field_type == int:
                        value = int(raw_value)
                    else:
                        value = str(raw_value)

                    config_kwargs[field_name] = value
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for {config_key}: {raw_value} ({e})")

        return Config(**config_kwargs)

    def _parse_bool(self, value: Any) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "yes", "1", "on", "enabled")
        return bool(value)

    def validate_config(self, config: Config) -> ConfigValidationResult:
        """
        Validate configuration settings.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult with validation results
        """
        errors = []
        warnings = []

        if not config.data_directory:
            errors.append(ConfigValidationError(
                "data_directory",
                "Postgres data directory is required"
            ))
        elif not os.path.isdir(config.data_directory):
            errors.append(ConfigValidationError(
                "data_directory",
                f"Postgres data directory does not exist: {config.data_directory}"
            ))

        if not config.ssl_available:
            warnings.append(ConfigValidationError(
                "ssl_available",
                "Postgres has no ssl support, bootstrap will not enable ssl",
                "warning"
            ))

        if config.certificate_validity_days == 0:
            warnings.append(ConfigValidationError(
                "certificate_validity_days",
                "Generated certificates will have a zero-length validity window",
                "warning"
            ))

        all_issues = errors + warnings
        return ConfigValidationResult(
            is_valid=len(errors) == 0,
            errors=all_issues,
            warnings=[]
        )

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(DEFAULT_CONFIG_CONTENT)

        self.logger.info(f"Created default configuration file: {config_path}")
