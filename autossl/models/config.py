"""
Configuration data models for the automatic SSL bootstrap.
"""
from dataclasses import dataclass


@dataclass
class Config:
    """Main configuration class containing all application settings."""

    # Postgres host settings
    data_directory: str = "/var/lib/postgresql/data"
    server_version_num: int = 160000
    ssl_available: bool = True

    # Certificate settings
    certificate_validity_days: int = 0

    # Admin API settings
    admin_host: str = "127.0.0.1"
    admin_port: int = 5433

    # Application settings
    log_level: str = "INFO"
    log_file_path: str = "logs/autossl.log"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if not isinstance(self.server_version_num, int) or self.server_version_num <= 0:
            raise ValueError("server_version_num must be a positive integer")

        if not isinstance(self.certificate_validity_days, int) or self.certificate_validity_days < 0:
            raise ValueError("certificate_validity_days must be a non-negative integer")

        if not isinstance(self.admin_port, int) or not (1 <= self.admin_port <= 65535):
            raise ValueError("admin_port must be an integer between 1 and 65535")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    severity: str = "error"  # error, warning

    def __str__(self):
        return f"{self.severity.upper()}: {self.field} - {self.message}"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: list[ConfigValidationError]
    warnings: list[ConfigValidationError]

    def __post_init__(self):
        """Separate errors and warnings."""
        all_issues = self.errors + self.warnings
        self.errors = [e for e in all_issues if e.severity == "error"]
        self.warnings = [e for e in all_issues if e.severity == "warning"]

    def has_errors(self) -> bool:
        """Check if there are any validation errors."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if there are any validation warnings."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> str:
        """Get a formatted summary of all errors and warnings."""
        lines = []

        if self.errors:
            lines.append("Configuration Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if self.warnings:
            lines.append("Configuration Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines) if lines else "Configuration is valid"
