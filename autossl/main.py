"""
Command line entry point for the automatic SSL bootstrap.
"""

import os
import sys
import logging
from typing import Optional

from .app import AdminFlaskApp, create_orchestrator
from .security.errors import AutoSSLError
from .services.bootstrap_service import BootstrapOrchestrator
from .services.config_service import ConfigService
from .services.logging_service import LoggingService


class AutoSSLApplication:
    """Application wiring configuration, logging and the bootstrap orchestrator."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the application.

        Args:
            config_path: Path to configuration file (optional)
        """
        self.config_path = config_path or self._get_default_config_path()
        self.logger = logging.getLogger(__name__)
        self.config_service = None
        self.config = None
        self.logging_service = None
        self.orchestrator: Optional[BootstrapOrchestrator] = None

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        possible_paths = [
            "config/autossl.properties",
            "autossl.properties",
            os.path.expanduser("~/.autossl/autossl.properties"),
            "/etc/autossl/autossl.properties"
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return possible_paths[0]

    def initialize(self) -> bool:
        """
        Load configuration, set up logging and build the orchestrator.

        Returns:
            True if initialization successful, False otherwise
        """
        if not self._load_configuration():
            return False

        try:
            self.logging_service = LoggingService(self.config)
            self.orchestrator = create_orchestrator(self.config)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to initialize application: {str(e)}")
            return False

        self.logger.info(f"Initialized for data directory {self.config.data_directory}")
        return True

    def _load_configuration(self) -> bool:
        """Load application configuration."""
        self.config_service = ConfigService()

        if not os.path.exists(self.config_path):
            self.logger.warning(f"Configuration file not found: {self.config_path}")
            self.config_service.create_default_config_file(self.config_path)
            self.logger.info(f"Default configuration created at: {self.config_path}")
            self.logger.info("Please edit the configuration file and run again")
            return False

        try:
            self.config = self.config_service.load_config(self.config_path)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load configuration: {str(e)}")
            return False

        return True

    def setup_ssl(self) -> int:
        """Run the bootstrap. Returns the process exit code."""
        try:
            result = self.orchestrator.run()
        except AutoSSLError as e:
            print(f"SSL setup failed: {e}")
            return 1

        print(f"SSL setup finished: {result.message}")
        if result.credentials_created:
            print(f"Private key: {result.credential_files.key_path}")
            print(f"Certificate: {result.credential_files.cert_path}")
        if result.restart_required:
            print("Restart postgres for ssl changes to take effect")
        return 0

    def reset_node_conninfo(self) -> int:
        """Reset citus.node_conninfo to the pre-ssl default. Returns the exit code."""
        try:
            restart_required = self.orchestrator.reset_default_for_node_conninfo()
        except AutoSSLError as e:
            print(f"Reset of citus.node_conninfo failed: {e}")
            return 1

        print("citus.node_conninfo reset to 'sslmode=prefer'")
        if restart_required:
            print("Restart postgres for the change to take effect")
        return 0

    def print_status(self) -> int:
        """Print the node's ssl status. Returns the exit code."""
        try:
            status = self.orchestrator.get_status()
        except (OSError, ValueError) as e:
            print(f"Unable to read ssl status: {e}")
            return 1

        for key, value in status.items():
            print(f"{key}: {value}")
        return 0

    def serve(self, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
        """Run the admin API."""
        flask_app = AdminFlaskApp(self.config_service, self.logging_service, self.orchestrator)
        flask_app.run(host=host, port=port, debug=debug)


def main():
    """Main entry point for the application."""
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description='Citus automatic SSL setup')
    parser.add_argument('--config', '-c', help='Configuration file path')
    parser.add_argument('--check-config', action='store_true', help='Check configuration and exit')

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('setup-ssl', help='Enable ssl and create a self-signed certificate when needed')
    subparsers.add_parser('reset-node-conninfo', help="Reset citus.node_conninfo to 'sslmode=prefer'")
    subparsers.add_parser('status', help='Show the ssl status of the node')
    serve_parser = subparsers.add_parser('serve', help='Run the admin API')
    serve_parser.add_argument('--host', help='Host to bind to (uses config if not specified)')
    serve_parser.add_argument('--port', type=int, help='Port to bind to (uses config if not specified)')
    serve_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    app = AutoSSLApplication(config_path=args.config)

    if not app.initialize():
        print("Failed to initialize application")
        sys.exit(1)

    if args.check_config:
        print("Configuration check passed")
        print(f"Config path: {app.config_path}")
        print(f"Data directory: {app.config.data_directory}")
        sys.exit(0)

    if args.command == 'setup-ssl':
        sys.exit(app.setup_ssl())
    elif args.command == 'reset-node-conninfo':
        sys.exit(app.reset_node_conninfo())
    elif args.command == 'status':
        sys.exit(app.print_status())
    elif args.command == 'serve':
        try:
            app.serve(host=args.host, port=args.port, debug=args.debug)
        except KeyboardInterrupt:
            print("\nShutdown requested by user")
        sys.exit(0)

    parser.print_help()
    sys.exit(1)


if __name__ == '__main__':
    main()
