"""
Flask admin API for triggering the SSL bootstrap on a node.
"""
from flask import Flask, jsonify
import logging
from typing import Optional
from datetime import datetime

from .security.certificate_builder import CertificateBuilder
from .security.errors import AutoSSLError
from .services.bootstrap_service import BootstrapOrchestrator
from .services.config_service import ConfigService
from .services.host_config_service import PostgresHostConfiguration
from .services.logging_service import LoggingService


def create_orchestrator(config) -> BootstrapOrchestrator:
    """Build an orchestrator for the Postgres instance described by config."""
    host = PostgresHostConfiguration(
        data_directory=config.data_directory,
        server_version_num=config.server_version_num,
        ssl_available=config.ssl_available
    )
    return BootstrapOrchestrator(
        host,
        certificate_builder=CertificateBuilder(validity_days=config.certificate_validity_days)
    )


class AdminFlaskApp:
    """Flask application exposing the bootstrap operations."""

    def __init__(self, config_service: ConfigService,
                 logging_service: Optional[LoggingService] = None,
                 orchestrator: Optional[BootstrapOrchestrator] = None):
        """Initialize the admin Flask application."""
        self.app = Flask(__name__)
        self.config_service = config_service
        self.config = config_service.get_config()
        self.logging_service = logging_service
        self.orchestrator = orchestrator or create_orchestrator(self.config)
        self.logger = logging.getLogger(__name__)

        self._setup_routes()
        self._setup_error_handlers()

    def _setup_routes(self):
        """Set up API routes."""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint with logging system status."""
            health_status = {
                'status': 'healthy',
                'service': 'citus-autossl',
                'timestamp': datetime.now().isoformat()
            }

            if self.logging_service:
                health_status['logging'] = self.logging_service.get_health_status()

            return jsonify(health_status)

        @self.app.route('/api/ssl/status', methods=['GET'])
        def get_ssl_status():
            """Report the node's ssl configuration."""
            try:
                return jsonify(self.orchestrator.get_status())
            except (OSError, ValueError) as e:
                self.logger.error(f"Error reading ssl status: {str(e)}")
                return jsonify({
                    'error': 'Internal server error',
                    'message': 'Failed to read ssl status'
                }), 500

        @self.app.route('/api/ssl/setup', methods=['POST'])
        def setup_ssl():
            """Run the ssl bootstrap."""
            try:
                result = self.orchestrator.run()
            except AutoSSLError as e:
                self.logger.error(f"SSL setup failed: {str(e)}")
                return jsonify({
                    'error': 'SSL setup failed',
                    'state': self.orchestrator.state.value,
                    **e.to_dict()
                }), 500

            return jsonify(result.to_dict())

        @self.app.route('/api/ssl/reset-node-conninfo', methods=['POST'])
        def reset_node_conninfo():
            """Reset citus.node_conninfo to the pre-ssl default."""
            try:
                restart_required = self.orchestrator.reset_default_for_node_conninfo()
            except AutoSSLError as e:
                self.logger.error(f"Resetting node conninfo failed: {str(e)}")
                return jsonify({
                    'error': 'Reset of node conninfo failed',
                    **e.to_dict()
                }), 500

            return jsonify({
                'reset': True,
                'restart_required': restart_required
            })

    def _setup_error_handlers(self):
        """Set up error handlers."""

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({
                'error': 'Not found',
                'message': 'The requested endpoint does not exist'
            }), 404

        @self.app.errorhandler(405)
        def method_not_allowed(error):
            return jsonify({
                'error': 'Method not allowed',
                'message': 'The requested method is not allowed for this endpoint'
            }), 405

        @self.app.errorhandler(500)
        def internal_error(error):
            self.logger.error(f"Internal server error: {error}")
            return jsonify({
                'error': 'Internal server error',
                'message': 'An unexpected error occurred'
            }), 500

    def run(self, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
        """Run the admin API. Binds to the configured admin address by default."""
        host = host or self.config.admin_host
        port = port or self.config.admin_port
        self.logger.info(f"Starting admin API on http://{host}:{port}")
        self.app.run(host=host, port=port, debug=debug)

    def get_app(self) -> Flask:
        """Get the Flask application instance."""
        return self.app
