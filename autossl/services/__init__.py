"""
Services package for the automatic SSL bootstrap.
"""

from .config_service import ConfigService
from .bootstrap_service import BootstrapOrchestrator
from .host_config_service import HostConfiguration, PostgresHostConfiguration
from .policy_evaluator import PolicyEvaluator, parse_conninfo

__all__ = [
    'ConfigService',
    'BootstrapOrchestrator',
    'HostConfiguration',
    'PostgresHostConfiguration',
    'PolicyEvaluator',
    'parse_conninfo'
]
