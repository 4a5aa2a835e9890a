"""
Models package for the automatic SSL bootstrap.
"""

from .config import Config, ConfigValidationError, ConfigValidationResult

__all__ = [
    'Config',
    'ConfigValidationError',
    'ConfigValidationResult'
]
