"""
Automatic SSL bootstrap for Citus cluster nodes.
"""

__version__ = "1.0.0"
