"""
Utility modules shared across the library.
"""

from .log_config import configure_logging

__all__ = ['configure_logging']
