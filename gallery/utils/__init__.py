"""
Gallery utilities module.

Provides logging helpers shared by the CLI and the database layer.
"""

from .logging import StructuredLogger, setup_console_logging

__all__ = [
    'StructuredLogger',
    'setup_console_logging',
]
