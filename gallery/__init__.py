"""
Gallery: album tree backend

Keeps the min/max takestamp of every album consistent with the photos
nested below it.
"""

__version__ = "0.1.0"

from .config import load_config

__all__ = [
    "load_config",
]
