"""
Configuration infrastructure package.
"""

from .repository import ConfigRepository, load_config

__all__ = ["ConfigRepository", "load_config"]
