"""
Configuration domain package.
"""

from .models import Branch, SyncConfig

__all__ = [
    "Branch",
    "SyncConfig",
]
