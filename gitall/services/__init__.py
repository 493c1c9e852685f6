"""
Service layer for gitall.

Contains the logic that orchestrates domain objects and infrastructure:
- LocalScanner: Discovery of clones under a directory
- SyncEngine: clone / update / status across an account's repositories

Services are the primary API for commands to use.
"""

from .scanner import LocalScanner
from .sync_service import SyncEngine, SyncOptions

__all__ = [
    'LocalScanner',
    'SyncEngine',
    'SyncOptions',
]
