"""
Storage abstraction layer for practice records.

Provides a unified interface for clients, cases and sessions with an
in-memory backend and an SQLite backend.

Usage:
    from notizia.storage import get_backend

    # Get backend from configuration
    backend = get_backend()

    # Or explicitly specify backend
    backend = get_backend('sqlite', db_path='data/notizia.db')

    # Use as context manager
    with get_backend('memory') as backend:
        backend.initialize()
        rows = backend.list_all_sessions_expanded()
"""

from .base import (
    QueryError,
    RecordNotFoundError,
    SchemaError,
    StorageBackend,
    StorageConnectionError,
    StorageError,
)
from .factory import get_backend

__all__ = [
    # Base classes and exceptions
    "StorageBackend",
    "StorageError",
    "StorageConnectionError",
    "QueryError",
    "SchemaError",
    "RecordNotFoundError",
    # Factory
    "get_backend",
]
