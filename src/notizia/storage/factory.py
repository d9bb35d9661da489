"""
Storage backend factory.

Picks the memory or SQLite backend by name, falling back to the
configured backend and database path.
"""

import logging
from pathlib import Path
from typing import Optional

from ..config.settings import SUPPORTED_BACKENDS, get_settings
from .base import StorageBackend, StorageError
from .memory_backend import MemoryBackend
from .sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


def get_backend(
    backend_type: Optional[str] = None,
    **kwargs,
) -> StorageBackend:
    """
    Create a storage backend.

    Args:
        backend_type: 'memory' or 'sqlite' (case-insensitive).
                      If None, the configured storage backend is used.
        **kwargs: Passed to the backend constructor. Without kwargs the
                  SQLite backend opens the configured database path.

    Returns:
        StorageBackend instance (call initialize() before use).

    Raises:
        StorageError: If the type is unknown or construction fails.

    Examples:
        backend = get_backend()
        backend = get_backend('sqlite', db_path='data/notizia.db')
    """
    if backend_type is None:
        backend_type = get_settings().storage_backend

    backend_type = backend_type.lower()

    if backend_type == "memory":
        backend_class = MemoryBackend
    elif backend_type == "sqlite":
        backend_class = SQLiteBackend
        if not kwargs:
            kwargs = {"db_path": Path(get_settings().sqlite_db_path)}
    else:
        raise StorageError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    try:
        backend = backend_class(**kwargs)
    except Exception as e:
        raise StorageError(f"Failed to create {backend_type} backend: {e}") from e

    logger.info(f"Created {backend_type} storage backend")
    return backend
