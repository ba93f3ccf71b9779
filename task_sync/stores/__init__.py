"""Task store adapters and the interface the engine depends on."""

from typing import Optional
import logging

from ..core.config import StoreConfig
from ..core.exceptions import ConfigurationError
from .base import TaskStore, PaginatedTaskStore
from .memory import InMemoryTaskStore
from .json_file import JsonFileTaskStore


def build_store(settings: StoreConfig, logger: Optional[logging.Logger] = None) -> TaskStore:
    """Construct the store described by one side's configuration."""
    store_type = (settings.type or "").lower()
    if store_type == "json":
        if not settings.path:
            raise ConfigurationError(f"Store '{settings.name}' of type json needs a path")
        return JsonFileTaskStore(
            settings.path,
            name=settings.name,
            page_size=settings.page_size,
            notes_max_length=settings.notes_max_length,
            logger=logger,
        )
    if store_type == "memory":
        return InMemoryTaskStore(settings.name, notes_max_length=settings.notes_max_length, logger=logger)
    raise ConfigurationError(f"Unknown store type '{settings.type}' for {settings.name}")


__all__ = ['TaskStore', 'PaginatedTaskStore', 'InMemoryTaskStore', 'JsonFileTaskStore', 'build_store']
