"""Data models for the transcript cache.

This module provides data structures for registry entries and for the
results reported by maintenance, linking, cleanup, and batch processing.
"""

from .registry import Registry, RegistryEntry, copy_registry, registry_to_dict
from .results import (
    AttachResult,
    BatchSummary,
    CleanupResult,
    DetachResult,
    ItemResult,
    ItemStatus,
    MaintenanceResult,
    OperationError,
)

__all__ = [
    "AttachResult",
    "BatchSummary",
    "CleanupResult",
    "DetachResult",
    "ItemResult",
    "ItemStatus",
    "MaintenanceResult",
    "OperationError",
    "Registry",
    "RegistryEntry",
    "copy_registry",
    "registry_to_dict",
]
