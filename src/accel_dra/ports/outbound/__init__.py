"""Outbound ports - External dependency interfaces for the DRA driver.

Outbound ports define the interfaces the reconciler uses to persist
ResourceSlices. The production adapter talks to the Kubernetes API;
an in-memory adapter serves dry runs and tests.
"""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import Optional, Protocol

from accel_dra.domain.entities.resource_slice import ResourceSlice


class UpsertOutcome(Enum):
    """What an upsert did."""
    CREATED = "created"
    UPDATED = "updated"


class SliceStoreError(Exception):
    """Persisting or reading a ResourceSlice failed."""
    pass


class SliceConflictError(SliceStoreError):
    """The stored object changed since its resource version was read."""
    pass


class ResourceSliceStore(Protocol):
    """Protocol for ResourceSlice persistence keyed by object name.

    Thread Safety:
        Implementations must tolerate calls from the reconciler thread
        while other threads read.
    """

    @abstractmethod
    def get(self, name: str) -> Optional[ResourceSlice]:
        """Fetch a stored slice.

        Args:
            name: ResourceSlice object name.

        Returns:
            The stored slice with its resource version, or None if absent.

        Raises:
            SliceStoreError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    def upsert(self, resource_slice: ResourceSlice) -> UpsertOutcome:
        """Create the slice if absent, else replace it.

        Replacement carries the stored resource version forward so a
        concurrent writer is detected instead of overwritten.

        Args:
            resource_slice: Slice to persist. Its resource_version is set
                to the stored version on success.

        Returns:
            Whether the slice was created or updated.

        Raises:
            SliceConflictError: If the stored object changed underneath.
            SliceStoreError: For any other failure.
        """
        ...


__all__ = [
    "ResourceSliceStore",
    "SliceConflictError",
    "SliceStoreError",
    "UpsertOutcome",
]
