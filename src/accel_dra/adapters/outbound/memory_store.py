"""In-memory ResourceSlice store for dry runs and testing.

This adapter provides an implementation of the ResourceSliceStore
protocol that keeps slices in a dict with API-server-like resource
versions, so optimistic concurrency behaves as it does in a cluster.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from typing import Optional

from accel_dra.domain.entities.resource_slice import ResourceSlice
from accel_dra.ports.outbound import SliceConflictError, UpsertOutcome

logger = logging.getLogger(__name__)


class InMemoryResourceSliceStore:
    """Dict-backed ResourceSliceStore.

    Example:
        store = InMemoryResourceSliceStore()
        store.upsert(slice_)        # CREATED, resource_version "1"
        store.upsert(slice_)        # UPDATED, resource_version "2"
    """

    def __init__(self) -> None:
        self._slices: dict[str, ResourceSlice] = {}
        self._versions = itertools.count(1)
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[ResourceSlice]:
        with self._lock:
            stored = self._slices.get(name)
            return copy.deepcopy(stored) if stored is not None else None

    def upsert(self, resource_slice: ResourceSlice) -> UpsertOutcome:
        with self._lock:
            existing = self._slices.get(resource_slice.name)
            if existing is None:
                outcome = UpsertOutcome.CREATED
            else:
                # A caller that read an older version must not clobber a newer one
                if (
                    resource_slice.resource_version is not None
                    and resource_slice.resource_version != existing.resource_version
                ):
                    raise SliceConflictError(
                        f"ResourceSlice {resource_slice.name} has version "
                        f"{existing.resource_version}, got {resource_slice.resource_version}"
                    )
                outcome = UpsertOutcome.UPDATED

            resource_slice.resource_version = str(next(self._versions))
            self._slices[resource_slice.name] = copy.deepcopy(resource_slice)

        logger.debug(f"{outcome.value.capitalize()} ResourceSlice {resource_slice.name} in memory")
        return outcome

    def put(self, resource_slice: ResourceSlice) -> None:
        """Store a slice as-is, e.g. to simulate another writer."""
        with self._lock:
            self._slices[resource_slice.name] = copy.deepcopy(resource_slice)

    def list_names(self) -> list[str]:
        with self._lock:
            return sorted(self._slices)

    def __len__(self) -> int:
        with self._lock:
            return len(self._slices)
