"""Outbound adapters - ResourceSliceStore implementations."""

from accel_dra.adapters.outbound.kubernetes_store import KubernetesResourceSliceStore
from accel_dra.adapters.outbound.memory_store import InMemoryResourceSliceStore

__all__ = [
    "InMemoryResourceSliceStore",
    "KubernetesResourceSliceStore",
]
