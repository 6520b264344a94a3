"""Application layer for the DRA driver.

Orchestrates discovery and ResourceSlice publication.
"""

from accel_dra.application.reconciler import ReconcileError, ReconcileResult, Reconciler

__all__ = [
    "ReconcileError",
    "ReconcileResult",
    "Reconciler",
]
