"""
Accelerator DRA driver - sysfs discovery to Kubernetes ResourceSlices

Scans the mock-accel sysfs class for physical and virtual accelerator
functions and publishes one ResourceSlice per device, with NUMA, PCI and
memory capacity attributes, for the Dynamic Resource Allocation scheduler.
"""

from accel_dra.version import __version__

__all__ = ["__version__"]
