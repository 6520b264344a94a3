"""Domain entities for the accelerator DRA driver.

Entities represent the objects that flow through one reconciliation:
- DiscoveredDevice: accelerator function read from sysfs
- ResourceSlice: per-device advertisement for the DRA scheduler
"""

from accel_dra.domain.entities.device import (
    DeviceType,
    DiscoveredDevice,
    PrimaryFunction,
    VirtualFunction,
)
from accel_dra.domain.entities.resource_slice import (
    Device,
    DeviceAttribute,
    DeviceCapacity,
    Quantity,
    QuantityFormat,
    ResourcePool,
    ResourceSlice,
)

__all__ = [
    # Devices
    "DeviceType",
    "DiscoveredDevice",
    "PrimaryFunction",
    "VirtualFunction",
    # ResourceSlice
    "Device",
    "DeviceAttribute",
    "DeviceCapacity",
    "Quantity",
    "QuantityFormat",
    "ResourcePool",
    "ResourceSlice",
]
