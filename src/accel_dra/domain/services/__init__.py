"""Domain services for the accelerator DRA driver.

Services implement the discovery and publication workflow:
- DeviceScanner: sysfs enumeration and PF/VF classification
- ResourceSliceBuilder: per-device ResourceSlice construction
"""

from accel_dra.domain.services.device_scanner import (
    DeviceScanError,
    DeviceScanner,
    classify_device,
)
from accel_dra.domain.services.slice_builder import (
    ResourceSliceBuilder,
    group_by_numa,
)
from accel_dra.domain.services.sysfs import (
    SysfsAttributeError,
    SysfsError,
    SysfsLinkError,
    SysfsParseError,
)

__all__ = [
    "DeviceScanner",
    "DeviceScanError",
    "classify_device",
    "ResourceSliceBuilder",
    "group_by_numa",
    "SysfsError",
    "SysfsAttributeError",
    "SysfsLinkError",
    "SysfsParseError",
]
