"""Accelerator discovery from the mock-accel sysfs class.

The scanner walks the class directory, reads each device's attributes and
classifies it as a primary function (PF) or an SR-IOV virtual function (VF)
from its name. A device whose required attributes cannot be read is left
out of the result and the scan carries on with its siblings.

References:
    - Linux sysfs class layout (Documentation/filesystems/sysfs.rst)
    - SR-IOV PF/VF naming used by the mock-accel kernel driver
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from accel_dra.domain.entities.device import (
    DeviceType,
    DiscoveredDevice,
    PrimaryFunction,
    VirtualFunction,
)
from accel_dra.domain.services.sysfs import (
    PathLike,
    SysfsError,
    read_int64,
    read_numa_node,
    read_pci_address,
    read_string,
    read_uint32,
)
from accel_dra.domain.value_objects.identifiers import DeviceName

logger = logging.getLogger(__name__)

DEFAULT_SYSFS_PATH = Path("/sys/class/mock-accel")

VF_MARKER = "_vf"


class DeviceScanError(Exception):
    """The device class directory could not be enumerated."""
    pass


def classify_device(name: str) -> DeviceType:
    """Classify a device directory name.

    VF naming convention is ``<pfname>_vf<N>`` where N is one or more
    digits, e.g. ``mock0_vf0`` or ``mock1_vf15``. Anything else, including
    ``mock0_vf`` and ``mock0_vfX``, is a primary function.
    """
    idx = name.rfind(VF_MARKER)
    if idx > 0:
        suffix = name[idx + len(VF_MARKER):]
        if suffix and suffix.isascii() and suffix.isdigit():
            return VirtualFunction(physfn=name[:idx])
    return PrimaryFunction()


class DeviceScanner:
    """Scan sysfs for mock-accel devices."""

    def __init__(self, sysfs_path: PathLike = DEFAULT_SYSFS_PATH, node_name: str = "") -> None:
        """Initialize the scanner.

        Args:
            sysfs_path: Class directory holding one subdirectory per device.
            node_name: Kubernetes node this scanner runs on, used in logs.
        """
        self._sysfs_path = Path(sysfs_path)
        self._node_name = node_name
        self._last_errors: dict[str, str] = {}

    @property
    def sysfs_path(self) -> Path:
        return self._sysfs_path

    @property
    def last_errors(self) -> dict[str, str]:
        """Devices dropped by the most recent scan, mapped to the reason."""
        return dict(self._last_errors)

    def scan(self) -> dict[str, DiscoveredDevice]:
        """Discover all devices currently exposed under the class directory.

        Returns:
            Fresh mapping of device name to device. Empty if the class
            directory does not exist.

        Raises:
            DeviceScanError: If the class directory exists but cannot be listed.
        """
        logger.debug(f"Scanning for devices at {self._sysfs_path}")
        self._last_errors = {}

        try:
            if not self._sysfs_path.exists():
                logger.warning(f"Sysfs path {self._sysfs_path} does not exist, no devices found")
                return {}
            entries = sorted(os.listdir(self._sysfs_path))
        except OSError as e:
            raise DeviceScanError(f"Failed to read sysfs directory {self._sysfs_path}: {e}") from e

        devices: dict[str, DiscoveredDevice] = {}
        for dev_name in entries:
            dev_path = self._sysfs_path / dev_name

            # Class entries are usually symlinks into /sys/devices; follow them
            try:
                is_dir = dev_path.is_dir()
            except OSError as e:
                logger.debug(f"Skipping {dev_name}: stat error: {e}")
                continue
            if not is_dir:
                logger.debug(f"Skipping {dev_name}: not a directory")
                continue

            device = self._scan_device(dev_name, dev_path)
            if device is None:
                continue

            devices[dev_name] = device
            logger.debug(
                f"Discovered device {dev_name}: NUMA={device.numa_node}, "
                f"Type={device.device_type.token}, PCI={device.pci_address}, UUID={device.uuid}"
            )

        logger.debug(f"Discovered {len(devices)} devices on node {self._node_name or '<unset>'}")
        return devices

    def _scan_device(self, dev_name: str, dev_path: Path) -> Optional[DiscoveredDevice]:
        """Read one device, returning None if a required attribute fails."""
        try:
            uuid = read_string(dev_path, "uuid")
            memory_size = read_int64(dev_path, "memory_size")
            if memory_size < 0:
                raise ValueError(f"negative memory_size {memory_size}")
            capabilities = self._read_capabilities(dev_name, dev_path)
            numa_node = read_numa_node(dev_path)
            pci_address = read_pci_address(dev_path)
        except (SysfsError, ValueError) as e:
            logger.warning(f"Failed to scan device {dev_name}: {e}")
            self._last_errors[dev_name] = str(e)
            return None

        return DiscoveredDevice(
            name=DeviceName(dev_name),
            uuid=uuid,
            memory_size=memory_size,
            numa_node=numa_node,
            device_type=classify_device(dev_name),
            pci_address=pci_address,
            capabilities=capabilities,
        )

    @staticmethod
    def _read_capabilities(dev_name: str, dev_path: Path) -> int:
        # Optional for older kernel drivers
        try:
            return read_uint32(dev_path, "capabilities")
        except SysfsError:
            logger.debug(f"Device {dev_name} has no capabilities attribute, defaulting to 0")
            return 0
