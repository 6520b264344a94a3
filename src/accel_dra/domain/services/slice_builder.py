"""ResourceSlice construction from discovered devices.

Each device becomes its own ResourceSlice in its own pool, so a device
appearing or disappearing never forces other slices to be rewritten.
Attributes are qualified with the driver name so CEL selectors can refer
to them as ``device.attributes["mock-accel.example.com"].numaNode``.

References:
    - Kubernetes DRA: structured parameters and ResourceSlice pools
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping

from accel_dra.domain.entities.device import DiscoveredDevice
from accel_dra.domain.entities.resource_slice import (
    Device,
    DeviceAttribute,
    DeviceCapacity,
    Quantity,
    QuantityFormat,
    ResourcePool,
    ResourceSlice,
)
from accel_dra.domain.value_objects.identifiers import (
    DRIVER_NAME,
    create_slice_name,
    qualified_name,
)

logger = logging.getLogger(__name__)

# Pool generation is not bumped on attribute-only changes
POOL_GENERATION = 1


class ResourceSliceBuilder:
    """Build ResourceSlice objects from discovered devices."""

    def __init__(self, node_name: str, driver_name: str = DRIVER_NAME) -> None:
        self._node_name = node_name
        self._driver_name = driver_name
        self._generation = POOL_GENERATION

    @property
    def node_name(self) -> str:
        return self._node_name

    @property
    def driver_name(self) -> str:
        return self._driver_name

    def build(self, devices: Mapping[str, DiscoveredDevice]) -> list[ResourceSlice]:
        """Create one ResourceSlice per device.

        Args:
            devices: Scan result keyed by device name.

        Returns:
            Slices ordered by device name. Empty if there are no devices.
        """
        if not devices:
            logger.debug("No devices to build ResourceSlices from")
            return []

        slices = [self._build_slice(devices[name]) for name in sorted(devices)]
        logger.debug(f"Built {len(slices)} ResourceSlices (one per device)")
        return slices

    def _build_slice(self, dev: DiscoveredDevice) -> ResourceSlice:
        slice_name = create_slice_name(self._driver_name, self._node_name, dev.name)
        logger.debug(
            f"Building ResourceSlice {slice_name} for device {dev.name} "
            f"(NUMA={dev.numa_node}, PCI={dev.pci_address})"
        )

        return ResourceSlice(
            name=slice_name,
            driver=self._driver_name,
            node_name=self._node_name,
            pool=ResourcePool(
                name=dev.name,
                generation=self._generation,
                resource_slice_count=1,
            ),
            devices=[self.build_device(dev)],
            labels={
                "driver": self._driver_name,
                "node": self._node_name,
                "device": dev.name,
            },
        )

    def build_device(self, dev: DiscoveredDevice) -> Device:
        """Create the Device entry with topology attributes and memory capacity."""
        key = self._key
        attributes = {
            key("uuid"): DeviceAttribute(string_value=dev.uuid),
            key("memory"): DeviceAttribute(int_value=dev.memory_size),
            key("deviceType"): DeviceAttribute(string_value=dev.device_type.token),
            key("pciAddress"): DeviceAttribute(string_value=dev.pci_address),
            key("numaNode"): DeviceAttribute(int_value=int(dev.numa_node)),
            key("capabilities"): DeviceAttribute(int_value=dev.capabilities),
        }
        if dev.is_virtual:
            attributes[key("physfn")] = DeviceAttribute(string_value=dev.physfn)

        capacity = {
            key("memory"): DeviceCapacity(
                value=Quantity(dev.memory_size, QuantityFormat.BINARY_SI),
            ),
        }
        return Device(name=dev.name, attributes=attributes, capacity=capacity)

    def _key(self, name: str) -> str:
        return qualified_name(self._driver_name, name)


def group_by_numa(devices: Mapping[str, DiscoveredDevice]) -> dict[int, list[DiscoveredDevice]]:
    """Group devices by NUMA node, each group ordered by device name."""
    groups: dict[int, list[DiscoveredDevice]] = defaultdict(list)
    for name in sorted(devices):
        dev = devices[name]
        groups[int(dev.numa_node)].append(dev)
    return dict(groups)
