"""Typed reads of sysfs device attributes.

The kernel driver exposes each accelerator as a directory of plain-text
attribute files plus a ``device`` symlink into the PCI device tree:

    /sys/class/mock-accel/mock0/uuid
    /sys/class/mock-accel/mock0/memory_size
    /sys/class/mock-accel/mock0/capabilities      (decimal or 0x-prefixed hex)
    /sys/class/mock-accel/mock0/device -> ../../../0000:11:00.0
    /sys/class/mock-accel/mock0/device/numa_node

Every failure is raised as a SysfsError that names the attribute and the
device path it was read from.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from accel_dra.domain.value_objects.identifiers import NUMANodeId, PCIAddress

PathLike = Union[str, "os.PathLike[str]"]

DEVICE_LINK = "device"
NUMA_NODE_ATTR = "numa_node"

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT32_MAX = (1 << 32) - 1


class SysfsError(Exception):
    """Reading a sysfs attribute failed."""

    def __init__(self, message: str, attribute: str, path: PathLike) -> None:
        super().__init__(f"{message}: {attribute} ({path})")
        self.attribute = attribute
        self.path = str(path)


class SysfsAttributeError(SysfsError):
    """Attribute file missing or unreadable."""
    pass


class SysfsParseError(SysfsError):
    """Attribute content is not a valid value of the expected type."""
    pass


class SysfsLinkError(SysfsError):
    """The device link could not be resolved."""
    pass


def read_string(device_path: PathLike, attr: str) -> str:
    """Read a string attribute with surrounding whitespace removed.

    Raises:
        SysfsAttributeError: If the file is absent or unreadable.
    """
    attr_path = Path(device_path) / attr
    try:
        return attr_path.read_text().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise SysfsAttributeError(f"failed to read attribute: {e}", attr, device_path) from e


def _parse_int(text: str, base: int, attr: str, device_path: PathLike) -> int:
    # int() also accepts underscores, whitespace, non-ASCII digits and a second 0x prefix
    if not text or not text.isascii() or "_" in text or text != text.strip():
        raise SysfsParseError(f"invalid integer {text!r}", attr, device_path)
    if base == 16 and text[:2].lower() == "0x":
        raise SysfsParseError(f"invalid integer {text!r}", attr, device_path)
    try:
        return int(text, base)
    except ValueError as e:
        raise SysfsParseError(f"invalid integer {text!r}", attr, device_path) from e


def read_int64(device_path: PathLike, attr: str) -> int:
    """Read a signed 64-bit decimal attribute.

    Raises:
        SysfsAttributeError: If the file is absent or unreadable.
        SysfsParseError: If the value is not a decimal int64.
    """
    text = read_string(device_path, attr)
    value = _parse_int(text, 10, attr, device_path)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise SysfsParseError(f"value {text} out of int64 range", attr, device_path)
    return value


def read_uint32(device_path: PathLike, attr: str) -> int:
    """Read an unsigned 32-bit attribute, decimal or ``0x``-prefixed hex.

    Raises:
        SysfsAttributeError: If the file is absent or unreadable.
        SysfsParseError: If the value is signed, malformed or wider than 32 bits.
    """
    text = read_string(device_path, attr)
    digits, base = text, 10
    if text[:2] in ("0x", "0X"):
        digits, base = text[2:], 16
    if digits.startswith(("+", "-")):
        raise SysfsParseError(f"signed value {text!r}", attr, device_path)
    value = _parse_int(digits, base, attr, device_path)
    if value > _UINT32_MAX:
        raise SysfsParseError(f"value {text} out of uint32 range", attr, device_path)
    return value


def read_numa_node(device_path: PathLike) -> NUMANodeId:
    """Read the NUMA node of the PCI device behind the ``device`` link.

    A negative value is the kernel's "no NUMA affinity" sentinel and is
    returned as-is.

    Raises:
        SysfsLinkError: If the device link does not resolve or has no numa_node.
        SysfsParseError: If numa_node is not an integer.
    """
    link = Path(device_path) / DEVICE_LINK
    if not link.is_dir():
        raise SysfsLinkError("device link does not resolve", NUMA_NODE_ATTR, device_path)
    try:
        return NUMANodeId(read_int64(link, NUMA_NODE_ATTR))
    except SysfsAttributeError as e:
        raise SysfsLinkError(f"failed to read numa_node: {e}", NUMA_NODE_ATTR, device_path) from e
    except SysfsParseError as e:
        raise SysfsParseError(f"failed to parse numa_node: {e}", NUMA_NODE_ATTR, device_path) from e


def read_pci_address(device_path: PathLike) -> PCIAddress:
    """Return the PCI address the ``device`` link points to.

    The address is the last component of the link target, e.g.
    ``../../../0000:11:00.0`` yields ``0000:11:00.0``.

    Raises:
        SysfsLinkError: If the link cannot be read.
    """
    link = Path(device_path) / DEVICE_LINK
    try:
        target = os.readlink(link)
    except OSError as e:
        raise SysfsLinkError(f"failed to read device symlink: {e}", DEVICE_LINK, device_path) from e

    address = os.path.basename(os.path.normpath(target))
    if not address or address in (".", ".."):
        raise SysfsLinkError(f"no bus address in link target {target!r}", DEVICE_LINK, device_path)
    return PCIAddress(address)
