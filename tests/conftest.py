"""Pytest configuration and shared fixtures for the DRA driver tests."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import pytest
from prometheus_client import CollectorRegistry

from accel_dra.domain.entities.device import DiscoveredDevice, PrimaryFunction, VirtualFunction
from accel_dra.domain.value_objects.identifiers import DeviceName, NUMANodeId, PCIAddress
from accel_dra.infrastructure.config import Config, get_config
from accel_dra.infrastructure.container import Container
from accel_dra.infrastructure.metrics import MetricsRegistry


@dataclass
class MockDevice:
    """Attribute values for one fake sysfs device."""
    name: str
    uuid: str
    memory_size: str
    numa_node: str
    pci_address: str
    capabilities: Optional[str] = "0x00000001"


DEFAULT_DEVICES = [
    MockDevice("mock0", "NODE1-NUMA0-PF", "17179869184", "0", "0000:11:00.0"),
    MockDevice("mock0_vf0", "NODE1-NUMA0-VF0", "2147483648", "0", "0000:11:00.1"),
    MockDevice("mock1", "NODE1-NUMA1-PF", "17179869184", "1", "0000:21:00.0"),
]


def make_device(name, numa=0, memory=17179869184, physfn=None, pci="0000:11:00.0", uuid=None) -> DiscoveredDevice:
    """Build a DiscoveredDevice without touching sysfs."""
    return DiscoveredDevice(
        name=DeviceName(name),
        uuid=uuid or f"UUID-{name}",
        memory_size=memory,
        numa_node=NUMANodeId(numa),
        device_type=VirtualFunction(physfn) if physfn else PrimaryFunction(),
        pci_address=PCIAddress(pci),
        capabilities=1,
    )


def write_attr(directory: Path, name: str, value: str) -> None:
    (directory / name).write_text(value + "\n")


def create_device(sysfs_root: Path, dev: MockDevice) -> Path:
    """Create a device directory with a ``device`` link into a fake PCI tree."""
    dev_dir = sysfs_root / dev.name
    dev_dir.mkdir(parents=True)
    write_attr(dev_dir, "uuid", dev.uuid)
    write_attr(dev_dir, "memory_size", dev.memory_size)
    if dev.capabilities is not None:
        write_attr(dev_dir, "capabilities", dev.capabilities)

    pci_dir = sysfs_root.parent.parent / "devices" / "pci0000:00" / dev.pci_address
    pci_dir.mkdir(parents=True, exist_ok=True)
    write_attr(pci_dir, "numa_node", dev.numa_node)
    os.symlink(os.path.relpath(pci_dir, dev_dir), dev_dir / "device")
    return dev_dir


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container and cached config before each test."""
    Container.reset()
    get_config.cache_clear()
    yield
    Container.reset()
    get_config.cache_clear()


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    """Empty mock-accel class directory."""
    root = tmp_path / "class" / "mock-accel"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def add_device(sysfs_root: Path) -> Callable[[MockDevice], Path]:
    """Factory adding one device to the mock sysfs tree."""
    return lambda dev: create_device(sysfs_root, dev)


@pytest.fixture
def mock_sysfs(sysfs_root: Path) -> Path:
    """Mock sysfs with mock0 (PF), mock0_vf0 (VF) and mock1 (PF)."""
    for dev in DEFAULT_DEVICES:
        create_device(sysfs_root, dev)
    return sysfs_root


@pytest.fixture
def metrics() -> MetricsRegistry:
    """Metrics bound to a private registry."""
    return MetricsRegistry(CollectorRegistry())


@pytest.fixture
def test_config(mock_sysfs: Path) -> Config:
    """Configuration pointing at the mock sysfs tree."""
    config = Config()
    return config.model_copy(update={
        "driver": config.driver.model_copy(update={"node_name": "test-node"}),
        "discovery": config.discovery.model_copy(update={
            "sysfs_path": mock_sysfs,
            "rescan_interval_seconds": 0.05,
        }),
        "kubernetes": config.kubernetes.model_copy(update={"dry_run": True}),
        "server": config.server.model_copy(update={"enable_metrics": False}),
    })


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
