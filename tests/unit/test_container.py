"""Unit tests for the dependency injection container."""

from unittest.mock import MagicMock

import pytest

from accel_dra.adapters.outbound.memory_store import InMemoryResourceSliceStore
from accel_dra.infrastructure import container as container_module
from accel_dra.infrastructure.container import Container, get_container


@pytest.mark.unit
class TestContainer:
    """Test container wiring."""

    def test_singleton(self, test_config):
        created = Container.create(test_config)

        assert Container.create() is created
        assert get_container() is created
        Container.reset()
        assert Container._instance is None

    def test_dry_run_store(self, test_config):
        store = Container.create(test_config).build_store()
        assert isinstance(store, InMemoryResourceSliceStore)

    def test_cluster_store(self, test_config, monkeypatch):
        config = test_config.model_copy(update={
            "kubernetes": test_config.kubernetes.model_copy(update={
                "dry_run": False,
                "request_timeout_seconds": 3.0,
            }),
        })
        from_environment = MagicMock()
        monkeypatch.setattr(container_module.KubernetesResourceSliceStore, "from_environment", from_environment)

        Container.create(config).build_store()

        from_environment.assert_called_once_with(kubeconfig=None, request_timeout=3.0)

    def test_build_reconciler(self, test_config):
        reconciler = Container.create(test_config).build_reconciler()

        result = reconciler.reconcile()

        assert reconciler.rescan_interval == 0.05
        assert result.devices == 3
        assert result.created == 3

    def test_build_reconciler_requires_node(self, test_config):
        config = test_config.model_copy(update={
            "driver": test_config.driver.model_copy(update={"node_name": ""}),
        })
        with pytest.raises(ValueError):
            Container.create(config).build_reconciler()
