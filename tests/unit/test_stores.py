"""Unit tests for ResourceSlice store adapters."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import MaxRetryError, ReadTimeoutError

from accel_dra.adapters.outbound.kubernetes_store import (
    KubernetesResourceSliceStore,
    slice_from_manifest,
)
from accel_dra.adapters.outbound.memory_store import InMemoryResourceSliceStore
from accel_dra.domain.entities.resource_slice import ResourceSlice
from accel_dra.domain.services.slice_builder import ResourceSliceBuilder
from accel_dra.ports.outbound import SliceConflictError, SliceStoreError, UpsertOutcome
from tests.conftest import make_device


def build_slice(name="mock0", physfn=None) -> ResourceSlice:
    builder = ResourceSliceBuilder("test-node")
    return builder.build({name: make_device(name, physfn=physfn)})[0]


@pytest.mark.unit
class TestInMemoryStore:
    """Test the dict-backed store."""

    def test_create_then_update(self):
        store = InMemoryResourceSliceStore()

        assert store.upsert(build_slice()) is UpsertOutcome.CREATED
        first_version = store.get(build_slice().name).resource_version
        assert store.upsert(build_slice()) is UpsertOutcome.UPDATED

        stored = store.get(build_slice().name)
        assert stored.resource_version != first_version
        assert len(store) == 1

    def test_get_missing(self):
        assert InMemoryResourceSliceStore().get("nope") is None

    def test_stale_version_conflicts(self):
        store = InMemoryResourceSliceStore()
        store.upsert(build_slice())
        stale = store.get(build_slice().name)
        store.upsert(build_slice())

        with pytest.raises(SliceConflictError):
            store.upsert(stale)

    def test_get_returns_copy(self):
        store = InMemoryResourceSliceStore()
        store.upsert(build_slice())
        fetched = store.get(build_slice().name)
        fetched.labels["device"] = "changed"
        assert store.get(build_slice().name).labels["device"] == "mock0"


def api_exception(status: int, reason: str = "") -> ApiException:
    return ApiException(status=status, reason=reason)


@pytest.mark.unit
class TestKubernetesStore:
    """Test the API adapter against a mocked CustomObjectsApi."""

    @pytest.fixture
    def api(self):
        return MagicMock()

    def test_create_when_absent(self, api):
        api.get_cluster_custom_object.side_effect = api_exception(404, "Not Found")
        api.create_cluster_custom_object.return_value = {"metadata": {"resourceVersion": "7"}}
        store = KubernetesResourceSliceStore(api)
        resource_slice = build_slice()

        assert store.upsert(resource_slice) is UpsertOutcome.CREATED

        kwargs = api.create_cluster_custom_object.call_args.kwargs
        assert kwargs["group"] == "resource.k8s.io"
        assert kwargs["version"] == "v1"
        assert kwargs["plural"] == "resourceslices"
        assert kwargs["body"]["metadata"]["name"] == resource_slice.name
        assert "resourceVersion" not in kwargs["body"]["metadata"]
        assert resource_slice.resource_version == "7"
        api.replace_cluster_custom_object.assert_not_called()

    def test_update_carries_resource_version(self, api):
        resource_slice = build_slice()
        api.get_cluster_custom_object.return_value = {"metadata": {"name": resource_slice.name, "resourceVersion": "12"}}
        api.replace_cluster_custom_object.return_value = {"metadata": {"resourceVersion": "13"}}
        store = KubernetesResourceSliceStore(api, request_timeout=5)

        assert store.upsert(resource_slice) is UpsertOutcome.UPDATED

        kwargs = api.replace_cluster_custom_object.call_args.kwargs
        assert kwargs["name"] == resource_slice.name
        assert kwargs["body"]["metadata"]["resourceVersion"] == "12"
        assert kwargs["_request_timeout"] == 5
        assert resource_slice.resource_version == "13"
        api.create_cluster_custom_object.assert_not_called()

    def test_conflict(self, api):
        api.get_cluster_custom_object.return_value = {"metadata": {"resourceVersion": "12"}}
        api.replace_cluster_custom_object.side_effect = api_exception(409, "Conflict")

        with pytest.raises(SliceConflictError):
            KubernetesResourceSliceStore(api).upsert(build_slice())

    def test_get_error(self, api):
        api.get_cluster_custom_object.side_effect = api_exception(500, "Internal Server Error")
        store = KubernetesResourceSliceStore(api)

        with pytest.raises(SliceStoreError):
            store.upsert(build_slice())
        with pytest.raises(SliceStoreError):
            store.get("anything")

    def test_create_error(self, api):
        api.get_cluster_custom_object.side_effect = api_exception(404)
        api.create_cluster_custom_object.side_effect = api_exception(403, "Forbidden")

        with pytest.raises(SliceStoreError) as exc_info:
            KubernetesResourceSliceStore(api).upsert(build_slice())
        assert not isinstance(exc_info.value, SliceConflictError)

    def test_get_parses_manifest(self, api):
        original = build_slice("mock0_vf0", physfn="mock0")
        manifest = original.to_manifest()
        manifest["metadata"]["resourceVersion"] = "3"
        api.get_cluster_custom_object.return_value = manifest

        fetched = KubernetesResourceSliceStore(api).get(original.name)

        assert fetched.resource_version == "3"
        fetched.resource_version = None
        assert fetched == original

    def test_slice_from_manifest_minimal(self):
        resource_slice = slice_from_manifest({"metadata": {"name": "x"}, "spec": {}})
        assert resource_slice.name == "x"
        assert resource_slice.devices == []


@pytest.mark.unit
class TestKubernetesStoreTransportErrors:
    """Connection-level failures from the client surface as store errors."""

    @pytest.fixture
    def api(self):
        return MagicMock()

    @pytest.mark.parametrize("error", [
        MaxRetryError(None, "/apis", "connection refused"),
        ReadTimeoutError(None, "/apis", "read timed out"),
        ConnectionRefusedError(111, "Connection refused"),
    ])
    def test_get_unreachable(self, api, error):
        api.get_cluster_custom_object.side_effect = error
        store = KubernetesResourceSliceStore(api)

        with pytest.raises(SliceStoreError) as exc_info:
            store.upsert(build_slice())

        assert not isinstance(exc_info.value, SliceConflictError)
        assert exc_info.value.__cause__ is error
        api.create_cluster_custom_object.assert_not_called()

    def test_create_unreachable(self, api):
        api.get_cluster_custom_object.side_effect = api_exception(404, "Not Found")
        api.create_cluster_custom_object.side_effect = MaxRetryError(None, "/apis", "connection reset")

        with pytest.raises(SliceStoreError, match="Failed to create"):
            KubernetesResourceSliceStore(api).upsert(build_slice())

    def test_replace_timeout(self, api):
        api.get_cluster_custom_object.return_value = {"metadata": {"resourceVersion": "3"}}
        api.replace_cluster_custom_object.side_effect = ReadTimeoutError(None, "/apis", "read timed out")

        with pytest.raises(SliceStoreError, match="Failed to update"):
            KubernetesResourceSliceStore(api, request_timeout=1.0).upsert(build_slice())
