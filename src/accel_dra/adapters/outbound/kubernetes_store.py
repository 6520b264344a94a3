"""Kubernetes API adapter for ResourceSlice persistence.

ResourceSlices are cluster-scoped ``resource.k8s.io/v1`` objects. The
adapter goes through CustomObjectsApi so it works with any client release
that can reach the group, and implements upsert as get, then create on
404 or replace with the stored resourceVersion.

References:
    - https://kubernetes.io/docs/reference/kubernetes-api/workload-resources/resource-slice-v1/
    - API concurrency control (resourceVersion, 409 Conflict)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.utils import parse_quantity

from accel_dra.domain.entities.resource_slice import (
    RESOURCE_API_GROUP,
    RESOURCE_API_VERSION,
    RESOURCE_SLICE_PLURAL,
    Device,
    DeviceAttribute,
    DeviceCapacity,
    Quantity,
    ResourcePool,
    ResourceSlice,
)
from accel_dra.ports.outbound import SliceConflictError, SliceStoreError, UpsertOutcome

logger = logging.getLogger(__name__)

# Connection refused, timeouts and TLS failures surface from urllib3, not as ApiException
_TRANSPORT_ERRORS = (urllib3.exceptions.HTTPError, OSError)

_ATTRIBUTE_FIELDS = {
    "string": "string_value",
    "int": "int_value",
    "bool": "bool_value",
    "version": "version_value",
}


def load_kube_config(kubeconfig: Optional[Path] = None) -> None:
    """Load in-cluster credentials, falling back to a kubeconfig file.

    Raises:
        SliceStoreError: If neither configuration source is usable.
    """
    if kubeconfig is None:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
            return
        except ConfigException:
            logger.debug("Not running in a cluster, trying kubeconfig")
    try:
        config.load_kube_config(config_file=str(kubeconfig) if kubeconfig else None)
        logger.info(f"Loaded kubeconfig {kubeconfig or '(default)'}")
    except (ConfigException, OSError) as e:
        raise SliceStoreError(f"Failed to load Kubernetes config: {e}") from e


def slice_from_manifest(manifest: dict[str, Any]) -> ResourceSlice:
    """Convert an API object into a ResourceSlice."""
    metadata = manifest.get("metadata", {})
    spec = manifest.get("spec", {})
    pool = spec.get("pool", {})

    devices = []
    for raw in spec.get("devices") or []:
        attributes = {
            key: DeviceAttribute(**{
                _ATTRIBUTE_FIELDS[field]: value
                for field, value in attr.items()
                if field in _ATTRIBUTE_FIELDS
            })
            for key, attr in (raw.get("attributes") or {}).items()
        }
        capacity = {
            key: DeviceCapacity(value=Quantity(int(parse_quantity(cap["value"]))))
            for key, cap in (raw.get("capacity") or {}).items()
        }
        devices.append(Device(name=raw["name"], attributes=attributes, capacity=capacity))

    return ResourceSlice(
        name=metadata["name"],
        driver=spec.get("driver", ""),
        node_name=spec.get("nodeName", ""),
        pool=ResourcePool(
            name=pool.get("name", ""),
            generation=pool.get("generation", 0),
            resource_slice_count=pool.get("resourceSliceCount", 1),
        ),
        devices=devices,
        labels=dict(metadata.get("labels") or {}),
        resource_version=metadata.get("resourceVersion"),
    )


class KubernetesResourceSliceStore:
    """ResourceSliceStore backed by the Kubernetes API server."""

    def __init__(
        self,
        api: Optional[client.CustomObjectsApi] = None,
        request_timeout: Optional[float] = None,
    ) -> None:
        """Initialize the store.

        Args:
            api: Custom objects client. Built from the loaded config if None.
            request_timeout: Per-request timeout in seconds, None for no limit.
        """
        self._api = api or client.CustomObjectsApi()
        self._request_timeout = request_timeout

    @classmethod
    def from_environment(
        cls,
        kubeconfig: Optional[Path] = None,
        request_timeout: Optional[float] = None,
    ) -> KubernetesResourceSliceStore:
        load_kube_config(kubeconfig)
        return cls(client.CustomObjectsApi(), request_timeout=request_timeout)

    def _call_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "group": RESOURCE_API_GROUP,
            "version": RESOURCE_API_VERSION,
            "plural": RESOURCE_SLICE_PLURAL,
        }
        if self._request_timeout is not None:
            kwargs["_request_timeout"] = self._request_timeout
        return kwargs

    def _get_manifest(self, name: str) -> Optional[dict[str, Any]]:
        try:
            return self._api.get_cluster_custom_object(name=name, **self._call_kwargs())
        except ApiException as e:
            if e.status == 404:
                return None
            raise SliceStoreError(f"Failed to get ResourceSlice {name}: {e.reason}") from e
        except _TRANSPORT_ERRORS as e:
            raise SliceStoreError(f"Failed to get ResourceSlice {name}: {e}") from e

    def get(self, name: str) -> Optional[ResourceSlice]:
        manifest = self._get_manifest(name)
        return slice_from_manifest(manifest) if manifest is not None else None

    def upsert(self, resource_slice: ResourceSlice) -> UpsertOutcome:
        existing = self._get_manifest(resource_slice.name)

        if existing is None:
            resource_slice.resource_version = None
            try:
                created = self._api.create_cluster_custom_object(
                    body=resource_slice.to_manifest(), **self._call_kwargs()
                )
            except ApiException as e:
                raise self._translate(e, "create", resource_slice.name) from e
            except _TRANSPORT_ERRORS as e:
                raise SliceStoreError(f"Failed to create ResourceSlice {resource_slice.name}: {e}") from e
            resource_slice.resource_version = created.get("metadata", {}).get("resourceVersion")
            logger.debug(f"Created ResourceSlice {resource_slice.name}")
            return UpsertOutcome.CREATED

        resource_slice.resource_version = existing.get("metadata", {}).get("resourceVersion")
        try:
            updated = self._api.replace_cluster_custom_object(
                name=resource_slice.name,
                body=resource_slice.to_manifest(),
                **self._call_kwargs(),
            )
        except ApiException as e:
            raise self._translate(e, "update", resource_slice.name) from e
        except _TRANSPORT_ERRORS as e:
            raise SliceStoreError(f"Failed to update ResourceSlice {resource_slice.name}: {e}") from e
        resource_slice.resource_version = updated.get("metadata", {}).get("resourceVersion")
        logger.debug(f"Updated ResourceSlice {resource_slice.name}")
        return UpsertOutcome.UPDATED

    @staticmethod
    def _translate(e: ApiException, verb: str, name: str) -> SliceStoreError:
        message = f"Failed to {verb} ResourceSlice {name}: {e.status} {e.reason}"
        if e.status == 409:
            return SliceConflictError(message)
        return SliceStoreError(message)
