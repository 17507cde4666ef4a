"""Static registry of watchable resources.

Maps each supported resource name to the API surface that serves it and the
client model its watch payloads decode into. The registry is built once and
never mutated, so every watch loop can read it concurrently.
"""

from __future__ import annotations

from collections.abc import Iterable

from kubewatch.errors import UnknownResource
from kubewatch.models.resources import ApiSurface, ResourceDescriptor

_CORE = ApiSurface.CORE_V1

DEFAULT_DESCRIPTORS: tuple[ResourceDescriptor, ...] = (
    # core/v1
    ResourceDescriptor("configmaps", _CORE, "V1ConfigMap", "config_map"),
    ResourceDescriptor("endpoints", _CORE, "V1Endpoints", "endpoints"),
    ResourceDescriptor("events", _CORE, "CoreV1Event", "event"),
    ResourceDescriptor("limitranges", _CORE, "V1LimitRange", "limit_range"),
    ResourceDescriptor("persistentvolumeclaims", _CORE, "V1PersistentVolumeClaim", "persistent_volume_claim"),
    ResourceDescriptor("persistentvolumes", _CORE, "V1PersistentVolume", "persistent_volume", namespaced=False),
    ResourceDescriptor("pods", _CORE, "V1Pod", "pod"),
    ResourceDescriptor("podtemplates", _CORE, "V1PodTemplate", "pod_template"),
    ResourceDescriptor("replicationcontrollers", _CORE, "V1ReplicationController", "replication_controller"),
    ResourceDescriptor("resourcequotas", _CORE, "V1ResourceQuota", "resource_quota"),
    ResourceDescriptor("secrets", _CORE, "V1Secret", "secret"),
    ResourceDescriptor("serviceaccounts", _CORE, "V1ServiceAccount", "service_account"),
    ResourceDescriptor("services", _CORE, "V1Service", "service"),
    # formerly extensions/v1beta1
    ResourceDescriptor("deployments", ApiSurface.APPS_V1, "V1Deployment", "deployment"),
    ResourceDescriptor(
        "horizontalpodautoscalers",
        ApiSurface.AUTOSCALING_V1,
        "V1HorizontalPodAutoscaler",
        "horizontal_pod_autoscaler",
    ),
    ResourceDescriptor("ingresses", ApiSurface.NETWORKING_V1, "V1Ingress", "ingress"),
    ResourceDescriptor("jobs", ApiSurface.BATCH_V1, "V1Job", "job"),
)


class ResourceRegistry:
    """Immutable name -> ResourceDescriptor lookup."""

    def __init__(self, descriptors: Iterable[ResourceDescriptor] = DEFAULT_DESCRIPTORS) -> None:
        by_name: dict[str, ResourceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in by_name:
                raise ValueError(f"Duplicate resource descriptor: {descriptor.name}")
            by_name[descriptor.name] = descriptor
        self._by_name = by_name

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def names(self) -> list[str]:
        """Supported resource names in declaration order."""
        return list(self._by_name)

    def lookup(self, name: str) -> ResourceDescriptor:
        """Return the descriptor for *name*.

        Raises:
            UnknownResource: if *name* is not supported.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownResource(name) from None

    def resolve(self, names: Iterable[str]) -> list[ResourceDescriptor]:
        """Look up every name, failing on the first unknown one."""
        return [self.lookup(name) for name in names]


SUPPORTED_RESOURCES: tuple[str, ...] = tuple(d.name for d in DEFAULT_DESCRIPTORS)
