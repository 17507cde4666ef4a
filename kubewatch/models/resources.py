"""Resource descriptors: which API surface serves a resource and how to decode it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ApiSurface(StrEnum):
    """API group/version client a resource is listed and watched through."""

    CORE_V1 = "core_v1"
    APPS_V1 = "apps_v1"
    AUTOSCALING_V1 = "autoscaling_v1"
    BATCH_V1 = "batch_v1"
    NETWORKING_V1 = "networking_v1"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Static description of one watchable resource type.

    ``prototype`` is the client model the watch stream decodes payloads into
    (e.g. ``V1Pod``). ``method_stem`` is the snake-case stem of the client's
    list functions (``list_namespaced_<stem>``, ``list_<stem>_for_all_namespaces``
    or ``list_<stem>`` for cluster-scoped resources).
    """

    name: str
    api_surface: ApiSurface
    prototype: str
    method_stem: str
    namespaced: bool = True

    def list_call(self, namespace: str = "") -> tuple[str, dict[str, Any]]:
        """Return the list method name and its scoping kwargs."""
        if not self.namespaced:
            return f"list_{self.method_stem}", {}
        if namespace:
            return f"list_namespaced_{self.method_stem}", {"namespace": namespace}
        return f"list_{self.method_stem}_for_all_namespaces", {}
