# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Supporting resources of the driver pod.

A `SupportingResource` is a secret or config map that only exists to feed
data (credentials, dependency-fetch instructions) to the driver pod and its
init-containers. It is owned by the driver pod through an `OwnerIdentity`
that becomes known only after the pod has been created.
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Self

from kubernetes import client


class SupportingResourceKind(Enum):
    """
    Kind of the supporting resource.
    """

    SECRET = 1
    CONFIG_MAP = 2

    def __str__(self):
        match self:
            case SupportingResourceKind.SECRET:
                return "Secret"
            case SupportingResourceKind.CONFIG_MAP:
                return "ConfigMap"


@dataclass(frozen=True)
class OwnerIdentity:
    """
    Identity of a created cluster resource used to establish ownership.

    Attributes:
        name (str): Name of the resource.
        api_version (str): API version of the resource.
        uid (str): Unique identifier assigned by the cluster.
        kind (str): Kind of the resource.
    """

    name: str
    api_version: str
    uid: str
    kind: str

    @classmethod
    def fromKubernetes(cls, resource) -> Self:
        """Extract the identity from a resource returned by the Kubernetes API."""
        return cls(
            name=resource.metadata.name,
            api_version=resource.api_version,
            uid=resource.metadata.uid,
            kind=resource.kind,
        )

    def toKubernetes(self) -> client.V1OwnerReference:
        """Return a controller owner reference pointing at this resource."""
        return client.V1OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid,
            controller=True,
        )


@dataclass(frozen=True)
class SupportingResource:
    """
    Secret or config map accompanying the driver pod.

    For secrets, `data` holds base64-encoded values. For config maps, it holds plain text.
    """

    kind: SupportingResourceKind
    name: str
    data: Mapping[str, str] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)
    owner: OwnerIdentity | None = None

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @classmethod
    def secret(
        cls,
        name: str,
        values: Mapping[str, str | bytes],
        labels: Mapping[str, str] | None = None,
    ) -> Self:
        """Create a secret, base64-encoding the provided raw values."""
        data = {}
        for key, value in values.items():
            raw = value.encode() if isinstance(value, str) else value
            data[key] = base64.b64encode(raw).decode("ascii")
        return cls(SupportingResourceKind.SECRET, name, data, labels or {})

    @classmethod
    def configMap(
        cls,
        name: str,
        values: Mapping[str, str],
        labels: Mapping[str, str] | None = None,
    ) -> Self:
        """Create a config map holding the provided values."""
        return cls(SupportingResourceKind.CONFIG_MAP, name, values, labels or {})

    def isSecret(self) -> bool:
        return self.kind == SupportingResourceKind.SECRET

    def withOwner(self, owner: OwnerIdentity) -> Self:
        """Return a copy of the resource owned by `owner`."""
        return replace(self, owner=owner)

    def toManifest(self) -> client.V1Secret | client.V1ConfigMap:
        """Render the resource as a Kubernetes object."""
        metadata = client.V1ObjectMeta(
            name=self.name,
            labels=dict(self.labels) or None,
            owner_references=[self.owner.toKubernetes()] if self.owner else None,
        )

        if self.isSecret():
            return client.V1Secret(
                api_version="v1",
                kind="Secret",
                metadata=metadata,
                type="Opaque",
                data=dict(self.data),
            )

        return client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=metadata,
            data=dict(self.data),
        )

    def __repr__(self) -> str:
        # never print the content of secrets
        content = "<redacted>" if self.isSecret() else dict(self.data)
        return (
            f"SupportingResource(kind={self.kind}, name={self.name!r}, "
            f"data={content!r}, owner={self.owner!r})"
        )
