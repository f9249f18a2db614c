# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Immutable description of the driver pod.

`WorkloadSpec` describes the primary cluster resource (the driver pod) as a
tree of frozen dataclasses: `ContainerSpec` for the main and init containers,
`Volume` for pod volumes and `VolumeMount`/`EnvVar` for container settings.
Every `with*` method returns a new value and leaves the original untouched,
so each submission stage produces a new snapshot layered on the previous one.

The final snapshot is rendered into a `kubernetes.client.V1Pod` by `toPod`.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Self

from kubernetes import client


def _freeze(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class EnvVar:
    """Environment variable of a container."""

    name: str
    value: str

    def toKubernetes(self) -> client.V1EnvVar:
        return client.V1EnvVar(name=self.name, value=self.value)


@dataclass(frozen=True)
class VolumeMount:
    """Mount of a pod volume into a container."""

    name: str
    mount_path: str

    def toKubernetes(self) -> client.V1VolumeMount:
        return client.V1VolumeMount(name=self.name, mount_path=self.mount_path)


@dataclass(frozen=True)
class Volume:
    """
    Volume of the pod.

    Exactly one of `secret_name`, `config_map_name` or `empty_dir` describes the source.
    `items` optionally maps config map keys to file names inside the volume.
    """

    name: str
    secret_name: str | None = None
    config_map_name: str | None = None
    empty_dir: bool = False
    items: tuple[tuple[str, str], ...] = ()

    @classmethod
    def fromSecret(cls, name: str, secret_name: str) -> Self:
        return cls(name=name, secret_name=secret_name)

    @classmethod
    def fromConfigMap(
        cls, name: str, config_map_name: str, key: str, path: str
    ) -> Self:
        return cls(name=name, config_map_name=config_map_name, items=((key, path),))

    @classmethod
    def emptyDir(cls, name: str) -> Self:
        return cls(name=name, empty_dir=True)

    def toKubernetes(self) -> client.V1Volume:
        if self.secret_name:
            return client.V1Volume(
                name=self.name,
                secret=client.V1SecretVolumeSource(secret_name=self.secret_name),
            )

        if self.config_map_name:
            return client.V1Volume(
                name=self.name,
                config_map=client.V1ConfigMapVolumeSource(
                    name=self.config_map_name,
                    items=[
                        client.V1KeyToPath(key=key, path=path)
                        for key, path in self.items
                    ]
                    or None,
                ),
            )

        return client.V1Volume(name=self.name, empty_dir=client.V1EmptyDirVolumeSource())


@dataclass(frozen=True)
class ContainerSpec:
    """
    Container of the driver pod.

    Environment variables may only be declared once per name. Declaring
    the same name twice is a bug in the calling code and fails an assertion.
    """

    name: str
    image: str
    image_pull_policy: str = "IfNotPresent"
    args: tuple[str, ...] = ()
    env: tuple[EnvVar, ...] = ()
    volume_mounts: tuple[VolumeMount, ...] = ()
    memory_mb: int | None = None

    def getEnv(self, name: str) -> str | None:
        """Return the value of the environment variable `name` or None if it is not declared."""
        for var in self.env:
            if var.name == name:
                return var.value
        return None

    def withEnv(self, name: str, value: str) -> Self:
        """Return a new container with an additional environment variable."""
        assert all(var.name != name for var in self.env), (
            f"Environment variable '{name}' is already declared in container '{self.name}'."
        )
        return replace(self, env=self.env + (EnvVar(name, value),))

    def withVolumeMount(self, name: str, mount_path: str) -> Self:
        """Return a new container with an additional volume mount."""
        mount = VolumeMount(name, mount_path)
        if mount in self.volume_mounts:
            return self
        return replace(self, volume_mounts=self.volume_mounts + (mount,))

    def toKubernetes(self) -> client.V1Container:
        resources = None
        if self.memory_mb is not None:
            memory = f"{self.memory_mb}Mi"
            resources = client.V1ResourceRequirements(
                requests={"memory": memory}, limits={"memory": memory}
            )

        return client.V1Container(
            name=self.name,
            image=self.image,
            image_pull_policy=self.image_pull_policy,
            args=list(self.args) or None,
            env=[var.toKubernetes() for var in self.env] or None,
            volume_mounts=[mount.toKubernetes() for mount in self.volume_mounts]
            or None,
            resources=resources,
        )


@dataclass(frozen=True)
class WorkloadSpec:
    """
    Description of the driver pod.

    Attributes:
        name (str): Name of the pod (the generated application identifier).
        labels (Mapping[str, str]): Labels of the pod.
        annotations (Mapping[str, str]): Annotations of the pod.
        containers (tuple[ContainerSpec, ...]): Main containers of the pod.
        init_containers (tuple[ContainerSpec, ...]): Init-containers, run in order.
        volumes (tuple[Volume, ...]): Volumes of the pod.
        restart_policy (str): Restart policy of the pod.
    """

    name: str
    labels: Mapping[str, str] = field(default_factory=dict)
    annotations: Mapping[str, str] = field(default_factory=dict)
    containers: tuple[ContainerSpec, ...] = ()
    init_containers: tuple[ContainerSpec, ...] = ()
    volumes: tuple[Volume, ...] = ()
    restart_policy: str = "Never"

    def __post_init__(self):
        object.__setattr__(self, "labels", _freeze(self.labels))
        object.__setattr__(self, "annotations", _freeze(self.annotations))

    def getContainer(self, name: str) -> ContainerSpec:
        """
        Return the main container with the given name.

        Raises:
            KeyError: If there is no such container.
        """
        for container in self.containers:
            if container.name == name:
                return container
        raise KeyError(f"Container '{name}' not found in pod '{self.name}'.")

    def hasVolume(self, name: str) -> bool:
        """Return True if the pod declares a volume of the given name."""
        return any(volume.name == name for volume in self.volumes)

    def withContainer(
        self, name: str, edit: Callable[[ContainerSpec], ContainerSpec]
    ) -> Self:
        """Return a new spec with the main container `name` replaced by `edit(container)`."""
        self.getContainer(name)
        return replace(
            self,
            containers=tuple(
                edit(container) if container.name == name else container
                for container in self.containers
            ),
        )

    def withVolume(self, volume: Volume) -> Self:
        """
        Return a new spec with an additional volume.

        Adding a volume identical to an existing one returns the spec unchanged.
        """
        if volume in self.volumes:
            return self
        assert not self.hasVolume(volume.name), (
            f"A different volume named '{volume.name}' is already declared in pod '{self.name}'."
        )
        return replace(self, volumes=self.volumes + (volume,))

    def withInitContainer(self, container: ContainerSpec) -> Self:
        """Return a new spec with an init-container appended after the existing ones."""
        assert all(c.name != container.name for c in self.init_containers), (
            f"Init-container '{container.name}' is already declared in pod '{self.name}'."
        )
        return replace(self, init_containers=self.init_containers + (container,))

    def toPod(self) -> client.V1Pod:
        """Render the spec as a Kubernetes pod."""
        return client.V1Pod(
            api_version="v1",
            kind="Pod",
            metadata=client.V1ObjectMeta(
                name=self.name,
                labels=dict(self.labels) or None,
                annotations=dict(self.annotations) or None,
            ),
            spec=client.V1PodSpec(
                containers=[c.toKubernetes() for c in self.containers],
                init_containers=[c.toKubernetes() for c in self.init_containers]
                or None,
                volumes=[v.toKubernetes() for v in self.volumes] or None,
                restart_policy=self.restart_policy,
            ),
        )
