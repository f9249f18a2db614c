# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Self

from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.workload import ContainerSpec, Volume, WorkloadSpec

logger = get_logger(__name__)


@dataclass(frozen=True)
class DownloadSettings:
    """Where and how the init-containers download the dependencies."""

    image: str
    jars_download_dir: str
    files_download_dir: str
    mount_timeout_minutes: int

    @classmethod
    def fromConf(cls, conf: SubmissionConf) -> Self:
        """Read the download settings from the application configuration, using defaults for missing entries."""
        timeout = conf.getOption(CFG.conf_keys.mount_timeout)
        try:
            timeout_minutes = (
                int(timeout) if timeout else CFG.init_container.mount_timeout_minutes
            )
        except ValueError as e:
            raise KSubConfigurationError(
                f"Invalid value of '{CFG.conf_keys.mount_timeout}': '{timeout}'."
            ) from e

        return cls(
            image=conf.getOption(CFG.conf_keys.init_container_image)
            or CFG.init_container.image,
            jars_download_dir=conf.getOption(CFG.conf_keys.jars_download_dir)
            or CFG.mounts.jars_download_dir,
            files_download_dir=conf.getOption(CFG.conf_keys.files_download_dir)
            or CFG.mounts.files_download_dir,
            mount_timeout_minutes=timeout_minutes,
        )

    def toProperties(self) -> dict[str, str]:
        """Return the download settings as init-container properties."""
        return {
            CFG.conf_keys.jars_download_dir: self.jars_download_dir,
            CFG.conf_keys.files_download_dir: self.files_download_dir,
            CFG.conf_keys.mount_timeout: str(self.mount_timeout_minutes),
        }


class InitContainerBootstrap:
    """
    Adds a dependency-fetching init-container to the driver pod.

    The init-container reads its instructions from a properties file mounted from
    a config map (and optionally a secret) and downloads the dependencies into two
    shared empty-dir volumes. The same volumes are mounted into the main container
    at identical paths, so the downloaded files are visible there once the
    init-container finishes. Several bootstraps may be applied to one pod;
    their init-containers run in the order they were added and share the volumes.
    """

    def __init__(
        self,
        init_container_name: str,
        settings: DownloadSettings,
        config_map_name: str,
        config_map_key: str,
        secret_name: str | None = None,
    ):
        """
        Initialize the bootstrap.

        Args:
            init_container_name (str): Name of the init-container to add.
            settings (DownloadSettings): Image and download directories of the init-container.
            config_map_name (str): Name of the config map holding the properties file.
            config_map_key (str): Key of the properties file inside the config map.
            secret_name (str | None): Name of the secret mounted into the init-container, if any.
        """
        self._init_container_name = init_container_name
        self._image = settings.image
        self._jars_download_dir = settings.jars_download_dir
        self._files_download_dir = settings.files_download_dir
        self._config_map_name = config_map_name
        self._config_map_key = config_map_key
        self._secret_name = secret_name

    def bootstrapInitContainerAndVolumes(
        self, main_container_name: str, spec: WorkloadSpec
    ) -> WorkloadSpec:
        """
        Return a new pod spec with the init-container and its volumes added.

        Args:
            main_container_name (str): Name of the container consuming the dependencies.
            spec (WorkloadSpec): The pod spec to extend.

        Returns:
            WorkloadSpec: The extended pod spec.
        """
        properties_volume = f"{self._init_container_name}-properties"
        properties_file = str(
            PurePosixPath(CFG.mounts.init_properties_dir) / self._config_map_key
        )

        init_container = (
            ContainerSpec(
                name=self._init_container_name,
                image=self._image,
                args=("init", properties_file),
            )
            .withVolumeMount(properties_volume, CFG.mounts.init_properties_dir)
            .withVolumeMount(CFG.mounts.jars_volume, self._jars_download_dir)
            .withVolumeMount(CFG.mounts.files_volume, self._files_download_dir)
        )

        spec = spec.withVolume(
            Volume.fromConfigMap(
                properties_volume,
                self._config_map_name,
                self._config_map_key,
                self._config_map_key,
            )
        )

        if self._secret_name:
            secret_volume = f"{self._init_container_name}-secret"
            init_container = init_container.withVolumeMount(
                secret_volume, CFG.mounts.init_secret_dir
            )
            spec = spec.withVolume(Volume.fromSecret(secret_volume, self._secret_name))

        logger.debug(
            f"Adding init-container '{self._init_container_name}' reading '{self._config_map_name}'."
        )

        return (
            spec.withVolume(Volume.emptyDir(CFG.mounts.jars_volume))
            .withVolume(Volume.emptyDir(CFG.mounts.files_volume))
            .withInitContainer(init_container)
            .withContainer(
                main_container_name,
                lambda container: container.withVolumeMount(
                    CFG.mounts.jars_volume, self._jars_download_dir
                ).withVolumeMount(CFG.mounts.files_volume, self._files_download_dir),
            )
        )
