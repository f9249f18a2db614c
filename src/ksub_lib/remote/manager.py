# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Sequence
from pathlib import PurePosixPath

from ksub_lib.core.bootstrap import DownloadSettings, InitContainerBootstrap
from ksub_lib.core.common import (
    get_file_name,
    get_path,
    get_scheme,
    is_remote,
    render_properties,
)
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubInvariantViolation
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.supporting import SupportingResource
from ksub_lib.properties.workload import WorkloadSpec

logger = get_logger(__name__)


class RemoteDependencyManager:
    """
    Downloads the remote dependencies of the application into the driver pod.

    Operates on the already resolved dependencies: staged dependencies point
    into the pod (scheme 'local') at this point, so only the dependencies
    fetchable from remote locations are left for this manager to download.
    """

    def __init__(
        self,
        app_id: str,
        resolved_jars: Sequence[str],
        resolved_files: Sequence[str],
        settings: DownloadSettings,
    ):
        self._app_id = app_id
        self._resolved_jars = list(resolved_jars)
        self._resolved_files = list(resolved_files)
        self._settings = settings

    def buildFetchInstructions(self) -> SupportingResource:
        """
        Create the config map telling the init-container which remote dependencies to download.

        The config map is created even if there is nothing to download.
        """
        remote_jars = [jar for jar in self._resolved_jars if is_remote(jar)]
        remote_files = [file for file in self._resolved_files if is_remote(file)]
        logger.debug(
            f"Downloading {len(remote_jars)} remote jar(s) and {len(remote_files)} remote file(s)."
        )

        properties = {
            CFG.conf_keys.init_remote_jars: ",".join(remote_jars),
            CFG.conf_keys.init_remote_files: ",".join(remote_files),
        } | self._settings.toProperties()

        return SupportingResource.configMap(
            self._getConfigMapName(),
            {CFG.init_container.remote_config_key: render_properties(properties)},
        )

    def bootstrapFetchPhase(
        self,
        instructions: SupportingResource,
        container_name: str,
        spec: WorkloadSpec,
    ) -> WorkloadSpec:
        """
        Add the init-container downloading the remote dependencies to the driver pod.

        The init-container runs after any previously added init-container and shares
        the download volumes with it.
        """
        return InitContainerBootstrap(
            CFG.init_container.remote_name,
            self._settings,
            instructions.name,
            CFG.init_container.remote_config_key,
        ).bootstrapInitContainerAndVolumes(container_name, spec)

    def resolveLocalClasspath(self) -> list[str]:
        """
        Return the paths of all jars inside the driver pod.

        Jars present in the container image and jars given by plain paths keep
        their path. Remote jars are found in the jars download directory.

        Raises:
            KSubInvariantViolation: If any classpath entry still contains a scheme.
        """
        classpath = []
        for jar in self._resolved_jars:
            if is_remote(jar):
                entry = str(
                    PurePosixPath(self._settings.jars_download_dir) / get_file_name(jar)
                )
            else:
                entry = get_path(jar)

            if get_scheme(entry):
                raise KSubInvariantViolation(
                    f"Resolved classpath entry '{entry}' (from '{jar}') must not contain a scheme."
                )
            classpath.append(entry)

        logger.debug(f"Resolved local classpath: {classpath}.")
        return classpath

    def propagateToWorkers(
        self, conf: SubmissionConf, instructions: SupportingResource
    ) -> SubmissionConf:
        """Configure the executors to download the remote dependencies using the same instructions."""
        return conf.setAll(
            {
                CFG.conf_keys.executor_remote_config_map: instructions.name,
                CFG.conf_keys.executor_remote_config_map_key: CFG.init_container.remote_config_key,
            }
        )

    def _getConfigMapName(self) -> str:
        return f"{self._app_id}-remote-deps-init"


class RemoteDependencyManagerProvider:
    """Creates `RemoteDependencyManager` instances for one application configuration."""

    def __init__(self, conf: SubmissionConf):
        self._settings = DownloadSettings.fromConf(conf)

    def getRemoteDependencyManager(
        self,
        app_id: str,
        resolved_jars: Sequence[str],
        resolved_files: Sequence[str],
    ) -> RemoteDependencyManager:
        return RemoteDependencyManager(
            app_id, resolved_jars, resolved_files, self._settings
        )
