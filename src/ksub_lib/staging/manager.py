# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Mapping, Sequence
from pathlib import PurePosixPath

from ksub_lib.core.bootstrap import DownloadSettings, InitContainerBootstrap
from ksub_lib.core.common import (
    get_file_name,
    is_submitter_local,
    render_properties,
)
from ksub_lib.core.config import CFG
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.dependencies import StagingTicket
from ksub_lib.properties.supporting import SupportingResource
from ksub_lib.properties.workload import WorkloadSpec

from .client import StagingClient

logger = get_logger(__name__)


class StagedDependencyManager:
    """
    Moves the submitter-local dependencies into the driver pod through the resource staging server.

    The local jars and files are uploaded to the staging server as two separate bundles.
    The tickets returned by the server are packed into a secret (the resource secrets)
    and a config map (the resource identifiers and download settings) which are read
    by an init-container downloading the bundles into the driver pod.
    """

    def __init__(
        self,
        app_id: str,
        staging_uri: str,
        pod_labels: Mapping[str, str],
        pod_namespace: str,
        jars: Sequence[str],
        files: Sequence[str],
        settings: DownloadSettings,
        client: StagingClient,
    ):
        """
        Initialize the manager.

        Args:
            app_id (str): Identifier of the application, used to name the supporting resources.
            staging_uri (str): URI of the resource staging server.
            pod_labels (Mapping[str, str]): Labels of the driver pod.
            pod_namespace (str): Namespace of the driver pod.
            jars (Sequence[str]): Locators of all jar dependencies.
            files (Sequence[str]): Locators of all file dependencies.
            settings (DownloadSettings): Download settings of the init-container.
            client (StagingClient): Client of the staging server.
        """
        self._app_id = app_id
        self._staging_uri = staging_uri
        self._pod_labels = dict(pod_labels)
        self._pod_namespace = pod_namespace
        self._jars = list(jars)
        self._files = list(files)
        self._settings = settings
        self._client = client

    def uploadJars(self) -> StagingTicket:
        """
        Upload the submitter-local jars to the staging server.

        A bundle is uploaded even if there are no local jars. Every call uploads
        the jars again and returns a new ticket.

        Raises:
            KSubTransientError: If the upload fails.
        """
        return self._upload(self._jars, "jars")

    def uploadFiles(self) -> StagingTicket:
        """
        Upload the submitter-local files to the staging server.

        A bundle is uploaded even if there are no local files. Every call uploads
        the files again and returns a new ticket.

        Raises:
            KSubTransientError: If the upload fails.
        """
        return self._upload(self._files, "files")

    def buildFetchSecret(
        self, jars_ticket: StagingTicket, files_ticket: StagingTicket
    ) -> SupportingResource:
        """Create the secret holding the resource secrets of both bundles."""
        return SupportingResource.secret(
            self._getSecretName(),
            {
                CFG.init_container.jars_secret_key: jars_ticket.resource_secret,
                CFG.init_container.files_secret_key: files_ticket.resource_secret,
            },
        )

    def buildFetchInstructions(
        self, jars_ticket: StagingTicket, files_ticket: StagingTicket
    ) -> SupportingResource:
        """
        Create the config map telling the init-container which bundles to download.

        The config map contains a single properties file with the URI of the staging
        server, the identifiers of both bundles, the in-pod locations of their secrets
        and the download settings.
        """
        secret_dir = PurePosixPath(CFG.mounts.init_secret_dir)
        properties = {
            CFG.conf_keys.staging_server_uri: self._staging_uri,
            CFG.conf_keys.init_jars_resource_id: jars_ticket.resource_id,
            CFG.conf_keys.init_jars_secret_location: str(
                secret_dir / CFG.init_container.jars_secret_key
            ),
            CFG.conf_keys.init_files_resource_id: files_ticket.resource_id,
            CFG.conf_keys.init_files_secret_location: str(
                secret_dir / CFG.init_container.files_secret_key
            ),
        } | self._settings.toProperties()

        return SupportingResource.configMap(
            self._getConfigMapName(),
            {CFG.init_container.staged_config_key: render_properties(properties)},
        )

    def resolveJars(self) -> list[str]:
        """Return the jar locators as they will be seen from inside the driver pod."""
        return StagedDependencyManager._resolve(
            self._jars, self._settings.jars_download_dir
        )

    def resolveFiles(self) -> list[str]:
        """Return the file locators as they will be seen from inside the driver pod."""
        return StagedDependencyManager._resolve(
            self._files, self._settings.files_download_dir
        )

    def bootstrapFetchPhase(
        self,
        secret: SupportingResource,
        instructions: SupportingResource,
        container_name: str,
        spec: WorkloadSpec,
    ) -> WorkloadSpec:
        """Add the init-container downloading the staged bundles to the driver pod."""
        return InitContainerBootstrap(
            CFG.init_container.staged_name,
            self._settings,
            instructions.name,
            CFG.init_container.staged_config_key,
            secret.name,
        ).bootstrapInitContainerAndVolumes(container_name, spec)

    def propagateToWorkers(
        self,
        conf: SubmissionConf,
        instructions: SupportingResource,
        secret: SupportingResource,
    ) -> SubmissionConf:
        """Configure the executors to download the staged bundles using the same instructions and secret."""
        return conf.setAll(
            {
                CFG.conf_keys.executor_init_config_map: instructions.name,
                CFG.conf_keys.executor_init_config_map_key: CFG.init_container.staged_config_key,
                CFG.conf_keys.executor_init_secret: secret.name,
                CFG.conf_keys.executor_init_secret_mount_dir: CFG.mounts.init_secret_dir,
            }
        )

    def _upload(self, locators: list[str], kind: str) -> StagingTicket:
        local = [locator for locator in locators if is_submitter_local(locator)]
        logger.debug(f"Staging {len(local)} local {kind} on '{self._staging_uri}'.")
        ticket = self._client.upload(local, self._pod_labels, self._pod_namespace)
        logger.debug(f"Staged {kind} as resource '{ticket.resource_id}'.")
        return ticket

    def _getSecretName(self) -> str:
        return f"{self._app_id}-init-secret"

    def _getConfigMapName(self) -> str:
        return f"{self._app_id}-init-config"

    @staticmethod
    def _resolve(locators: list[str], download_dir: str) -> list[str]:
        resolved = []
        for locator in locators:
            if is_submitter_local(locator):
                path = PurePosixPath(download_dir) / get_file_name(locator)
                resolved.append(f"local://{path}")
            else:
                resolved.append(locator)
        return resolved


class StagedDependencyManagerProvider:
    """Creates `StagedDependencyManager` instances for one application configuration."""

    def __init__(self, conf: SubmissionConf):
        self._settings = DownloadSettings.fromConf(conf)

    def getStagedDependencyManager(
        self,
        app_id: str,
        staging_uri: str,
        pod_labels: Mapping[str, str],
        pod_namespace: str,
        jars: Sequence[str],
        files: Sequence[str],
    ) -> StagedDependencyManager:
        return StagedDependencyManager(
            app_id,
            staging_uri,
            pod_labels,
            pod_namespace,
            jars,
            files,
            self._settings,
            StagingClient(staging_uri),
        )
