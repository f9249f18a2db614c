# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import time
from dataclasses import replace

from ksub_lib.cluster.interface import ClusterApiProvider
from ksub_lib.core.common import is_submitter_local
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubPreconditionError
from ksub_lib.core.logger import get_logger
from ksub_lib.credentials.mounter import CredentialsMounterProvider
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.dependencies import (
    DependencyMode,
    PassthroughPath,
    ResolvedDependencies,
    StagedPath,
    dependency_mode_from_conf,
)
from ksub_lib.properties.request import SubmissionRequest
from ksub_lib.properties.supporting import SupportingResource
from ksub_lib.properties.workload import WorkloadSpec
from ksub_lib.remote.manager import RemoteDependencyManagerProvider
from ksub_lib.staging.manager import StagedDependencyManagerProvider

from .assembler import WorkloadAssembler, get_driver_memory_mb
from .creator import ClusterResourceCreator
from .validator import (
    check_reserved_keys,
    check_unique_download_names,
    parse_key_value_pairs,
)

logger = get_logger(__name__)


class Submitter:
    """
    Submits an application to the Kubernetes cluster.

    The submission is a pipeline of stages, each producing a new pod spec and/or
    configuration from the output of the previous stage:
        1. Validate the custom labels, annotations and dependency locators.
        2. Build the base driver pod.
        3. Mount the driver credentials.
        4. Stage the local dependencies (only with a resource staging server).
        5. Download the remote dependencies.
        6. Assemble the environment of the driver container.
        7. Create the driver pod and its supporting resources.

    The collaborators are provided by the caller, which allows replacing
    them in tests. To build a Submitter from command-line options,
    use the SubmitterFactory.
    """

    def __init__(
        self,
        request: SubmissionRequest,
        cluster_provider: ClusterApiProvider,
        staged_provider: StagedDependencyManagerProvider,
        remote_provider: RemoteDependencyManagerProvider,
        credentials_provider: CredentialsMounterProvider,
        launch_time_ms: int | None = None,
    ):
        """
        Initialize a Submitter instance.

        Args:
            request (SubmissionRequest): The application to submit.
            cluster_provider (ClusterApiProvider): Provides the connection to the cluster.
            staged_provider (StagedDependencyManagerProvider): Provides the manager
                of the submitter-local dependencies.
            remote_provider (RemoteDependencyManagerProvider): Provides the manager
                of the remote dependencies.
            credentials_provider (CredentialsMounterProvider): Provides the mounter
                of the driver credentials.
            launch_time_ms (int | None): Submission time in milliseconds since the epoch.
                Defaults to the current time.
        """
        self._request = request
        self._conf = request.conf
        self._cluster_provider = cluster_provider
        self._staged_provider = staged_provider
        self._remote_provider = remote_provider
        self._credentials_provider = credentials_provider
        self._assembler = WorkloadAssembler()

        launch_time_ms = launch_time_ms or int(time.time() * 1000)
        self._app_name = (
            self._conf.getOption(CFG.conf_keys.app_name) or CFG.defaults.app_name
        )
        self._app_id = Submitter._constructAppId(self._app_name, launch_time_ms)
        self._namespace = (
            self._conf.getOption(CFG.conf_keys.namespace) or CFG.defaults.namespace
        )

    def getAppId(self) -> str:
        """Return the generated identifier of the application (the name of the driver pod)."""
        return self._app_id

    def submit(self) -> str:
        """
        Submit the application.

        Returns:
            str: Name of the created driver pod.

        Raises:
            KSubConfigurationError: If the configuration is invalid.
            KSubPreconditionError: If local dependencies are used without a staging server.
            KSubTransientError: If the staging server or the cluster cannot be reached.
            KSubClusterError: If the cluster rejects any request.
            KSubInvariantViolation: If the resolved classpath is inconsistent.
        """
        mode = dependency_mode_from_conf(self._conf)

        labels = parse_key_value_pairs(
            self._conf.getOption(CFG.conf_keys.driver_labels),
            CFG.conf_keys.driver_labels,
            "labels",
        )
        check_reserved_keys(labels, CFG.labels.reserved, "labels")
        labels |= {
            CFG.labels.app_id: self._app_id,
            CFG.labels.app_name: self._app_name,
        }
        annotations = parse_key_value_pairs(
            self._conf.getOption(CFG.conf_keys.driver_annotations),
            CFG.conf_keys.driver_annotations,
            "annotations",
        )

        if isinstance(mode, PassthroughPath):
            self._checkNoLocalDependencies()

        check_unique_download_names(self._request.jars, "jars")
        check_unique_download_names(self._request.files, "files")

        memory_mb = get_driver_memory_mb(self._conf)
        container_name = self._assembler.getContainerName()

        logger.debug(f"Submitting application '{self._app_id}' to '{self._namespace}'.")
        with self._cluster_provider.get() as cluster:
            spec = self._assembler.buildBaseSpec(
                self._app_id,
                self._conf.getOption(CFG.conf_keys.driver_image)
                or CFG.defaults.driver_image,
                labels,
                annotations,
                memory_mb,
                self._request.main_class,
                self._request.app_args,
                self._conf.getOption(CFG.conf_keys.driver_extra_classpath),
            )

            # credentials
            mounter = self._credentials_provider.getCredentialsMounter(self._app_id)
            credentials_secret = mounter.createCredentialsSecret()
            spec = mounter.mountCredentials(spec, container_name, credentials_secret)
            conf = mounter.recordCredentialLocations(self._conf)
            resources = [credentials_secret] if credentials_secret else []

            # submitter-local dependencies
            spec, conf, dependencies, staged_resources = self._resolveDependencies(
                mode, labels, spec, conf
            )
            resources.extend(staged_resources)
            conf = self._finalizeConf(conf, dependencies)

            # remote dependencies
            remote = self._remote_provider.getRemoteDependencyManager(
                self._app_id, dependencies.jars, dependencies.files
            )
            remote_instructions = remote.buildFetchInstructions()
            resources.append(remote_instructions)
            spec = remote.bootstrapFetchPhase(remote_instructions, container_name, spec)
            conf = remote.propagateToWorkers(conf, remote_instructions)

            dependencies = replace(
                dependencies, classpath=tuple(remote.resolveLocalClasspath())
            )
            conf = conf.set(
                CFG.conf_keys.executor_resolved_classpath,
                ",".join(dependencies.classpath),
            )

            spec = self._assembler.assemble(
                spec,
                dependencies,
                conf,
                self._conf.getOption(CFG.conf_keys.driver_java_options),
            )

            identity = ClusterResourceCreator(cluster).create(spec, resources)

        return identity.name

    def _checkNoLocalDependencies(self) -> None:
        """
        Ensure that all dependencies can be fetched without a staging server.

        Raises:
            KSubPreconditionError: If any jar or file is located on the submitter's disk.
        """
        for kind, locators in [("jar", self._request.jars), ("file", self._request.files)]:
            for locator in locators:
                if is_submitter_local(locator):
                    raise KSubPreconditionError(
                        f"When submitting with local {kind}s, a resource staging server must be provided "
                        f"to deploy your {kind}s into the driver pod. Cannot send {kind} '{locator}'."
                    )

    def _resolveDependencies(
        self,
        mode: DependencyMode,
        labels: dict[str, str],
        spec: WorkloadSpec,
        conf: SubmissionConf,
    ) -> tuple[WorkloadSpec, SubmissionConf, ResolvedDependencies, list[SupportingResource]]:
        """
        Stage the submitter-local dependencies if a staging server is configured.

        Returns:
            tuple: The new pod spec, the new configuration, the resolved dependencies
                (without classpath) and the supporting resources created for staging.
        """
        match mode:
            case StagedPath(staging_uri=staging_uri):
                manager = self._staged_provider.getStagedDependencyManager(
                    self._app_id,
                    staging_uri,
                    labels,
                    self._namespace,
                    self._request.jars,
                    self._request.files,
                )
                jars_ticket = manager.uploadJars()
                files_ticket = manager.uploadFiles()
                secret = manager.buildFetchSecret(jars_ticket, files_ticket)
                instructions = manager.buildFetchInstructions(jars_ticket, files_ticket)

                dependencies = ResolvedDependencies(
                    jars=tuple(manager.resolveJars()),
                    files=tuple(manager.resolveFiles()),
                )
                spec = manager.bootstrapFetchPhase(
                    secret, instructions, self._assembler.getContainerName(), spec
                )
                conf = manager.propagateToWorkers(conf, instructions, secret)
                return spec, conf, dependencies, [secret, instructions]

            case PassthroughPath():
                dependencies = ResolvedDependencies(
                    jars=self._request.jars, files=self._request.files
                )
                return spec, conf, dependencies, []

    def _finalizeConf(
        self, conf: SubmissionConf, dependencies: ResolvedDependencies
    ) -> SubmissionConf:
        """Record the resolved dependencies and the application identity in the configuration."""
        if dependencies.jars:
            conf = conf.set(CFG.conf_keys.jars, ",".join(dependencies.jars))
        if dependencies.files:
            conf = conf.set(CFG.conf_keys.files, ",".join(dependencies.files))

        return (
            conf.set(CFG.conf_keys.driver_pod_name, self._app_id)
            .set(CFG.conf_keys.app_id, self._app_id)
            # rendered into the container environment separately
            .remove(CFG.conf_keys.driver_java_options)
            .redact(CFG.conf_keys.submission_oauth_token, CFG.defaults.redacted)
        )

    @staticmethod
    def _constructAppId(app_name: str, launch_time_ms: int) -> str:
        return f"{app_name}-{launch_time_ms}".lower().replace(".", "-")
