# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
from collections.abc import Mapping, Sequence

from ksub_lib.core.common import memory_string_to_mb
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.dependencies import ResolvedDependencies
from ksub_lib.properties.workload import ContainerSpec, WorkloadSpec

logger = get_logger(__name__)


def get_driver_memory_mb(conf: SubmissionConf) -> int:
    """
    Compute the memory of the driver container including the overhead.

    The overhead is read from the configuration or defaults to a fraction of
    the driver memory, but at least a fixed minimum.

    Args:
        conf (SubmissionConf): Application configuration.

    Returns:
        int: Memory of the driver container in MiB.

    Raises:
        KSubConfigurationError: If the memory or the overhead are invalid.
    """
    memory_mb = memory_string_to_mb(
        conf.getOption(CFG.conf_keys.driver_memory)
        or CFG.memory.default_driver_memory
    )

    if overhead := conf.getOption(CFG.conf_keys.driver_memory_overhead):
        try:
            overhead_mb = memory_string_to_mb(overhead)
        except KSubConfigurationError as e:
            raise KSubConfigurationError(
                f"Invalid value of '{CFG.conf_keys.driver_memory_overhead}': '{overhead}'."
            ) from e
    else:
        overhead_mb = max(
            int(CFG.memory.overhead_factor * memory_mb), CFG.memory.overhead_min_mb
        )

    logger.debug(f"Driver memory: {memory_mb} MiB + {overhead_mb} MiB overhead.")
    return memory_mb + overhead_mb


def render_java_options(conf: SubmissionConf, extra_options: str | None) -> str:
    """
    Render the configuration as JVM system properties.

    Every configuration entry becomes a '-D<key>=<value>' option. The user-provided
    raw options are appended last.
    """
    options = [f"-D{key}={value}" for key, value in conf.items()]
    if extra_options:
        options.append(extra_options)
    return " ".join(options)


class WorkloadAssembler:
    """
    Builds the driver pod at the start of the submission and finalizes it at the end.

    `buildBaseSpec` creates the bare driver pod with one container.
    `assemble` folds the resolved classpath and the resolved configuration
    into the environment of the driver container.
    """

    def __init__(self, container_name: str = CFG.mounts.driver_container):
        self._container_name = container_name

    def getContainerName(self) -> str:
        return self._container_name

    def buildBaseSpec(
        self,
        app_id: str,
        image: str,
        labels: Mapping[str, str],
        annotations: Mapping[str, str],
        memory_mb: int,
        main_class: str,
        app_args: Sequence[str],
        extra_classpath: str | None = None,
    ) -> WorkloadSpec:
        """
        Build the driver pod with a single driver container.

        Args:
            app_id (str): Identifier of the application used as the name of the pod.
            image (str): Image of the driver container.
            labels (Mapping[str, str]): Labels of the pod.
            annotations (Mapping[str, str]): Annotations of the pod.
            memory_mb (int): Memory of the driver container including the overhead.
            main_class (str): Entry class of the application.
            app_args (Sequence[str]): Arguments of the application.
            extra_classpath (str | None): Extra classpath of the driver process.

        Returns:
            WorkloadSpec: The base pod spec.
        """
        container = ContainerSpec(
            name=self._container_name, image=image, memory_mb=memory_mb
        )
        if extra_classpath:
            container = container.withEnv(
                CFG.env_vars.submit_extra_classpath, extra_classpath
            )

        container = (
            container.withEnv(CFG.env_vars.driver_memory, f"{memory_mb}m")
            .withEnv(CFG.env_vars.driver_main_class, main_class)
            .withEnv(CFG.env_vars.driver_args, " ".join(app_args))
        )

        return WorkloadSpec(
            name=app_id,
            labels=labels,
            annotations=annotations,
            containers=(container,),
        )

    def assemble(
        self,
        spec: WorkloadSpec,
        dependencies: ResolvedDependencies,
        conf: SubmissionConf,
        extra_java_options: str | None = None,
    ) -> WorkloadSpec:
        """
        Add the resolved classpath and the resolved configuration to the driver container.

        Args:
            spec (WorkloadSpec): The pod spec.
            dependencies (ResolvedDependencies): Resolved dependencies including the local classpath.
            conf (SubmissionConf): Resolved configuration.
            extra_java_options (str | None): User-provided JVM options, appended last.

        Returns:
            WorkloadSpec: The final pod spec.
        """
        java_options = render_java_options(conf, extra_java_options)
        return spec.withContainer(
            self._container_name,
            lambda container: container.withEnv(
                CFG.env_vars.mounted_classpath, os.pathsep.join(dependencies.classpath)
            ).withEnv(CFG.env_vars.driver_java_opts, java_options),
        )
