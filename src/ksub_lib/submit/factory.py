# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

from ksub_lib.cluster.kubernetes import KubernetesClusterApiProvider
from ksub_lib.core.common import load_properties_file
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.core.logger import get_logger
from ksub_lib.credentials.mounter import CredentialsMounterProvider
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.request import SubmissionRequest
from ksub_lib.remote.manager import RemoteDependencyManagerProvider
from ksub_lib.staging.manager import StagedDependencyManagerProvider

from .submitter import Submitter

logger = get_logger(__name__)


class SubmitterFactory:
    """
    Factory class to construct a Submitter instance based on parameters from
    the command line and from the properties file.
    """

    # command-line options that are shortcuts for configuration keys
    _SHORTCUTS = {
        "name": CFG.conf_keys.app_name,
        "jars": CFG.conf_keys.jars,
        "files": CFG.conf_keys.files,
        "namespace": CFG.conf_keys.namespace,
        "image": CFG.conf_keys.driver_image,
        "staging_server": CFG.conf_keys.staging_server_uri,
    }

    def __init__(
        self,
        main_app_resource: str,
        main_class: str,
        app_args: list[str] | tuple[str, ...],
        **kwargs,
    ):
        """
        Initialize the factory with the positional arguments and the options.

        Args:
            main_app_resource (str): Locator of the primary application artifact.
            main_class (str): Entry class of the application.
            app_args (list[str] | tuple[str, ...]): Arguments passed to the application.
            **kwargs: Keyword arguments from the command line.
        """
        self._main_app_resource = main_app_resource
        self._main_class = main_class
        self._app_args = tuple(app_args)
        self._kwargs = kwargs

    def makeSubmitter(self) -> Submitter:
        """
        Construct and return a Submitter instance.

        Returns:
            Submitter: A fully initialized submitter ready to submit the application.

        Raises:
            KSubConfigurationError: If the configuration cannot be loaded or parsed.
        """
        conf = self._getConf()
        request = SubmissionRequest.fromArgs(
            self._main_app_resource, self._main_class, self._app_args, conf
        )

        return Submitter(
            request,
            KubernetesClusterApiProvider(conf),
            StagedDependencyManagerProvider(conf),
            RemoteDependencyManagerProvider(conf),
            CredentialsMounterProvider(conf),
        )

    def _getConf(self) -> SubmissionConf:
        """
        Build the application configuration.

        Priority:
            1. Shortcut command-line options (e.g. `--name`, `--jars`)
            2. `--conf` command-line options
            3. Properties file

        Returns:
            SubmissionConf: The merged configuration.
        """
        entries = {}
        if properties_file := self._kwargs.get("properties_file"):
            entries |= load_properties_file(Path(properties_file))

        for raw in self._kwargs.get("conf") or ():
            key, separator, value = raw.partition("=")
            if not separator or not key.strip():
                raise KSubConfigurationError(
                    f"Invalid configuration option '{raw}'. Expected format: <key>=<value>."
                )
            entries[key.strip()] = value

        for option, key in SubmitterFactory._SHORTCUTS.items():
            if (value := self._kwargs.get(option)) is not None:
                entries[key] = value

        logger.debug(f"Application configuration has {len(entries)} entries.")
        return SubmissionConf(entries)
