# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path, PurePosixPath

from ksub_lib.core.common import get_path
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.supporting import SupportingResource
from ksub_lib.properties.workload import Volume, WorkloadSpec

logger = get_logger(__name__)

# keys of the individual credentials inside the secret
CA_CERT_KEY = "ca-cert"
CLIENT_KEY_KEY = "client-key"
CLIENT_CERT_KEY = "client-cert"
OAUTH_TOKEN_KEY = "oauth-token"


class CredentialsMounter:
    """
    Provides the driver pod with the credentials it uses to talk to the API server.

    If the application configuration specifies driver credentials (CA certificate,
    client key, client certificate or OAuth token), they are packed into a secret
    which is mounted into the driver container. Otherwise the driver relies on the
    service account of its pod and nothing is mounted.
    """

    def __init__(self, app_id: str, conf: SubmissionConf):
        """
        Initialize the mounter.

        Args:
            app_id (str): Identifier of the application, used to name the secret.
            conf (SubmissionConf): Application configuration.
        """
        self._app_id = app_id
        self._ca_cert_file = conf.getOption(CFG.conf_keys.driver_ca_cert_file)
        self._client_key_file = conf.getOption(CFG.conf_keys.driver_client_key_file)
        self._client_cert_file = conf.getOption(CFG.conf_keys.driver_client_cert_file)
        self._oauth_token = conf.getOption(CFG.conf_keys.driver_oauth_token)

    def createCredentialsSecret(self) -> SupportingResource | None:
        """
        Create the secret holding the driver credentials.

        Returns:
            SupportingResource | None: The secret or None if no credentials are configured.

        Raises:
            KSubConfigurationError: If any of the credential files cannot be read.
        """
        values: dict[str, str | bytes] = {}
        for key, file in [
            (CA_CERT_KEY, self._ca_cert_file),
            (CLIENT_KEY_KEY, self._client_key_file),
            (CLIENT_CERT_KEY, self._client_cert_file),
        ]:
            if file:
                values[key] = self._readCredentialFile(file)

        if self._oauth_token:
            values[OAUTH_TOKEN_KEY] = self._oauth_token

        if not values:
            logger.debug("No driver credentials configured. Using the pod's service account.")
            return None

        logger.debug(f"Mounting driver credentials: {sorted(values)}.")
        return SupportingResource.secret(self._getSecretName(), values)

    def mountCredentials(
        self,
        spec: WorkloadSpec,
        container_name: str,
        secret: SupportingResource | None,
    ) -> WorkloadSpec:
        """
        Mount the credentials secret into the given container.

        Args:
            spec (WorkloadSpec): The pod spec.
            container_name (str): Name of the container to mount the secret into.
            secret (SupportingResource | None): Secret returned by `createCredentialsSecret`.

        Returns:
            WorkloadSpec: The pod spec with the secret mounted, or the input spec if there is no secret.
        """
        if secret is None:
            return spec

        return spec.withVolume(
            Volume.fromSecret(CFG.mounts.credentials_volume, secret.name)
        ).withContainer(
            container_name,
            lambda container: container.withVolumeMount(
                CFG.mounts.credentials_volume, CFG.mounts.credentials_dir
            ),
        )

    def recordCredentialLocations(self, conf: SubmissionConf) -> SubmissionConf:
        """
        Point the driver to the mounted credentials.

        For every configured credential, the corresponding 'mounted' configuration
        entry is set to its path inside the pod. The driver OAuth token value itself
        is redacted.

        Args:
            conf (SubmissionConf): The application configuration.

        Returns:
            SubmissionConf: The updated configuration.
        """
        locations = {}
        for configured, key, conf_key in [
            (self._ca_cert_file, CA_CERT_KEY, CFG.conf_keys.driver_mounted_ca_cert_file),
            (
                self._client_key_file,
                CLIENT_KEY_KEY,
                CFG.conf_keys.driver_mounted_client_key_file,
            ),
            (
                self._client_cert_file,
                CLIENT_CERT_KEY,
                CFG.conf_keys.driver_mounted_client_cert_file,
            ),
            (
                self._oauth_token,
                OAUTH_TOKEN_KEY,
                CFG.conf_keys.driver_mounted_oauth_token_file,
            ),
        ]:
            if configured:
                locations[conf_key] = str(PurePosixPath(CFG.mounts.credentials_dir) / key)

        return conf.setAll(locations).redact(
            CFG.conf_keys.driver_oauth_token, CFG.defaults.redacted
        )

    def _getSecretName(self) -> str:
        return f"{self._app_id}-kubernetes-credentials"

    @staticmethod
    def _readCredentialFile(file: str) -> bytes:
        path = Path(get_path(file))
        try:
            return path.read_bytes()
        except OSError as e:
            raise KSubConfigurationError(
                f"Could not read credential file '{file}': {e}."
            ) from e


class CredentialsMounterProvider:
    """Creates `CredentialsMounter` instances for one application configuration."""

    def __init__(self, conf: SubmissionConf):
        self._conf = conf

    def getCredentialsMounter(self, app_id: str) -> CredentialsMounter:
        return CredentialsMounter(app_id, self._conf)
