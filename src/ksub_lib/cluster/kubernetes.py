# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Callable, Mapping, Sequence
from typing import TypeVar

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ksub_lib.core.common import get_path
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubClusterError, KSubTransientError
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.supporting import (
    OwnerIdentity,
    SupportingResource,
    SupportingResourceKind,
)
from ksub_lib.properties.workload import WorkloadSpec

from .interface import ClusterApi, ClusterApiProvider

logger = get_logger(__name__)

T = TypeVar("T")

# prefix of the master URL pointing to a Kubernetes API server
MASTER_PREFIX = "k8s://"


class KubernetesClusterApi(ClusterApi):
    """Cluster API backed by the official Kubernetes client."""

    def __init__(self, api_client: client.ApiClient, namespace: str):
        self._api_client = api_client
        self._core_v1 = client.CoreV1Api(api_client)
        self._namespace = namespace

    def createPod(self, spec: WorkloadSpec) -> OwnerIdentity:
        logger.debug(f"Creating pod '{spec.name}' in namespace '{self._namespace}'.")
        created = self._call(
            f"create pod '{spec.name}'",
            lambda: self._core_v1.create_namespaced_pod(
                namespace=self._namespace, body=spec.toPod()
            ),
        )
        return OwnerIdentity.fromKubernetes(created)

    def deletePod(self, identity: OwnerIdentity) -> None:
        logger.debug(f"Deleting pod '{identity.name}' in namespace '{self._namespace}'.")
        self._call(
            f"delete pod '{identity.name}'",
            lambda: self._core_v1.delete_namespaced_pod(
                name=identity.name, namespace=self._namespace
            ),
        )

    def createOrReplace(self, resources: Sequence[SupportingResource]) -> None:
        """
        Create or replace the resources one by one, in order.

        The batch is not atomic. If a request fails, the resources persisted
        before it remain in the cluster. They are owned by the driver pod,
        so they are garbage-collected by the cluster once the pod is deleted.
        """
        for resource in resources:
            self._createOrReplaceOne(resource)

    def list(
        self, kind: SupportingResourceKind | str, labels: Mapping[str, str]
    ) -> list[str]:
        selector = ",".join(f"{key}={value}" for key, value in labels.items())
        match str(kind):
            case "Pod":
                method = self._core_v1.list_namespaced_pod
            case "Secret":
                method = self._core_v1.list_namespaced_secret
            case "ConfigMap":
                method = self._core_v1.list_namespaced_config_map
            case _:
                raise ValueError(f"Unsupported resource kind '{kind}'.")

        result = self._call(
            f"list {kind} resources",
            lambda: method(namespace=self._namespace, label_selector=selector),
        )
        return [item.metadata.name for item in result.items]

    def close(self) -> None:
        logger.debug("Closing the Kubernetes API client.")
        self._api_client.close()

    def _createOrReplaceOne(self, resource: SupportingResource) -> None:
        if resource.isSecret():
            create = self._core_v1.create_namespaced_secret
            replace = self._core_v1.replace_namespaced_secret
        else:
            create = self._core_v1.create_namespaced_config_map
            replace = self._core_v1.replace_namespaced_config_map

        manifest = resource.toManifest()
        description = f"{resource.kind} '{resource.name}'"
        try:
            create(namespace=self._namespace, body=manifest)
            logger.debug(f"Created {description}.")
        except ApiException as e:
            if e.status != 409:
                raise KSubClusterError(
                    f"Could not create {description}: {e.reason}.", e.status
                ) from e
            logger.debug(f"{description} already exists, replacing.")
            self._call(
                f"replace {description}",
                lambda: replace(
                    name=resource.name, namespace=self._namespace, body=manifest
                ),
            )
        except HTTPError as e:
            raise KSubTransientError(
                f"Could not reach the Kubernetes API server to create {description}: {e}."
            ) from e

    @staticmethod
    def _call(description: str, operation: Callable[[], T]) -> T:
        try:
            return operation()
        except ApiException as e:
            raise KSubClusterError(
                f"Could not {description}: {e.reason}.", e.status
            ) from e
        except HTTPError as e:
            raise KSubTransientError(
                f"Could not reach the Kubernetes API server to {description}: {e}."
            ) from e


class KubernetesClusterApiProvider(ClusterApiProvider):
    """
    Creates `KubernetesClusterApi` instances from the application configuration.

    If the master URL points to a Kubernetes API server ('k8s://<url>'), the client
    connects to it using the submission credentials from the configuration.
    Otherwise the in-cluster configuration is used, falling back to kubeconfig.
    """

    def __init__(self, conf: SubmissionConf):
        self._conf = conf
        self._namespace = (
            conf.getOption(CFG.conf_keys.namespace) or CFG.defaults.namespace
        )

    def get(self) -> KubernetesClusterApi:
        return KubernetesClusterApi(self._buildApiClient(), self._namespace)

    def _buildApiClient(self) -> client.ApiClient:
        master = self._conf.getOption(CFG.conf_keys.master)
        if master and master.startswith(MASTER_PREFIX):
            return client.ApiClient(self._buildConfiguration(master))

        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes configuration.")
        except config.ConfigException:
            try:
                config.load_kube_config()
                logger.debug("Loaded kubeconfig.")
            except config.ConfigException as e:
                raise KSubClusterError(
                    f"Cannot load Kubernetes configuration: {e}."
                ) from e

        return client.ApiClient()

    def _buildConfiguration(self, master: str) -> client.Configuration:
        configuration = client.Configuration()
        configuration.host = master.removeprefix(MASTER_PREFIX)

        if ca_cert := self._conf.getOption(CFG.conf_keys.submission_ca_cert_file):
            configuration.ssl_ca_cert = get_path(ca_cert)
        if client_key := self._conf.getOption(
            CFG.conf_keys.submission_client_key_file
        ):
            configuration.key_file = get_path(client_key)
        if client_cert := self._conf.getOption(
            CFG.conf_keys.submission_client_cert_file
        ):
            configuration.cert_file = get_path(client_cert)
        if token := self._conf.getOption(CFG.conf_keys.submission_oauth_token):
            configuration.api_key = {"authorization": token}
            configuration.api_key_prefix = {"authorization": "Bearer"}

        logger.debug(f"Connecting to the Kubernetes API server at '{configuration.host}'.")
        return configuration
