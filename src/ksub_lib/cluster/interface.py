# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from abc import ABC
from collections.abc import Mapping, Sequence
from typing import Self

from ksub_lib.properties.supporting import (
    OwnerIdentity,
    SupportingResource,
    SupportingResourceKind,
)
from ksub_lib.properties.workload import WorkloadSpec


class ClusterApi(ABC):
    """
    Abstract base class for the cluster API used by the submission pipeline.

    A cluster API instance is bound to a single namespace. It is a scoped resource:
    it is acquired once per submission, used as a context manager and closed on exit.

    Every call is synchronous and atomic on its own, but the calls are not transactional.
    Failed calls are never retried.

    All methods should raise KSubClusterError when the cluster rejects a request
    and KSubTransientError when the cluster cannot be reached.
    """

    def createPod(self, spec: WorkloadSpec) -> OwnerIdentity:
        """
        Create the driver pod.

        Args:
            spec (WorkloadSpec): Description of the pod.

        Returns:
            OwnerIdentity: Identity of the created pod as assigned by the cluster.
        """
        raise NotImplementedError(
            "createPod method is not implemented for this cluster API implementation"
        )

    def deletePod(self, identity: OwnerIdentity) -> None:
        """
        Delete a previously created pod.

        Args:
            identity (OwnerIdentity): Identity of the pod to delete.
        """
        raise NotImplementedError(
            "deletePod method is not implemented for this cluster API implementation"
        )

    def createOrReplace(self, resources: Sequence[SupportingResource]) -> None:
        """
        Create the provided supporting resources, replacing any existing ones with the same name.

        Args:
            resources (Sequence[SupportingResource]): Resources to persist.
        """
        raise NotImplementedError(
            "createOrReplace method is not implemented for this cluster API implementation"
        )

    def list(
        self, kind: SupportingResourceKind | str, labels: Mapping[str, str]
    ) -> list[str]:
        """
        List the names of resources of the given kind matching all the given labels.

        Args:
            kind (SupportingResourceKind | str): Kind of the resource ('Pod' or a supporting resource kind).
            labels (Mapping[str, str]): Labels the resources must carry.

        Returns:
            list[str]: Names of the matching resources.
        """
        raise NotImplementedError(
            "list method is not implemented for this cluster API implementation"
        )

    def close(self) -> None:
        """Release the connection to the cluster. Does nothing by default."""
        pass

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class ClusterApiProvider(ABC):
    """Creates a new `ClusterApi` for every submission."""

    def get(self) -> ClusterApi:
        raise NotImplementedError(
            "get method is not implemented for this cluster API provider"
        )
