# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Sequence
from enum import Enum

from ksub_lib.cluster.interface import ClusterApi
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.supporting import OwnerIdentity, SupportingResource
from ksub_lib.properties.workload import WorkloadSpec

logger = get_logger(__name__)


class CreatorState(Enum):
    """
    State of the `ClusterResourceCreator`.
    """

    PRIMARY_PENDING = 1
    PRIMARY_CREATED = 2

    def __str__(self):
        return self.name.lower().replace("_", "-")


class ClusterResourceCreator:
    """
    Persists the driver pod and its supporting resources.

    The driver pod is created first. Once the cluster assigns it an identity,
    every supporting resource is made owned by the pod (so that it is deleted
    together with the pod) and all of them are persisted as one batch.
    If persisting the supporting resources fails, the pod is deleted again
    and the original error is propagated.

    A creator can only be used once.
    """

    def __init__(self, cluster: ClusterApi):
        self._cluster = cluster
        self._state = CreatorState.PRIMARY_PENDING
        self._identity: OwnerIdentity | None = None

    def getState(self) -> CreatorState:
        return self._state

    def getIdentity(self) -> OwnerIdentity | None:
        """Return the identity of the created pod or None if it has not been created."""
        return self._identity

    def create(
        self, spec: WorkloadSpec, resources: Sequence[SupportingResource]
    ) -> OwnerIdentity:
        """
        Create the driver pod and persist its supporting resources.

        Args:
            spec (WorkloadSpec): Final description of the driver pod.
            resources (Sequence[SupportingResource]): Supporting resources of the pod.

        Returns:
            OwnerIdentity: Identity of the created pod.

        Raises:
            KSubError: If the pod cannot be created, or if the supporting resources cannot
                be persisted (in which case the pod is deleted before raising).
        """
        assert self._state == CreatorState.PRIMARY_PENDING, (
            f"Resources can only be created once (creator is {self._state})."
        )

        self._identity = self._cluster.createPod(spec)
        self._state = CreatorState.PRIMARY_CREATED
        logger.debug(f"Created driver pod '{self._identity.name}' ({self._identity.uid}).")

        try:
            owned = [resource.withOwner(self._identity) for resource in resources]
            self._cluster.createOrReplace(owned)
            logger.debug(f"Persisted {len(owned)} supporting resource(s).")
        except Exception:
            logger.warning(
                f"Could not persist the supporting resources. Deleting driver pod '{self._identity.name}'."
            )
            self._rollback()
            raise

        return self._identity

    def _rollback(self) -> None:
        try:
            self._cluster.deletePod(self._identity)
        except Exception as e:
            logger.error(f"Could not delete driver pod '{self._identity.name}': {e}")
