# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Value types flowing through the ksub submission pipeline.

All of them are immutable: `SubmissionRequest` (what the user asked for),
`SubmissionConf` (the flat application configuration), `WorkloadSpec` (the
evolving description of the driver pod), `SupportingResource` and
`OwnerIdentity` (secrets and config maps owned by the driver pod), and the
dependency-related `DependencyMode`, `StagingTicket` and `ResolvedDependencies`.
"""

from .conf import SubmissionConf
from .dependencies import (
    DependencyMode,
    PassthroughPath,
    ResolvedDependencies,
    StagedPath,
    StagingTicket,
    dependency_mode_from_conf,
)
from .request import SubmissionRequest
from .supporting import OwnerIdentity, SupportingResource, SupportingResourceKind
from .workload import ContainerSpec, EnvVar, Volume, VolumeMount, WorkloadSpec

__all__ = [
    "ContainerSpec",
    "DependencyMode",
    "EnvVar",
    "OwnerIdentity",
    "PassthroughPath",
    "ResolvedDependencies",
    "StagedPath",
    "StagingTicket",
    "SubmissionConf",
    "SubmissionRequest",
    "SupportingResource",
    "SupportingResourceKind",
    "Volume",
    "VolumeMount",
    "WorkloadSpec",
    "dependency_mode_from_conf",
]
