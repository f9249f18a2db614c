# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Submission of Spark applications to a Kubernetes cluster.

This module implements the `ksub submit` command. The `SubmitterFactory`
merges the properties file, `--conf` entries and the shortcut options into
the application configuration and wires the Kubernetes-backed collaborators
into a `Submitter`, which runs the submission pipeline: validation of
labels and dependencies, construction of the driver pod, credential mounting,
dependency staging and download, assembly of the driver environment and the
creation of the pod and its supporting resources through the
`ClusterResourceCreator`.
"""

from .assembler import WorkloadAssembler
from .creator import ClusterResourceCreator, CreatorState
from .factory import SubmitterFactory
from .submitter import Submitter

__all__ = [
    "ClusterResourceCreator",
    "CreatorState",
    "Submitter",
    "SubmitterFactory",
    "WorkloadAssembler",
]
