# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Access to the cluster API.

The submission pipeline only depends on the abstract `ClusterApi`. The
`kubernetes` module provides the implementation used by the ksub CLI.
"""

from .interface import ClusterApi, ClusterApiProvider
from .kubernetes import KubernetesClusterApi, KubernetesClusterApiProvider

__all__ = [
    "ClusterApi",
    "ClusterApiProvider",
    "KubernetesClusterApi",
    "KubernetesClusterApiProvider",
]
