# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Staging of submitter-local dependencies.

Used only when a resource staging server is configured. The local jars and
files are uploaded to the server (`StagingClient`) and the driver pod
receives an init-container downloading them back (`StagedDependencyManager`).
"""

from .client import StagingClient, build_bundle
from .manager import StagedDependencyManager, StagedDependencyManagerProvider

__all__ = [
    "StagingClient",
    "build_bundle",
    "StagedDependencyManager",
    "StagedDependencyManagerProvider",
]
