# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of the ksub command-line tool.

This package provides the submission pipeline of Spark applications on
Kubernetes: the immutable description of the driver pod and its supporting
resources, staging of local dependencies on the resource staging server,
download of remote dependencies by init-containers, mounting of driver
credentials and the creation of all the resources with rollback on failure.
"""

from .ksub import __version__, cli

__all__ = [
    "__version__",
    "cli",
    "cluster",
    "core",
    "credentials",
    "properties",
    "remote",
    "staging",
    "submit",
]
