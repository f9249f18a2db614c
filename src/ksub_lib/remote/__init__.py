# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Download of remote dependencies into the driver pod.
"""

from .manager import RemoteDependencyManager, RemoteDependencyManagerProvider

__all__ = ["RemoteDependencyManager", "RemoteDependencyManagerProvider"]
