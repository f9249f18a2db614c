# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Mounting of driver credentials into the driver pod.

`CredentialsMounter` packs the configured CA certificate, client key, client
certificate and OAuth token into a secret, mounts the secret into the driver
container and rewrites the configuration so the driver finds the credentials
at their in-pod location.
"""

from .mounter import CredentialsMounter, CredentialsMounterProvider

__all__ = ["CredentialsMounter", "CredentialsMounterProvider"]
