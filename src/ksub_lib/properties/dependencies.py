# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Values describing how the application's dependencies reach the driver pod.

`DependencyMode` is a tagged union selecting between staging local dependencies
on a resource staging server (`StagedPath`) and passing the dependencies through
unchanged (`PassthroughPath`). `StagingTicket` is the receipt returned by the
staging server for one uploaded bundle, and `ResolvedDependencies` collects the
final locators and the local classpath of the driver.
"""

from dataclasses import dataclass, field
from typing import TypeAlias

from ksub_lib.core.config import CFG
from ksub_lib.core.logger import get_logger

from .conf import SubmissionConf

logger = get_logger(__name__)


@dataclass(frozen=True)
class StagedPath:
    """Local dependencies are uploaded to the staging server at `staging_uri`."""

    staging_uri: str


@dataclass(frozen=True)
class PassthroughPath:
    """No staging server is configured; all dependencies must be fetchable."""

    pass


DependencyMode: TypeAlias = StagedPath | PassthroughPath


def dependency_mode_from_conf(conf: SubmissionConf) -> DependencyMode:
    """
    Select the dependency mode based on the application configuration.

    Args:
        conf (SubmissionConf): Application configuration.

    Returns:
        DependencyMode: `StagedPath` if a staging server URI is configured,
            `PassthroughPath` otherwise.
    """
    if uri := conf.getOption(CFG.conf_keys.staging_server_uri):
        logger.debug(f"Using resource staging server '{uri}'.")
        return StagedPath(uri)

    logger.debug("No resource staging server configured.")
    return PassthroughPath()


@dataclass(frozen=True)
class StagingTicket:
    """
    Identifier and secret of one bundle uploaded to the staging server.

    The secret is excluded from the representation so that it never ends up in logs.
    """

    resource_id: str
    resource_secret: str = field(repr=False)


@dataclass(frozen=True)
class ResolvedDependencies:
    """
    Dependencies of the application after resolution.

    Attributes:
        jars (tuple[str, ...]): Jar locators as seen from inside the driver pod.
        files (tuple[str, ...]): File locators as seen from inside the driver pod.
        classpath (tuple[str, ...]): Absolute local paths of all jars inside the driver pod.
    """

    jars: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    classpath: tuple[str, ...] = ()
