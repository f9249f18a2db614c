# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import io
import json
import tarfile
from collections.abc import Mapping, Sequence
from pathlib import Path

import requests

from ksub_lib.core.common import get_file_name, get_path
from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError, KSubTransientError
from ksub_lib.core.logger import get_logger
from ksub_lib.properties.dependencies import StagingTicket

logger = get_logger(__name__)


def build_bundle(locators: Sequence[str]) -> bytes:
    """
    Pack local files into a gzip-compressed tar archive.

    Every file is stored under its base name so that the init-container
    unpacks it directly into the download directory.

    Args:
        locators (Sequence[str]): Submitter-local locators of the files to pack.

    Returns:
        bytes: The compressed archive.

    Raises:
        KSubConfigurationError: If a file cannot be read or two files share the same name.
    """
    buffer = io.BytesIO()
    used_names = set()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for locator in locators:
            name = get_file_name(locator)
            if name in used_names:
                raise KSubConfigurationError(
                    f"Multiple local dependencies are named '{name}'. Local dependencies must have unique file names."
                )
            used_names.add(name)

            path = Path(get_path(locator))
            try:
                tar.add(path, arcname=name, recursive=False)
            except OSError as e:
                raise KSubConfigurationError(
                    f"Could not read local dependency '{locator}': {e}."
                ) from e

    return buffer.getvalue()


class StagingClient:
    """
    Client of the resource staging server.

    Every call to `upload` stores a new bundle on the server and returns a new
    ticket. Nothing is cached and failed uploads are not retried.
    """

    def __init__(self, staging_uri: str, timeout: int | None = None):
        self._upload_url = f"{staging_uri.rstrip('/')}/{CFG.staging.upload_path}"
        self._timeout = timeout or CFG.staging.timeout

    def upload(
        self,
        locators: Sequence[str],
        pod_labels: Mapping[str, str],
        pod_namespace: str,
    ) -> StagingTicket:
        """
        Upload a bundle of local files to the staging server.

        Args:
            locators (Sequence[str]): Submitter-local locators of the files to upload.
            pod_labels (Mapping[str, str]): Labels of the driver pod that will fetch the bundle.
            pod_namespace (str): Namespace of the driver pod.

        Returns:
            StagingTicket: Identifier and secret of the stored bundle.

        Raises:
            KSubConfigurationError: If the bundle cannot be built.
            KSubTransientError: If the server cannot be reached or rejects the upload.
        """
        bundle = build_bundle(locators)
        logger.debug(
            f"Uploading {len(locators)} file(s) ({len(bundle)} B) to '{self._upload_url}'."
        )

        files = {
            "podLabels": (None, json.dumps(dict(pod_labels)), "application/json"),
            "podNamespace": (None, pod_namespace, "text/plain"),
            "resources": ("resources.tgz", bundle, "application/x-compressed"),
        }

        try:
            response = requests.post(self._upload_url, files=files, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
            return StagingTicket(data["resourceId"], data["resourceSecret"])
        except requests.RequestException as e:
            raise KSubTransientError(
                f"Could not upload dependencies to '{self._upload_url}': {e}."
            ) from e
        except (ValueError, KeyError) as e:
            raise KSubTransientError(
                f"Invalid response from the staging server '{self._upload_url}': {e}."
            ) from e
