# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Validation of the custom labels and annotations of the driver pod
and of the names of the downloaded dependencies.
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from ksub_lib.core.common import get_file_name, is_container_local, split_csv
from ksub_lib.core.error import KSubConfigurationError


def parse_key_value_pairs(
    raw: str | None, config_key: str, kind: str
) -> dict[str, str]:
    """
    Parse a comma-separated list of `key=value` pairs.

    Empty segments are ignored and whitespace around segments is stripped.
    Each segment is split on the first '='. If the same key is specified
    multiple times, the last value wins.

    Args:
        raw (str | None): The string to parse.
        config_key (str): Configuration key the string was read from (used in error messages).
        kind (str): Human-readable name of the parsed values, e.g. 'labels'.

    Returns:
        dict[str, str]: The parsed pairs.

    Raises:
        KSubConfigurationError: If any segment does not contain '='.
    """
    pairs = {}
    for segment in split_csv(raw):
        key, separator, value = segment.partition("=")
        if not separator:
            raise KSubConfigurationError(
                f"Custom {kind} set by '{config_key}' must be a comma-separated list of key-value pairs "
                f"with format <key>=<value>. Got value: '{segment}'. All values: '{raw}'."
            )
        pairs[key] = value

    return pairs


def check_reserved_keys(
    mapping: Mapping[str, str], reserved: Iterable[str], kind: str
) -> None:
    """
    Ensure that none of the reserved keys is used.

    Args:
        mapping (Mapping[str, str]): The user-provided pairs.
        reserved (Iterable[str]): Keys reserved for ksub's own bookkeeping.
        kind (str): Human-readable name of the values, e.g. 'labels'.

    Raises:
        KSubConfigurationError: If any reserved key is present in `mapping`.
    """
    if collisions := [key for key in reserved if key in mapping]:
        raise KSubConfigurationError(
            f"Custom {kind} with keys {collisions} are not allowed as they are reserved for ksub bookkeeping."
        )


def check_unique_download_names(locators: Sequence[str], kind: str) -> None:
    """
    Ensure that no two downloaded dependencies end up at the same path.

    All dependencies that are not already present in the container image are
    downloaded into one shared directory under their file names, regardless
    of whether they are staged or fetched from a remote location.

    Args:
        locators (Sequence[str]): Locators of the dependencies.
        kind (str): Human-readable name of the dependencies, e.g. 'jars'.

    Raises:
        KSubConfigurationError: If two downloaded dependencies share a file name.
    """
    names = Counter(
        get_file_name(locator)
        for locator in locators
        if not is_container_local(locator)
    )
    if duplicates := sorted(name for name, count in names.items() if count > 1):
        raise KSubConfigurationError(
            f"Multiple {kind} would be downloaded as {duplicates}. Downloaded {kind} must have unique file names."
        )
