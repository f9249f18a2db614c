# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the ksub library.

This module provides helpers for splitting comma-separated lists, classifying
dependency locators by their URI scheme, converting memory strings, rendering
init-container properties, and loading YAML properties files.
"""

import re
from functools import lru_cache
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import yaml

from .error import KSubConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Schemes denoting a file on the submitter's local disk.
SUBMITTER_LOCAL_SCHEMES = ("file", "")
# Scheme denoting a file already present inside the container image.
CONTAINER_LOCAL_SCHEME = "local"

_MEMORY_UNITS_IN_KB = {
    "k": 1,
    "m": 1024,
    "g": 1024 * 1024,
    "t": 1024 * 1024 * 1024,
    "p": 1024 * 1024 * 1024 * 1024,
}

# characters escaped in properties files
_PROPERTIES_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
        "\f": "\\f",
        "=": "\\=",
        ":": "\\:",
        "#": "\\#",
        "!": "\\!",
    }
)


@lru_cache(maxsize=1)
def load_yaml_loader() -> type[yaml.SafeLoader]:
    """Return the fastest available safe YAML loader (CSafeLoader if possible)."""
    try:
        from yaml import CSafeLoader as SafeLoader  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CLoader.")
    except ImportError:
        from yaml import SafeLoader

        logger.debug("Loaded default YAML loader.")

    return SafeLoader


def load_properties_file(path: Path) -> dict[str, str]:
    """
    Load application configuration from a YAML file.

    The file must contain a flat mapping. All values are converted to strings
    (booleans are lowercased to match the usual configuration syntax).

    Args:
        path (Path): Path to the YAML file.

    Returns:
        dict[str, str]: The loaded configuration.

    Raises:
        KSubConfigurationError: If the file cannot be read or does not contain a flat mapping.
    """
    try:
        with path.open() as f:
            data = yaml.load(f, Loader=load_yaml_loader())
    except (OSError, yaml.YAMLError) as e:
        raise KSubConfigurationError(
            f"Could not read properties file '{path}': {e}."
        ) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise KSubConfigurationError(
            f"Properties file '{path}' must contain a mapping of configuration keys to values."
        )

    properties = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise KSubConfigurationError(
                f"Value of '{key}' in properties file '{path}' must be a scalar."
            )
        if isinstance(value, bool):
            value = str(value).lower()
        properties[str(key)] = "" if value is None else str(value)

    logger.debug(f"Loaded {len(properties)} properties from '{path}'.")
    return properties


def split_csv(raw: str | None) -> list[str]:
    """
    Split a comma-separated string into a list of stripped, non-empty items.

    Args:
        raw (str | None): The string to split.

    Returns:
        list[str]: List of items in their original order.
    """
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def get_scheme(locator: str) -> str:
    """
    Return the lowercased URI scheme of a dependency locator.

    Plain paths (absolute or relative) have an empty scheme.
    """
    return urlparse(locator).scheme.lower()


def is_submitter_local(locator: str) -> bool:
    """Return True if the locator points to the submitter's local disk."""
    return get_scheme(locator) in SUBMITTER_LOCAL_SCHEMES


def is_container_local(locator: str) -> bool:
    """Return True if the locator points to a file inside the container image."""
    return get_scheme(locator) == CONTAINER_LOCAL_SCHEME


def is_remote(locator: str) -> bool:
    """Return True if the locator can be fetched from a remote location."""
    return not is_submitter_local(locator) and not is_container_local(locator)


def get_path(locator: str) -> str:
    """Return the path component of a dependency locator."""
    if not get_scheme(locator):
        return locator
    return urlparse(locator).path


def get_file_name(locator: str) -> str:
    """Return the name of the file a dependency locator points to."""
    return PurePosixPath(get_path(locator)).name


def memory_string_to_mb(memory: str) -> int:
    """
    Convert a memory string to mebibytes.

    Accepts strings such as '512m', '2g', '1024k' or '4gb'. A plain number is
    interpreted as a number of mebibytes, 'b' denotes bytes.

    Args:
        memory (str): The memory string to convert.

    Returns:
        int: The amount of memory in MiB (rounded down).

    Raises:
        KSubConfigurationError: If the string cannot be parsed.
    """
    match = re.match(r"^\s*(\d+)\s*([a-zA-Z]*)\s*$", memory)
    if not match:
        raise KSubConfigurationError(f"Invalid memory string: '{memory}'.")

    value, unit = int(match.group(1)), match.group(2).lower()
    if not unit:
        return value
    if unit == "b":
        return value // (1024 * 1024)

    # accept both '2g' and '2gb'
    if len(unit) == 2 and unit.endswith("b"):
        unit = unit[0]

    if unit not in _MEMORY_UNITS_IN_KB:
        raise KSubConfigurationError(f"Unsupported unit in memory string '{memory}'.")

    return value * _MEMORY_UNITS_IN_KB[unit] // 1024


def render_properties(properties: dict[str, str]) -> str:
    """
    Render a mapping as a properties file read by the init-containers.

    Keys are sorted so that the output is deterministic. Keys and values are
    escaped so that they are read back unchanged, and leading whitespace of
    a value is preserved.
    """
    lines = [
        f"{_escape_property(key, True)}={_escape_property(properties[key], False)}"
        for key in sorted(properties)
    ]
    return "\n".join(lines) + "\n"


def _escape_property(text: str, is_key: bool) -> str:
    escaped = text.translate(_PROPERTIES_ESCAPES)
    if is_key:
        return escaped.replace(" ", "\\ ")
    if escaped.startswith(" "):
        return "\\" + escaped
    return escaped
