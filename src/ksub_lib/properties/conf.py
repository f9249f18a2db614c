# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Immutable application configuration.

`SubmissionConf` holds the flat string-to-string application configuration
that crosses the boundary to the driver and executor processes. Every
modification returns a new instance so that each submission stage can hand
its result to the next one without affecting the input it received.
"""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Self


class SubmissionConf(Mapping[str, str]):
    """
    Immutable mapping of configuration keys to configuration values.

    Insertion order is preserved (overriding a key keeps its original position).
    """

    def __init__(self, entries: Mapping[str, str] | None = None):
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries or {}))

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SubmissionConf):
            return dict(self._entries) == dict(other._entries)
        if isinstance(other, Mapping):
            return dict(self._entries) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        return f"SubmissionConf({dict(self._entries)!r})"

    def getOption(self, key: str) -> str | None:
        """Return the value for `key` or None if it is not set or is empty."""
        return self._entries.get(key) or None

    def set(self, key: str, value: str) -> Self:
        """Return a new configuration with `key` set to `value`."""
        entries = dict(self._entries)
        entries[key] = value
        return type(self)(entries)

    def setAll(self, values: Mapping[str, str]) -> Self:
        """Return a new configuration with all `values` set."""
        entries = dict(self._entries)
        entries.update(values)
        return type(self)(entries)

    def remove(self, key: str) -> Self:
        """Return a new configuration without `key`. Missing keys are ignored."""
        entries = dict(self._entries)
        entries.pop(key, None)
        return type(self)(entries)

    def redact(self, key: str, placeholder: str) -> Self:
        """
        Return a new configuration with the value of `key` replaced by `placeholder`.

        Nothing happens if the key is not set.
        """
        if key not in self._entries:
            return self
        return self.set(key, placeholder)
