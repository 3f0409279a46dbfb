"""Localisation dictionary mapping technical keys to translated text."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

NOT_LOCALIZED = "<not localized>"


class Dictionary:
    """Maps key strings to localised text."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def create(self, properties: Union[Mapping[str, Any], Iterable[tuple[str, Any]]]) -> None:
        """Add entries from a mapping or from key/value pairs.

        Values may be text or UTF-8 encoded bytes.  A key that is already
        present raises ValueError.
        """
        items = properties.items() if isinstance(properties, Mapping) else properties
        for key, value in items:
            if key in self._entries:
                raise ValueError(f"duplicate dictionary key: {key!r}")
            if isinstance(value, (bytes, bytearray)):
                text = bytes(value).decode("utf-8")
            else:
                text = str(value)
            self._entries[key] = text

    def lookup(self, key: str) -> str:
        """Localised text for ``key``, or a marker if it is missing."""
        return self._entries.get(key, NOT_LOCALIZED)

    def lookup_utf8(self, key: str) -> bytes:
        """Localised text for ``key`` as UTF-8 bytes."""
        return self.lookup(key).encode("utf-8")

    def has_entry(self, key: str) -> bool:
        return key in self._entries

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)