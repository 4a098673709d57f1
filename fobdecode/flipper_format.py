"""Ordered key/value documents in the Flipper text format."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Union

Value = Union[str, int, bytes]


class FlipperFormatError(LookupError):
    """Raised for a missing key or a malformed document."""


def _format_value(value: Value) -> str:
    if isinstance(value, bytes):
        return " ".join(f"{byte:02X}" for byte in value)
    return str(value)


class FlipperFormat:
    """An ordered list of ``Key: value`` entries.

    Values are strings, unsigned integers or byte strings.  Byte strings are
    written as space separated upper-case hex pairs.  A document read back
    with :meth:`loads` holds every value as a string.
    """

    def __init__(self, entries: Iterable[tuple[str, Value]] | None = None) -> None:
        self._entries: list[tuple[str, Value]] = []
        for key, value in entries or ():
            self.write(key, value)

    @staticmethod
    def _check(key: str, value: Value) -> None:
        if not key or ":" in key or "\n" in key or key != key.strip():
            raise FlipperFormatError(f"invalid key {key!r}")
        if isinstance(value, bool) or not isinstance(value, (str, int, bytes)):
            raise TypeError(f"unsupported value type {type(value).__name__}")
        if isinstance(value, int) and value < 0:
            raise ValueError(f"negative value for {key!r}")
        if isinstance(value, str) and "\n" in value:
            raise FlipperFormatError(f"value for {key!r} spans lines")

    def _index(self, key: str) -> int | None:
        return next((i for i, (k, _) in enumerate(self._entries) if k == key), None)

    def write(self, key: str, value: Value) -> None:
        """Append an entry, even when the key is already present."""
        self._check(key, value)
        self._entries.append((key, value))

    def insert_or_update(self, key: str, value: Value) -> None:
        """Replace the first entry with this key, or append a new one."""
        self._check(key, value)
        index = self._index(key)
        if index is None:
            self._entries.append((key, value))
        else:
            self._entries[index] = (key, value)

    def read(self, key: str) -> Value:
        """Return the value of the first entry with this key."""
        index = self._index(key)
        if index is None:
            raise FlipperFormatError(f"missing key {key!r}")
        return self._entries[index][1]

    def get(self, key: str, default: Value | None = None) -> Value | None:
        """Return the value of the first entry with this key, or ``default``."""
        index = self._index(key)
        return default if index is None else self._entries[index][1]

    def items(self) -> list[tuple[str, Value]]:
        return list(self._entries)

    def dumps(self) -> str:
        """Render the document as text, one entry per line."""
        return "".join(f"{key}: {_format_value(value)}\n" for key, value in self._entries)

    @classmethod
    def loads(cls, text: str) -> FlipperFormat:
        """Parse a document; blank lines and ``#`` comments are skipped."""
        document = cls()
        for number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            key, sep, value = stripped.partition(":")
            key = key.strip()
            if not sep or not key:
                raise FlipperFormatError(f"line {number}: expected 'Key: value'")
            document._entries.append((key, value.strip()))
        return document

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._entries)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FlipperFormat({self._entries!r})"