"""A bounded list of received parcels with duplicate suppression."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional, Protocol

from .flipper_format import FlipperFormat, FlipperFormatError
from .preset import RadioPreset

log = logging.getLogger(__name__)

HISTORY_MAX = 50
DUPLICATE_WINDOW_MS = 500


class _Decoder(Protocol):
    def get_hash_data(self) -> int: ...

    def get_string(self) -> str: ...

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None: ...


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass
class HistoryItem:
    """One received parcel: its description, serialized record and preset."""

    text: str
    flipper_format: FlipperFormat
    preset: RadioPreset
    type: int = 0


@dataclass
class History:
    """Received parcels, oldest first, holding at most ``max_items``.

    A parcel whose hash matches the previous one within 500 ms is treated as
    a repeat and dropped.
    """

    max_items: int = HISTORY_MAX
    clock: Callable[[], int] = _monotonic_ms
    _items: list[HistoryItem] = field(default_factory=list, init=False, repr=False)
    last_index: int = field(default=0, init=False)
    _last_hash: Optional[int] = field(default=None, init=False, repr=False)
    _last_update: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_items < 1:
            raise ValueError("max_items must be at least 1")

    def add(self, decoder: _Decoder, preset: RadioPreset) -> bool:
        """Record the decoder's current parcel; return False for a repeat."""
        now = self.clock()
        parcel_hash = decoder.get_hash_data()
        if parcel_hash == self._last_hash and now - self._last_update < DUPLICATE_WINDOW_MS:
            self._last_update = now
            return False

        if len(self._items) >= self.max_items:
            self._items.pop(0)
            log.debug("History full, removed oldest entry")

        self._last_hash = parcel_hash
        self._last_update = now

        fmt = FlipperFormat()
        decoder.serialize(fmt, preset)
        item = HistoryItem(
            text=decoder.get_string(),
            flipper_format=fmt,
            preset=dataclasses.replace(preset),
        )
        self._items.append(item)
        self.last_index += 1

        try:
            log.info("History add - Protocol: %s", fmt.read("Protocol"))
        except FlipperFormatError:
            pass
        log.info("Added item %d to history (size: %d)", self.last_index, len(self._items))
        return True

    def reset(self) -> None:
        """Drop every item and restart the running index."""
        self._items.clear()
        self.last_index = 0

    def _item(self, idx: int) -> Optional[HistoryItem]:
        if 0 <= idx < len(self._items):
            return self._items[idx]
        return None

    def menu_text(self, idx: int) -> str:
        """First line of an item's text, numbered from one; ``---`` if absent."""
        item = self._item(idx)
        if item is None:
            return "---"
        text = item.text
        end = text.find("\r")
        if end < 0:
            end = text.find("\n")
        line = text if end < 0 else text[:end]
        return f"{idx + 1}. {line}"

    def text(self, idx: int) -> str:
        """Full text of an item, or ``---`` if absent."""
        item = self._item(idx)
        return "---" if item is None else item.text

    def raw_data(self, idx: int) -> Optional[FlipperFormat]:
        """Serialized record of an item, or None if absent."""
        item = self._item(idx)
        return None if item is None else item.flipper_format

    @property
    def items(self) -> tuple[HistoryItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, idx: int) -> HistoryItem:
        return self._items[idx]