"""Decoder for VW keyfob parcels (80 bits, Manchester coded)."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum, IntEnum
from typing import Optional

from .blocks import DecoderBase, duration_diff
from .flipper_format import FlipperFormat
from .preset import RadioPreset

TE_SHORT = 500
TE_LONG = 1000
TE_DELTA = 120
TE_MED = (TE_LONG + TE_SHORT) // 2
TE_END = TE_LONG * 5
MIN_COUNT_BIT_FOR_FOUND = 80

_BUTTON_NAMES = {
    0x1: "UNLOCK",
    0x2: "LOCK",
    0x3: "Un+Lk",
    0x4: "TRUNK",
    0x5: "Un+Tr",
    0x6: "Lk+Tr",
    0x7: "Un+Lk+Tr",
    0x8: "PANIC",
}


class ManchesterState(Enum):
    """Position within a Manchester-coded bit."""

    START1 = "start1"
    MID1 = "mid1"
    MID0 = "mid0"
    START0 = "start0"


class ManchesterEvent(Enum):
    """A classified pulse fed to the Manchester state machine."""

    SHORT_LOW = "short_low"
    SHORT_HIGH = "short_high"
    LONG_LOW = "long_low"
    LONG_HIGH = "long_high"
    RESET = "reset"


class _Step(IntEnum):
    RESET = 0
    FOUND_SYNC = 1
    FOUND_START1 = 2
    FOUND_START2 = 3
    FOUND_START3 = 4
    FOUND_DATA = 5


def manchester_advance(
    state: ManchesterState, event: ManchesterEvent
) -> tuple[ManchesterState, Optional[bool]]:
    """Advance the Manchester decoder; return the new state and any decoded bit."""
    if event is ManchesterEvent.RESET:
        return ManchesterState.MID1, None
    if state in (ManchesterState.MID0, ManchesterState.MID1):
        if event is ManchesterEvent.SHORT_HIGH:
            return ManchesterState.START1, None
        if event is ManchesterEvent.SHORT_LOW:
            return ManchesterState.START0, None
        return ManchesterState.MID1, None
    if state is ManchesterState.START1:
        if event is ManchesterEvent.SHORT_LOW:
            return ManchesterState.MID1, True
        if event is ManchesterEvent.LONG_LOW:
            return ManchesterState.START0, True
        return ManchesterState.MID1, None
    # START0
    if event is ManchesterEvent.SHORT_HIGH:
        return ManchesterState.MID0, False
    if event is ManchesterEvent.LONG_HIGH:
        return ManchesterState.START1, False
    return ManchesterState.MID1, None


def button_name(btn: int) -> str:
    """Name of a VW button code, or ``Unknown``."""
    return _BUTTON_NAMES.get(btn, "Unknown")


class VwDecoder(DecoderBase):
    """Pulse-stream decoder for VW remotes.

    A run of short sync pulses is followed by a long high, a short low and a
    run of medium pulses; then 80 Manchester-coded bits follow.  The first
    byte is the parcel type, the middle eight bytes the key and the last byte
    a check byte whose high nibble is the button.
    """

    name = "VW"

    def __init__(self, callback: Callable[[DecoderBase], None] | None = None) -> None:
        super().__init__(callback)
        self.manchester_state = ManchesterState.MID1
        self.data_2 = 0

    @property
    def type(self) -> int:
        return (self.data_2 >> 8) & 0xFF

    @property
    def check(self) -> int:
        return self.data_2 & 0xFF

    @property
    def button(self) -> int:
        return (self.check >> 4) & 0xF

    def _push_bit(self, bit: bool) -> None:
        g = self.generic
        if g.data_count_bit >= MIN_COUNT_BIT_FOR_FOUND:
            return
        index = MIN_COUNT_BIT_FOR_FOUND - 1 - g.data_count_bit
        if 8 <= index < 72:
            mask = 1 << (index - 8)
            g.data = g.data | mask if bit else g.data & ~mask
        else:
            mask = 1 << (index - 64 if index >= 72 else index)
            self.data_2 = self.data_2 | mask if bit else self.data_2 & ~mask
        g.data_count_bit += 1
        if g.data_count_bit >= MIN_COUNT_BIT_FOR_FOUND:
            self._emit()

    def _start_data(self) -> None:
        state, _ = manchester_advance(self.manchester_state, ManchesterEvent.RESET)
        self.manchester_state, _ = manchester_advance(state, ManchesterEvent.SHORT_HIGH)
        self.generic.data_count_bit = 0
        self.generic.data = 0
        self.data_2 = 0
        self.parser_step = _Step.FOUND_DATA

    def feed(self, level: bool, duration: int) -> None:
        """Consume one pulse: a signal level and its duration in microseconds."""
        is_short = duration_diff(duration, TE_SHORT) < TE_DELTA
        is_long = duration_diff(duration, TE_LONG) < TE_DELTA
        is_med = duration_diff(duration, TE_MED) < TE_DELTA
        step = self.parser_step

        if step == _Step.RESET:
            if is_short:
                self.parser_step = _Step.FOUND_SYNC

        elif step == _Step.FOUND_SYNC:
            if is_short:
                return
            self.parser_step = _Step.FOUND_START1 if level and is_long else _Step.RESET

        elif step == _Step.FOUND_START1:
            self.parser_step = (
                _Step.FOUND_START2 if not level and is_short else _Step.RESET
            )

        elif step == _Step.FOUND_START2:
            self.parser_step = _Step.FOUND_START3 if level and is_med else _Step.RESET

        elif step == _Step.FOUND_START3:
            if is_med:
                return
            if level and is_short:
                self._start_data()
            else:
                self.parser_step = _Step.RESET

        elif step == _Step.FOUND_DATA:
            event = ManchesterEvent.RESET
            if is_short:
                event = ManchesterEvent.SHORT_HIGH if level else ManchesterEvent.SHORT_LOW
            if is_long:
                event = ManchesterEvent.LONG_HIGH if level else ManchesterEvent.LONG_LOW
            # The last bit may end in an arbitrarily long low.
            if (
                self.generic.data_count_bit == MIN_COUNT_BIT_FOR_FOUND - 1
                and not level
                and duration > TE_END
            ):
                event = ManchesterEvent.SHORT_LOW

            if event is ManchesterEvent.RESET:
                self.reset()
            else:
                self.manchester_state, bit = manchester_advance(
                    self.manchester_state, event
                )
                if bit is not None:
                    self._push_bit(bit)

    def reset(self) -> None:
        """Return the parser to waiting for sync and clear collected bits."""
        super().reset()
        self.parser_step = _Step.RESET
        self.generic.data_count_bit = 0
        self.generic.data = 0
        self.data_2 = 0
        self.manchester_state = ManchesterState.MID1

    def get_hash_data(self) -> int:
        """Hash of the shared bit register, used to drop repeated parcels."""
        return super().get_hash_data()

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None:
        """Write the parcel with its type, check byte and button."""
        self.generic.serialize(fmt, preset)
        fmt.write("Type", self.type)
        fmt.write("Check", self.check)
        fmt.write("Btn", self.button)

    def deserialize(self, fmt: FlipperFormat) -> None:
        """Load an 80-bit parcel; any other bit count is rejected."""
        self.generic.deserialize_check_count_bit(fmt, MIN_COUNT_BIT_FOR_FOUND)

    def get_string(self) -> str:
        """Human-readable description of the decoded parcel."""
        g = self.generic
        key_high = (g.data >> 32) & 0xFFFFFFFF
        key_low = g.data & 0xFFFFFFFF
        return (
            f"{g.protocol_name} {g.data_count_bit}bit\r\n"
            f"Key:{self.type:02X}{key_high:08X}{key_low:08X}{self.check:02X}\r\n"
            f"Type:{self.type:02X} Btn:{self.button:X} {button_name(self.button)}\r\n"
        )