"""Decoder for Suzuki keyfob parcels (64 bits, pulse-width coded)."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Optional

from .blocks import DecoderBase, duration_diff, get_hash_data
from .flipper_format import FlipperFormat
from .preset import RadioPreset

TE_SHORT = 250
TE_LONG = 500
TE_DELTA = 99
MIN_COUNT_BIT_FOR_FOUND = 64

GAP_TIME = 2000
GAP_DELTA = 399
PREAMBLE_MIN = 300

_BUTTON_NAMES = {
    1: "PANIC",
    2: "TRUNK",
    3: "LOCK",
    4: "UNLOCK",
}


class _Step(IntEnum):
    RESET = 0
    COUNT_PREAMBLE = 1
    DECODE_DATA = 2


def button_name(btn: int) -> str:
    """Name of a Suzuki button code, or ``Unknown``."""
    return _BUTTON_NAMES.get(btn, "Unknown")


class SuzukiDecoder(DecoderBase):
    """Pulse-stream decoder for Suzuki remotes.

    A run of at least 300 short low pulses forms the preamble.  Each data bit
    is carried by the width of a high pulse (long is one, short is zero) and
    a low gap of about two milliseconds ends the parcel.
    """

    name = "Suzuki"

    def __init__(self, callback: Callable[[DecoderBase], None] | None = None) -> None:
        super().__init__(callback)
        self.header_count = 0

    def _finish_parcel(self) -> None:
        data = self.decode_data
        data_high = (data >> 32) & 0xFFFFFFFF
        data_low = data & 0xFFFFFFFF
        self.generic.data = data
        self.generic.data_count_bit = MIN_COUNT_BIT_FOR_FOUND
        self.generic.serial = ((data_high & 0xFFF) << 16) | (data_low >> 16)
        self.generic.btn = (data_low >> 12) & 0xF
        self.generic.cnt = ((data_high << 4) & 0xFFFFFFFF) >> 16
        self._emit()

    def feed(self, level: bool, duration: int) -> None:
        """Consume one pulse: a signal level and its duration in microseconds."""
        step = self.parser_step

        if step == _Step.RESET:
            if not level or duration_diff(duration, TE_SHORT) > TE_DELTA:
                return
            self.decode_data = 0
            self.decode_count_bit = 0
            self.parser_step = _Step.COUNT_PREAMBLE
            self.header_count = 0

        elif step == _Step.COUNT_PREAMBLE:
            if level:
                if (
                    self.header_count >= PREAMBLE_MIN
                    and duration_diff(duration, TE_LONG) <= TE_DELTA
                ):
                    self.parser_step = _Step.DECODE_DATA
                    self._add_bit(1)
            elif duration_diff(duration, TE_SHORT) <= TE_DELTA:
                self.te_last = duration
                self.header_count += 1
            else:
                self.parser_step = _Step.RESET

        elif step == _Step.DECODE_DATA:
            if level:
                if duration_diff(duration, TE_LONG) <= TE_DELTA:
                    self._add_bit(1)
                elif duration_diff(duration, TE_SHORT) <= TE_DELTA:
                    self._add_bit(0)
            elif duration_diff(duration, GAP_TIME) <= GAP_DELTA:
                if self.decode_count_bit == MIN_COUNT_BIT_FOR_FOUND:
                    self._finish_parcel()
                self.decode_data = 0
                self.decode_count_bit = 0
                self.parser_step = _Step.RESET

    def reset(self) -> None:
        """Return the parser to waiting for a preamble."""
        self.parser_step = _Step.RESET

    def get_hash_data(self) -> int:
        """Hash of the bit register over the length of the last parcel."""
        length = self.generic.data_count_bit // 8 + 1
        value = get_hash_data(self.decode_data, length)
        if length > 8:
            value ^= self.decode_count_bit & 0xFF
        return value

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None:
        """Write the parcel with its CRC, serial, button and counter."""
        self.generic.serialize(fmt, preset)
        fmt.write("CRC", (self.generic.data >> 4) & 0xFF)
        fmt.write("Serial", self.generic.serial)
        fmt.write("Btn", self.generic.btn)
        fmt.write("Cnt", self.generic.cnt)

    def deserialize(self, fmt: FlipperFormat) -> None:
        """Load a parcel previously written by :meth:`serialize`."""
        self.generic.deserialize(fmt)

    def get_string(self) -> str:
        """Human-readable description of the decoded parcel."""
        data = self.generic.data
        key_high = (data >> 32) & 0xFFFFFFFF
        key_low = data & 0xFFFFFFFF
        crc = (data >> 4) & 0xFF
        g = self.generic
        return (
            f"{g.protocol_name} {g.data_count_bit}bit\r\n"
            f"Key:{key_high:08X}{key_low:08X}\r\n"
            f"Sn:{g.serial:07X} Btn:{g.btn:X} {button_name(g.btn)}\r\n"
            f"Cnt:{g.cnt:04X} CRC:{crc:02X}\r\n"
        )