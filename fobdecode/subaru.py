"""Decoder for Subaru keyfob parcels (64 bits, pulse-width coded)."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import IntEnum
from typing import Optional

from .blocks import DecoderBase, duration_diff
from .flipper_format import FlipperFormat
from .preset import RadioPreset

TE_SHORT = 800
TE_LONG = 1600
TE_DELTA = 200
MIN_COUNT_BIT_FOR_FOUND = 64

_GAP_MIN = 2000
_GAP_MAX = 3500
_END_OF_PARCEL = 3000

# (byte index, mask, output bit): the output bit is set when the input bit is clear.
_COUNT_LO_BITS = (
    (4, 0x40, 0x01),
    (4, 0x80, 0x02),
    (5, 0x01, 0x04),
    (5, 0x02, 0x08),
    (6, 0x01, 0x10),
    (6, 0x02, 0x20),
    (5, 0x40, 0x40),
    (5, 0x80, 0x80),
)

# (which of T1/T2, mask, output bit): set when the masked bit is clear.
_COUNT_HI_BITS = (
    (0, 0x10, 0x04),
    (0, 0x20, 0x08),
    (1, 0x80, 0x02),
    (1, 0x40, 0x01),
    (0, 0x01, 0x40),
    (0, 0x02, 0x80),
    (1, 0x08, 0x20),
    (1, 0x04, 0x10),
)


class _Step(IntEnum):
    RESET = 0
    CHECK_PREAMBLE = 1
    FOUND_GAP = 2
    FOUND_SYNC = 3
    SAVE_DURATION = 4
    CHECK_DURATION = 5


def decode_count(kb: Sequence[int]) -> int:
    """Recover the 16-bit rolling counter from the eight parcel bytes."""
    if len(kb) != 8:
        raise ValueError(f"expected 8 bytes, got {len(kb)}")
    kb = [byte & 0xFF for byte in kb]

    lo = 0
    for index, mask, out in _COUNT_LO_BITS:
        if not kb[index] & mask:
            lo |= out

    reg_sh1 = (kb[7] << 4) & 0xF0
    if kb[5] & 0x04:
        reg_sh1 |= 0x04
    if kb[5] & 0x08:
        reg_sh1 |= 0x08
    if kb[6] & 0x80:
        reg_sh1 |= 0x02
    if kb[6] & 0x40:
        reg_sh1 |= 0x01

    reg_sh2 = ((kb[6] << 2) & 0xF0) | ((kb[7] >> 4) & 0x0F)

    # The serial bytes form a 24-bit register rotated left; the rotation
    # count is held in a single byte, so it wraps at 256.
    register = (kb[3] << 16) | (kb[1] << 8) | kb[2]
    rotation = ((4 + lo) & 0xFF) % 24
    register = ((register << rotation) | (register >> (24 - rotation))) & 0xFFFFFF
    ser1 = (register >> 8) & 0xFF
    ser2 = register & 0xFF

    t = (ser1 ^ reg_sh1, ser2 ^ reg_sh2)
    hi = 0
    for which, mask, out in _COUNT_HI_BITS:
        if not t[which] & mask:
            hi |= out

    return ((hi << 8) | lo) & 0xFFFF


class SubaruDecoder(DecoderBase):
    """Pulse-stream decoder for Subaru remotes.

    After a long preamble, a gap and a sync pulse, each bit is carried by the
    width of a high pulse: a short pulse is a one, a long pulse a zero.
    """

    name = "Subaru"

    def __init__(self, callback: Callable[[DecoderBase], None] | None = None) -> None:
        super().__init__(callback)
        self.header_count = 0
        self.bit_count = 0
        self._bytes = bytearray(8)
        self.key = 0
        self.serial = 0
        self.button = 0
        self.count = 0

    def _push_bit(self, bit: bool) -> None:
        if self.bit_count >= MIN_COUNT_BIT_FOR_FOUND:
            return
        byte_idx, offset = divmod(self.bit_count, 8)
        mask = 1 << (7 - offset)
        if bit:
            self._bytes[byte_idx] |= mask
        else:
            self._bytes[byte_idx] &= ~mask & 0xFF
        self.bit_count += 1

    def _process_data(self) -> bool:
        if self.bit_count < MIN_COUNT_BIT_FOR_FOUND:
            return False
        raw = bytes(self._bytes)
        self.key = int.from_bytes(raw, "big")
        self.serial = int.from_bytes(raw[1:4], "big")
        self.button = raw[0] & 0x0F
        self.count = decode_count(raw)
        return True

    def _finish_parcel(self) -> None:
        if self._process_data():
            self.generic.data = self.key
            self.generic.data_count_bit = MIN_COUNT_BIT_FOR_FOUND
            self.generic.serial = self.serial
            self.generic.btn = self.button
            self.generic.cnt = self.count
            self._emit()
        self.parser_step = _Step.RESET

    def feed(self, level: bool, duration: int) -> None:
        """Consume one pulse: a signal level and its duration in microseconds."""
        is_short = duration_diff(duration, TE_SHORT) < TE_DELTA
        is_long = duration_diff(duration, TE_LONG) < TE_DELTA
        is_gap = _GAP_MIN < duration < _GAP_MAX
        step = self.parser_step

        if step == _Step.RESET:
            if level and is_long:
                self.parser_step = _Step.CHECK_PREAMBLE
                self.te_last = duration
                self.header_count = 1

        elif step == _Step.CHECK_PREAMBLE:
            if not level:
                if is_long:
                    self.header_count += 1
                elif is_gap:
                    self.parser_step = (
                        _Step.FOUND_GAP if self.header_count > 20 else _Step.RESET
                    )
                else:
                    self.parser_step = _Step.RESET
            elif is_long:
                self.te_last = duration
                self.header_count += 1
            else:
                self.parser_step = _Step.RESET

        elif step == _Step.FOUND_GAP:
            self.parser_step = _Step.FOUND_SYNC if level and is_gap else _Step.RESET

        elif step == _Step.FOUND_SYNC:
            if not level and is_long:
                self.parser_step = _Step.SAVE_DURATION
                self.bit_count = 0
                self._bytes[:] = bytes(8)
            else:
                self.parser_step = _Step.RESET

        elif step == _Step.SAVE_DURATION:
            if not level:
                self.parser_step = _Step.RESET
            elif is_short or is_long:
                self._push_bit(is_short)
                self.te_last = duration
                self.parser_step = _Step.CHECK_DURATION
            elif duration > _END_OF_PARCEL:
                self._finish_parcel()
            else:
                self.parser_step = _Step.RESET

        elif step == _Step.CHECK_DURATION:
            if level:
                self.parser_step = _Step.RESET
            elif is_short or is_long:
                self.parser_step = _Step.SAVE_DURATION
            elif duration > _END_OF_PARCEL:
                self._finish_parcel()
            else:
                self.parser_step = _Step.RESET

    def reset(self) -> None:
        """Return the parser to its initial state."""
        super().reset()
        self.parser_step = _Step.RESET
        self.header_count = 0
        self.bit_count = 0
        self._bytes[:] = bytes(8)

    def get_hash_data(self) -> int:
        """Hash of the shared bit register, used to drop repeated parcels."""
        return super().get_hash_data()

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None:
        """Write the parcel with its serial, button, counter and raw halves."""
        self.generic.serialize(fmt, preset)
        fmt.write("Serial", self.serial)
        fmt.write("Btn", self.button)
        fmt.write("Cnt", self.count)
        fmt.write("DataHi", (self.key >> 32) & 0xFFFFFFFF)
        fmt.write("DataLo", self.key & 0xFFFFFFFF)

    def deserialize(self, fmt: FlipperFormat) -> None:
        """Load a 64-bit parcel; any other bit count is rejected."""
        self.generic.deserialize_check_count_bit(fmt, MIN_COUNT_BIT_FOR_FOUND)

    def get_string(self) -> str:
        """Human-readable description of the decoded parcel."""
        key_hi = (self.key >> 32) & 0xFFFFFFFF
        key_lo = self.key & 0xFFFFFFFF
        return (
            f"{self.generic.protocol_name} {self.generic.data_count_bit}bit\r\n"
            f"Key:{key_hi:08X}{key_lo:08X}\r\n"
            f"Sn:{self.serial:06X} Btn:{self.button:X} Cnt:{self.count:04X}\r\n"
        )