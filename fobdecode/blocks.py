"""Shared building blocks for keyfob protocol decoders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Optional

from .flipper_format import FlipperFormat, FlipperFormatError
from .preset import CUSTOM_FIRMWARE_PRESET, SHORT_PRESETS, RadioPreset

_MASK64 = (1 << 64) - 1


class ProtocolError(Exception):
    """Raised when a signal record cannot be serialized or read back."""


def duration_diff(a: int, b: int) -> int:
    """Absolute difference between two pulse durations."""
    return abs(a - b)


def get_hash_data(data: int, length: int) -> int:
    """XOR of the first ``length`` little-endian bytes of a 64-bit register."""
    raw = (data & _MASK64).to_bytes(8, "little")[: max(length, 0)]
    result = 0
    for byte in raw:
        result ^= byte
    return result


def _read_uint32(fmt: FlipperFormat, key: str) -> int:
    try:
        value = fmt.read(key)
    except FlipperFormatError as exc:
        raise ProtocolError(f"missing {key}") from exc
    if isinstance(value, bytes):
        raise ProtocolError(f"{key} is not a number")
    try:
        number = int(value)
    except ValueError as exc:
        raise ProtocolError(f"{key} is not a number") from exc
    if not 0 <= number <= 0xFFFFFFFF:
        raise ProtocolError(f"{key} is out of range")
    return number


def _read_key(fmt: FlipperFormat) -> int:
    try:
        value = fmt.read("Key")
    except FlipperFormatError as exc:
        raise ProtocolError("missing Key") from exc
    if isinstance(value, int):
        raise ProtocolError("Key is not a byte string")
    if isinstance(value, str):
        try:
            value = bytes.fromhex(value)
        except ValueError as exc:
            raise ProtocolError("Key is not valid hex") from exc
    if len(value) != 8:
        raise ProtocolError(f"Key has {len(value)} bytes, expected 8")
    return int.from_bytes(value, "big")


@dataclass
class BlockGeneric:
    """Decoded fields common to every protocol."""

    protocol_name: str
    data: int = 0
    data_count_bit: int = 0
    serial: int = 0
    btn: int = 0
    cnt: int = 0

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None:
        """Append the preset, protocol name, bit count and key to ``fmt``."""
        if preset is not None:
            fmt.write("Frequency", preset.frequency)
            firmware_name = SHORT_PRESETS.get(preset.name, CUSTOM_FIRMWARE_PRESET)
            fmt.write("Preset", firmware_name)
            if firmware_name == CUSTOM_FIRMWARE_PRESET:
                fmt.write("Custom_preset_module", "CC1101")
                fmt.write("Custom_preset_data", bytes(preset.data))
        fmt.write("Protocol", self.protocol_name)
        fmt.write("Bit", self.data_count_bit)
        fmt.write("Key", (self.data & _MASK64).to_bytes(8, "big"))

    def deserialize(self, fmt: FlipperFormat) -> None:
        """Read the bit count and key from ``fmt``."""
        bits = _read_uint32(fmt, "Bit")
        key = _read_key(fmt)
        self.data_count_bit = bits
        self.data = key

    def deserialize_check_count_bit(self, fmt: FlipperFormat, count_bit: int) -> None:
        """Like :meth:`deserialize`, but require exactly ``count_bit`` bits."""
        self.deserialize(fmt)
        if self.data_count_bit != count_bit:
            raise ProtocolError(
                f"wrong bit count {self.data_count_bit}, expected {count_bit}"
            )


class DecoderBase(ABC):
    """A pulse-stream decoder that reports each complete parcel to a callback."""

    name: ClassVar[str] = ""

    def __init__(self, callback: Callable[[DecoderBase], None] | None = None) -> None:
        self.callback = callback
        self.generic = BlockGeneric(self.name)
        self.parser_step = 0
        self.te_last = 0
        self.decode_data = 0
        self.decode_count_bit = 0

    def _add_bit(self, bit: int) -> None:
        self.decode_data = ((self.decode_data << 1) | (bit & 1)) & _MASK64
        self.decode_count_bit += 1

    def _emit(self) -> None:
        if self.callback is not None:
            self.callback(self)

    @abstractmethod
    def feed(self, level: bool, duration: int) -> None:
        """Consume one pulse: a signal level and its duration in microseconds."""

    def reset(self) -> None:
        """Return the parser to its initial state."""
        self.parser_step = 0
        self.te_last = 0
        self.decode_data = 0
        self.decode_count_bit = 0

    def get_hash_data(self) -> int:
        """Hash of the bits collected so far, used to drop repeated parcels."""
        length = self.decode_count_bit // 8 + 1
        value = get_hash_data(self.decode_data, length)
        # The byte after the 64-bit register is the bit counter itself.
        if length > 8:
            value ^= self.decode_count_bit & 0xFF
        return value

    def serialize(self, fmt: FlipperFormat, preset: Optional[RadioPreset]) -> None:
        """Write the decoded parcel to ``fmt``."""
        self.generic.serialize(fmt, preset)

    def deserialize(self, fmt: FlipperFormat) -> None:
        """Load a parcel previously written by :meth:`serialize`."""
        self.generic.deserialize(fmt)

    @abstractmethod
    def get_string(self) -> str:
        """Human-readable description of the decoded parcel."""