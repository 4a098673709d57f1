"""Radio presets and their display names."""

from __future__ import annotations

from dataclasses import dataclass

CUSTOM_FIRMWARE_PRESET = "FuriHalSubGhzPresetCustom"

FIRMWARE_PRESETS: dict[str, str] = {
    "FuriHalSubGhzPresetOok270Async": "AM270",
    "FuriHalSubGhzPresetOok650Async": "AM650",
    "FuriHalSubGhzPreset2FSKDev238Async": "FM238",
    "FuriHalSubGhzPreset2FSKDev12KAsync": "FM12K",
    "FuriHalSubGhzPreset2FSKDev476Async": "FM476",
    CUSTOM_FIRMWARE_PRESET: "CUSTOM",
}

SHORT_PRESETS: dict[str, str] = {short: full for full, short in FIRMWARE_PRESETS.items()}


@dataclass
class RadioPreset:
    """A named modulation preset tuned to a frequency in hertz."""

    name: str
    frequency: int
    data: bytes = b""


def preset_name_from_firmware(preset: str) -> str:
    """Map a firmware preset identifier to its short name, e.g. ``AM650``."""
    try:
        return FIRMWARE_PRESETS[preset]
    except KeyError:
        raise ValueError(f"unknown preset {preset!r}") from None


def frequency_modulation(preset: RadioPreset) -> tuple[str, str]:
    """Return the frequency as ``MHz.xx`` text and the two-letter modulation."""
    mhz = preset.frequency // 1_000_000 % 1000
    hundredths = preset.frequency // 10_000 % 100
    return f"{mhz:03d}.{hundredths:02d}", preset.name[:2]