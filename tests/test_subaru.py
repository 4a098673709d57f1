import pytest

from fobdecode.blocks import ProtocolError
from fobdecode.flipper_format import FlipperFormat
from fobdecode.preset import RadioPreset
from fobdecode.subaru import SubaruDecoder, decode_count

KEY_BYTES = bytes([0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0])
KEY = int.from_bytes(KEY_BYTES, "big")


def _pulses(key_bytes, preamble_pairs=12, bits=None, end_high=False):
    pulses = []
    for _ in range(preamble_pairs):
        pulses += [(True, 1600), (False, 1600)]
    pulses += [(False, 2500), (True, 2500), (False, 1600)]
    value = int.from_bytes(key_bytes, "big")
    count = 64 if bits is None else bits
    for i in range(count):
        bit = (value >> (63 - i)) & 1
        pulses += [(True, 800 if bit else 1600), (False, 800)]
    if end_high:
        pulses.append((True, 4000))
    else:
        pulses[-1] = (False, 4000)
    return pulses


def _fed(pulses):
    seen = []
    decoder = SubaruDecoder(callback=seen.append)
    decoder.reset()
    for level, duration in pulses:
        decoder.feed(level, duration)
    return decoder, seen


def test_decode_count_all_zero():
    assert decode_count(bytes(8)) == 0xFFFF


def test_decode_count_all_ones():
    assert decode_count(bytes([0xFF] * 8)) == 0xFF00


def test_decode_count_rejects_wrong_length():
    with pytest.raises(ValueError):
        decode_count(bytes(7))


def test_decode_count_in_range():
    for seed in range(64):
        kb = bytes((seed * 37 + i * 11) & 0xFF for i in range(8))
        assert 0 <= decode_count(kb) <= 0xFFFF


def test_full_parcel_is_decoded():
    decoder, seen = _fed(_pulses(KEY_BYTES))
    assert seen == [decoder]
    assert decoder.key == KEY
    assert decoder.generic.data == KEY
    assert decoder.generic.data_count_bit == 64
    assert decoder.serial == 0x345678
    assert decoder.generic.serial == 0x345678
    assert decoder.button == 0x2
    assert decoder.generic.btn == 0x2
    assert decoder.count == decode_count(KEY_BYTES)
    assert decoder.generic.cnt == decoder.count


def test_parcel_ended_by_long_high_pulse():
    pulses = _pulses(KEY_BYTES, end_high=True)
    decoder, seen = _fed(pulses)
    assert len(seen) == 1
    assert decoder.key == KEY


def test_short_preamble_is_ignored():
    _, seen = _fed(_pulses(KEY_BYTES, preamble_pairs=5))
    assert seen == []


def test_too_few_bits_is_ignored():
    decoder, seen = _fed(_pulses(KEY_BYTES, bits=40))
    assert seen == []
    assert decoder.generic.data_count_bit == 0


def test_two_parcels_in_a_row():
    other = bytes([0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08])
    decoder, seen = _fed(_pulses(KEY_BYTES) + _pulses(other))
    assert len(seen) == 2
    assert decoder.key == int.from_bytes(other, "big")
    assert decoder.serial == 0x020304


def test_reset_clears_bit_state():
    decoder, _ = _fed(_pulses(KEY_BYTES, bits=30)[:-1])
    assert decoder.bit_count > 0
    decoder.reset()
    assert decoder.bit_count == 0
    assert decoder.header_count == 0
    assert decoder.parser_step == 0


def test_hash_is_stable_for_identical_parcels():
    first, _ = _fed(_pulses(KEY_BYTES))
    second, _ = _fed(_pulses(KEY_BYTES))
    assert first.get_hash_data() == second.get_hash_data()
    assert 0 <= first.get_hash_data() <= 0xFF


def test_get_string_layout():
    decoder, _ = _fed(_pulses(KEY_BYTES))
    text = decoder.get_string()
    lines = text.split("\r\n")
    assert lines[0] == "Subaru 64bit"
    assert lines[1] == "Key:123456789ABCDEF0"
    assert lines[2].startswith("Sn:345678 Btn:2 Cnt:")
    assert lines[2].endswith(f"{decoder.count:04X}")
    assert text.endswith("\r\n")


def test_serialize_writes_fields():
    decoder, _ = _fed(_pulses(KEY_BYTES))
    fmt = FlipperFormat()
    decoder.serialize(fmt, RadioPreset("AM650", 433920000))
    assert fmt.read("Frequency") == 433920000
    assert fmt.read("Preset") == "FuriHalSubGhzPresetOok650Async"
    assert fmt.read("Protocol") == "Subaru"
    assert fmt.read("Bit") == 64
    assert fmt.read("Key") == KEY_BYTES
    assert fmt.read("Serial") == 0x345678
    assert fmt.read("Btn") == 0x2
    assert fmt.read("Cnt") == decoder.count
    assert fmt.read("DataHi") == 0x12345678
    assert fmt.read("DataLo") == 0x9ABCDEF0


def test_serialize_round_trip_through_text():
    decoder, _ = _fed(_pulses(KEY_BYTES))
    fmt = FlipperFormat()
    decoder.serialize(fmt, None)
    restored = SubaruDecoder()
    restored.deserialize(FlipperFormat.loads(fmt.dumps()))
    assert restored.generic.data == KEY
    assert restored.generic.data_count_bit == 64


def test_deserialize_rejects_wrong_bit_count():
    fmt = FlipperFormat()
    fmt.write("Protocol", "Subaru")
    fmt.write("Bit", 32)
    fmt.write("Key", KEY_BYTES)
    with pytest.raises(ProtocolError):
        SubaruDecoder().deserialize(fmt)


def test_deserialize_rejects_missing_key():
    fmt = FlipperFormat()
    fmt.write("Protocol", "Subaru")
    fmt.write("Bit", 64)
    with pytest.raises(ProtocolError):
        SubaruDecoder().deserialize(fmt)