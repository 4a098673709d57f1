import pytest

from fobdecode.flipper_format import FlipperFormat, FlipperFormatError


def test_write_then_read():
    fmt = FlipperFormat()
    fmt.write("Protocol", "Subaru")
    fmt.write("Bit", 64)
    assert fmt.read("Protocol") == "Subaru"
    assert fmt.read("Bit") == 64
    assert len(fmt) == 2


def test_write_appends_duplicates_and_read_returns_first():
    fmt = FlipperFormat()
    fmt.write("Btn", 1)
    fmt.write("Btn", 2)
    assert fmt.read("Btn") == 1
    assert len(fmt) == 2


def test_insert_or_update_replaces_in_place():
    fmt = FlipperFormat([("A", "x"), ("B", "y"), ("C", "z")])
    fmt.insert_or_update("B", "changed")
    assert list(fmt) == ["A", "B", "C"]
    assert fmt.read("B") == "changed"


def test_insert_or_update_appends_new_key():
    fmt = FlipperFormat([("A", "x")])
    fmt.insert_or_update("B", 7)
    assert list(fmt) == ["A", "B"]
    assert fmt.read("B") == 7


def test_missing_key_raises():
    fmt = FlipperFormat()
    with pytest.raises(FlipperFormatError):
        fmt.read("Key")


def test_get_returns_default():
    fmt = FlipperFormat([("A", "x")])
    assert fmt.get("Missing", "fallback") == "fallback"
    assert fmt.get("Missing") is None
    assert fmt.get("A", "fallback") == "x"


def test_dumps_layout():
    fmt = FlipperFormat([("Protocol", "Subaru"), ("Bit", 64)])
    assert fmt.dumps() == "Protocol: Subaru\nBit: 64\n"


def test_dumps_bytes_as_hex_pairs():
    fmt = FlipperFormat([("Key", bytes([0x00, 0x01, 0xAB]))])
    assert fmt.dumps() == "Key: 00 01 AB\n"


def test_loads_round_trip_keeps_text():
    fmt = FlipperFormat([("Protocol", "VW"), ("Bit", 80), ("Key", b"\x12\x34")])
    again = FlipperFormat.loads(fmt.dumps())
    assert list(again) == ["Protocol", "Bit", "Key"]
    assert again.read("Protocol") == "VW"
    assert again.read("Bit") == "80"
    assert again.read("Key") == "12 34"
    assert again.dumps() == fmt.dumps()


def test_loads_skips_comments_and_blank_lines():
    fmt = FlipperFormat.loads("# header\n\nFrequency: 433920000\n")
    assert list(fmt) == ["Frequency"]
    assert "Frequency" in fmt


def test_loads_rejects_line_without_separator():
    with pytest.raises(FlipperFormatError):
        FlipperFormat.loads("Protocol Subaru\n")


def test_rejects_unsupported_value_types():
    fmt = FlipperFormat()
    with pytest.raises(TypeError):
        fmt.write("Ratio", 1.5)
    with pytest.raises(ValueError):
        fmt.write("Cnt", -1)
    with pytest.raises(FlipperFormatError):
        fmt.write("Bad:Key", "x")
    assert len(fmt) == 0