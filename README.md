# fobdecode

Decoders for the pulse trains sent by Subaru, Suzuki and VW car key fobs.
Feed a decoder the level and duration (in microseconds) of every pulse you
have received; when a whole parcel has been seen the decoder stores what it
found and calls your callback with the decoder itself.

- `fobdecode.subaru.SubaruDecoder` – 64-bit parcels; fills in key, serial,
  button and the rolling counter (recovered by `fobdecode.subaru.decode_count`).
- `fobdecode.suzuki.SuzukiDecoder` – 64-bit parcels; fills in key, serial,
  button and counter. `fobdecode.suzuki.button_name` names the button code.
- `fobdecode.vw.VwDecoder` – 80-bit Manchester-coded parcels; exposes the key
  plus the `type`, `check` and `button` properties. `fobdecode.vw.button_name`
  names the button code; `manchester_advance`, `ManchesterState` and
  `ManchesterEvent` are the underlying Manchester state machine.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Decoding

```python
from fobdecode.subaru import SubaruDecoder

def on_parcel(decoder):
    print(decoder.get_string())

decoder = SubaruDecoder(callback=on_parcel)

for level, duration in pulses:  # (bool, int) pairs from your receiver
    decoder.feed(level, duration)
```

The callback can also be set later through `decoder.callback`.
`decoder.reset()` returns the parser to its initial state, and
`decoder.get_hash_data()` gives a one-byte hash of the collected bits, used to
spot repeats. The shared fields live in `decoder.generic`, a
`fobdecode.blocks.BlockGeneric` (`data`, `data_count_bit`, `serial`, `btn`,
`cnt`).

## Saving and loading parcels

Decoders write their result into a `fobdecode.flipper_format.FlipperFormat`,
an ordered `Key: value` document. `write` appends an entry,
`insert_or_update` replaces the first one with the same key, `read` returns a
value (raising `FlipperFormatError` if the key is missing) and `get` returns
a default instead. Byte strings are written as space-separated hex pairs;
`dumps` renders the text and `FlipperFormat.loads` parses it back, with every
value as a string.

```python
from fobdecode.flipper_format import FlipperFormat
from fobdecode.preset import RadioPreset

fmt = FlipperFormat()
decoder.serialize(fmt, RadioPreset(name="AM650", frequency=433_920_000))
text = fmt.dumps()

restored = SubaruDecoder()
restored.deserialize(FlipperFormat.loads(text))
print(restored.generic.data, restored.generic.data_count_bit)
```

`serialize` writes the frequency and preset (when a preset is given), the
protocol name, the bit count and the 8-byte key, followed by the protocol's
own fields (for example `Serial`, `Btn`, `Cnt`, `DataHi`, `DataLo` for
Subaru; `CRC`, `Serial`, `Btn`, `Cnt` for Suzuki; `Type`, `Check`, `Btn` for
VW). `deserialize` reads back the bit count and key into `decoder.generic`;
the Subaru and VW decoders reject any bit count other than 64 and 80. A
missing, malformed or wrong-sized field raises `fobdecode.blocks.ProtocolError`.

## History

`fobdecode.history.History` keeps the most recently decoded parcels, oldest
first, up to 50 by default (`max_items`). `add(decoder, preset)` stores the
decoder's description and serialized document and returns `True`; it returns
`False` and stores nothing when the parcel's hash matches the previous one
within 500 ms. When full, the oldest item is dropped.

```python
from fobdecode.history import History

history = History()
history.add(decoder, preset)
history.menu_text(0)  # "1. Subaru 64bit"
history.text(0)       # full description
history.raw_data(0)   # the FlipperFormat document
```

An index out of range gives `"---"` from `menu_text` and `text`, and `None`
from `raw_data`. `reset()` clears the history; `last_index` counts the items
added since the last reset. The clock (milliseconds) can be replaced through
the `clock` argument.

## Presets

`fobdecode.preset.RadioPreset` holds a preset name, frequency in hertz and
optional preset data. `preset_name_from_firmware` maps firmware identifiers
such as `FuriHalSubGhzPresetOok650Async` to short names (`AM650`) and raises
`ValueError` for unknown ones. `frequency_modulation` formats a preset for
display, e.g. `("433.92", "AM")`.

## What this package does not do

It only decodes pulse trains you supply. It does not talk to a radio, tune
frequencies, hop between them or transmit, has no encoders for replaying
parcels, provides no command-line tool or user interface, and does not read
or write files on disk itself: use `dumps` and `loads` with your own storage.