# keyedarchive

This is a small toolkit for game clients that keep typed data on disk or
send it over a network. It uses only the standard library.

## Modules

- `keyedarchive.values` has the following:
  - `VariantType` lists the type tags of the binary format.
  - `Variant` is a typed value with a `value_changed` signal and a list of
    `validators`. `Variant.of(value)` infers the type from a Python value.
  - `ArchiveFormatError` is raised for malformed data.
- `keyedarchive.archive.Archive` is a dictionary of `Variant`s that
  serializes to and from the little-endian "KA" binary format.
  - `to_bytes()` and `from_bytes()` convert to and from bytes. `serialize()`
    and `deserialize()` work on stream objects.
  - `deserialize()` also reads the hashed-string (`0x0002`), hashed-key
    (`0x0102`, which needs a `dictionary` archive) and empty (`0xFF02`)
    versions.
  - Matrix2, color, fastname, filepath and transform values cannot be
    serialized. Transform values met while reading are skipped and come back
    empty.
  - `debug_print()` logs the contents and returns them as text.
- `keyedarchive.memory_stream.MemoryStream` is a stream over a byte buffer.
  - With no buffer, the stream owns a buffer that grows as you write.
  - With a buffer, the stream has a fixed size.
- `keyedarchive.socket_stream.SocketStream` is a blocking stream over a TCP
  connection. Open one with `SocketStream.connect(ip, port)`.
- `keyedarchive.settings.Settings` is an `Archive` shared through
  `Settings.instance()`.
  - `connect(key, slot)` attaches a change listener.
  - `connect_validator(key, validator)` attaches a validator.
  - Both return a function that detaches what they attached.
- `keyedarchive.settings_store.SettingsStore` keeps `settings.arch` in a
  data folder. Its methods:
  - `load()` loads the file and merges it into the current settings.
  - `merge()` takes over only known keys of the same type. It skips
    `app.version`, `arg.*` keys, and byte arrays whose size or app version
    differ.
  - `save()` writes the file.
  - `apply_arguments(argv)` handles `--setting KEY VALUE` and
    `--settingInt KEY VALUE`.
  - `confirm_loaded()` removes the `watchdog.dat` file that `load()` left in
    place.
  - `previous_launch_failed` tells whether the watchdog file was still there
    at load time.
- `keyedarchive.entity` and `keyedarchive.entity_manager` hold a minimal
  entity-component container:
  - `Entity`, `EntityComponent` and `EntityManager` are the container
    classes.
  - `Signal` is the list of callbacks behind their `component_added`,
    `component_about_to_be_removed`, `entity_added` and `entity_removed`
    events.
- `keyedarchive.dictionary.Dictionary` maps tech names to localized
  strings. A missing key looks up as `"<not localized>"`.
- `keyedarchive.asset.Asset` is an abstract base class for reloadable
  resources that have a URL.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from keyedarchive.archive import Archive

arch = Archive()
arch.set("player.name", "Alice")
arch.set("player.level", 7)
arch.set_blob("player.state", b"\x01\x02\x03")

data = arch.to_bytes()
restored = Archive.from_bytes(data)
assert restored.get("player.name") == "Alice"
assert restored.get_blob("player.state") == b"\x01\x02\x03"
```

Persistent settings:

```python
from keyedarchive.settings import Settings
from keyedarchive.settings_store import SettingsStore

settings = Settings.instance()
settings.set("app.version", 1)
settings.set("sound.volume", 80)

store = SettingsStore(settings, "/tmp/mygame", False)
store.load()            # merges any saved values into the defaults
store.apply_arguments(["--settingInt", "sound.volume", "50"])
store.save()
store.confirm_loaded()  # removes the watchdog file
```

## What it does not do

This is a library with no command to run. The following are left to the
application:

- a game loop
- rendering
- input handling
- platform services such as clipboard, notifications or analytics
- browser storage

`Asset` only defines the interface, and no concrete asset types are included.