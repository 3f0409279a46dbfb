"""Keyed archives: typed key/value stores with a compact binary format."""

from __future__ import annotations

import logging
import struct
from typing import Any, Iterator, Mapping, Optional

from keyedarchive.memory_stream import MemoryStream
from keyedarchive.values import ArchiveFormatError, Variant, VariantType

logger = logging.getLogger(__name__)

HEADER = b"KA"
VERSION = 0x0001
VERSION_HASHED_STRINGS = 0x0002
VERSION_HASHED_KEYS = 0x0102
VERSION_EMPTY = 0xFF02

# Wide strings are stored as 32-bit code units.
WIDE_CHAR_SIZE = 4
TRANSFORM_SIZE = 40

_SCALAR_FORMATS = {
    VariantType.BOOLEAN: "<?",
    VariantType.INT8: "<b",
    VariantType.UINT8: "<B",
    VariantType.INT16: "<h",
    VariantType.UINT16: "<H",
    VariantType.INT32: "<i",
    VariantType.UINT32: "<I",
    VariantType.INT64: "<q",
    VariantType.UINT64: "<Q",
    VariantType.FLOAT: "<f",
    VariantType.FLOAT64: "<d",
}

_FLOAT_COUNTS = {
    VariantType.VECTOR2: 2,
    VariantType.VECTOR3: 3,
    VariantType.VECTOR4: 4,
    VariantType.MATRIX3: 9,
    VariantType.MATRIX4: 16,
    VariantType.AABBOX3: 6,
}

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")

_DEBUG_LABELS = {
    VariantType.INT32: "int32",
    VariantType.UINT32: "uint32",
    VariantType.INT64: "int64",
    VariantType.UINT64: "uint64",
    VariantType.INT8: "int8",
    VariantType.UINT8: "uint8",
    VariantType.INT16: "int16",
    VariantType.UINT16: "uint16",
}

_DEBUG_TAGS = {
    VariantType.MATRIX2: "(mat2)",
    VariantType.MATRIX3: "(mat3)",
    VariantType.MATRIX4: "(mat4)",
    VariantType.COLOR: "(color)",
    VariantType.FASTNAME: "(fastname)",
    VariantType.AABBOX3: "(aabb)",
    VariantType.FILEPATH: "(path)",
}


def _write(stream: Any, data: bytes) -> None:
    if not data:
        return
    written = stream.write(data)
    if written != len(data):
        raise OSError(f"short write: {written} of {len(data)} bytes")


def _read_exact(stream: Any, nbytes: int) -> bytes:
    if nbytes == 0:
        return b""
    data = stream.read(nbytes)
    if len(data) != nbytes:
        raise ArchiveFormatError(f"unexpected end of data: wanted {nbytes} bytes")
    return data


def _read_u16(stream: Any) -> int:
    return _U16.unpack(_read_exact(stream, _U16.size))[0]


def _read_u32(stream: Any) -> int:
    return _U32.unpack(_read_exact(stream, _U32.size))[0]


def _decode_utf8(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ArchiveFormatError(f"invalid UTF-8 text: {exc}") from exc


def _lookup_hash(dictionary: "Archive", raw_hash: bytes) -> str:
    key = raw_hash.decode("latin-1")
    variant = dictionary.get_variant(key)
    if variant is None or not isinstance(variant.value, str):
        raise ArchiveFormatError(f"hash {raw_hash!r} is not in the dictionary")
    return variant.value


def _copy_variant(variant: Variant) -> Variant:
    if variant.type is VariantType.KEYED_ARCHIVE and isinstance(variant.value, Archive):
        return Variant(VariantType.KEYED_ARCHIVE, variant.value.copy())
    if variant.type is VariantType.LIST:
        return Variant(VariantType.LIST, [_copy_variant(item) for item in variant.value])
    return Variant(variant.type, variant.value)


class Archive:
    """Typed key/value store that serializes to the keyed-archive format.

    Streams passed to ``serialize`` need ``write(data)`` returning the number
    of bytes written; streams passed to ``deserialize`` need ``read(size,
    count=1)`` and ``eof()``.  Multi-byte numbers are little-endian.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: dict[str, Variant] = {}
        if values:
            for key, value in values.items():
                self.set(key, value)

    def set(self, key: str, value: Any) -> Variant:
        """Store ``value`` under ``key``; return the stored variant.

        An existing variant is updated in place, so its signals fire.
        """
        variant = self._values.get(key)
        if variant is None:
            variant = Variant()
            self._values[key] = variant
        variant.value = value
        return variant

    def get(self, key: str, default: Any = None) -> Any:
        variant = self._values.get(key)
        return default if variant is None else variant.value

    def get_variant(self, key: str) -> Optional[Variant]:
        return self._values.get(key)

    def set_blob(self, key: str, data: bytes) -> Variant:
        return self.set(key, Variant(VariantType.BYTE_ARRAY, data))

    def get_blob(self, key: str) -> Optional[bytes]:
        """The byte array stored under ``key``, or None if the key is absent."""
        variant = self._values.get(key)
        if variant is None:
            return None
        variant.blob_size()  # raises TypeError for non-blob values
        return variant.value

    def has_key(self, key: str) -> bool:
        return key in self._values

    def remove_key(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()

    def keys(self) -> list[str]:
        return list(self._values)

    def common_keys(self, other: "Archive") -> list[str]:
        """Sorted keys present in both archives."""
        return sorted(set(self._values) & set(other._values))

    def copy(self) -> "Archive":
        result = Archive()
        for key, variant in self._values.items():
            result._values[key] = _copy_variant(variant)
        return result

    # ------------------------------------------------------------------
    # Binary format

    def serialize(self, stream: Any) -> None:
        """Write the archive to ``stream``."""
        _write(stream, HEADER)
        _write(stream, _U16.pack(VERSION))
        _write(stream, _U32.pack(len(self._values)))
        for key, variant in self._values.items():
            self._write_variant(stream, Variant(VariantType.STRING, key))
            self._write_variant(stream, variant)

    def _write_variant(self, stream: Any, variant: Variant) -> None:
        vtype = variant.type
        value = variant.value
        _write(stream, bytes([int(vtype)]))

        if vtype in _SCALAR_FORMATS:
            _write(stream, struct.pack(_SCALAR_FORMATS[vtype], value))
        elif vtype is VariantType.STRING:
            raw = value.encode("utf-8")
            _write(stream, _U32.pack(len(raw)) + raw)
        elif vtype is VariantType.WIDE_STRING:
            raw = value.encode("utf-32-le")
            _write(stream, _U32.pack(len(raw) // WIDE_CHAR_SIZE) + raw)
        elif vtype is VariantType.BYTE_ARRAY:
            _write(stream, _U32.pack(len(value)) + value)
        elif vtype is VariantType.KEYED_ARCHIVE:
            nested = MemoryStream()
            value.serialize(nested)
            raw = nested.getvalue()
            _write(stream, _U32.pack(len(raw)) + raw)
        elif vtype in _FLOAT_COUNTS:
            _write(stream, struct.pack(f"<{_FLOAT_COUNTS[vtype]}f", *value))
        elif vtype is VariantType.LIST:
            _write(stream, _U32.pack(len(value)))
            for item in value:
                self._write_variant(stream, item)
        else:
            raise ArchiveFormatError(f"cannot serialize {vtype.name} values")

    def deserialize(self, stream: Any, dictionary: Optional["Archive"] = None) -> None:
        """Read entries from ``stream`` into this archive.

        ``dictionary`` maps 4-byte hashes to strings and is needed for
        hashed-key archives.  Malformed data raises ArchiveFormatError; if an
        entry's value is malformed the archive is cleared first.  Data that
        ends cleanly before the announced item count is accepted.
        """
        if _read_exact(stream, 2) != HEADER:
            raise ArchiveFormatError("not a keyed archive")
        version = _read_u16(stream)

        if version == VERSION:
            count = _read_u32(stream)
            for _ in range(count):
                if stream.eof():
                    return
                try:
                    key = self._read_variant(stream, None)
                    value = self._read_variant(stream, None)
                    if key.type is not VariantType.STRING:
                        raise ArchiveFormatError(f"archive key of type {key.type.name}")
                except ArchiveFormatError:
                    self.clear()
                    raise
                self.set(key.value, value)
        elif version == VERSION_HASHED_STRINGS:
            count = _read_u32(stream)
            strings = []
            for _ in range(count):
                if stream.eof():
                    return
                length = _read_u16(stream)
                strings.append(_decode_utf8(_read_exact(stream, length)))
            for text in strings:
                if stream.eof():
                    return
                raw_hash = _read_exact(stream, 4)
                self.set(raw_hash.decode("latin-1"), Variant(VariantType.STRING, text))
        elif version == VERSION_HASHED_KEYS:
            if dictionary is None:
                raise ArchiveFormatError("hashed-key archives need a dictionary")
            count = _read_u32(stream)
            for _ in range(count):
                if stream.eof():
                    return
                key = _lookup_hash(dictionary, _read_exact(stream, 4))
                try:
                    value = self._read_variant(stream, dictionary)
                except ArchiveFormatError:
                    self.clear()
                    raise
                self.set(key, value)
        elif version == VERSION_EMPTY:
            return
        else:
            raise ArchiveFormatError(f"unknown archive version 0x{version:04X}")

    def _read_variant(self, stream: Any, dictionary: Optional["Archive"]) -> Variant:
        tag = _read_exact(stream, 1)[0]
        try:
            vtype = VariantType(tag)
        except ValueError:
            raise ArchiveFormatError(f"unknown value type {tag}") from None

        if vtype in _SCALAR_FORMATS:
            fmt = _SCALAR_FORMATS[vtype]
            (value,) = struct.unpack(fmt, _read_exact(stream, struct.calcsize(fmt)))
            return Variant(vtype, value)
        if vtype in (VariantType.STRING, VariantType.FASTNAME):
            if dictionary is not None:
                text = _lookup_hash(dictionary, _read_exact(stream, 4))
            else:
                text = _decode_utf8(_read_exact(stream, _read_u32(stream)))
            return Variant(VariantType.STRING, text)
        if vtype is VariantType.WIDE_STRING:
            length = _read_u32(stream)
            raw = _read_exact(stream, length * WIDE_CHAR_SIZE)
            try:
                text = raw.decode("utf-32-le")
            except UnicodeDecodeError as exc:
                raise ArchiveFormatError(f"invalid wide string: {exc}") from exc
            return Variant(VariantType.WIDE_STRING, text.split("\0", 1)[0])
        if vtype is VariantType.BYTE_ARRAY:
            return Variant(VariantType.BYTE_ARRAY, _read_exact(stream, _read_u32(stream)))
        if vtype is VariantType.KEYED_ARCHIVE:
            raw = _read_exact(stream, _read_u32(stream))
            nested = Archive()
            nested.deserialize(MemoryStream(raw), dictionary)
            return Variant(VariantType.KEYED_ARCHIVE, nested)
        if vtype in _FLOAT_COUNTS:
            count = _FLOAT_COUNTS[vtype]
            values = struct.unpack(f"<{count}f", _read_exact(stream, 4 * count))
            return Variant(vtype, values)
        if vtype is VariantType.LIST:
            size = _read_u32(stream)
            items = [self._read_variant(stream, dictionary) for _ in range(size)]
            return Variant(VariantType.LIST, items)
        if vtype is VariantType.TRANSFORM:
            # Transforms are skipped and leave the value empty.
            stream.read(1, TRANSFORM_SIZE)
            return Variant()
        raise ArchiveFormatError(f"cannot deserialize {vtype.name} values")

    def to_bytes(self) -> bytes:
        stream = MemoryStream()
        self.serialize(stream)
        return stream.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes, dictionary: Optional["Archive"] = None) -> "Archive":
        archive = cls()
        archive.deserialize(MemoryStream(data), dictionary)
        return archive

    # ------------------------------------------------------------------
    # Diagnostics

    def debug_print(self, indent: int = 0) -> str:
        """Log the archive contents and return the logged text."""
        text = self._debug_text(indent)
        logger.info("%s", text)
        return text

    def _debug_text(self, indent: int) -> str:
        prefix = " " * indent
        parts = []
        for key, variant in self._values.items():
            parts.append(f"{prefix}key: {key}\n")
            parts.append(f"{prefix}value: ")
            parts.append(_describe(variant, indent))
        return "".join(parts)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))


def _describe(variant: Variant, indent: int) -> str:
    vtype = variant.type
    value = variant.value
    if vtype is VariantType.NONE:
        return "None\n"
    if vtype is VariantType.BOOLEAN:
        return "True\n" if value else "False\n"
    if vtype in _DEBUG_LABELS:
        return f"({_DEBUG_LABELS[vtype]}) {value}\n"
    if vtype is VariantType.FLOAT:
        return f"(float) {value:f}\n"
    if vtype is VariantType.FLOAT64:
        return f"(double) {value:f}\n"
    if vtype is VariantType.STRING:
        return f"(string) {value}\n"
    if vtype is VariantType.WIDE_STRING:
        return f"(wstring) {value}\n"
    if vtype is VariantType.BYTE_ARRAY:
        return f"(blob) {len(value)} bytes\n"
    if vtype is VariantType.KEYED_ARCHIVE:
        nested = value._debug_text(indent + 2) if isinstance(value, Archive) else ""
        return "(archive)\n" + nested
    if vtype in (VariantType.VECTOR2, VariantType.VECTOR3, VariantType.VECTOR4):
        label = f"vec{len(value)}"
        return f"({label}) " + " ".join(f"{item:f}" for item in value) + "\n"
    if vtype in _DEBUG_TAGS:
        return _DEBUG_TAGS[vtype] + "\n"
    if vtype is VariantType.LIST:
        return f"(list) {len(value)}\n" + "".join(_describe(item, indent + 2) for item in value)
    logger.warning("Unsupported variant type: %d", int(vtype))
    return "(unknown)\n"