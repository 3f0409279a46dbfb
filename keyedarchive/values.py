"""Typed values stored in keyed archives."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Protocol, runtime_checkable

from keyedarchive.entity import Signal


class ArchiveFormatError(ValueError):
    """Raised when archive data is malformed or of an unsupported kind."""


class VariantType(IntEnum):
    """Type tags of archive values, as written to the binary format."""

    NONE = 0
    BOOLEAN = 1
    INT32 = 2
    FLOAT = 3
    STRING = 4
    WIDE_STRING = 5
    BYTE_ARRAY = 6
    UINT32 = 7
    KEYED_ARCHIVE = 8
    INT64 = 9
    UINT64 = 10
    VECTOR2 = 11
    VECTOR3 = 12
    VECTOR4 = 13
    MATRIX2 = 14
    MATRIX3 = 15
    MATRIX4 = 16
    COLOR = 17
    FASTNAME = 18
    AABBOX3 = 19
    FILEPATH = 20
    FLOAT64 = 21
    INT8 = 22
    UINT8 = 23
    INT16 = 24
    UINT16 = 25
    LIST = 26
    TRANSFORM = 27


_INT_RANGES = {
    VariantType.INT8: (-(2**7), 2**7 - 1),
    VariantType.UINT8: (0, 2**8 - 1),
    VariantType.INT16: (-(2**15), 2**15 - 1),
    VariantType.UINT16: (0, 2**16 - 1),
    VariantType.INT32: (-(2**31), 2**31 - 1),
    VariantType.UINT32: (0, 2**32 - 1),
    VariantType.INT64: (-(2**63), 2**63 - 1),
    VariantType.UINT64: (0, 2**64 - 1),
}

_FLOAT_TYPES = frozenset({VariantType.FLOAT, VariantType.FLOAT64})

_TEXT_TYPES = frozenset(
    {VariantType.STRING, VariantType.WIDE_STRING, VariantType.FASTNAME, VariantType.FILEPATH}
)

# Number of floats making up each fixed-size composite value.
_FLOAT_TUPLES = {
    VariantType.VECTOR2: 2,
    VariantType.VECTOR3: 3,
    VariantType.VECTOR4: 4,
    VariantType.MATRIX2: 4,
    VariantType.MATRIX3: 9,
    VariantType.MATRIX4: 16,
    VariantType.COLOR: 4,
    VariantType.AABBOX3: 6,
    VariantType.TRANSFORM: 10,
}


@runtime_checkable
class _ArchiveLike(Protocol):
    def serialize(self, stream: Any) -> Any: ...

    def deserialize(self, stream: Any, dictionary: Any = None) -> Any: ...


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _normalize(vtype: VariantType, value: Any) -> Any:
    if vtype is VariantType.NONE:
        if value is not None:
            raise TypeError("an empty variant holds no value")
        return None
    if vtype is VariantType.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeError(f"expected bool, got {type(value).__name__}")
        return value
    if vtype in _INT_RANGES:
        if not _is_int(value):
            raise TypeError(f"expected int, got {type(value).__name__}")
        low, high = _INT_RANGES[vtype]
        if not low <= value <= high:
            raise OverflowError(f"{value} does not fit into {vtype.name}")
        return value
    if vtype in _FLOAT_TYPES:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected a number, got {type(value).__name__}")
        return float(value)
    if vtype in _TEXT_TYPES:
        if not isinstance(value, str):
            raise TypeError(f"expected str, got {type(value).__name__}")
        return value
    if vtype is VariantType.BYTE_ARRAY:
        if isinstance(value, str) or not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"expected bytes, got {type(value).__name__}")
        return bytes(value)
    if vtype is VariantType.KEYED_ARCHIVE:
        if value is None:
            raise TypeError("a keyed archive variant needs an archive")
        return value
    if vtype in _FLOAT_TUPLES:
        items = tuple(float(item) for item in value)
        if len(items) != _FLOAT_TUPLES[vtype]:
            raise ValueError(
                f"{vtype.name} needs {_FLOAT_TUPLES[vtype]} components, got {len(items)}"
            )
        return items
    if vtype is VariantType.LIST:
        if isinstance(value, (str, bytes, bytearray)):
            raise TypeError("a list variant needs a sequence of values")
        return [item if isinstance(item, Variant) else Variant.of(item) for item in value]
    raise ArchiveFormatError(f"unsupported variant type {vtype!r}")


Validator = Callable[["Variant", "Variant"], bool]


class Variant:
    """A typed value with change notification.

    Validators receive the current and the proposed variant; returning False
    rejects the change, and they may adjust the proposed variant in place.
    ``value_changed`` is emitted with this variant after a change.
    """

    def __init__(self, type: VariantType = VariantType.NONE, value: Any = None):
        self._type = VariantType(type)
        self._value = _normalize(self._type, value)
        self.value_changed = Signal()
        self.validators: list[Validator] = []

    @classmethod
    def of(cls, value: Any) -> "Variant":
        """Build a variant, inferring its type from a Python value."""
        if isinstance(value, Variant):
            return cls(value.type, value.value)
        if value is None:
            return cls()
        if isinstance(value, bool):
            return cls(VariantType.BOOLEAN, value)
        if isinstance(value, int):
            for vtype in (VariantType.INT32, VariantType.INT64, VariantType.UINT64):
                low, high = _INT_RANGES[vtype]
                if low <= value <= high:
                    return cls(vtype, value)
            raise OverflowError(f"{value} does not fit into a 64-bit integer")
        if isinstance(value, float):
            return cls(VariantType.FLOAT64, value)
        if isinstance(value, str):
            return cls(VariantType.STRING, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(VariantType.BYTE_ARRAY, value)
        if isinstance(value, (list, tuple)):
            return cls(VariantType.LIST, value)
        if isinstance(value, _ArchiveLike):
            return cls(VariantType.KEYED_ARCHIVE, value)
        raise TypeError(f"cannot store {type(value).__name__} in a variant")

    @property
    def type(self) -> VariantType:
        return self._type

    @property
    def is_empty(self) -> bool:
        return self._type is VariantType.NONE

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new: Any) -> None:
        candidate = self._candidate(new)
        for validator in list(self.validators):
            if not validator(self, candidate):
                return
        changed = candidate.type != self._type or candidate.value != self._value
        self._type = candidate.type
        self._value = candidate.value
        if changed:
            self.value_changed(self)

    def _candidate(self, new: Any) -> "Variant":
        if isinstance(new, Variant):
            return Variant(new.type, new.value)
        if self._type in _INT_RANGES and _is_int(new):
            return Variant(self._type, new)
        if self._type in _FLOAT_TYPES and (_is_int(new) or isinstance(new, float)):
            return Variant(self._type, new)
        if self._type in _TEXT_TYPES and isinstance(new, str):
            return Variant(self._type, new)
        if self._type in _FLOAT_TUPLES and isinstance(new, tuple):
            return Variant(self._type, new)
        return Variant.of(new)

    def blob_size(self) -> int:
        """Size in bytes of a byte-array value."""
        if self._type is not VariantType.BYTE_ARRAY:
            raise TypeError(f"{self._type.name} variant is not a byte array")
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variant):
            return NotImplemented
        return self._type == other._type and self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Variant({self._type.name}, {self._value!r})"