# envbind/convert.py
"""
envbind.convert
---------------

String-to-scalar conversion for leaf fields.

Every supported scalar kind is listed in ``Kind`` and carries a parse
function and a zero value in ``KIND_SPECS``. Conversion never raises: a value
that does not parse (or is out of range for the kind) converts to the kind's
zero value.

Plain annotations map to kinds directly (``str``, ``bool``, ``int``,
``float``, ``datetime.timedelta``). Fixed-width kinds are selected with the
``Annotated`` aliases defined here, e.g. ``Int8`` or ``Float32``.
"""

from __future__ import annotations

import enum
import logging
import re
import struct
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Callable, Optional, get_args, get_origin

log = logging.getLogger(__name__)


class Kind(enum.Enum):
    """Closed set of scalar kinds a leaf field may have."""

    STR = "str"
    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DURATION = "duration"


Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
UInt = Annotated[int, Kind.UINT]
UInt8 = Annotated[int, Kind.UINT8]
UInt16 = Annotated[int, Kind.UINT16]
UInt32 = Annotated[int, Kind.UINT32]
UInt64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]


# --- Parse functions (raise ValueError on failure) ---

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_BOOL_TOKENS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def _signed(bits: int) -> Callable[[str], int]:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def parse(s: str) -> int:
        if not _SIGNED_RE.fullmatch(s):
            raise ValueError(f"invalid integer {s!r}")
        value = int(s)
        if not low <= value <= high:
            raise ValueError(f"{s!r} out of range for int{bits}")
        return value

    return parse


def _unsigned(bits: int) -> Callable[[str], int]:
    high = (1 << bits) - 1

    def parse(s: str) -> int:
        if not _UNSIGNED_RE.fullmatch(s):
            raise ValueError(f"invalid unsigned integer {s!r}")
        value = int(s)
        if value > high:
            raise ValueError(f"{s!r} out of range for uint{bits}")
        return value

    return parse


def _parse_float64(s: str) -> float:
    if not _FLOAT_RE.fullmatch(s):
        raise ValueError(f"invalid float {s!r}")
    value = float(s)
    # float() saturates to inf instead of failing on overflow
    if value in (float("inf"), float("-inf")) and "inf" not in s.lower():
        raise ValueError(f"{s!r} out of range for float64")
    return value


def _parse_float32(s: str) -> float:
    value = _parse_float64(s)
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        raise ValueError(f"{s!r} out of range for float32") from None


def _parse_bool(s: str) -> bool:
    try:
        return _BOOL_TOKENS[s]
    except KeyError:
        raise ValueError(f"invalid boolean {s!r}") from None


_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_UNIT = "|".join(re.escape(u) for u in ("ns", "us", "µs", "μs", "ms", "s", "m", "h"))
_DURATION_PART = f"(?:[0-9]+\\.?[0-9]*|\\.[0-9]+)(?:{_DURATION_UNIT})"
_DURATION_RE = re.compile(f"[+-]?(?:{_DURATION_PART})+")
_DURATION_PART_RE = re.compile(f"([0-9]+\\.?[0-9]*|\\.[0-9]+)({_DURATION_UNIT})")
_MAX_DURATION_NANOS = (1 << 63) - 1


def parse_duration(s: str) -> timedelta:
    """
    Parse a duration literal such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``.

    Each component is a decimal number followed by one of the units
    ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m``, ``h``. The literal ``"0"``
    needs no unit. The total must fit in a signed 64-bit nanosecond count.
    Sub-microsecond precision is truncated.

    Raises:
        ValueError: If ``s`` is not a valid duration literal.
    """
    if s in ("0", "+0", "-0"):
        return timedelta(0)
    if not _DURATION_RE.fullmatch(s):
        raise ValueError(f"invalid duration {s!r}")
    negative = s.startswith("-")
    try:
        total = sum(
            Decimal(number) * _NANOS_PER_UNIT[unit]
            for number, unit in _DURATION_PART_RE.findall(s)
        )
    except InvalidOperation:
        raise ValueError(f"invalid duration {s!r}") from None
    nanos = int(total)
    if nanos > _MAX_DURATION_NANOS:
        raise ValueError(f"duration {s!r} out of range")
    micros = nanos // 1000
    return timedelta(microseconds=-micros if negative else micros)


# --- Kind table ---

@dataclass(frozen=True)
class KindSpec:
    """Parse function and zero value for one ``Kind``."""

    parse: Callable[[str], Any]
    zero: Any


KIND_SPECS = {
    Kind.STR: KindSpec(str, ""),
    Kind.BOOL: KindSpec(_parse_bool, False),
    Kind.INT: KindSpec(_signed(64), 0),
    Kind.INT8: KindSpec(_signed(8), 0),
    Kind.INT16: KindSpec(_signed(16), 0),
    Kind.INT32: KindSpec(_signed(32), 0),
    Kind.INT64: KindSpec(_signed(64), 0),
    Kind.UINT: KindSpec(_unsigned(64), 0),
    Kind.UINT8: KindSpec(_unsigned(8), 0),
    Kind.UINT16: KindSpec(_unsigned(16), 0),
    Kind.UINT32: KindSpec(_unsigned(32), 0),
    Kind.UINT64: KindSpec(_unsigned(64), 0),
    Kind.FLOAT32: KindSpec(_parse_float32, 0.0),
    Kind.FLOAT64: KindSpec(_parse_float64, 0.0),
    Kind.DURATION: KindSpec(parse_duration, timedelta(0)),
}

_PLAIN_KINDS = {
    str: Kind.STR,
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT64,
    timedelta: Kind.DURATION,
}

_INT_KINDS = {
    Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64,
    Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINT32, Kind.UINT64,
}
_FLOAT_KINDS = {Kind.FLOAT32, Kind.FLOAT64}


def kind_of(annotation: Any) -> Optional[Kind]:
    """
    Return the scalar ``Kind`` for a type annotation, or ``None`` if the
    annotation is not a supported scalar.

    ``Annotated[int, Kind.INT8]`` style annotations select a fixed-width kind;
    the kind must agree with the base type (integer kinds on ``int``, float
    kinds on ``float``).
    """
    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        base_kind = kind_of(base)
        for extra in extras:
            if not isinstance(extra, Kind):
                continue
            if base is int and extra in _INT_KINDS:
                return extra
            if base is float and extra in _FLOAT_KINDS:
                return extra
            return None
        return base_kind
    try:
        return _PLAIN_KINDS.get(annotation)
    except TypeError:  # unhashable annotation objects
        return None


def convert(kind: Kind, raw: Optional[str]) -> Any:
    """
    Convert ``raw`` to a value of ``kind``.

    A missing value (``None``) or one that fails to parse yields the kind's
    zero value; no exception escapes.
    """
    spec = KIND_SPECS[kind]
    if raw is None:
        return spec.zero
    try:
        return spec.parse(raw)
    except ValueError as e:
        log.debug("Falling back to zero value for %s: %s", kind.value, e)
        return spec.zero
