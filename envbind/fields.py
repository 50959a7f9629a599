# envbind/fields.py
"""
envbind.fields
--------------

Field descriptor tables for dataclass records, and the key deriver.

A record's table is built once per type (``describe`` is cached) and lists,
in declaration order, what every field is: a scalar leaf, a sequence of
scalars, a nested record, or an ignored field. Unsupported field types are
reported while the table is built, so a bad record definition fails before
anything is populated.

Field tags are read from dataclass field metadata::

    @dataclass
    class Database:
        url: str = field(default="", metadata={"config": "dsn"})   # key "dsn"
        cache: dict = field(default=None, metadata={"config": "-"})  # ignored
"""

from __future__ import annotations

import dataclasses
import enum
import functools
from dataclasses import dataclass
from typing import Any, Optional, Tuple, get_args, get_origin, get_type_hints

from .convert import Kind, kind_of
from .exceptions import UnsupportedFieldError

TAG_KEY = "config"
IGNORE_TAG = "-"


class Shape(enum.Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    RECORD = "record"
    IGNORED = "ignored"


@dataclass(frozen=True)
class FieldDescriptor:
    """Static description of one record field.

    Attributes:
        name: Declared attribute name.
        shape: How the field is populated.
        kind: Scalar kind, or the element kind for sequences.
        record: Nested dataclass type for ``Shape.RECORD`` fields.
        children: Descriptor table of the nested record.
        tag: Trimmed ``config`` metadata value, if any.
        init: Whether the field is accepted by the dataclass ``__init__``.
        has_default: Whether the dataclass declares a default for the field.
    """

    name: str
    shape: Shape
    kind: Optional[Kind] = None
    record: Optional[type] = None
    children: Tuple["FieldDescriptor", ...] = ()
    tag: Optional[str] = None
    init: bool = True
    has_default: bool = False

    def key(self, prefix: str = "") -> Optional[str]:
        """Return this field's flat key under ``prefix``, or None if ignored."""
        return derive_key(self.name, self.tag, prefix)


def derive_key(name: str, tag: Optional[str], prefix: str = "") -> Optional[str]:
    """
    Compute the flat key for a field.

    The tag (already trimmed) replaces the field name when non-empty; the
    ignore sentinel yields ``None``. The result is lower-cased.

    Examples:
        >>> derive_key("Name", None, "child__")
        'child__name'
        >>> derive_key("url", "DSN")
        'dsn'
        >>> derive_key("cache", "-") is None
        True
    """
    if tag == IGNORE_TAG:
        return None
    return (prefix + (tag or name)).lower()


def _field_tag(f: dataclasses.Field) -> Optional[str]:
    tag = f.metadata.get(TAG_KEY)
    if tag is None:
        return None
    return str(tag).strip()


def _has_default(f: dataclasses.Field) -> bool:
    return (
        f.default is not dataclasses.MISSING
        or f.default_factory is not dataclasses.MISSING
    )


def _describe_field(record_type: type, f: dataclasses.Field, annotation: Any) -> FieldDescriptor:
    tag = _field_tag(f)
    common = dict(name=f.name, tag=tag, init=f.init, has_default=_has_default(f))

    if tag == IGNORE_TAG:
        return FieldDescriptor(shape=Shape.IGNORED, **common)

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return FieldDescriptor(
            shape=Shape.RECORD,
            record=annotation,
            children=describe(annotation),
            **common,
        )

    if get_origin(annotation) is list:
        args = get_args(annotation)
        element = kind_of(args[0]) if len(args) == 1 else None
        if element is None:
            raise UnsupportedFieldError(record_type, f.name, annotation)
        return FieldDescriptor(shape=Shape.SEQUENCE, kind=element, **common)

    kind = kind_of(annotation)
    if kind is None:
        raise UnsupportedFieldError(record_type, f.name, annotation)
    return FieldDescriptor(shape=Shape.SCALAR, kind=kind, **common)


@functools.lru_cache(maxsize=None)
def describe(record_type: type) -> Tuple[FieldDescriptor, ...]:
    """
    Build (or fetch from cache) the descriptor table for a dataclass type.

    Args:
        record_type: A dataclass class.

    Returns:
        Field descriptors in declaration order.

    Raises:
        TypeError: If ``record_type`` is not a dataclass type.
        UnsupportedFieldError: If a non-ignored field has a type that cannot
            be bound (optional/union types, mappings, ``Any``, complex, bytes,
            nested sequences, sequences of records, ...).
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise TypeError(f"Expected a dataclass type, got {record_type!r}")
    hints = get_type_hints(record_type, include_extras=True)
    return tuple(
        _describe_field(record_type, f, hints.get(f.name, f.type))
        for f in dataclasses.fields(record_type)
    )
