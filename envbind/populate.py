# envbind/populate.py
"""
envbind.populate
----------------

The record population engine: walks a record's descriptor table and fills
each field from a flat, lower-cased config map.

- Nested records recurse with the prefix ``key + struct_delim``.
- Sequence fields split their value on ``slice_delim``; blank tokens are
  dropped and every remaining token is converted with the element kind.
- Scalar fields are converted with their kind; a missing key and an
  unparsable value both leave the kind's zero value.
"""

import dataclasses
import logging
from typing import Any, List, Mapping, Optional, TypeVar, Union

from .convert import convert
from .fields import FieldDescriptor, Shape, describe

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STRUCT_DELIM = "__"
DEFAULT_SLICE_DELIM = " "


def split_sequence(value: Optional[str], delim: str) -> List[str]:
    """
    Split a delimited string into trimmed, non-empty tokens.

    Examples:
        >>> split_sequence(" a  b   c ", " ")
        ['a', 'b', 'c']
        >>> split_sequence("   ", " ")
        []

    Raises:
        ValueError: If ``delim`` is empty.
    """
    if not delim:
        raise ValueError("Sequence delimiter must not be empty")
    if value is None:
        return []
    value = value.strip()
    if not value:
        return []
    return [token.strip() for token in value.split(delim) if token.strip()]


class _Population:
    """One population run over a fixed config map and delimiter pair."""

    def __init__(self, config_map: Mapping[str, str], struct_delim: str, slice_delim: str):
        self.config_map = config_map
        self.struct_delim = struct_delim
        self.slice_delim = slice_delim

    def leaf(self, descriptor: FieldDescriptor, key: str) -> Any:
        raw = self.config_map.get(key)
        if descriptor.shape is Shape.SEQUENCE:
            return [convert(descriptor.kind, token) for token in split_sequence(raw, self.slice_delim)]
        return convert(descriptor.kind, raw)

    def build(self, record_type: type, table, prefix: str) -> Any:
        init_values = {}
        late_values = {}
        for descriptor in table:
            if descriptor.shape is Shape.IGNORED:
                if descriptor.init and not descriptor.has_default:
                    init_values[descriptor.name] = None
                continue
            key = descriptor.key(prefix)
            if descriptor.shape is Shape.RECORD:
                value = self.build(descriptor.record, descriptor.children, key + self.struct_delim)
            else:
                value = self.leaf(descriptor, key)
            if descriptor.init:
                init_values[descriptor.name] = value
            else:
                late_values[descriptor.name] = value

        instance = record_type(**init_values)
        for name, value in late_values.items():
            # init=False fields, possibly on a frozen dataclass
            object.__setattr__(instance, name, value)
        return instance

    def fill(self, instance: Any, table, prefix: str) -> None:
        for descriptor in table:
            if descriptor.shape is Shape.IGNORED:
                continue
            key = descriptor.key(prefix)
            if descriptor.shape is Shape.RECORD:
                current = getattr(instance, descriptor.name, None)
                nested_prefix = key + self.struct_delim
                if isinstance(current, descriptor.record):
                    self.fill(current, descriptor.children, nested_prefix)
                    continue
                value = self.build(descriptor.record, descriptor.children, nested_prefix)
            else:
                value = self.leaf(descriptor, key)
            # frozen dataclasses are filled too
            object.__setattr__(instance, descriptor.name, value)


def populate(
    target: Union[T, type],
    config_map: Mapping[str, str],
    struct_delim: str = DEFAULT_STRUCT_DELIM,
    slice_delim: str = DEFAULT_SLICE_DELIM,
) -> T:
    """
    Populate a dataclass record from a flat config map.

    Args:
        target: A dataclass type (a new instance is created; ignored fields
            keep their declared default, or ``None`` if they have none) or a
            dataclass instance (filled in place, frozen or not; ignored fields
            are untouched).
        config_map: Flat mapping with lower-cased keys.
        struct_delim: Separator between a nested record's key and its fields.
        slice_delim: Separator between sequence elements.

    Returns:
        The populated instance.

    Raises:
        TypeError: If ``target`` is not a dataclass type or instance.
        UnsupportedFieldError: If the record declares a field that cannot be bound.
        ValueError: If a delimiter is empty.
    """
    if not struct_delim or not slice_delim:
        raise ValueError("Delimiters must not be empty")
    run = _Population(config_map, struct_delim, slice_delim)

    if isinstance(target, type):
        table = describe(target)
        instance = run.build(target, table, "")
    elif dataclasses.is_dataclass(target):
        table = describe(type(target))
        run.fill(target, table, "")
        instance = target
    else:
        raise TypeError(f"Expected a dataclass type or instance, got {type(target).__name__}")

    log.debug("Populated %s from %d config key(s).", type(instance).__name__, len(config_map))
    return instance
