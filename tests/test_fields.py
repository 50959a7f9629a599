# tests/test_fields.py
"""
Tests for key derivation and descriptor tables.
"""

from dataclasses import dataclass, field
from typing import List

import pytest

from envbind.convert import Kind
from envbind.exceptions import UnsupportedFieldError
from envbind.fields import Shape, derive_key, describe
from sample_records import (
    AppConfig,
    Leaf,
    Parent,
    WithChildren,
    WithMapping,
    WithOptional,
)


class TestDeriveKey:
    """Tests for derive_key()."""

    def test_field_name_lowercased(self):
        assert derive_key("DatabaseUrl", None) == "databaseurl"

    def test_prefix(self):
        assert derive_key("Name", None, "child__") == "child__name"

    def test_tag_replaces_name(self):
        assert derive_key("url", "DSN", "db__") == "db__dsn"

    def test_empty_tag_uses_name(self):
        assert derive_key("url", "") == "url"

    def test_ignore_sentinel(self):
        assert derive_key("cache", "-") is None


class TestDescribe:
    """Tests for describe()."""

    def test_declaration_order_and_shapes(self):
        table = describe(AppConfig)
        assert [d.name for d in table] == [
            "name", "debug", "retries", "ratio", "ports", "database", "cache",
        ]
        shapes = {d.name: d.shape for d in table}
        assert shapes["name"] is Shape.SCALAR
        assert shapes["ports"] is Shape.SEQUENCE
        assert shapes["database"] is Shape.RECORD
        assert shapes["cache"] is Shape.IGNORED

    def test_kinds(self):
        kinds = {d.name: d.kind for d in describe(AppConfig)}
        assert kinds["retries"] is Kind.INT8
        assert kinds["ratio"] is Kind.FLOAT32
        assert kinds["ports"] is Kind.INT

    def test_tags_are_trimmed(self):
        """The ignore sentinel is recognised with surrounding whitespace."""
        cache = describe(AppConfig)[-1]
        assert cache.tag == "-"
        assert cache.key() is None

    def test_nested_keys(self):
        """Nested record keys extend the prefix with the struct delimiter."""
        child = describe(Parent)[0]
        assert child.record is Leaf
        prefix = child.key() + "__"
        assert [d.key(prefix) for d in child.children] == ["child__name", "child__age"]

    def test_renamed_nested_record(self):
        database = next(d for d in describe(AppConfig) if d.name == "database")
        assert database.key() == "db"
        url = database.children[0]
        assert url.key("db__") == "db__dsn"

    def test_cached(self):
        assert describe(AppConfig) is describe(AppConfig)

    def test_not_a_dataclass(self):
        with pytest.raises(TypeError):
            describe(dict)

    def test_ignored_field_type_not_checked(self):
        """Ignored fields may have any type."""

        @dataclass
        class Holder:
            handle: object = field(default=None, metadata={"config": "-"})

        assert describe(Holder)[0].shape is Shape.IGNORED


class TestUnsupportedFields:
    """Unsupported field types fail when the table is built."""

    def test_mapping(self):
        with pytest.raises(UnsupportedFieldError) as exc_info:
            describe(WithMapping)
        assert exc_info.value.field == "labels"
        assert exc_info.value.record is WithMapping

    def test_optional(self):
        with pytest.raises(UnsupportedFieldError):
            describe(WithOptional)

    def test_sequence_of_records(self):
        with pytest.raises(UnsupportedFieldError):
            describe(WithChildren)

    def test_nested_sequence(self):
        @dataclass
        class Grid:
            rows: List[List[int]] = field(default_factory=list)

        with pytest.raises(UnsupportedFieldError):
            describe(Grid)

    def test_complex_and_bare_list(self):
        @dataclass
        class Odd:
            z: complex = 0j

        @dataclass
        class Bare:
            items: list = field(default_factory=list)

        for record in (Odd, Bare):
            with pytest.raises(UnsupportedFieldError):
                describe(record)

    def test_is_a_type_error(self):
        """Callers may catch it as a TypeError."""
        with pytest.raises(TypeError):
            describe(WithMapping)

    def test_unsupported_in_nested_record(self):
        @dataclass
        class Outer:
            inner: WithMapping = field(default_factory=WithMapping)

        with pytest.raises(UnsupportedFieldError):
            describe(Outer)

    def test_message_names_field(self):
        with pytest.raises(UnsupportedFieldError, match="labels"):
            describe(WithMapping)
