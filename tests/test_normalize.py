# tests/test_normalize.py
"""
Tests for the flat-map normalizer.
"""

from envbind.normalize import normalize_mapping, strings_to_map


class TestStringsToMap:
    """Tests for strings_to_map()."""

    def test_basic_lines(self):
        """KEY=VALUE lines become lower-cased entries."""
        result = strings_to_map(["FOO=bar", "Baz=Qux"])
        assert result == {"foo": "bar", "baz": "Qux"}

    def test_line_without_separator_skipped(self):
        """Lines with no '=' are dropped."""
        assert strings_to_map(["just text", "A=1"]) == {"a": "1"}

    def test_split_on_first_separator_only(self):
        """Values keep any further '=' characters."""
        assert strings_to_map(["URL=db://host?a=b"]) == {"url": "db://host?a=b"}

    def test_empty_key_or_value_skipped(self):
        """Entries with an empty key or value are dropped."""
        assert strings_to_map(["=value", "KEY=", "=", ""]) == {}

    def test_last_occurrence_wins(self):
        """Repeated keys, in any case, keep the last value."""
        assert strings_to_map(["A=1", "a=2", "A=3"]) == {"a": "3"}

    def test_value_whitespace_preserved(self):
        """Values are stored untrimmed."""
        assert strings_to_map(["LIST= a b "]) == {"list": " a b "}

    def test_accepts_generator(self):
        """Any iterable of strings is accepted."""
        lines = (f"K{i}=v{i}" for i in range(3))
        assert strings_to_map(lines) == {"k0": "v0", "k1": "v1", "k2": "v2"}


class TestNormalizeMapping:
    """Tests for normalize_mapping()."""

    def test_lowercases_and_drops_empty(self):
        """Same rules as for lines, applied to a split mapping."""
        result = normalize_mapping({"FOO": "1", "EMPTY": "", "NONE": None, "": "x"})
        assert result == {"foo": "1"}
