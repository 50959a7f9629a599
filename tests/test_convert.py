# tests/test_convert.py
"""
Tests for scalar conversion and kind resolution.
"""

import math
from datetime import timedelta
from typing import Annotated, List, Optional

import pytest

from envbind.convert import (
    Float32,
    Int8,
    Kind,
    UInt64,
    convert,
    kind_of,
    parse_duration,
)

# ---------------------------------------------------------------------------
# Integers
# ---------------------------------------------------------------------------


class TestIntegers:
    """Signed and unsigned integer kinds."""

    def test_decimal(self):
        assert convert(Kind.INT, "8080") == 8080
        assert convert(Kind.INT, "-42") == -42
        assert convert(Kind.INT, "+7") == 7

    def test_invalid_is_zero(self):
        """Unparsable input converts to 0."""
        for raw in ("abc", "1.5", " 1", "1_000", "0x10", ""):
            assert convert(Kind.INT, raw) == 0, raw

    def test_missing_is_zero(self):
        assert convert(Kind.INT, None) == 0

    def test_width_limits(self):
        """Values outside the kind's width convert to 0."""
        assert convert(Kind.INT8, "127") == 127
        assert convert(Kind.INT8, "-128") == -128
        assert convert(Kind.INT8, "128") == 0
        assert convert(Kind.INT16, "40000") == 0
        assert convert(Kind.INT32, "2147483647") == 2147483647
        assert convert(Kind.INT64, "9223372036854775808") == 0

    def test_unsigned(self):
        """Unsigned kinds reject signs and negative numbers."""
        assert convert(Kind.UINT8, "255") == 255
        assert convert(Kind.UINT8, "256") == 0
        assert convert(Kind.UINT, "-1") == 0
        assert convert(Kind.UINT, "+1") == 0
        assert convert(Kind.UINT64, "18446744073709551615") == 18446744073709551615


# ---------------------------------------------------------------------------
# Floats, booleans, strings
# ---------------------------------------------------------------------------


class TestFloats:
    """FLOAT32 and FLOAT64 kinds."""

    def test_float64(self):
        assert convert(Kind.FLOAT64, "3.5") == 3.5
        assert convert(Kind.FLOAT64, "1e3") == 1000.0
        assert convert(Kind.FLOAT64, ".5") == 0.5

    def test_special_values(self):
        assert convert(Kind.FLOAT64, "inf") == math.inf
        assert convert(Kind.FLOAT64, "-Infinity") == -math.inf
        assert math.isnan(convert(Kind.FLOAT64, "NaN"))

    def test_invalid_and_overflow_are_zero(self):
        for raw in ("abc", "1e400", " 1.0", "1_0", ""):
            assert convert(Kind.FLOAT64, raw) == 0.0, raw

    def test_float32_precision(self):
        """FLOAT32 values are rounded to single precision."""
        value = convert(Kind.FLOAT32, "0.1")
        assert value != 0.1
        assert value == pytest.approx(0.1, rel=1e-7)

    def test_float32_overflow_is_zero(self):
        assert convert(Kind.FLOAT32, "1e39") == 0.0


class TestBooleansAndStrings:
    """BOOL and STR kinds."""

    @pytest.mark.parametrize("raw", ["1", "t", "T", "TRUE", "true", "True"])
    def test_true_tokens(self, raw):
        assert convert(Kind.BOOL, raw) is True

    @pytest.mark.parametrize("raw", ["0", "f", "F", "FALSE", "false", "False"])
    def test_false_tokens(self, raw):
        assert convert(Kind.BOOL, raw) is False

    @pytest.mark.parametrize("raw", ["yes", "tRuE", "on", " true", ""])
    def test_other_tokens_are_false(self, raw):
        assert convert(Kind.BOOL, raw) is False

    def test_string_passthrough(self):
        assert convert(Kind.STR, "  spaced value ") == "  spaced value "
        assert convert(Kind.STR, None) == ""


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------


class TestDurations:
    """parse_duration() and the DURATION kind."""

    def test_single_units(self):
        assert parse_duration("300ms") == timedelta(milliseconds=300)
        assert parse_duration("10s") == timedelta(seconds=10)
        assert parse_duration("5m") == timedelta(minutes=5)
        assert parse_duration("2h") == timedelta(hours=2)
        assert parse_duration("1500us") == timedelta(microseconds=1500)
        assert parse_duration("7µs") == timedelta(microseconds=7)

    def test_compound(self):
        assert parse_duration("2h45m30.5s") == timedelta(hours=2, minutes=45, seconds=30.5)

    def test_sign_and_fraction(self):
        assert parse_duration("-1.5h") == -timedelta(hours=1, minutes=30)
        assert parse_duration("+.5s") == timedelta(milliseconds=500)

    def test_zero(self):
        assert parse_duration("0") == timedelta(0)

    def test_sub_microsecond_truncated(self):
        assert parse_duration("1500ns") == timedelta(microseconds=1)

    @pytest.mark.parametrize("raw", ["", "5", "1d", "h", "1hm", "1.h5", ".s", "3000000h"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_duration(raw)

    def test_convert_invalid_is_zero(self):
        assert convert(Kind.DURATION, "soon") == timedelta(0)
        assert convert(Kind.DURATION, "90s") == timedelta(seconds=90)


# ---------------------------------------------------------------------------
# kind_of
# ---------------------------------------------------------------------------


class TestKindOf:
    """Mapping annotations onto kinds."""

    def test_plain_types(self):
        assert kind_of(str) is Kind.STR
        assert kind_of(bool) is Kind.BOOL
        assert kind_of(int) is Kind.INT
        assert kind_of(float) is Kind.FLOAT64
        assert kind_of(timedelta) is Kind.DURATION

    def test_width_aliases(self):
        assert kind_of(Int8) is Kind.INT8
        assert kind_of(UInt64) is Kind.UINT64
        assert kind_of(Float32) is Kind.FLOAT32

    def test_mismatched_alias(self):
        """A width kind on the wrong base type is unsupported."""
        assert kind_of(Annotated[str, Kind.INT8]) is None
        assert kind_of(Annotated[int, Kind.FLOAT32]) is None

    def test_unrelated_metadata_ignored(self):
        assert kind_of(Annotated[int, "doc"]) is Kind.INT

    def test_unsupported(self):
        for annotation in (complex, bytes, dict, Optional[int], List[int], object):
            assert kind_of(annotation) is None, annotation
