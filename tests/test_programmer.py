"""Tests for programmer.py - Bases, bitwise operations and IEEE-754."""

import pytest

from calckit.errors import ErrorKind
from calckit.programmer import (
    INT64_MAX,
    INT64_MIN,
    NumberBase,
    Precision,
    bit_and,
    bit_not,
    bit_or,
    bit_xor,
    clear_bit,
    convert_base,
    count_set_bits,
    decompose_float,
    format_int,
    get_bit,
    get_field,
    leading_zeros,
    parse_int,
    set_bit,
    set_field,
    shift_left,
    shift_right,
    to_binary_string,
    to_byte,
    to_int,
    to_int64,
    to_short,
    toggle_bit,
    trailing_zeros,
    unsigned_shift_right,
)


class TestBases:
    """Tests for number base parsing and formatting."""

    def test_parse_hex(self):
        """Test parsing hex digits in either case."""
        assert parse_int("FF", NumberBase.HEX).value == 255
        assert parse_int("ff", NumberBase.HEX).value == 255

    def test_parse_invalid_digit(self):
        """Test a digit that does not belong to the base."""
        result = parse_int("102", NumberBase.BIN)
        assert result.error.kind == ErrorKind.FORMAT
        assert result.error.message == "Invalid number format for BIN"

    def test_parse_out_of_range(self):
        """Test a value beyond the signed 64-bit range."""
        result = parse_int("8000000000000000", NumberBase.HEX)
        assert result.error.message == "Number out of range for HEX"

    def test_negative_renders_twos_complement(self):
        """Test -1 in hex and binary."""
        assert format_int(-1, NumberBase.HEX) == "F" * 16
        assert format_int(-1, NumberBase.BIN) == "1" * 64

    def test_decimal_is_signed(self):
        """Test decimal output keeps the sign."""
        assert format_int(-5, NumberBase.DEC) == "-5"

    def test_convert_base(self):
        """Test converting between two bases."""
        assert convert_base("255", NumberBase.DEC, NumberBase.BIN).value == "11111111"
        assert convert_base("-1", NumberBase.DEC, NumberBase.HEX).value == "FFFFFFFFFFFFFFFF"
        assert convert_base("777", NumberBase.OCT, NumberBase.DEC).value == "511"


class TestBitwise:
    """Tests for bitwise primitives and shifts."""

    def test_logic(self):
        """Test AND, OR, XOR and NOT."""
        assert bit_and(12, 10) == 8
        assert bit_or(12, 10) == 14
        assert bit_xor(12, 10) == 6
        assert bit_not(0) == -1

    def test_wraparound(self):
        """Test values wrap into the signed range."""
        assert to_int64(1 << 63) == INT64_MIN
        assert to_int64(INT64_MAX + 1) == INT64_MIN

    def test_shift_left(self):
        """Test shifting into the sign bit and distance modulo 64."""
        assert shift_left(1, 63) == INT64_MIN
        assert shift_left(1, 64) == 1

    def test_shift_right_sign_extends(self):
        """Test arithmetic right shift keeps the sign."""
        assert shift_right(-8, 1) == -4

    def test_unsigned_shift_right_fills_zeros(self):
        """Test logical right shift of a negative value."""
        assert unsigned_shift_right(-1, 60) == 15

    def test_bit_counts(self):
        """Test population count and leading/trailing zeros."""
        assert count_set_bits(7) == 3
        assert count_set_bits(-1) == 64
        assert leading_zeros(1) == 63
        assert leading_zeros(0) == 64
        assert trailing_zeros(8) == 3
        assert trailing_zeros(0) == 64

    def test_single_bits(self):
        """Test reading and changing individual bits."""
        assert get_bit(5, 0).value is True
        assert get_bit(5, 1).value is False
        assert get_bit(-1, 63).value is True
        assert set_bit(0, 63).value == INT64_MIN
        assert clear_bit(7, 1).value == 5
        assert toggle_bit(5, 1).value == 7

    def test_bit_position_out_of_range(self):
        """Test positions outside 0-63 are domain errors."""
        for position in (-1, 64):
            for op in (get_bit, set_bit, clear_bit, toggle_bit):
                result = op(5, position)
                assert result.error.kind == ErrorKind.DOMAIN
                assert result.error.message == (
                    f"Bit position out of range (position={position})"
                )


class TestBitFields:
    """Tests for bit field extraction and insertion."""

    def test_get_field(self):
        """Test extracting three bits at position 2."""
        # 214 = 0b1101_0110
        assert get_field(214, 2, 3).value == 5

    def test_set_field(self):
        """Test inserting a nibble."""
        assert set_field(0, 4, 4, 15).value == 240

    def test_set_field_truncates_value(self):
        """Test only the low bits of the field value are written."""
        assert set_field(0, 0, 4, 0xFF).value == 15

    def test_field_out_of_range(self):
        """Test a field running past bit 63."""
        result = get_field(1, 60, 8)
        assert result.error.kind == ErrorKind.DOMAIN
        assert result.error.message.startswith("Bit field out of range")

    def test_zero_length_field(self):
        """Test a non-positive field length."""
        assert not set_field(1, 0, 0, 1).ok


class TestRendering:
    """Tests for binary rendering and narrowing."""

    def test_binary_string_groups(self):
        """Test padding to whole groups."""
        assert to_binary_string(5) == "0101"
        assert to_binary_string(255) == "1111 1111"
        assert to_binary_string(5, group_size=8) == "00000101"

    def test_narrowing(self):
        """Test truncation to byte, short and int."""
        assert to_byte(255) == -1
        assert to_byte(127) == 127
        assert to_short(65535) == -1
        assert to_int(2 ** 31) == -(2 ** 31)


class TestIEEE754:
    """Tests for float decomposition."""

    def test_single_one(self):
        """Test 1.0 in single precision."""
        components = decompose_float(1.0, Precision.SINGLE)
        assert components.sign == 0
        assert components.exponent == 127
        assert components.unbiased_exponent == 0
        assert components.mantissa == 0
        assert components.binary_representation == "0 | 01111111 | " + "0" * 23

    def test_double_negative(self):
        """Test -2.5 = -1.25 * 2^1 in double precision."""
        components = decompose_float(-2.5)
        assert components.sign == 1
        assert components.unbiased_exponent == 1
        assert components.mantissa == 1 << 50

    def test_single_overflow_is_infinity(self):
        """Test a double beyond single range narrows to infinity."""
        components = decompose_float(1e300, Precision.SINGLE)
        assert components.exponent == 255
        assert components.mantissa == 0

    def test_describe(self):
        """Test the human-readable summary."""
        text = decompose_float(1.0, Precision.SINGLE).describe()
        assert "Exponent: 0 (bias: 127)" in text
        assert "Sign: 0" in text

    def test_precision_layouts(self):
        """Test the field widths of both formats."""
        assert Precision.SINGLE.total_bits == 32
        assert Precision.DOUBLE.mantissa_bits == 52
        assert Precision.DOUBLE.bias == 1023
