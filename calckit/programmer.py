"""Programmer operations for calckit.

Number-base conversion, bitwise primitives and bit fields over 64-bit
signed integers with two's-complement wraparound, and IEEE-754
decomposition of single and double precision floats.
"""

import re
import struct
from dataclasses import dataclass
from enum import Enum

from .errors import CalcResult, ErrorKind

__all__ = [
    "NumberBase",
    "Precision",
    "FloatComponents",
    "to_int64",
    "parse_int",
    "format_int",
    "convert_base",
    "bit_and",
    "bit_or",
    "bit_xor",
    "bit_not",
    "shift_left",
    "shift_right",
    "unsigned_shift_right",
    "get_field",
    "set_field",
    "decompose_float",
]

INT64_BITS = 64
MASK64 = (1 << INT64_BITS) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class NumberBase(Enum):
    """Supported number systems, keyed by their command names."""

    BIN = 2
    OCT = 8
    DEC = 10
    HEX = 16

    @property
    def digits_pattern(self) -> "re.Pattern":
        return _DIGIT_PATTERNS[self]


_DIGIT_PATTERNS = {
    NumberBase.BIN: re.compile(r"^[+-]?[01]+$"),
    NumberBase.OCT: re.compile(r"^[+-]?[0-7]+$"),
    NumberBase.DEC: re.compile(r"^[+-]?[0-9]+$"),
    NumberBase.HEX: re.compile(r"^[+-]?[0-9A-Fa-f]+$"),
}

_FORMAT_CODES = {
    NumberBase.BIN: "b",
    NumberBase.OCT: "o",
    NumberBase.HEX: "X",
}


def to_int64(value: int) -> int:
    """Wrap an arbitrary int into the signed 64-bit range."""
    value &= MASK64
    if value > INT64_MAX:
        value -= 1 << INT64_BITS
    return value


def parse_int(text: str, base: NumberBase) -> CalcResult:
    """Parse ``text`` as a signed 64-bit integer in ``base``.

    Returns:
        CalcResult with the int, or a FORMAT error for characters that are
        not digits of ``base`` or values outside the 64-bit range.
    """
    if not base.digits_pattern.match(text):
        return CalcResult.failure(ErrorKind.FORMAT, f"Invalid number format for {base.name}")
    value = int(text, base.value)
    if not INT64_MIN <= value <= INT64_MAX:
        return CalcResult.failure(ErrorKind.FORMAT, f"Number out of range for {base.name}")
    return CalcResult.success(value)


def format_int(value: int, base: NumberBase) -> str:
    """Render a 64-bit integer in ``base``.

    Decimal output is signed; the other bases show the two's-complement bit
    pattern, so -1 renders as sixteen F's in hex.
    """
    value = to_int64(value)
    if base is NumberBase.DEC:
        return str(value)
    return format(value & MASK64, _FORMAT_CODES[base])


def convert_base(text: str, from_base: NumberBase, to_base: NumberBase) -> CalcResult:
    """Convert a number written in ``from_base`` to its ``to_base`` text."""
    parsed = parse_int(text, from_base)
    if not parsed.ok:
        return parsed
    return CalcResult.success(format_int(parsed.value, to_base))


# --- Bitwise primitives ---


def bit_and(a: int, b: int) -> int:
    return to_int64(a & b)


def bit_or(a: int, b: int) -> int:
    return to_int64(a | b)


def bit_xor(a: int, b: int) -> int:
    return to_int64(a ^ b)


def bit_not(a: int) -> int:
    return to_int64(~a)


def shift_left(a: int, bits: int) -> int:
    """Shift left; the shift distance is taken modulo 64."""
    return to_int64(a << (bits & 63))


def shift_right(a: int, bits: int) -> int:
    """Arithmetic (sign-extending) right shift."""
    return to_int64(a) >> (bits & 63)


def unsigned_shift_right(a: int, bits: int) -> int:
    """Logical right shift that fills with zeros."""
    return to_int64((a & MASK64) >> (bits & 63))


# --- Single bits ---


def count_set_bits(value: int) -> int:
    return bin(value & MASK64).count("1")


def leading_zeros(value: int) -> int:
    return INT64_BITS - (value & MASK64).bit_length()


def trailing_zeros(value: int) -> int:
    value &= MASK64
    if value == 0:
        return INT64_BITS
    return (value & -value).bit_length() - 1


def _check_position(position: int) -> CalcResult:
    if not 0 <= position < INT64_BITS:
        return CalcResult.failure(
            ErrorKind.DOMAIN, f"Bit position out of range (position={position})"
        )
    return CalcResult.success(1 << position)


def get_bit(value: int, position: int) -> CalcResult:
    """Read bit ``position`` (0 to 63) as a bool."""
    mask = _check_position(position)
    if not mask.ok:
        return mask
    return CalcResult.success((value & mask.value) != 0)


def set_bit(value: int, position: int) -> CalcResult:
    mask = _check_position(position)
    if not mask.ok:
        return mask
    return CalcResult.success(to_int64(value | mask.value))


def clear_bit(value: int, position: int) -> CalcResult:
    mask = _check_position(position)
    if not mask.ok:
        return mask
    return CalcResult.success(to_int64(value & ~mask.value))


def toggle_bit(value: int, position: int) -> CalcResult:
    mask = _check_position(position)
    if not mask.ok:
        return mask
    return CalcResult.success(to_int64(value ^ mask.value))


# --- Bit fields ---


def _check_field(position: int, length: int) -> CalcResult:
    if position < 0 or length <= 0 or position + length > INT64_BITS:
        return CalcResult.failure(
            ErrorKind.DOMAIN,
            f"Bit field out of range (position={position}, length={length})",
        )
    return CalcResult.success(((1 << length) - 1) << position)


def get_field(value: int, position: int, length: int) -> CalcResult:
    """Extract ``length`` bits starting at ``position``.

    Uses the mask ``((1 << length) - 1) << position``.
    """
    mask = _check_field(position, length)
    if not mask.ok:
        return mask
    return CalcResult.success(to_int64(((value & MASK64) & mask.value) >> position))


def set_field(value: int, position: int, length: int, field_value: int) -> CalcResult:
    """Replace ``length`` bits at ``position`` with the low bits of ``field_value``."""
    mask = _check_field(position, length)
    if not mask.ok:
        return mask
    inserted = (field_value & ((1 << length) - 1)) << position
    return CalcResult.success(to_int64((value & ~mask.value) | inserted))


# --- Rendering and narrowing ---


def to_binary_string(value: int, group_size: int = 4) -> str:
    """Binary digits padded to whole groups and separated by spaces."""
    digits = format(value & MASK64, "b")
    padding = (-len(digits)) % group_size
    digits = "0" * padding + digits
    groups = [digits[i : i + group_size] for i in range(0, len(digits), group_size)]
    return " ".join(groups)


def _narrow(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def to_byte(value: int) -> int:
    return _narrow(value, 8)


def to_short(value: int) -> int:
    return _narrow(value, 16)


def to_int(value: int) -> int:
    return _narrow(value, 32)


# --- IEEE-754 ---


class Precision(Enum):
    """IEEE-754 binary formats: (total bits, exponent bits, mantissa bits, bias)."""

    SINGLE = (32, 8, 23, 127)
    DOUBLE = (64, 11, 52, 1023)

    @property
    def total_bits(self) -> int:
        return self.value[0]

    @property
    def exponent_bits(self) -> int:
        return self.value[1]

    @property
    def mantissa_bits(self) -> int:
        return self.value[2]

    @property
    def bias(self) -> int:
        return self.value[3]


@dataclass(frozen=True)
class FloatComponents:
    """Bit groups of an IEEE-754 value.

    Attributes:
        sign: Sign bit (0 or 1).
        exponent: Raw biased exponent field.
        mantissa: Raw fraction field.
        precision: Format the value was decomposed in.
    """

    sign: int
    exponent: int
    mantissa: int
    precision: Precision

    @property
    def unbiased_exponent(self) -> int:
        return self.exponent - self.precision.bias

    @property
    def binary_representation(self) -> str:
        p = self.precision
        return (
            f"{self.sign} | {self.exponent:0{p.exponent_bits}b} | "
            f"{self.mantissa:0{p.mantissa_bits}b}"
        )

    def describe(self) -> str:
        return (
            f"Sign: {self.sign}\n"
            f"Exponent: {self.unbiased_exponent} (bias: {self.precision.bias})\n"
            f"Mantissa: {self.mantissa}"
        )


def _raw_bits(value: float, precision: Precision) -> int:
    if precision is Precision.DOUBLE:
        return struct.unpack(">Q", struct.pack(">d", value))[0]
    try:
        packed = struct.pack(">f", value)
    except OverflowError:
        # Narrowing a double that exceeds single range yields infinity
        packed = struct.pack(">f", float("inf") if value > 0 else float("-inf"))
    return struct.unpack(">I", packed)[0]


def decompose_float(value: float, precision: Precision = Precision.DOUBLE) -> FloatComponents:
    """Split ``value`` into sign, exponent and mantissa bit groups.

    Single precision uses the 1/8/23 layout, double precision 1/11/52.
    """
    bits = _raw_bits(value, precision)
    mantissa_bits = precision.mantissa_bits
    exponent_mask = (1 << precision.exponent_bits) - 1

    return FloatComponents(
        sign=(bits >> (precision.total_bits - 1)) & 1,
        exponent=(bits >> mantissa_bits) & exponent_mask,
        mantissa=bits & ((1 << mantissa_bits) - 1),
        precision=precision,
    )
