"""Tests for arithmetic.py - Operators, functions and display formatting."""

import math

import pytest

from calckit.arithmetic import apply_function, apply_operator, factorial, format_number
from calckit.errors import ErrorKind
from calckit.events import Function, Operator


class TestFormatNumber:
    """Tests for display formatting."""

    def test_strips_trailing_zeros(self):
        """Test whole numbers and short fractions."""
        assert format_number(14.0) == "14"
        assert format_number(2.50) == "2.5"

    def test_ten_decimals(self):
        """Test rounding to ten fractional digits."""
        assert format_number(1 / 3) == "0.3333333333"

    def test_negative_zero(self):
        """Test negative zero and tiny negatives render as 0."""
        assert format_number(-0.0) == "0"
        assert format_number(-1e-11) == "0"

    def test_non_finite(self):
        """Test NaN and infinities render as error text."""
        assert format_number(math.nan) == "Error: Invalid"
        assert format_number(math.inf) == "Error: Overflow"
        assert format_number(-math.inf) == "Error: Overflow"

    def test_formatting_is_idempotent(self):
        """Test re-formatting a formatted value changes nothing."""
        for value in (0.1 + 0.2, 1 / 7, -123.456, 1e9, 2.5e-7):
            text = format_number(value)
            assert format_number(float(text)) == text


class TestOperators:
    """Tests for binary operators."""

    def test_basic(self):
        """Test the four arithmetic operators."""
        assert apply_operator(Operator.ADD, 3, 4).value == 7
        assert apply_operator(Operator.SUBTRACT, 3, 4).value == -1
        assert apply_operator(Operator.MULTIPLY, 3, 4).value == 12
        assert apply_operator(Operator.DIVIDE, 3, 4).value == 0.75

    def test_division_by_zero(self):
        """Test dividing by zero is an arithmetic error."""
        result = apply_operator(Operator.DIVIDE, 5, 0)
        assert result.error.kind == ErrorKind.ARITHMETIC
        assert result.error.message == "Division by zero"

    def test_modulo(self):
        """Test modulo keeps the dividend's sign."""
        assert apply_operator(Operator.MODULO, 7, 3).value == 1
        assert apply_operator(Operator.MODULO, -7, 3).value == -1
        assert apply_operator(Operator.MODULO, 7, 0).error.message == "Modulo by zero"

    def test_bitwise(self):
        """Test bitwise operators on integral floats."""
        assert apply_operator(Operator.AND, 12, 10).value == 8
        assert apply_operator(Operator.OR, 12, 10).value == 14
        assert apply_operator(Operator.XOR, 12, 10).value == 6

    def test_bitwise_requires_integers(self):
        """Test a fractional operand."""
        result = apply_operator(Operator.AND, 1.5, 1)
        assert result.error.kind == ErrorKind.DOMAIN


class TestFactorial:
    """Tests for factorial."""

    def test_values(self):
        """Test small factorials."""
        assert factorial(0).value == 1
        assert factorial(5).value == 120

    def test_largest(self):
        """Test 170! is still finite."""
        assert math.isfinite(factorial(170).value)

    def test_too_large(self):
        """Test 171! is rejected."""
        assert factorial(171).error.message == "Number too large for factorial"

    def test_invalid(self):
        """Test negatives and fractions."""
        assert factorial(-1).error.message == "Invalid input for factorial"
        assert factorial(2.5).error.message == "Invalid input for factorial"


class TestFunctions:
    """Tests for unary functions and their domain guards."""

    def test_trig_uses_degrees(self):
        """Test trigonometric functions take degrees."""
        assert apply_function(Function.SIN, 30).value == pytest.approx(0.5)
        assert apply_function(Function.COS, 60).value == pytest.approx(0.5)
        assert apply_function(Function.TAN, 45).value == pytest.approx(1.0)

    def test_logarithms(self):
        """Test log and ln with their guards."""
        assert apply_function(Function.LOG, 100).value == pytest.approx(2)
        assert apply_function(Function.LN, math.e).value == pytest.approx(1)
        assert apply_function(Function.LOG, 0).error.message == "Invalid input for logarithm"
        assert apply_function(Function.LN, -1).error.message == (
            "Invalid input for natural logarithm"
        )

    def test_square_root(self):
        """Test sqrt and the negative guard."""
        assert apply_function(Function.SQRT, 16).value == 4
        result = apply_function(Function.SQRT, -1)
        assert result.error.kind == ErrorKind.DOMAIN
        assert result.error.message == "Invalid input for square root"

    def test_powers(self):
        """Test square, cube and the accumulator-based power."""
        assert apply_function(Function.SQUARE, 3).value == 9
        assert apply_function(Function.CUBE, -2).value == -8
        assert apply_function(Function.POWER, 3, accumulator=2).value == 8

    def test_power_guards(self):
        """Test 0^0 and zero to a negative power."""
        assert apply_function(Function.POWER, 0, accumulator=0).error.message == (
            "0^0 is undefined"
        )
        result = apply_function(Function.POWER, -1, accumulator=0)
        assert result.error.kind == ErrorKind.ARITHMETIC

    def test_power_non_finite(self):
        """Test overflowing and complex powers are left to the caller."""
        assert apply_function(Function.SQUARE, 1e200).value == math.inf
        assert math.isnan(apply_function(Function.POWER, 0.5, accumulator=-8).value)

    def test_reciprocal(self):
        """Test 1/x and the zero guard."""
        assert apply_function(Function.RECIPROCAL, 4).value == 0.25
        assert apply_function(Function.RECIPROCAL, 0).error.message == "Division by zero"

    def test_constant_e(self):
        """Test e ignores the operand."""
        assert apply_function(Function.E, 123).value == math.e

    def test_bitwise_not(self):
        """Test NOT and its integer requirement."""
        assert apply_function(Function.NOT, 0).value == -1
        assert not apply_function(Function.NOT, 0.5).ok
