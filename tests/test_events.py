"""Tests for events.py - Token parsing."""

import pytest

from calckit.events import (
    BaseConversion,
    Clear,
    Digit,
    Equals,
    Erase,
    FinancialFunction,
    FinancialRequest,
    Function,
    FunctionPressed,
    MemoryOp,
    MemoryPressed,
    Operator,
    OperatorPressed,
    UnitConversion,
    parse_token,
)
from calckit.programmer import NumberBase


class TestParseToken:
    """Tests for parse_token."""

    def test_digits(self):
        """Test digits and the decimal point."""
        assert parse_token("7") == Digit("7")
        assert parse_token(".") == Digit(".")

    def test_operator_glyphs(self):
        """Test display glyphs for operators."""
        assert parse_token("+") == OperatorPressed(Operator.ADD)
        assert parse_token("×") == OperatorPressed(Operator.MULTIPLY)
        assert parse_token("÷") == OperatorPressed(Operator.DIVIDE)
        assert parse_token("XOR") == OperatorPressed(Operator.XOR)

    def test_operator_aliases(self):
        """Test keyboard spellings for operators."""
        assert parse_token("*") == OperatorPressed(Operator.MULTIPLY)
        assert parse_token("x") == OperatorPressed(Operator.MULTIPLY)
        assert parse_token("/") == OperatorPressed(Operator.DIVIDE)
        assert parse_token("mod") == OperatorPressed(Operator.MODULO)

    def test_functions(self):
        """Test function glyphs and aliases."""
        assert parse_token("√") == FunctionPressed(Function.SQRT)
        assert parse_token("sqrt") == FunctionPressed(Function.SQRT)
        assert parse_token("x²") == FunctionPressed(Function.SQUARE)
        assert parse_token("^") == FunctionPressed(Function.POWER)
        assert parse_token("!") == FunctionPressed(Function.FACTORIAL)
        assert parse_token("e") == FunctionPressed(Function.E)
        assert parse_token("NOT") == FunctionPressed(Function.NOT)

    def test_control_keys(self):
        """Test equals, clear, erase and memory keys."""
        assert parse_token("=") == Equals()
        assert parse_token("Enter") == Equals()
        assert parse_token("C") == Clear()
        assert parse_token("⌫") == Erase()
        assert parse_token("M+") == MemoryPressed(MemoryOp.ADD)
        assert parse_token("MR") == MemoryPressed(MemoryOp.RECALL)

    def test_bases(self):
        """Test base names."""
        assert parse_token("HEX") == BaseConversion(NumberBase.HEX)
        assert parse_token("BIN") == BaseConversion(NumberBase.BIN)

    def test_financial_without_params(self):
        """Test a bare financial command name."""
        assert parse_token("PMT") == FinancialRequest(FinancialFunction.PMT, {})

    def test_financial_with_params(self):
        """Test key=value parameters."""
        event = parse_token("PMT(rate=5, years=30)")
        assert event.function == FinancialFunction.PMT
        assert event.params == {"rate": 5.0, "years": 30.0}

    def test_financial_with_slash(self):
        """Test command names containing a slash."""
        assert parse_token("P/E(eps=5)") == FinancialRequest(FinancialFunction.PE, {"eps": 5.0})

    def test_bad_financial_params(self):
        """Test malformed parameters."""
        with pytest.raises(ValueError):
            parse_token("PMT(rate)")
        with pytest.raises(ValueError):
            parse_token("PMT(rate=abc)")

    def test_non_finite_financial_params(self):
        """Test infinite and NaN parameters are rejected."""
        with pytest.raises(ValueError, match="must be finite"):
            parse_token("PMT(rate=5,years=inf)")
        with pytest.raises(ValueError, match="must be finite"):
            parse_token("PMT(rate=nan,years=5)")

    def test_unit_conversion(self):
        """Test arrow spellings for conversions."""
        assert parse_token("km->mi") == UnitConversion("km", "mi")
        assert parse_token("km→mi") == UnitConversion("km", "mi")
        assert parse_token("C->F") == UnitConversion("C", "F")

    def test_unrecognized(self):
        """Test unknown and empty tokens."""
        with pytest.raises(ValueError, match="Unrecognized token"):
            parse_token("bogus")
        with pytest.raises(ValueError):
            parse_token("  ")


class TestOperatorProperties:
    """Tests for operator metadata."""

    def test_is_bitwise(self):
        """Test only AND, OR and XOR are bitwise."""
        assert Operator.AND.is_bitwise
        assert not Operator.ADD.is_bitwise
        assert [op for op in Operator if op.is_bitwise] == [
            Operator.AND,
            Operator.OR,
            Operator.XOR,
        ]
