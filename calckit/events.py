"""Input vocabulary for the calculation engine.

Closed enums for everything a key or button can mean, the event types the
engine consumes, and ``parse_token`` which maps display glyphs and keyboard
aliases onto events. Glyph strings exist only at this boundary; the engine
works with enum members.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Union

from .programmer import NumberBase

__all__ = [
    "Operator",
    "Function",
    "MemoryOp",
    "FinancialFunction",
    "Digit",
    "OperatorPressed",
    "Equals",
    "FunctionPressed",
    "MemoryPressed",
    "Clear",
    "Erase",
    "FinancialRequest",
    "UnitConversion",
    "BaseConversion",
    "InputEvent",
    "parse_token",
]

DIGITS = "0123456789."


class Operator(Enum):
    """Binary operators resolved left to right, one pending at a time."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "×"
    DIVIDE = "÷"
    MODULO = "%"
    AND = "AND"
    OR = "OR"
    XOR = "XOR"

    @property
    def is_bitwise(self) -> bool:
        return self in (Operator.AND, Operator.OR, Operator.XOR)


class Function(Enum):
    """Functions applied to the current operand."""

    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    LOG = "log"
    LN = "ln"
    SQRT = "√"
    SQUARE = "x²"
    CUBE = "x³"
    POWER = "xʸ"  # accumulator as base, operand as exponent
    RECIPROCAL = "1/x"
    FACTORIAL = "!"
    E = "e"
    NOT = "NOT"


class MemoryOp(Enum):
    CLEAR = "MC"
    RECALL = "MR"
    ADD = "M+"
    SUBTRACT = "M-"


class FinancialFunction(Enum):
    """Financial commands that take the displayed value as primary input."""

    PMT = "PMT"
    LOAN = "LOAN"
    TERM = "TERM"
    FV = "FV"
    PV = "PV"
    ROI = "ROI"
    MORT = "MORT"
    AMORT = "AMORT"
    DOWN = "DOWN"
    BOND = "BOND"
    PE = "P/E"
    DE = "D/E"


@dataclass(frozen=True)
class Digit:
    char: str


@dataclass(frozen=True)
class OperatorPressed:
    operator: Operator


@dataclass(frozen=True)
class Equals:
    pass


@dataclass(frozen=True)
class FunctionPressed:
    function: Function


@dataclass(frozen=True)
class MemoryPressed:
    op: MemoryOp


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Erase:
    pass


@dataclass(frozen=True)
class FinancialRequest:
    """A financial command plus the parameters the display cannot carry."""

    function: FinancialFunction
    params: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class UnitConversion:
    from_unit: str
    to_unit: str


@dataclass(frozen=True)
class BaseConversion:
    base: NumberBase


InputEvent = Union[
    Digit,
    OperatorPressed,
    Equals,
    FunctionPressed,
    MemoryPressed,
    Clear,
    Erase,
    FinancialRequest,
    UnitConversion,
    BaseConversion,
]


# Keyboard spellings accepted alongside the display glyphs
OPERATOR_ALIASES: Dict[str, Operator] = {
    "*": Operator.MULTIPLY,
    "x": Operator.MULTIPLY,
    "/": Operator.DIVIDE,
    "mod": Operator.MODULO,
}

FUNCTION_ALIASES: Dict[str, Function] = {
    "sqrt": Function.SQRT,
    "x^2": Function.SQUARE,
    "x^3": Function.CUBE,
    "x^y": Function.POWER,
    "^": Function.POWER,
    "fact": Function.FACTORIAL,
}

EQUALS_TOKENS = {"=", "Enter"}
CLEAR_TOKENS = {"C", "AC", "Esc"}
ERASE_TOKENS = {"⌫", "Backspace", "BS"}

# NAME or NAME(key=value, ...)
_FINANCIAL_PATTERN = re.compile(r"^(?P<name>[A-Z/]+)(?:\((?P<args>[^)]*)\))?$")
_CONVERSION_PATTERN = re.compile(r"^(?P<src>[^\s>→-]+)\s*(?:->|→|>)\s*(?P<dst>\S+)$")


def _parse_params(args: str) -> Dict[str, float]:
    params = {}
    for item in args.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {item!r}")
        key = key.strip()
        try:
            number = float(value)
        except ValueError:
            raise ValueError(f"Parameter {key!r} is not a number: {value!r}")
        if not math.isfinite(number):
            raise ValueError(f"Parameter {key!r} must be finite: {value!r}")
        params[key] = number
    return params


def parse_token(token: str) -> InputEvent:
    """Map one key/button token onto an input event.

    Recognizes digits and ``.``, operator glyphs and their keyboard aliases,
    function glyphs, memory keys, clear/erase keys, base names, financial
    command names with optional ``(key=value, ...)`` parameters, and unit
    conversions written ``from->to``.

    Raises:
        ValueError: If the token means nothing to the calculator.
    """
    token = token.strip()
    if not token:
        raise ValueError("Empty token")

    if len(token) == 1 and token in DIGITS:
        return Digit(token)
    if token in EQUALS_TOKENS:
        return Equals()
    if token in CLEAR_TOKENS:
        return Clear()
    if token in ERASE_TOKENS:
        return Erase()

    for operator in Operator:
        if token == operator.value:
            return OperatorPressed(operator)
    if token in OPERATOR_ALIASES:
        return OperatorPressed(OPERATOR_ALIASES[token])

    for function in Function:
        if token == function.value:
            return FunctionPressed(function)
    if token in FUNCTION_ALIASES:
        return FunctionPressed(FUNCTION_ALIASES[token])

    for op in MemoryOp:
        if token == op.value:
            return MemoryPressed(op)

    if token in NumberBase.__members__:
        return BaseConversion(NumberBase[token])

    match = _FINANCIAL_PATTERN.match(token)
    if match:
        names = {f.value: f for f in FinancialFunction}
        if match.group("name") in names:
            return FinancialRequest(
                names[match.group("name")], _parse_params(match.group("args") or "")
            )

    match = _CONVERSION_PATTERN.match(token)
    if match:
        return UnitConversion(match.group("src"), match.group("dst"))

    raise ValueError(f"Unrecognized token: {token!r}")
