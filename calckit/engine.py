"""The calculation engine.

A state machine that turns a stream of discrete key presses into a running
value with one pending operator, plus memory, history and error state.
Operators resolve strictly left to right: ``3 + 4 × 2 =`` is 14.

While an error message is set the engine ignores every input except
``Clear``; a digit first performs a full clear and then starts a new
operand.

An engine instance is not safe for concurrent use. Feed it from a single
thread or task, one event at a time.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Mapping, Optional

from . import programmer, units
from .arithmetic import apply_function, apply_operator, format_number
from .commands import run_financial
from .errors import CalcError, ErrorKind
from .events import (
    DIGITS,
    BaseConversion,
    Clear,
    Digit,
    Equals,
    Erase,
    FinancialFunction,
    FinancialRequest,
    Function,
    FunctionPressed,
    InputEvent,
    MemoryOp,
    MemoryPressed,
    Operator,
    OperatorPressed,
    UnitConversion,
)
from .financial import AmortizationRow
from .history import CalculationHistory, CalculationRecord, Category
from .programmer import NumberBase

__all__ = ["EngineState", "EngineSnapshot", "CalculationEngine"]

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    """Mutable state owned by one engine.

    Attributes:
        pending_digits: Operand as typed, or the text of the last result.
        accumulator: Running result of prior operations.
        pending_operator: Operator waiting for its right operand.
        awaiting_new_operand: Next digit replaces rather than appends.
        operand_needed: An operator was just pressed and no operand has
            been supplied since; pressing another operator swaps it.
        memory: Single memory register.
        error_message: Set on failure; freezes everything but clear.
        display_override: Text shown instead of the operand until the next
            input (base conversions).
    """

    pending_digits: str = ""
    accumulator: float = 0.0
    pending_operator: Optional[Operator] = None
    awaiting_new_operand: bool = True
    operand_needed: bool = False
    memory: float = 0.0
    error_message: Optional[str] = None
    display_override: Optional[str] = None


@dataclass(frozen=True)
class EngineSnapshot:
    """What a front-end needs to render after each input."""

    display_text: str
    is_error: bool
    history_text: str
    last_record: Optional[str]


class CalculationEngine:
    """Calculator core.

    Example:
        >>> from calckit.events import parse_token
        >>> engine = CalculationEngine()
        >>> for token in "3 + 4 × 2 =".split():
        ...     snapshot = engine.input(parse_token(token))
        >>> snapshot.display_text
        '14'
    """

    def __init__(
        self,
        history: Optional[CalculationHistory] = None,
        state: Optional[EngineState] = None,
    ):
        self.state = state or EngineState()
        self.history = history if history is not None else CalculationHistory()
        self.last_schedule: List[AmortizationRow] = []

    # --- Event dispatch ---

    def input(self, event: InputEvent) -> EngineSnapshot:
        """Apply one input event and return the resulting snapshot."""
        if isinstance(event, Digit):
            self.append_digit(event.char)
        elif isinstance(event, OperatorPressed):
            self.set_operator(event.operator)
        elif isinstance(event, Equals):
            self.equals()
        elif isinstance(event, FunctionPressed):
            self.apply_function(event.function)
        elif isinstance(event, MemoryPressed):
            self.memory(event.op)
        elif isinstance(event, Clear):
            self.clear()
        elif isinstance(event, Erase):
            self.erase()
        elif isinstance(event, FinancialRequest):
            self.apply_financial(event.function, event.params)
        elif isinstance(event, UnitConversion):
            self.convert_units(event.from_unit, event.to_unit)
        elif isinstance(event, BaseConversion):
            self.convert_base(event.base)
        else:
            raise TypeError(f"Unsupported input event: {event!r}")
        return self.snapshot()

    # --- Internal helpers ---

    @property
    def is_error(self) -> bool:
        return self.state.error_message is not None

    def _fail(self, error: CalcError) -> None:
        logger.debug("Engine error (%s): %s", error.kind.value, error.message)
        self.state.error_message = error.message

    def _parse_operand(self) -> Optional[float]:
        text = self.state.pending_digits
        if text in ("", "."):
            return 0.0
        try:
            return float(text)
        except ValueError:
            self._fail(CalcError(ErrorKind.FORMAT, f"Invalid number format: {text}"))
            return None

    def _commit(self, expression: str, value: float, category: Category) -> bool:
        """Record a successful result and make it the current operand."""
        if not math.isfinite(value):
            self._fail(CalcError(ErrorKind.OVERFLOW, format_number(value)))
            return False

        s = self.state
        self.history.add(
            CalculationRecord(
                expression_text=expression,
                result_text=format_number(value),
                category=category,
                timestamp=datetime.now(),
            )
        )
        s.accumulator = value
        s.pending_digits = repr(value)
        s.pending_operator = None
        s.awaiting_new_operand = True
        s.operand_needed = False
        s.display_override = None
        return True

    def _resolve_pending(self) -> bool:
        s = self.state
        operand = self._parse_operand()
        if operand is None:
            return False

        left = s.accumulator
        outcome = apply_operator(s.pending_operator, left, operand)
        if not outcome.ok:
            self._fail(outcome.error)
            return False

        expression = (
            f"{format_number(left)} {s.pending_operator.value} {format_number(operand)}"
        )
        return self._commit(expression, outcome.value, Category.BASIC)

    # --- Operations ---

    def append_digit(self, char: str) -> None:
        """Type one digit or the decimal point."""
        if char not in DIGITS or len(char) != 1:
            self._fail(CalcError(ErrorKind.FORMAT, f"Invalid digit: {char!r}"))
            return
        if self.is_error:
            self.clear()

        s = self.state
        if char == "." and "." in s.pending_digits:
            return
        s.display_override = None
        if s.awaiting_new_operand:
            s.pending_digits = char
            s.awaiting_new_operand = False
            s.operand_needed = False
        else:
            s.pending_digits += char

    def set_operator(self, operator: Operator) -> None:
        """Press a binary operator, resolving any pending one first."""
        s = self.state
        if self.is_error or not s.pending_digits:
            return

        if s.pending_operator is not None and s.operand_needed:
            s.pending_operator = operator
            return

        if s.pending_operator is not None:
            if not self._resolve_pending():
                return
        else:
            value = self._parse_operand()
            if value is None:
                return
            s.accumulator = value

        s.pending_operator = operator
        s.awaiting_new_operand = True
        s.operand_needed = True
        s.display_override = None

    def equals(self) -> None:
        s = self.state
        if self.is_error or not s.pending_digits or s.pending_operator is None:
            return
        self._resolve_pending()

    def apply_function(self, function: Function) -> None:
        """Apply a function to the current operand.

        ``e`` needs no operand. ``xʸ`` uses the accumulator as its base.
        """
        s = self.state
        if self.is_error:
            return
        if function is Function.E:
            operand = 0.0
        elif not s.pending_digits:
            return
        else:
            operand = self._parse_operand()
            if operand is None:
                return

        outcome = apply_function(function, operand, s.accumulator)
        if not outcome.ok:
            self._fail(outcome.error)
            return

        if function is Function.E:
            expression = "e"
        elif function is Function.POWER:
            expression = f"xʸ({format_number(s.accumulator)}, {format_number(operand)})"
        else:
            expression = f"{function.value}({format_number(operand)})"

        category = Category.BASIC if function is Function.NOT else Category.SCIENTIFIC
        self._commit(expression, outcome.value, category)

    def memory(self, op: MemoryOp) -> None:
        """Run a memory key: MC, MR, M+ or M-."""
        s = self.state
        if self.is_error:
            return

        if op is MemoryOp.CLEAR:
            s.memory = 0.0
        elif op is MemoryOp.RECALL:
            s.pending_digits = repr(s.memory)
            s.awaiting_new_operand = True
            s.operand_needed = False
            s.display_override = None
        elif s.pending_digits:
            value = self._parse_operand()
            if value is None:
                return
            updated = s.memory + value if op is MemoryOp.ADD else s.memory - value
            if not math.isfinite(updated):
                self._fail(CalcError(ErrorKind.OVERFLOW, format_number(updated)))
                return
            s.memory = updated

    def clear(self) -> None:
        """Reset operand, operator, accumulator and error. Memory and history survive."""
        s = self.state
        s.pending_digits = ""
        s.pending_operator = None
        s.accumulator = 0.0
        s.error_message = None
        s.awaiting_new_operand = True
        s.operand_needed = False
        s.display_override = None

    def erase(self) -> None:
        """Delete the last typed character."""
        s = self.state
        if self.is_error or s.awaiting_new_operand or not s.pending_digits:
            return
        s.pending_digits = s.pending_digits[:-1]
        if not s.pending_digits:
            s.pending_digits = "0"
            s.awaiting_new_operand = True

    def apply_financial(self, function: FinancialFunction, params: Mapping[str, float]) -> None:
        s = self.state
        if self.is_error or not s.pending_digits:
            return
        value = self._parse_operand()
        if value is None:
            return

        outcome = run_financial(function, value, params)
        if not outcome.result.ok:
            self._fail(outcome.result.error)
            return
        if self._commit(outcome.expression, outcome.result.value, Category.FINANCIAL):
            if outcome.schedule:
                self.last_schedule = outcome.schedule

    def convert_units(self, from_unit: str, to_unit: str) -> None:
        s = self.state
        if self.is_error or not s.pending_digits:
            return
        value = self._parse_operand()
        if value is None:
            return

        outcome = units.convert_any(value, from_unit, to_unit)
        if not outcome.ok:
            self._fail(outcome.error)
            return
        expression = f"{format_number(value)} {from_unit} → {to_unit}"
        self._commit(expression, outcome.value, Category.CONVERSION)

    def convert_base(self, base: NumberBase) -> None:
        """Show the current integer operand in ``base`` until the next input."""
        s = self.state
        if self.is_error:
            return
        value = self._parse_operand()
        if value is None:
            return
        if not value.is_integer():
            self._fail(CalcError(ErrorKind.FORMAT, "Base conversion requires an integer"))
            return
        if not programmer.INT64_MIN <= value <= programmer.INT64_MAX:
            self._fail(CalcError(ErrorKind.FORMAT, f"Number out of range for {base.name}"))
            return

        text = programmer.format_int(int(value), base)
        self.history.add(
            CalculationRecord(
                expression_text=f"{base.name}({format_number(value)})",
                result_text=text,
                category=Category.CONVERSION,
                timestamp=datetime.now(),
            )
        )
        s.awaiting_new_operand = True
        s.operand_needed = False
        s.display_override = text

    # --- Rendering ---

    @property
    def display_text(self) -> str:
        s = self.state
        if s.error_message is not None:
            return s.error_message
        if s.display_override is not None:
            return s.display_override
        if not s.pending_digits:
            return "0"
        if s.awaiting_new_operand:
            text = s.pending_digits
            return format_number(float(text)) if text != "." else "0"
        return s.pending_digits

    @property
    def history_text(self) -> str:
        """Accumulator and pending operator, e.g. ``"3.00 +"``."""
        s = self.state
        if s.pending_operator is None:
            return ""
        return f"{s.accumulator:.2f} {s.pending_operator.value}"

    def snapshot(self) -> EngineSnapshot:
        latest = self.history.latest
        return EngineSnapshot(
            display_text=self.display_text,
            is_error=self.is_error,
            history_text=self.history_text,
            last_record=str(latest) if latest is not None else None,
        )
