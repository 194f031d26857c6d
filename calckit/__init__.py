"""calckit - calculator core.

A keypress-driven calculation engine with:
- Chained left-to-right arithmetic with one pending operator
- Scientific functions with domain checks
- Memory register and capped, persistable history
- Financial formulas (loans, mortgages, bonds, ratios)
- Programmer operations (bases, bitwise, bit fields, IEEE-754)
- Unit conversion
"""

__version__ = "1.0.0"

from .engine import (
    CalculationEngine,
    EngineSnapshot,
    EngineState,
)
from .errors import (
    CalcError,
    CalcResult,
    ErrorKind,
)
from .events import parse_token
from .history import (
    CalculationHistory,
    CalculationRecord,
    Category,
    HistoryFile,
)

__all__ = [
    # Engine
    "CalculationEngine",
    "EngineSnapshot",
    "EngineState",
    "parse_token",
    # Errors
    "CalcError",
    "CalcResult",
    "ErrorKind",
    # History
    "CalculationHistory",
    "CalculationRecord",
    "Category",
    "HistoryFile",
]
