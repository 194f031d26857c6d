"""Financial commands for the calculation engine.

Each command takes the displayed value as its primary input and reads the
remaining inputs from an explicit parameter mapping. Obtaining those
parameters (dialogs, prompts, flags) is the front-end's job;
``SUGGESTED_DEFAULTS`` lists reasonable values a front-end may offer.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from . import financial
from .arithmetic import format_number
from .errors import CalcResult, ErrorKind
from .events import FinancialFunction
from .financial import AmortizationRow

__all__ = [
    "FINANCIAL_PARAMETERS",
    "SUGGESTED_DEFAULTS",
    "FinancialOutcome",
    "missing_parameters",
    "run_financial",
]

# Parameter names each command needs besides the displayed value
FINANCIAL_PARAMETERS: Dict[FinancialFunction, Tuple[str, ...]] = {
    FinancialFunction.PMT: ("rate", "years"),
    FinancialFunction.LOAN: ("rate", "years"),
    FinancialFunction.TERM: ("principal", "rate"),
    FinancialFunction.FV: ("rate", "years"),
    FinancialFunction.PV: ("rate", "years"),
    FinancialFunction.ROI: ("final_value",),
    FinancialFunction.MORT: ("rate", "years", "down_payment"),
    FinancialFunction.AMORT: ("rate", "years"),
    FinancialFunction.DOWN: ("percent",),
    FinancialFunction.BOND: ("coupon_rate", "market_rate", "years"),
    FinancialFunction.PE: ("eps",),
    FinancialFunction.DE: ("equity",),
}

# What the displayed value means for each command
PRIMARY_INPUT: Dict[FinancialFunction, str] = {
    FinancialFunction.PMT: "principal",
    FinancialFunction.LOAN: "payment",
    FinancialFunction.TERM: "payment",
    FinancialFunction.FV: "present value",
    FinancialFunction.PV: "future value",
    FinancialFunction.ROI: "initial investment",
    FinancialFunction.MORT: "price",
    FinancialFunction.AMORT: "principal",
    FinancialFunction.DOWN: "home price",
    FinancialFunction.BOND: "face value",
    FinancialFunction.PE: "stock price",
    FinancialFunction.DE: "total debt",
}

SUGGESTED_DEFAULTS: Dict[str, float] = {
    "rate": 5.0,
    "years": 5,
    "principal": 100000.0,
    "down_payment": 0.0,
    "percent": 20.0,
    "coupon_rate": 5.0,
    "market_rate": 6.0,
    "payments_per_year": 1,
}


@dataclass
class FinancialOutcome:
    """Result of a financial command, ready for the engine to commit."""

    result: CalcResult
    expression: str = ""
    schedule: List[AmortizationRow] = field(default_factory=list)


def missing_parameters(
    function: FinancialFunction, params: Mapping[str, float]
) -> List[str]:
    return [name for name in FINANCIAL_PARAMETERS[function] if name not in params]


def _fmt(value: float) -> str:
    return format_number(value)


def _loan_args(value: float, p: Mapping[str, float]) -> str:
    return f"{_fmt(value)}, {_fmt(p['rate'])}%, {int(p['years'])} years"


def run_financial(
    function: FinancialFunction, value: float, params: Mapping[str, float]
) -> FinancialOutcome:
    """Evaluate a financial command.

    Args:
        function: Command to run.
        value: The displayed value (see ``PRIMARY_INPUT``).
        params: Remaining inputs, keyed as in ``FINANCIAL_PARAMETERS``.

    Returns:
        FinancialOutcome with the numeric result (or error) and the history
        expression text.
    """
    missing = missing_parameters(function, params)
    if missing:
        return FinancialOutcome(
            CalcResult.failure(
                ErrorKind.FORMAT,
                f"Missing parameter {', '.join(repr(m) for m in missing)} for {function.value}",
            )
        )
    invalid = [key for key, number in params.items() if not math.isfinite(number)]
    if invalid:
        return FinancialOutcome(
            CalcResult.failure(
                ErrorKind.FORMAT,
                f"Invalid parameter {', '.join(repr(k) for k in invalid)} for {function.value}",
            )
        )

    p = params
    name = function.value
    schedule: List[AmortizationRow] = []

    if function is FinancialFunction.PMT:
        result = financial.loan_payment(value, p["rate"], int(p["years"]))
        expression = f"PMT({_loan_args(value, p)})"
    elif function is FinancialFunction.LOAN:
        result = financial.loan_amount(value, p["rate"], int(p["years"]))
        expression = f"LOAN({_loan_args(value, p)})"
    elif function is FinancialFunction.TERM:
        result = financial.loan_term_years(p["principal"], value, p["rate"])
        expression = f"TERM({_fmt(p['principal'])}, {_fmt(value)}, {_fmt(p['rate'])}%)"
    elif function is FinancialFunction.FV:
        result = financial.future_value(value, p["rate"], p["years"])
        expression = f"FV({_loan_args(value, p)})"
    elif function is FinancialFunction.PV:
        result = financial.present_value(value, p["rate"], p["years"])
        expression = f"PV({_loan_args(value, p)})"
    elif function is FinancialFunction.ROI:
        result = financial.return_on_investment(value, p["final_value"])
        expression = f"ROI({_fmt(value)}, {_fmt(p['final_value'])})"
    elif function in (FinancialFunction.MORT, FinancialFunction.AMORT):
        down = p.get("down_payment", 0.0)
        details = financial.mortgage(value, p["rate"], int(p["years"]), down)
        if not details.ok:
            return FinancialOutcome(details)
        schedule = details.value.schedule
        if function is FinancialFunction.MORT:
            result = CalcResult.success(details.value.monthly_payment)
        else:
            result = CalcResult.success(details.value.total_interest)
        expression = f"{name}({_loan_args(value, p)}, down {_fmt(down)})"
    elif function is FinancialFunction.DOWN:
        result = CalcResult.success(financial.down_payment(value, p["percent"]))
        expression = f"DOWN({_fmt(value)}, {_fmt(p['percent'])}%)"
    elif function is FinancialFunction.BOND:
        per_year = int(p.get("payments_per_year", 1))
        result = financial.bond_price(
            value, p["coupon_rate"], p["market_rate"], int(p["years"]), per_year
        )
        expression = (
            f"BOND({_fmt(value)}, coupon {_fmt(p['coupon_rate'])}%, "
            f"market {_fmt(p['market_rate'])}%, {int(p['years'])} years)"
        )
    elif function is FinancialFunction.PE:
        result = financial.price_to_earnings(value, p["eps"])
        expression = f"P/E({_fmt(value)}, {_fmt(p['eps'])})"
    elif function is FinancialFunction.DE:
        result = financial.debt_to_equity(value, p["equity"])
        expression = f"D/E({_fmt(value)}, {_fmt(p['equity'])})"
    else:
        raise ValueError(f"Unknown financial function: {function}")

    if result.ok:
        result = CalcResult.success(float(result.value))
    return FinancialOutcome(result, expression, schedule)


def suggested_default(name: str) -> Optional[float]:
    return SUGGESTED_DEFAULTS.get(name)
