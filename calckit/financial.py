"""Financial formulas for calckit.

Time-value-of-money math with discrete compounding, mortgage amortization,
bond pricing and a handful of ratio helpers. Rates are annual percentages
(5 means 5%) unless stated otherwise.

Every function that can hit an undefined case returns a ``CalcResult``
instead of producing NaN or infinity.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Sequence

from .errors import CalcResult, ErrorKind

__all__ = [
    "AmortizationRow",
    "MortgageDetails",
    "BondAnalysis",
    "InvestmentAnalysis",
    "loan_payment",
    "loan_amount",
    "loan_term_years",
    "future_value",
    "present_value",
    "compound_interest",
    "continuous_compound_interest",
    "mortgage",
    "analyze_bond",
    "bond_price",
    "bond_duration",
    "bond_convexity",
    "beta",
]

DAYS_PER_YEAR = 365.25


def _domain(message: str) -> CalcResult:
    return CalcResult.failure(ErrorKind.DOMAIN, message)


def _monthly_rate(annual_rate: float) -> float:
    return annual_rate / 12 / 100


def _grow(base: float, exponent: float) -> float:
    """``base ** exponent`` that saturates to infinity instead of raising."""
    try:
        return base ** exponent
    except OverflowError:
        return math.inf


# --- Loans ---


def loan_payment(principal: float, annual_rate: float, years: int) -> CalcResult:
    """Monthly payment that amortizes ``principal`` over ``years``.

    ``P * r * (1 + r)^n / ((1 + r)^n - 1)`` with ``r`` the monthly rate and
    ``n`` the number of months. Undefined for a zero rate.
    """
    r = _monthly_rate(annual_rate)
    n = years * 12
    if r == 0:
        return _domain("Interest rate cannot be zero")
    if n <= 0:
        return _domain("Loan term must be positive")
    growth = _grow(1 + r, n)
    return CalcResult.success(principal * r * growth / (growth - 1))


def loan_amount(payment: float, annual_rate: float, years: int) -> CalcResult:
    """Principal that a monthly ``payment`` amortizes; inverse of loan_payment."""
    r = _monthly_rate(annual_rate)
    n = years * 12
    if r == 0:
        return _domain("Interest rate cannot be zero")
    if n <= 0:
        return _domain("Loan term must be positive")
    growth = _grow(1 + r, n)
    return CalcResult.success(payment * (growth - 1) / (r * growth))


def loan_term_years(principal: float, payment: float, annual_rate: float) -> CalcResult:
    """Whole years needed to repay ``principal`` at ``payment`` per month.

    Solves ``n = log(PMT / (PMT - P*r)) / log(1 + r)`` and rounds the month
    count up to whole years.
    """
    if payment <= 0:
        return _domain("Payment must be positive")
    r = _monthly_rate(annual_rate)
    if r == 0:
        months = principal / payment
    else:
        interest = principal * r
        if payment <= interest:
            return _domain("Payment does not cover monthly interest")
        months = math.log(payment / (payment - interest)) / math.log(1 + r)
    return CalcResult.success(math.ceil(months / 12))


def loan_total(payment: float, years: int) -> float:
    return payment * years * 12


def loan_interest(principal: float, payment: float, years: int) -> float:
    return loan_total(payment, years) - principal


# --- Investment ---


def future_value(present: float, annual_rate: float, years: float) -> CalcResult:
    """``PV * (1 + rate)^years`` with yearly compounding."""
    if annual_rate <= -100:
        return _domain("Rate must be greater than -100%")
    return CalcResult.success(present * _grow(1 + annual_rate / 100, years))


def present_value(future: float, annual_rate: float, years: float) -> CalcResult:
    """Inverse of future_value."""
    if annual_rate <= -100:
        return _domain("Rate must be greater than -100%")
    growth = _grow(1 + annual_rate / 100, years)
    if growth == 0:
        return _domain("Discount factor is zero")
    return CalcResult.success(future / growth)


def compound_interest(
    principal: float, annual_rate: float, years: float, compounding_per_year: int
) -> CalcResult:
    if compounding_per_year <= 0:
        return _domain("Compounding frequency must be positive")
    rate = annual_rate / 100
    if rate / compounding_per_year <= -1:
        return _domain("Rate must be greater than -100%")
    periods = compounding_per_year * years
    return CalcResult.success(principal * _grow(1 + rate / compounding_per_year, periods))


def continuous_compound_interest(principal: float, annual_rate: float, years: float) -> CalcResult:
    rate = annual_rate / 100
    try:
        return CalcResult.success(principal * math.exp(rate * years))
    except OverflowError:
        return CalcResult.failure(ErrorKind.OVERFLOW, "Error: Overflow")


def return_on_investment(initial: float, final: float) -> CalcResult:
    """Percentage gain from ``initial`` to ``final``."""
    if initial == 0:
        return _domain("Initial investment cannot be zero")
    return CalcResult.success((final - initial) / initial * 100)


def down_payment(price: float, percent: float) -> float:
    return price * percent / 100


@dataclass
class InvestmentAnalysis:
    """ROI and annualized figures for a held investment."""

    return_on_investment: float
    annualized_return: float
    payback_period: float


def analyze_investment(
    initial: float, final: float, start: date, end: date
) -> CalcResult:
    """Analyze an investment held from ``start`` to ``end``.

    Returns:
        CalcResult holding an InvestmentAnalysis. The annualized return is
        the geometric yearly growth; the payback period is in years.
    """
    if initial <= 0 or final <= 0:
        return _domain("Investment values must be positive")
    years = (end - start).days / DAYS_PER_YEAR
    if years <= 0:
        return _domain("End date must be after start date")

    roi = (final - initial) / initial * 100
    annualized = ((final / initial) ** (1 / years) - 1) * 100
    payback = initial / (final / years)
    return CalcResult.success(InvestmentAnalysis(roi, annualized, payback))


# --- Mortgage ---


@dataclass
class AmortizationRow:
    """One month of an amortization schedule."""

    month: int
    payment: float
    interest: float
    principal: float
    balance: float


@dataclass
class MortgageDetails:
    """Mortgage summary and month-by-month schedule."""

    monthly_payment: float
    total_payment: float
    total_interest: float
    schedule: List[AmortizationRow] = field(default_factory=list)


def mortgage(
    principal: float, annual_rate: float, years: int, down: float = 0.0
) -> CalcResult:
    """Price a mortgage on ``principal`` less ``down``.

    The schedule is built by iterating month by month: interest on the
    running balance, the rest of the payment reduces the balance.
    """
    loan = principal - down
    if loan <= 0:
        return _domain("Down payment must be less than the price")

    payment = loan_payment(loan, annual_rate, years)
    if not payment.ok:
        return payment

    monthly_rate = _monthly_rate(annual_rate)
    months = int(years * 12)
    schedule = []
    balance = loan
    for month in range(1, months + 1):
        interest = balance * monthly_rate
        principal_paid = payment.value - interest
        balance -= principal_paid
        schedule.append(
            AmortizationRow(month, payment.value, interest, principal_paid, balance)
        )

    total = payment.value * months
    return CalcResult.success(
        MortgageDetails(
            monthly_payment=payment.value,
            total_payment=total,
            total_interest=total - loan,
            schedule=schedule,
        )
    )


# --- Bonds ---


@dataclass
class BondAnalysis:
    """Price and risk measures of a fixed-coupon bond.

    Attributes:
        price: Present value of coupons plus face value.
        yield_rate: Market rate the cash flows were discounted at (percent).
        duration: Macaulay duration in payment periods.
        convexity: Convexity in payment periods squared.
    """

    price: float
    yield_rate: float
    duration: float
    convexity: float


def analyze_bond(
    face_value: float,
    coupon_rate: float,
    market_rate: float,
    years: int,
    payments_per_year: int = 1,
) -> CalcResult:
    """Discount a bond's coupon and face value cash flows.

    Duration is the time-weighted PV sum over price; convexity is the
    ``t(t+1)``-weighted sum over ``price * (1 + y)^2``.
    """
    if payments_per_year <= 0 or years <= 0:
        return _domain("Bond term and payment frequency must be positive")
    y = market_rate / 100 / payments_per_year
    if y <= -1:
        return _domain("Market rate must be greater than -100%")

    coupon = face_value * coupon_rate / 100 / payments_per_year
    periods = int(years * payments_per_year)

    price = 0.0
    weighted = 0.0
    weighted_squared = 0.0
    for t in range(1, periods + 1):
        cash_flow = coupon + (face_value if t == periods else 0.0)
        discounted = cash_flow / (1 + y) ** t
        price += discounted
        weighted += t * discounted
        weighted_squared += t * (t + 1) * discounted

    if price == 0:
        return _domain("Bond price is zero")

    return CalcResult.success(
        BondAnalysis(
            price=price,
            yield_rate=market_rate,
            duration=weighted / price,
            convexity=weighted_squared / (price * (1 + y) ** 2),
        )
    )


def _bond_field(name: str, *args) -> CalcResult:
    analysis = analyze_bond(*args)
    if not analysis.ok:
        return analysis
    return CalcResult.success(getattr(analysis.value, name))


def bond_price(face_value, coupon_rate, market_rate, years, payments_per_year=1) -> CalcResult:
    return _bond_field("price", face_value, coupon_rate, market_rate, years, payments_per_year)


def bond_duration(face_value, coupon_rate, market_rate, years, payments_per_year=1) -> CalcResult:
    return _bond_field("duration", face_value, coupon_rate, market_rate, years, payments_per_year)


def bond_convexity(face_value, coupon_rate, market_rate, years, payments_per_year=1) -> CalcResult:
    return _bond_field("convexity", face_value, coupon_rate, market_rate, years, payments_per_year)


# --- Ratios ---


def _ratio(numerator: float, denominator: float, message: str, scale: float = 1.0) -> CalcResult:
    if denominator == 0:
        return _domain(message)
    return CalcResult.success(numerator / denominator * scale)


def price_to_earnings(price: float, earnings_per_share: float) -> CalcResult:
    return _ratio(price, earnings_per_share, "Earnings per share cannot be zero")


def debt_to_equity(total_debt: float, total_equity: float) -> CalcResult:
    return _ratio(total_debt, total_equity, "Total equity cannot be zero")


def current_ratio(current_assets: float, current_liabilities: float) -> CalcResult:
    return _ratio(current_assets, current_liabilities, "Current liabilities cannot be zero")


def quick_ratio(current_assets: float, inventory: float, current_liabilities: float) -> CalcResult:
    return _ratio(
        current_assets - inventory, current_liabilities, "Current liabilities cannot be zero"
    )


def return_on_equity(net_income: float, shareholder_equity: float) -> CalcResult:
    return _ratio(net_income, shareholder_equity, "Shareholder equity cannot be zero", 100)


def return_on_assets(net_income: float, total_assets: float) -> CalcResult:
    return _ratio(net_income, total_assets, "Total assets cannot be zero", 100)


# --- Risk ---


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def beta(stock_returns: Sequence[float], market_returns: Sequence[float]) -> CalcResult:
    """Covariance of stock and market returns over market variance."""
    if len(stock_returns) != len(market_returns):
        return _domain("Return series must be of equal length")
    if not stock_returns:
        return _domain("Return series cannot be empty")

    stock_mean = _mean(stock_returns)
    market_mean = _mean(market_returns)

    covariance = 0.0
    variance = 0.0
    for stock, market in zip(stock_returns, market_returns):
        covariance += (stock - stock_mean) * (market - market_mean)
        variance += (market - market_mean) ** 2

    if variance == 0:
        return _domain("Market returns have zero variance")
    # Both sums share the 1/n factor, so it cancels
    return CalcResult.success(covariance / variance)
