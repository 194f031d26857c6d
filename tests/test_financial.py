"""Tests for financial.py - Financial formulas."""

from datetime import date

import pytest

from calckit import financial
from calckit.errors import ErrorKind


class TestLoans:
    """Tests for loan payment, amount and term."""

    def test_payment(self):
        """Test a five-year loan at 5%."""
        result = financial.loan_payment(10000, 5, 5)
        assert result.ok
        assert result.value == pytest.approx(188.71, abs=0.01)

    def test_payment_zero_rate(self):
        """Test the zero-rate guard."""
        result = financial.loan_payment(10000, 0, 5)
        assert result.error.kind == ErrorKind.DOMAIN
        assert result.error.message == "Interest rate cannot be zero"

    def test_payment_zero_term(self):
        """Test the non-positive term guard."""
        assert financial.loan_payment(10000, 5, 0).error.message == "Loan term must be positive"

    def test_amount_inverts_payment(self):
        """Test loan_amount undoes loan_payment."""
        payment = financial.loan_payment(10000, 5, 5).value
        assert financial.loan_amount(payment, 5, 5).value == pytest.approx(10000)

    def test_term(self):
        """Test the term rounds months up to whole years."""
        assert financial.loan_term_years(10000, 200, 5).value == 5

    def test_term_zero_rate(self):
        """Test a zero rate divides principal by payment."""
        assert financial.loan_term_years(10000, 200, 0).value == 5

    def test_term_payment_too_small(self):
        """Test a payment that never covers the interest."""
        result = financial.loan_term_years(10000, 40, 5)
        assert result.error.message == "Payment does not cover monthly interest"

    def test_totals(self):
        """Test total paid and total interest."""
        assert financial.loan_total(100, 2) == 2400
        assert financial.loan_interest(2000, 100, 2) == 400


class TestInvestment:
    """Tests for growth and return formulas."""

    def test_future_value(self):
        """Test yearly compounding."""
        assert financial.future_value(1000, 5, 10).value == pytest.approx(1628.89, abs=0.01)

    def test_present_value_inverts(self):
        """Test present_value undoes future_value."""
        fv = financial.future_value(1000, 5, 10).value
        assert financial.present_value(fv, 5, 10).value == pytest.approx(1000)

    def test_rate_floor(self):
        """Test rates at or below -100%."""
        assert not financial.future_value(1000, -100, 1).ok
        assert not financial.present_value(1000, -150, 1).ok

    def test_compound_interest(self):
        """Test monthly compounding."""
        result = financial.compound_interest(1000, 5, 10, 12)
        assert result.value == pytest.approx(1647.01, abs=0.01)

    def test_continuous_compounding(self):
        """Test continuous compounding."""
        result = financial.continuous_compound_interest(1000, 5, 10)
        assert result.value == pytest.approx(1648.72, abs=0.01)

    def test_roi(self):
        """Test return on investment."""
        assert financial.return_on_investment(1000, 1500).value == pytest.approx(50)
        assert financial.return_on_investment(0, 1500).error.message == (
            "Initial investment cannot be zero"
        )

    def test_down_payment(self):
        """Test a percentage of the price."""
        assert financial.down_payment(300000, 20) == pytest.approx(60000)

    def test_analyze_investment(self):
        """Test a doubling over ten years."""
        result = financial.analyze_investment(1000, 2000, date(2020, 1, 1), date(2030, 1, 1))
        analysis = result.value
        assert analysis.return_on_investment == pytest.approx(100)
        assert 7.1 < analysis.annualized_return < 7.2

    def test_analyze_investment_bad_dates(self):
        """Test an end date before the start date."""
        result = financial.analyze_investment(1000, 2000, date(2030, 1, 1), date(2020, 1, 1))
        assert result.error.kind == ErrorKind.DOMAIN


class TestMortgage:
    """Tests for mortgage pricing and amortization."""

    def test_monthly_payment(self):
        """Test a 30-year mortgage with a down payment."""
        details = financial.mortgage(200000, 4.5, 30, 40000).value
        assert details.monthly_payment == pytest.approx(810.70, abs=0.01)
        assert details.total_interest == pytest.approx(details.total_payment - 160000)

    def test_schedule_pays_off(self):
        """Test the schedule covers every month and ends at zero."""
        details = financial.mortgage(200000, 4.5, 30, 40000).value
        assert len(details.schedule) == 360
        assert details.schedule[0].month == 1
        assert details.schedule[-1].balance == pytest.approx(0, abs=0.01)

    def test_first_month_split(self):
        """Test interest and principal of the first payment."""
        row = financial.mortgage(120000, 6, 10).value.schedule[0]
        assert row.interest == pytest.approx(600)
        assert row.principal == pytest.approx(row.payment - 600)

    def test_down_payment_too_large(self):
        """Test a down payment that covers the price."""
        result = financial.mortgage(100000, 5, 30, 100000)
        assert result.error.message == "Down payment must be less than the price"


class TestBonds:
    """Tests for bond price, duration and convexity."""

    def test_par_bond(self):
        """Test a coupon equal to the market rate prices at par."""
        analysis = financial.analyze_bond(1000, 5, 5, 10).value
        assert analysis.price == pytest.approx(1000)
        assert analysis.duration == pytest.approx(8.1078, abs=1e-4)
        assert analysis.yield_rate == 5

    def test_discount_bond(self):
        """Test a coupon below the market rate."""
        assert financial.bond_price(1000, 5, 6, 10).value == pytest.approx(926.40, abs=0.01)

    def test_convexity_positive(self):
        """Test convexity of a plain coupon bond."""
        assert financial.bond_convexity(1000, 5, 6, 10).value > 0

    def test_duration_of_zero_coupon(self):
        """Test a zero-coupon bond's duration equals its term."""
        assert financial.bond_duration(1000, 0, 5, 7).value == pytest.approx(7)

    def test_invalid_term(self):
        """Test a zero-year bond."""
        assert financial.analyze_bond(1000, 5, 5, 0).error.kind == ErrorKind.DOMAIN


class TestRatios:
    """Tests for ratio helpers and beta."""

    def test_price_to_earnings(self):
        """Test P/E and its zero guard."""
        assert financial.price_to_earnings(50, 5).value == pytest.approx(10)
        assert financial.price_to_earnings(50, 0).error.message == (
            "Earnings per share cannot be zero"
        )

    def test_liquidity(self):
        """Test current and quick ratios."""
        assert financial.current_ratio(200, 100).value == pytest.approx(2)
        assert financial.quick_ratio(200, 50, 100).value == pytest.approx(1.5)

    def test_returns_are_percentages(self):
        """Test ROE and ROA are scaled to percent."""
        assert financial.return_on_equity(20, 100).value == pytest.approx(20)
        assert financial.return_on_assets(5, 200).value == pytest.approx(2.5)

    def test_beta(self):
        """Test a stock moving twice as much as the market."""
        assert financial.beta([2, 4, 6], [1, 2, 3]).value == pytest.approx(2)

    def test_beta_guards(self):
        """Test unequal, empty and flat series."""
        assert not financial.beta([1, 2], [1, 2, 3]).ok
        assert not financial.beta([], []).ok
        assert financial.beta([1, 2, 3], [1, 1, 1]).error.message == (
            "Market returns have zero variance"
        )
