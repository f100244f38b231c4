"""Unit tests for constant-payment amortization"""

import pytest
from decimal import Decimal
from lending_gateway.domain.amortization import amortization_schedule, installment, total_amount


def test_installment_matches_price_table():
    """Test 1000 at 2% over 12 months"""
    payment = installment(Decimal("1000"), Decimal("2"), 12)

    assert payment.quantize(Decimal("0.01")) == Decimal("94.56")


def test_installment_zero_rate_is_straight_line():
    """Test zero interest divides the principal evenly"""
    assert installment(Decimal("1200"), Decimal("0"), 12) == Decimal("100")


def test_installment_is_deterministic():
    """Test identical inputs give identical payments"""
    first = installment(Decimal("5000"), Decimal("3.5"), 24)
    second = installment(Decimal("5000"), Decimal("3.5"), 24)

    assert first == second


@pytest.mark.parametrize(
    "amount,rate,term",
    [
        (Decimal("100"), Decimal("0.5"), 1),
        (Decimal("1000"), Decimal("2"), 12),
        (Decimal("50000"), Decimal("20"), 60),
    ],
)
def test_installment_repays_at_least_principal(amount, rate, term):
    """Test the total repaid never falls below the amount borrowed"""
    payment = installment(amount, rate, term)

    assert payment > 0
    assert total_amount(payment, term) >= amount


@pytest.mark.parametrize("rate", [Decimal("1e-30"), Decimal("1e-20"), Decimal("1e-12")])
@pytest.mark.parametrize("amount,term", [(Decimal("1000"), 3), (Decimal("1000"), 7), (Decimal("2500.10"), 36)])
def test_installment_tiny_rate_never_underpays(amount, rate, term):
    """Test rates too small for the context still repay the whole principal"""
    payment = installment(amount, rate, term)

    assert payment >= amount / term
    assert total_amount(payment, term) >= amount


@pytest.mark.parametrize("amount,term", [(Decimal("0"), 12), (Decimal("-10"), 12), (Decimal("1000"), 0)])
def test_installment_non_positive_inputs(amount, term):
    """Test non-positive amount or term yields no payment"""
    assert installment(amount, Decimal("2"), term) == 0


def test_installment_accepts_floats():
    """Test float inputs behave like their decimal text"""
    assert installment(1000.0, 2.0, 12) == installment(Decimal("1000"), Decimal("2"), 12)


def test_total_amount():
    """Test total is payment times term"""
    assert total_amount(Decimal("94.5"), 12) == Decimal("1134.0")


def test_schedule_amortizes_to_zero():
    """Test balance reaches zero and principal sums back to the amount"""
    schedule = amortization_schedule(Decimal("1000"), Decimal("2"), 12)

    assert len(schedule) == 12
    assert [row.month for row in schedule] == list(range(1, 13))
    assert schedule[-1].balance == 0
    assert abs(sum(row.principal for row in schedule) - Decimal("1000")) < Decimal("1e-20")


def test_schedule_interest_declines():
    """Test interest share shrinks as the balance is paid down"""
    schedule = amortization_schedule(Decimal("1000"), Decimal("2"), 12)

    assert schedule[0].interest == Decimal("20")
    assert all(a.interest > b.interest for a, b in zip(schedule, schedule[1:]))


def test_schedule_empty_for_invalid_terms():
    """Test no rows when there is nothing to repay"""
    assert amortization_schedule(Decimal("1000"), Decimal("2"), 0) == []
