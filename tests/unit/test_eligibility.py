"""Unit tests for offer eligibility rules"""

import pytest
from decimal import Decimal
from lending_gateway.domain.eligibility import (
    LENDER_TIER,
    MINIMUM_AMOUNT,
    RATE_BOUNDS,
    TERM_BOUNDS,
    TIER_CEILING,
    validate_offer,
)


def test_valid_offer():
    """Test a level-2 lender offering 1,000 at 2% over 12 months"""
    result = validate_offer(Decimal("1000"), 12, Decimal("2"), lender_level=2)

    assert result.is_valid is True
    assert result.rule is None
    assert result.reason is None


def test_lender_level_too_low():
    """Test level-1 lenders cannot publish offers"""
    result = validate_offer(Decimal("1000"), 12, Decimal("2"), lender_level=1)

    assert result.is_valid is False
    assert result.rule == LENDER_TIER
    assert "level 2" in result.reason


def test_lender_tier_reported_first():
    """Test the tier rule wins even when other rules also fail"""
    result = validate_offer(Decimal("10"), 0, Decimal("50"), lender_level=1)

    assert result.rule == LENDER_TIER


def test_minimum_amount():
    """Test amounts below 100 are rejected"""
    result = validate_offer(Decimal("99.99"), 12, Decimal("2"), lender_level=2)

    assert result.is_valid is False
    assert result.rule == MINIMUM_AMOUNT


def test_tier_ceiling_for_unqualified_lender():
    """Test 60,000 is above the ceiling for a level-4 lender"""
    result = validate_offer(Decimal("60000"), 12, Decimal("2"), lender_level=4)

    assert result.is_valid is False
    assert result.rule == TIER_CEILING
    assert "(4)" in result.reason


def test_tier_ceiling_boundary():
    """Test exactly 50,000 is allowed below level 5"""
    assert validate_offer(Decimal("50000"), 12, Decimal("2"), lender_level=2).is_valid is True


def test_qualified_lender_has_no_ceiling():
    """Test level-5 lenders may exceed 50,000"""
    assert validate_offer(Decimal("60000"), 12, Decimal("2"), lender_level=5).is_valid is True


@pytest.mark.parametrize("term", [0, 61, -1])
def test_term_out_of_bounds(term):
    """Test terms outside 1-60 months"""
    result = validate_offer(Decimal("1000"), term, Decimal("2"), lender_level=2)

    assert result.is_valid is False
    assert result.rule == TERM_BOUNDS


@pytest.mark.parametrize("term", [1, 60])
def test_term_boundaries_allowed(term):
    """Test 1 and 60 months are inclusive bounds"""
    assert validate_offer(Decimal("1000"), term, Decimal("2"), lender_level=2).is_valid is True


@pytest.mark.parametrize("rate", [Decimal("0"), Decimal("0.1"), Decimal("20.01")])
def test_rate_out_of_bounds(rate):
    """Test the rate must be above 0.1% and at most 20%"""
    result = validate_offer(Decimal("1000"), 12, rate, lender_level=2)

    assert result.is_valid is False
    assert result.rule == RATE_BOUNDS


@pytest.mark.parametrize("rate", [Decimal("0.11"), Decimal("20")])
def test_rate_boundaries_allowed(rate):
    """Test the upper bound is inclusive"""
    assert validate_offer(Decimal("1000"), 12, rate, lender_level=2).is_valid is True
