"""Offer eligibility rules - pure checks run before an offer may exist"""

from decimal import Decimal
from lending_gateway.domain.amortization import Number, to_decimal
from lending_gateway.domain.models import OfferValidation

MIN_LENDER_LEVEL = 2
QUALIFIED_LENDER_LEVEL = 5
MIN_OFFER_AMOUNT = Decimal("100")
UNQUALIFIED_MAX_AMOUNT = Decimal("50000")
MIN_TERM_MONTHS = 1
MAX_TERM_MONTHS = 60
MIN_MONTHLY_RATE = Decimal("0.1")  # exclusive
MAX_MONTHLY_RATE = Decimal("20")

# Rule identifiers, in evaluation order
LENDER_TIER = "LENDER_TIER"
MINIMUM_AMOUNT = "MINIMUM_AMOUNT"
TIER_CEILING = "TIER_CEILING"
TERM_BOUNDS = "TERM_BOUNDS"
RATE_BOUNDS = "RATE_BOUNDS"


def _reject(rule: str, reason: str) -> OfferValidation:
    return OfferValidation(is_valid=False, rule=rule, reason=reason)


def validate_offer(
    amount: Number,
    term_months: int,
    monthly_rate_percent: Number,
    lender_level: int,
) -> OfferValidation:
    """
    Check whether a lender may publish an offer.

    Rules are evaluated in a fixed order and the first failure wins, so the
    most fundamental blocker (lender tier) is reported before range checks:

    1. Lender level below 2
    2. Amount below 100
    3. Amount above 50,000 for lenders below level 5
    4. Term outside 1-60 months
    5. Monthly rate not in (0.1%, 20%]
    """
    amount = to_decimal(amount)
    rate = to_decimal(monthly_rate_percent)

    if lender_level < MIN_LENDER_LEVEL:
        return _reject(
            LENDER_TIER,
            f"You must be level {MIN_LENDER_LEVEL} or higher to offer loans. "
            "Complete your profile to level up.",
        )

    if amount < MIN_OFFER_AMOUNT:
        return _reject(MINIMUM_AMOUNT, f"The minimum offer amount is {MIN_OFFER_AMOUNT:,.2f}.")

    if amount > UNQUALIFIED_MAX_AMOUNT and lender_level < QUALIFIED_LENDER_LEVEL:
        return _reject(
            TIER_CEILING,
            f"Your current level ({lender_level}) allows offers up to {UNQUALIFIED_MAX_AMOUNT:,.2f}. "
            f"Become a qualified lender (level {QUALIFIED_LENDER_LEVEL}) for higher limits.",
        )

    if term_months < MIN_TERM_MONTHS or term_months > MAX_TERM_MONTHS:
        return _reject(TERM_BOUNDS, f"The term must be between {MIN_TERM_MONTHS} and {MAX_TERM_MONTHS} months.")

    if rate <= MIN_MONTHLY_RATE or rate > MAX_MONTHLY_RATE:
        return _reject(
            RATE_BOUNDS,
            f"The monthly interest rate must be above {MIN_MONTHLY_RATE}% and at most {MAX_MONTHLY_RATE}%.",
        )

    return OfferValidation(is_valid=True)
