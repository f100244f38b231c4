"""Constant-payment (Price table) amortization for lending contracts"""

from decimal import ROUND_CEILING, Decimal, localcontext
from typing import List, Union
from lending_gateway.domain.models import ScheduleRow

Number = Union[Decimal, int, float, str]

ZERO = Decimal(0)

# Digits carried beyond the caller context while solving for the payment
EXTRA_PRECISION = 20


def to_decimal(value: Number) -> Decimal:
    """Coerce a caller value to Decimal; floats go through str so 2.5 stays 2.5"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def installment(amount: Number, monthly_rate_percent: Number, term_months: int) -> Decimal:
    """
    Fixed monthly payment that amortizes `amount` over `term_months`.

    Formula: PMT = PV * i / (1 - (1 + i)^-n), with i = rate / 100.

    Edge cases:
    - Non-positive amount or term: 0 (no payment schedule)
    - Zero rate: straight-line amount / n
    - Degenerate denominator: falls back to amount / n
    - Positive rate: never below amount / n, rounded up to context precision

    Example:
        installment(1000, 2, 12) -> 94.559596...
    """
    amount = to_decimal(amount)
    rate = to_decimal(monthly_rate_percent)

    if term_months <= 0 or amount <= 0:
        return ZERO

    if rate == 0:
        return amount / term_months

    with localcontext() as ctx:
        ctx.prec += EXTRA_PRECISION
        i = rate / 100
        growth = 1 + i
        payment = amount / term_months
        if growth > 0:
            denominator = 1 - growth ** -term_months
            if denominator != 0:
                payment = amount * i / denominator
        if rate > 0:
            payment = max(payment, amount / term_months)

    with localcontext() as ctx:
        if rate > 0:
            ctx.rounding = ROUND_CEILING
        return +payment


def total_amount(monthly_payment: Number, term_months: int) -> Decimal:
    """Total repaid over the life of the contract"""
    return to_decimal(monthly_payment) * term_months


def amortization_schedule(amount: Number, monthly_rate_percent: Number, term_months: int) -> List[ScheduleRow]:
    """
    Month-by-month breakdown of a constant-payment schedule.

    Each row splits the fixed payment into interest on the outstanding balance
    and principal. Values are not rounded; the final balance is zero up to the
    decimal context precision.
    """
    payment = installment(amount, monthly_rate_percent, term_months)
    if payment == 0:
        return []

    i = to_decimal(monthly_rate_percent) / 100
    balance = to_decimal(amount)
    rows = []

    for month in range(1, term_months + 1):
        interest = balance * i
        principal = payment - interest
        balance = balance - principal

        # Last month absorbs residual precision drift
        if month == term_months:
            principal += balance
            balance = ZERO

        rows.append(
            ScheduleRow(
                month=month,
                payment=payment,
                interest=interest,
                principal=principal,
                balance=balance,
            )
        )

    return rows
