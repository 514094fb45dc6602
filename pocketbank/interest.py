"""
Simple interest for fixed-term deposits.

interest = principal * rate * months / 1200, no compounding. Values are kept
unrounded; round with ``to_cents`` only where money is credited or shown.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from pydantic import BaseModel, ConfigDict

from .errors import InvalidAmountError, InvalidInputError, InvalidRateError, InvalidTermError
from .models import MAX_AMOUNT, SUPPORTED_TERMS, to_cents


Number = Union[Decimal, int, float, str]


class InterestQuote(BaseModel):
    interest: Decimal
    total: Decimal

    model_config = ConfigDict(frozen=True)

    def rounded(self) -> "InterestQuote":
        return InterestQuote(interest=to_cents(self.interest), total=to_cents(self.total))


def as_decimal(value: Number, name: str = "value") -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps floats like 0.1 from dragging binary noise in
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{name} is not a number: {value!r}")
    if not result.is_finite():
        raise InvalidInputError(f"{name} must be finite")
    return result


def as_amount(value: Number, name: str = "amount") -> Decimal:
    """Parse a money amount and round it to cents, refusing sizes no ledger should hold."""
    amount = as_decimal(value, name)
    if abs(amount) >= MAX_AMOUNT:
        raise InvalidAmountError(f"{name} must be less than {MAX_AMOUNT:,}")
    return to_cents(amount)


def compute_return(principal: Number, annual_rate_percent: Number, term_months: int) -> InterestQuote:
    principal = as_decimal(principal, "principal")
    rate = as_decimal(annual_rate_percent, "annual_rate_percent")

    if principal <= 0:
        raise InvalidAmountError(f"Principal must be positive, got {principal}")
    if rate < 0:
        raise InvalidRateError(f"Interest rate cannot be negative, got {rate}")
    if term_months not in SUPPORTED_TERMS:
        raise InvalidTermError(
            f"Unsupported term {term_months}; choose one of {', '.join(map(str, SUPPORTED_TERMS))} months"
        )

    interest = principal * rate * term_months / Decimal(12 * 100)
    return InterestQuote(interest=interest, total=principal + interest)
