"""
Profile configuration and the guardian authorization gate.

The secret check is a plain equality comparison. It keeps a child from tapping
through guardian actions; it is not a security boundary.
"""

from decimal import Decimal
from typing import Mapping

from .errors import InvalidInputError, InvalidRateError, InvalidTermError, UnauthorizedError
from .interest import Number, as_decimal
from .models import DEFAULT_TERM_RATES, SUPPORTED_TERMS, ProfileConfig


MIN_SECRET_LENGTH = 4
MAX_TERM_RATE = Decimal("20")


class ProfileStore:
    def __init__(self, profile: ProfileConfig, max_rate: Number = MAX_TERM_RATE):
        self.profile = profile
        self.max_rate = as_decimal(max_rate, "max_rate")

    def authorize(self, supplied_secret: str) -> bool:
        return supplied_secret == self.profile.parental_password

    def rate_for_term(self, term_months: int) -> Decimal:
        if term_months not in SUPPORTED_TERMS:
            raise InvalidTermError(f"Unsupported term {term_months}")
        rates = self.profile.term_interest_rates
        if term_months in rates:
            return rates[term_months]
        return DEFAULT_TERM_RATES[term_months]

    def rate_table(self) -> dict[int, Decimal]:
        return {term: self.rate_for_term(term) for term in SUPPORTED_TERMS}

    def validate_rates(self, table: Mapping[int, Number]) -> dict[int, Decimal]:
        if not table:
            raise InvalidRateError("Rate table is empty")
        validated = {}
        for term, rate in table.items():
            term = int(term)
            if term not in SUPPORTED_TERMS:
                raise InvalidTermError(f"Unsupported term {term}")
            try:
                value = as_decimal(rate, f"rate for {term} months")
            except InvalidInputError as e:
                raise InvalidRateError(str(e))
            if value < 0 or value > self.max_rate:
                raise InvalidRateError(
                    f"Rate for {term} months must be between 0% and {self.max_rate}%, got {value}%"
                )
            validated[term] = value
        return validated

    def update_rates(self, table: Mapping[int, Number]) -> dict[int, Decimal]:
        # validate everything before touching the profile
        validated = self.validate_rates(table)
        self.profile.term_interest_rates = {**self.profile.term_interest_rates, **validated}
        return self.rate_table()

    def change_secret(self, current: str, new: str, confirm: str) -> None:
        if not self.authorize(current):
            raise UnauthorizedError("Current password is incorrect")
        if not new.strip() or len(new) < MIN_SECRET_LENGTH:
            raise InvalidInputError(f"New password must be at least {MIN_SECRET_LENGTH} characters")
        if new != confirm:
            raise InvalidInputError("New passwords do not match")
        self.profile.parental_password = new

    def update_names(self, parent_name: str, child_name: str) -> None:
        if not parent_name.strip() or not child_name.strip():
            raise InvalidInputError("Please enter both parent and child names")
        self.profile.parent_name = parent_name.strip()
        self.profile.child_name = child_name.strip()
