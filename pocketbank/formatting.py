"""Display helpers for amounts, dates and deposit countdowns."""

import math
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from .models import to_cents


CURRENCY_SYMBOL = "HK$"
AVERAGE_DAYS_PER_MONTH = 30.44


def format_currency(amount: Union[Decimal, int, float]) -> str:
    value = to_cents(Decimal(str(amount)))
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(value):,.2f}"


def format_date(moment: Union[date, datetime], today: Optional[date] = None) -> str:
    day = moment.date() if isinstance(moment, datetime) else moment
    today = today or date.today()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.day} {day.strftime('%b')}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} left"


def time_remaining(maturity_at: datetime, now: datetime) -> str:
    seconds = (maturity_at - now).total_seconds()
    if seconds <= 0:
        return "Matured!"

    days = math.ceil(seconds / 86400)
    if days == 1:
        return "1 day left"
    if days < 7:
        return f"{days} days left"
    if days < 30:
        return _plural(math.ceil(days / 7), "week")

    months = round(days / AVERAGE_DAYS_PER_MONTH)
    if months < 12:
        return _plural(max(months, 1), "month")
    return _plural(round(months / 12), "year")
