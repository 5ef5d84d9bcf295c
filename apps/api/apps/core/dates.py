"""
Date helpers shared by treatments and payments.
"""
import calendar
from datetime import date, datetime


def add_months(value, months):
    """
    Add whole calendar months to a date/datetime, clamping the day to the target month.

    >>> add_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calculate_age(birth_date, today=None):
    """Age in full years, or None when birth_date is unknown."""
    if not birth_date:
        return None
    today = today or date.today()
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    return today.year - birth_date.year - (
        (today.month, today.day) < (birth_date.month, birth_date.day)
    )
