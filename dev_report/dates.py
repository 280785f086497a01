"""
Reporting window calculation.
"""

import calendar
import datetime

from .models import DateWindow


def get_date_window(month: int, year: int) -> DateWindow:
    """
    Build the inclusive window covering one calendar month.

    The end date is the day before the first of the following month, so
    month length and leap years come from the calendar itself.

    Raises:
        ValueError: If month or year is out of range for a date.
    """
    start_date = datetime.date(year, month, 1)
    if month == 12:
        next_month = datetime.date(year + 1, 1, 1)
    else:
        next_month = datetime.date(year, month + 1, 1)
    end_date = next_month - datetime.timedelta(days=1)

    return DateWindow(
        start_date=start_date,
        end_date=end_date,
        month_label=calendar.month_name[month],
        year=year,
        two_digit_month=f"{month:02d}",
    )


def previous_month(today: datetime.date) -> tuple:
    """Return (month, year) of the calendar month before `today`."""
    first = today.replace(day=1)
    last_of_previous = first - datetime.timedelta(days=1)
    return last_of_previous.month, last_of_previous.year
