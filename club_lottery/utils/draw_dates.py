"""Draw-date arithmetic.

Draws happen on the last day of each month.
"""

from __future__ import annotations

import calendar
from datetime import date


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def current_draw_date(today: date | None = None) -> date:
    """Draw date of the month containing ``today``."""

    today = today or date.today()
    return last_day_of_month(today.year, today.month)


def following_draw_date(draw_date: date) -> date:
    """Draw date of the month after ``draw_date``'s month."""

    if draw_date.month == 12:
        return last_day_of_month(draw_date.year + 1, 1)
    return last_day_of_month(draw_date.year, draw_date.month + 1)


def next_draw_date(today: date | None = None) -> date:
    return following_draw_date(current_draw_date(today))


def is_past_draw(draw_date: date, today: date | None = None) -> bool:
    return draw_date < (today or date.today())
