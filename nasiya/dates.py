"""Month-bucket date arithmetic for installment schedules."""

from calendar import monthrange
from datetime import date, datetime

SECONDS_PER_DAY = 86400


def add_months(d: date, months: int, anchor_day: int | None = None) -> date:
    """Shift ``d`` by ``months`` calendar months.

    The day of the result is ``anchor_day`` (or ``d.day``), clamped to the
    last day of the target month, so a contract anchored on the 31st falls
    due on Feb 28/29 and returns to the 31st in March.
    """
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = anchor_day if anchor_day else d.day
    last_day = monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(max(day, 1), last_day))


def advance_due_date(
    next_payment_date: date,
    previous_payment_date: date | None = None,
    anchor_day: int | None = None,
) -> date:
    """Due date of the month after the one just paid.

    While a postponement is outstanding the paid month is the one that was
    deferred (``previous_payment_date``), so the schedule resumes from it
    rather than from the postponed date.
    """
    base = previous_payment_date or next_payment_date
    return add_months(base, 1, anchor_day or base.day)


def month_key(d: date) -> str:
    """Target-period identifier, ``YYYY-MM``."""
    return f"{d.year:04d}-{d.month:02d}"


def to_date(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def overdue_days(due: date, now: datetime) -> int:
    """Whole days elapsed since ``due`` (midnight), never negative."""
    due_start = datetime(due.year, due.month, due.day, tzinfo=now.tzinfo)
    elapsed = (now - due_start).total_seconds()
    if elapsed <= 0:
        return 0
    return int(elapsed // SECONDS_PER_DAY)
