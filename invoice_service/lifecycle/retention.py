"""Retention dates attached to status transitions.

``next_status_change_date`` is pure: the same (status, date) pair always
yields the same result.
"""

import calendar
from datetime import date

from invoice_service.documents.models import DocumentStatus


def end_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(value: date, months: int) -> tuple[int, int]:
    """Return (year, month) ``months`` after ``value``. Days are irrelevant here."""
    total = value.year * 12 + (value.month - 1) + months
    return total // 12, total % 12 + 1


def next_status_change_date(status: DocumentStatus, changed: date) -> date:
    """When the record is due for its next retention action.

    open:    three years on, moved to December 31 of that year.
    done:    one year on, moved to the last day of that month.
    trashed: three months on, moved to the last day of that month.
    """
    if status is DocumentStatus.OPEN:
        return date(changed.year + 3, 12, 31)
    if status is DocumentStatus.DONE:
        return end_of_month(*add_months(changed, 12))
    if status is DocumentStatus.TRASHED:
        return end_of_month(*add_months(changed, 3))
    raise ValueError(f"Unhandled status {status}")
