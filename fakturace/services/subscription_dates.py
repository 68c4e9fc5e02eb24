"""Billing period arithmetic for user subscriptions."""

import calendar as cal
from datetime import date, datetime, timedelta

from fakturace.models.subscription import BillingCycle


def _add_months(dt: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to last day of month."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    max_day = cal.monthrange(year, month)[1]
    day = min(dt.day, max_day)
    return dt.replace(year=year, month=month, day=day)


def add_cycle(dt: datetime, cycle: BillingCycle | str) -> datetime:
    """Add one billing cycle (a month or a year) to ``dt``."""
    value = BillingCycle(cycle)
    if value is BillingCycle.MONTHLY:
        return _add_months(dt, 1)
    return _add_months(dt, 12)


def period_for(start: datetime, cycle: BillingCycle | str) -> tuple[datetime, datetime]:
    """Period assigned when a plan is (re)assigned: starts now, lasts one cycle."""
    return start, add_cycle(start, cycle)


def extend_period(
    current_end: datetime | None, cycle: BillingCycle | str, now: datetime
) -> datetime:
    """Push the period end by one cycle.

    Extends from the existing end, not from ``now``; a missing end falls back
    to ``now``.
    """
    return add_cycle(current_end or now, cycle)


def due_date_for(issue_date: date, days: int) -> date:
    return issue_date + timedelta(days=days)
