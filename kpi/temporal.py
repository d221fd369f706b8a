"""
kpi/temporal.py

Activity predicates and calendar-month helpers.

Every activity check in the engine goes through :func:`was_client_active_at`
and :func:`was_addon_active_at` so that interval semantics stay identical
across MRR, churn, revenue and history calculations. An entity is active on
the half-open interval ``[start_date, end)`` where ``end`` is the churn or
cancellation date.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date

from dateutil.relativedelta import relativedelta

from kpi.types import AddonStatus, Client, ClientAddon, ClientStatus

_MONTH_ABBREVIATIONS: dict[str, tuple[str, ...]] = {
    "pt_BR": ("jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"),
    "en": ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"),
}


# ---------------------------------------------------------------------------
# Activity predicates
# ---------------------------------------------------------------------------


def was_client_active_at(client: Client, at: date) -> bool:
    """
    Return True when *client* was active at *at*.

    A churned client without a churn date falls through to the status
    check and is therefore never active.
    """
    if client.start_date > at:
        return False
    if client.status == ClientStatus.CHURNED and client.churn_date is not None:
        return client.churn_date > at
    return client.status == ClientStatus.ACTIVE


def was_addon_active_at(addon: ClientAddon, at: date) -> bool:
    """Add-on counterpart of :func:`was_client_active_at`."""
    if addon.start_date > at:
        return False
    if addon.status == AddonStatus.CANCELLED and addon.end_date is not None:
        return addon.end_date > at
    return addon.status == AddonStatus.ACTIVE


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def months_between(start: date, end: date) -> int:
    """
    Number of full calendar months from *start* to *end*.

    Negative when *end* precedes *start*; partial months are truncated
    toward zero.
    """
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def add_months(value: date, months: int) -> date:
    return value + relativedelta(months=months)


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def is_within(value: date, start: date, end: date) -> bool:
    """Inclusive interval membership. Always False for an inverted interval."""
    return start <= value <= end


def months_in_range(start: date, end: date) -> list[date]:
    """
    First day of every calendar month whose whole span lies in ``[start, end]``.

    A range that holds no whole month (including ``end < start``) yields
    an empty list.
    """
    return list(_iter_whole_months(start, end))


def _iter_whole_months(start: date, end: date) -> Iterator[date]:
    current = month_start(start)
    if current < start:
        current = add_months(current, 1)
    while month_end(current) <= end:
        yield current
        current = add_months(current, 1)


def month_key(value: date) -> str:
    """``YYYY-MM`` bucket key."""
    return f"{value.year:04d}-{value.month:02d}"


def month_label(value: date, locale: str = "pt_BR") -> str:
    """
    Short chart label such as ``"jan/24"`` (pt_BR) or ``"Jan/24"`` (en).

    Unknown locales fall back to pt_BR.
    """
    names = _MONTH_ABBREVIATIONS.get(locale, _MONTH_ABBREVIATIONS["pt_BR"])
    return f"{names[value.month - 1]}/{value.year % 100:02d}"
