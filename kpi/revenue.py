"""
kpi/revenue.py

Billed revenue for a single calendar month.

Two bases are supported:

``mrr`` (default)
    recurring = MRR at the month's last day; one-time = full price of every
    one-time main product whose client started in the month, plus every
    one-time add-on that started in the month while its client is active at
    month end (times quantity). This is the split behind ``faturamento_real``.

``cash``
    A recurring item that starts in the month pays its full sticker price
    (an annual plan pays the whole year up front). Afterwards only
    monthly-billed recurring items pay, once per month. One-time items pay
    once, in their start month.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from kpi.mrr import index_clients, mrr_at_date
from kpi.normalizer import is_monthly, is_recurring_product, one_time_value
from kpi.temporal import is_within, month_end, month_start, was_addon_active_at, was_client_active_at
from kpi.types import Client, ClientAddon


class RevenueBasis:
    MRR = "mrr"
    CASH = "cash"


@dataclass(frozen=True)
class RevenueSplit:
    recurring: float
    one_time: float

    @property
    def total(self) -> float:
        return self.recurring + self.one_time


def month_revenue(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    month: date,
    *,
    basis: str = RevenueBasis.MRR,
    client_index: Mapping[str, Client] | None = None,
) -> RevenueSplit:
    """
    Revenue billed in the calendar month containing *month*.

    Raises ValueError for an unknown *basis*.
    """
    owners = client_index if client_index is not None else index_clients(clients)
    if basis == RevenueBasis.MRR:
        return _accrual_month(clients, addons, month, owners)
    if basis == RevenueBasis.CASH:
        return _cash_month(clients, addons, month, owners)
    raise ValueError(f"Unknown revenue basis {basis!r}. Allowed values: ['cash', 'mrr'].")


def setup_revenue_for_month(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    month: date,
    owners: Mapping[str, Client],
) -> float:
    first, last = month_start(month), month_end(month)
    total = 0.0
    for client in clients:
        if is_within(client.start_date, first, last):
            total += one_time_value(client.product)
    for addon in addons:
        owner = owners.get(addon.client_id)
        if owner is None or not was_client_active_at(owner, last):
            continue
        if is_within(addon.start_date, first, last):
            total += one_time_value(addon.product, addon.quantity)
    return total


def _accrual_month(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    month: date,
    owners: Mapping[str, Client],
) -> RevenueSplit:
    recurring = mrr_at_date(clients, addons, month_end(month), client_index=owners)
    one_time = setup_revenue_for_month(clients, addons, month, owners)
    return RevenueSplit(recurring=recurring, one_time=one_time)


def _cash_month(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    month: date,
    owners: Mapping[str, Client],
) -> RevenueSplit:
    first, last = month_start(month), month_end(month)
    recurring = 0.0
    one_time = 0.0

    for client in clients:
        product = client.product
        if product is None:
            continue
        price = float(product.price)
        if is_within(client.start_date, first, last):
            if is_recurring_product(product):
                recurring += price
            else:
                one_time += price
        elif (
            client.start_date < first
            and is_recurring_product(product)
            and is_monthly(product.billing_period)
            and was_client_active_at(client, last)
        ):
            recurring += price

    for addon in addons:
        product = addon.product
        owner = owners.get(addon.client_id)
        if product is None or owner is None or not was_client_active_at(owner, last):
            continue
        amount = float(product.price) * addon.quantity
        if is_within(addon.start_date, first, last):
            if is_recurring_product(product):
                recurring += amount
            else:
                one_time += amount
        elif (
            addon.start_date < first
            and is_recurring_product(product)
            and is_monthly(product.billing_period)
            and was_addon_active_at(addon, last)
        ):
            recurring += amount

    return RevenueSplit(recurring=recurring, one_time=one_time)
