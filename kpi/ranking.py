"""
kpi/ranking.py

Per-client realized lifetime value for the "top clients" ranking.

Realized LTV differs from the estimated LTV in :mod:`kpi.saas`: it uses
each product's and add-on's actual active window instead of a snapshot.

Main product
    recurring -> monthly value * tenure months
    one-time  -> full price once
Add-on
    recurring -> monthly value * quantity * its own active months
    one-time  -> full price * quantity once

tenure months  = max(1, months_between(start_date, effective_end) + 1)
add-on months  = max(1, months_between(addon.start_date, addon.end_date or effective_end))
effective_end  = churn_date, or *as_of* when the client has none
average ticket = realized LTV / tenure months
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from kpi.normalizer import one_time_value, recurring_monthly_value
from kpi.temporal import months_between
from kpi.types import AddonStatus, Client, ClientAddon, ClientStatus


class RankingFilter:
    ALL = "all"
    ACTIVE = "active"
    CHURNED = "churned"


class RankingSort:
    LTV = "ltv"
    TENURE = "tenure"


@dataclass(frozen=True)
class RankedClient:
    client_id: str
    name: str
    status: str
    tenure_months: int
    ltv: float
    average_ticket: float
    monthly_value: float


def effective_end(client: Client, as_of: date) -> date:
    return client.churn_date if client.churn_date is not None else as_of


def tenure_months(client: Client, as_of: date) -> int:
    """The activation month counts as month 1."""
    return max(1, months_between(client.start_date, effective_end(client, as_of)) + 1)


def addon_active_months(addon: ClientAddon, client_end: date) -> int:
    addon_end = addon.end_date if addon.end_date is not None else client_end
    return max(1, months_between(addon.start_date, addon_end))


def realized_ltv(client: Client, addons: Iterable[ClientAddon], as_of: date) -> float:
    client_end = effective_end(client, as_of)
    total = 0.0

    if client.product is not None:
        total += recurring_monthly_value(client.product) * tenure_months(client, as_of)
        total += one_time_value(client.product)

    for addon in addons:
        if addon.product is None:
            continue
        months = addon_active_months(addon, client_end)
        total += recurring_monthly_value(addon.product, addon.quantity) * months
        total += one_time_value(addon.product, addon.quantity)

    return total


def current_monthly_value(client: Client, addons: Iterable[ClientAddon]) -> float:
    """Monthly value of the main product plus currently active recurring add-ons."""
    value = recurring_monthly_value(client.product)
    for addon in addons:
        if addon.status == AddonStatus.ACTIVE:
            value += recurring_monthly_value(addon.product, addon.quantity)
    return value


def rank_clients_by_ltv(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon] = (),
    *,
    status: str = RankingFilter.ALL,
    sort_by: str = RankingSort.LTV,
    as_of: date | None = None,
) -> list[RankedClient]:
    """
    Rank clients by realized LTV or tenure, descending.

    Raises ValueError for an unknown *status* filter or *sort_by* key.
    """
    if status not in (RankingFilter.ALL, RankingFilter.ACTIVE, RankingFilter.CHURNED):
        raise ValueError(f"Unknown ranking filter {status!r}.")
    if sort_by not in (RankingSort.LTV, RankingSort.TENURE):
        raise ValueError(f"Unknown ranking sort key {sort_by!r}.")

    as_of = as_of or date.today()
    addons_by_client: dict[str, list[ClientAddon]] = defaultdict(list)
    for addon in addons:
        addons_by_client[addon.client_id].append(addon)

    ranked: list[RankedClient] = []
    for client in clients:
        if status == RankingFilter.ACTIVE and client.status != ClientStatus.ACTIVE:
            continue
        if status == RankingFilter.CHURNED and client.status != ClientStatus.CHURNED:
            continue
        own_addons = addons_by_client.get(client.id, [])
        tenure = tenure_months(client, as_of)
        ltv = realized_ltv(client, own_addons, as_of)
        ranked.append(
            RankedClient(
                client_id=client.id,
                name=client.name,
                status=client.status,
                tenure_months=tenure,
                ltv=ltv,
                average_ticket=ltv / tenure,
                monthly_value=current_monthly_value(client, own_addons),
            )
        )

    if sort_by == RankingSort.LTV:
        ranked.sort(key=lambda r: r.ltv, reverse=True)
    else:
        ranked.sort(key=lambda r: r.tenure_months, reverse=True)
    return ranked
