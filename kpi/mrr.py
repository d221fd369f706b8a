"""
kpi/mrr.py

Point-in-time Monthly Recurring Revenue.

MRR at date d = sum over clients active at d of the monthly value of their
recurring main product, plus sum over add-ons active at d whose owning
client is also active at d of ``monthly value * quantity``. One-time
products never contribute.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from kpi.normalizer import recurring_monthly_value
from kpi.temporal import was_addon_active_at, was_client_active_at
from kpi.types import Client, ClientAddon


def index_clients(clients: Iterable[Client]) -> dict[str, Client]:
    """Map client id to client; the first occurrence of an id wins."""
    index: dict[str, Client] = {}
    for client in clients:
        index.setdefault(client.id, client)
    return index


def client_mrr_contribution(client: Client, at: date) -> float:
    if not was_client_active_at(client, at):
        return 0.0
    return recurring_monthly_value(client.product)


def addon_mrr_contribution(addon: ClientAddon, owner: Client | None, at: date) -> float:
    if owner is None or not was_client_active_at(owner, at):
        return 0.0
    if not was_addon_active_at(addon, at):
        return 0.0
    return recurring_monthly_value(addon.product, addon.quantity)


def mrr_at_date(
    clients: Sequence[Client],
    addons: Sequence[ClientAddon],
    at: date,
    *,
    client_index: Mapping[str, Client] | None = None,
) -> float:
    """
    Total MRR at *at*.

    ``client_index`` may be passed by callers that evaluate many dates
    over the same population.
    """
    owners = client_index if client_index is not None else index_clients(clients)
    main = sum((client_mrr_contribution(client, at) for client in clients), 0.0)
    extra = sum(
        (addon_mrr_contribution(addon, owners.get(addon.client_id), at) for addon in addons),
        0.0,
    )
    return main + extra
