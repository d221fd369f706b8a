"""
kpi/normalizer.py

Monthly value normalization and the recurring/one-time classification.

This module is the single owner of the "product may be missing" policy:

* ``is_recurring_product(None)`` is True. Records created before
  ``payment_type`` existed are recurring.
* A missing product never contributes revenue. Callers ask for a value
  through :func:`recurring_monthly_value` or :func:`one_time_value` and get
  ``0.0`` instead of branching on ``None`` themselves.

Legacy Portuguese enum values (``anual``, ``unico``) written by older
clients are accepted alongside the current ones.
"""

from __future__ import annotations

from kpi.types import BillingPeriod, PaymentType, Product

_ANNUAL_PERIODS = frozenset({BillingPeriod.ANNUAL, "anual"})
_MONTHLY_PERIODS = frozenset({BillingPeriod.MONTHLY, "mensal"})
_ONE_TIME_TYPES = frozenset({PaymentType.ONE_TIME, "one-time", "unico"})


def is_recurring_product(product: Product | None) -> bool:
    """True unless the product is explicitly one-time."""
    if product is None or product.payment_type is None:
        return True
    return product.payment_type not in _ONE_TIME_TYPES


def is_annual(billing_period: str) -> bool:
    return billing_period in _ANNUAL_PERIODS


def is_monthly(billing_period: str) -> bool:
    return billing_period in _MONTHLY_PERIODS


def monthly_price(price: float, billing_period: str) -> float:
    """Annual prices are divided by 12; anything else is already monthly."""
    if is_annual(billing_period):
        return price / 12
    return price


def recurring_monthly_value(product: Product | None, quantity: int = 1) -> float:
    """
    Monthly-equivalent amount of a recurring product times *quantity*.

    Returns 0.0 for a missing or one-time product.
    """
    if product is None or not is_recurring_product(product):
        return 0.0
    return monthly_price(float(product.price), product.billing_period) * quantity


def one_time_value(product: Product | None, quantity: int = 1) -> float:
    """
    Full price of a one-time product times *quantity*, billed once.

    Returns 0.0 for a missing or recurring product.
    """
    if product is None or is_recurring_product(product):
        return 0.0
    return float(product.price) * quantity
