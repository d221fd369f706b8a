"""
kpi/types.py

Read-only record types consumed by the metrics engine.

The engine never mutates these records. Repositories build them from
ORM rows (see ``db/repositories/snapshot_repository.py``) and tests build
them directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


class BillingPeriod:
    MONTHLY = "monthly"
    ANNUAL = "annual"


class PaymentType:
    RECURRING = "recurring"
    ONE_TIME = "one_time"


class ClientStatus:
    ACTIVE = "active"
    CHURNED = "churned"


class AddonStatus:
    ACTIVE = "active"
    CANCELLED = "cancelled"


class TransactionType:
    EXPENSE = "expense"
    REVENUE = "revenue"
    TRANSFER = "transfer"


class TransactionCategory:
    # expenses
    MARKETING = "marketing"
    SALES = "sales"
    INFRASTRUCTURE = "infrastructure"
    TOOLS = "tools"
    PAYROLL = "payroll"
    TAXES = "taxes"
    ADMINISTRATIVE = "administrative"
    OTHER = "other"
    # revenue
    SUBSCRIPTION = "subscription"
    SERVICE = "service"
    CONSULTING = "consulting"
    OTHER_REVENUE = "other_revenue"


@dataclass(frozen=True)
class Product:
    """
    A sellable plan.

    ``price`` is the full-period price: the monthly price for monthly
    billing, the full annual price for annual billing. ``payment_type`` is
    ``None`` for records that predate the field.
    """

    id: str
    price: float
    billing_period: str = BillingPeriod.MONTHLY
    payment_type: str | None = PaymentType.RECURRING
    name: str = ""


@dataclass(frozen=True)
class Client:
    """
    A customer subscription with an optional main product.

    Active on the half-open interval ``[start_date, churn_date)``.
    """

    id: str
    start_date: date
    status: str = ClientStatus.ACTIVE
    churn_date: date | None = None
    product: Product | None = None
    name: str = ""


@dataclass(frozen=True)
class ClientAddon:
    """
    An additional product attached to a client with its own lifecycle.
    """

    id: str
    client_id: str
    start_date: date
    product: Product | None = None
    quantity: int = 1
    status: str = AddonStatus.ACTIVE
    end_date: date | None = None


@dataclass(frozen=True)
class Transaction:
    """
    Ledger entry. ``amount`` is signed (negative = expense); ``type``
    disambiguates when present.
    """

    id: str
    date: date
    amount: float
    type: str | None = None
    category: str = TransactionCategory.OTHER
    is_cac: bool = False
    description: str = ""


@dataclass(frozen=True)
class LegacyExpense:
    """Monthly marketing/sales spend row kept as a CAC fallback source."""

    id: str
    month_year: date
    marketing_spend: float = 0.0
    sales_spend: float = 0.0


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` period."""

    start: date
    end: date


@dataclass(frozen=True)
class BillingSnapshot:
    """
    Consistent read of the four record collections for one computation.
    """

    clients: tuple[Client, ...] = field(default_factory=tuple)
    addons: tuple[ClientAddon, ...] = field(default_factory=tuple)
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    expenses: tuple[LegacyExpense, ...] = field(default_factory=tuple)
