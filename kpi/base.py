"""
kpi/base.py

Abstract base class for all KPI formula implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from kpi.types import BillingSnapshot, DateRange

ResultT = TypeVar("ResultT")


class BaseKPIFormula(ABC, Generic[ResultT]):
    """
    Contract for KPI formula implementations.

    Subclasses receive a read-only :class:`~kpi.types.BillingSnapshot` and
    the inclusive period to evaluate, and return a typed result object.

    No I/O, no logging, and no side effects are permitted inside
    :meth:`calculate`.
    """

    @abstractmethod
    def calculate(self, snapshot: BillingSnapshot, period: DateRange) -> ResultT:
        """
        Compute KPI metrics for *period* from *snapshot*.

        Parameters
        ----------
        snapshot:
            Client, add-on, transaction and legacy-expense records fetched
            for this computation.
        period:
            Inclusive ``[start, end]`` measurement window.

        Returns
        -------
        ResultT
            Formula-specific frozen result dataclass.
        """
