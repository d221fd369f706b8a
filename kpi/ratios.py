"""
kpi/ratios.py

Ratio metrics that may be undefined.

LTV/CAC and the Quick Ratio are computed as a tagged :class:`RatioResult`
and serialized to the numeric sentinels the dashboard renders:

    -1  -> "N/A"  (not applicable)
    99  -> "∞"    (infinite growth)
"""

from __future__ import annotations

from dataclasses import dataclass

NOT_APPLICABLE_SENTINEL = -1.0
INFINITE_SENTINEL = 99.0


class RatioKind:
    VALUE = "value"
    NOT_APPLICABLE = "not_applicable"
    INFINITE = "infinite"


@dataclass(frozen=True)
class RatioResult:
    """
    A ratio that is either a finite value, not applicable, or infinite.

    ``value`` is only populated for ``RatioKind.VALUE``.
    """

    kind: str
    value: float | None = None

    @classmethod
    def of(cls, value: float) -> RatioResult:
        return cls(kind=RatioKind.VALUE, value=value)

    @classmethod
    def not_applicable(cls) -> RatioResult:
        return cls(kind=RatioKind.NOT_APPLICABLE)

    @classmethod
    def infinite(cls) -> RatioResult:
        return cls(kind=RatioKind.INFINITE)

    @property
    def is_value(self) -> bool:
        return self.kind == RatioKind.VALUE

    def to_wire(self) -> float:
        """Serialize to the -1 / 99 / value sentinel form."""
        if self.kind == RatioKind.NOT_APPLICABLE:
            return NOT_APPLICABLE_SENTINEL
        if self.kind == RatioKind.INFINITE:
            return INFINITE_SENTINEL
        return float(self.value or 0.0)


def ltv_cac_ratio(ltv: float, cac: float) -> RatioResult:
    """
    LTV / CAC.

    Not applicable when CAC is zero (no acquisition spend recorded).
    """
    if cac > 0:
        return RatioResult.of(ltv / cac)
    return RatioResult.not_applicable()


def quick_ratio(new_mrr: float, churned_mrr: float) -> RatioResult:
    """
    New MRR / churned MRR.

    Infinite when there is new MRR and nothing churned; not applicable
    when neither moved.
    """
    if churned_mrr > 0:
        return RatioResult.of(new_mrr / churned_mrr)
    if new_mrr > 0:
        return RatioResult.infinite()
    return RatioResult.not_applicable()
