"""Impact vectors: what a mission does to the business KPIs.

A mission stores its impact as a sparse ``{kpi: percentage}`` map. On the
way in, the map is split into components of a closed union:

* ``FinancialImpact`` for KPIs that name a money aggregate
  (``sales`` for revenue, ``expenses`` for expenses);
* ``InformationalImpact`` for every other KPI (``customerSatisfaction``,
  ``inventory``, ``reputation``, ``refunds``, ``profitMargin`` ...).

Neither kind is ever converted into money. The percentages are reported per
KPI; money aggregates only move by what was actually paid.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Union

from core.exceptions import ValidationFailed


class FinancialDimension(str, enum.Enum):
    """Money aggregates of ``BusinessMetrics`` a KPI refers to."""
    REVENUE = "revenue"
    EXPENSES = "expenses"


FINANCIAL_KPIS = {
    "sales": FinancialDimension.REVENUE,
    "expenses": FinancialDimension.EXPENSES,
}


@dataclass(frozen=True)
class FinancialImpact:
    kpi: str
    dimension: FinancialDimension
    pct: Decimal


@dataclass(frozen=True)
class InformationalImpact:
    kpi: str
    pct: Decimal


ImpactComponent = Union[FinancialImpact, InformationalImpact]


def _to_pct(kpi, value) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise ValidationFailed(f"Impact for {kpi!r} must be a number, got {value!r}.")
    try:
        pct = Decimal(str(value))
    except InvalidOperation:
        raise ValidationFailed(f"Impact for {kpi!r} must be a number, got {value!r}.")
    if not pct.is_finite():
        raise ValidationFailed(f"Impact for {kpi!r} must be finite.")
    return pct


def _to_json_number(pct: Decimal):
    return int(pct) if pct == pct.to_integral_value() else float(pct)


@dataclass(frozen=True)
class ImpactVector:
    """An ordered, immutable collection of impact components."""

    components: tuple[ImpactComponent, ...] = ()

    @classmethod
    def parse(cls, data: Mapping | None) -> "ImpactVector":
        """Build a vector from a ``{kpi: percentage}`` map.

        Raises ``ValidationFailed`` for a non-mapping or a non-numeric value.
        """
        if data is None:
            return cls()
        if isinstance(data, ImpactVector):
            return data
        if not isinstance(data, Mapping):
            raise ValidationFailed("An impact must be a mapping of KPI to percentage.")

        components: list[ImpactComponent] = []
        for kpi, value in data.items():
            pct = _to_pct(kpi, value)
            dimension = FINANCIAL_KPIS.get(kpi)
            if dimension is not None:
                components.append(FinancialImpact(kpi=kpi, dimension=dimension, pct=pct))
            else:
                components.append(InformationalImpact(kpi=str(kpi), pct=pct))
        return cls(components=tuple(components))

    @classmethod
    def of(cls, **kpis) -> "ImpactVector":
        return cls.parse(kpis)

    @property
    def financial(self) -> tuple[FinancialImpact, ...]:
        return tuple(c for c in self.components if isinstance(c, FinancialImpact))

    @property
    def informational(self) -> tuple[InformationalImpact, ...]:
        return tuple(c for c in self.components if isinstance(c, InformationalImpact))

    def as_dict(self) -> dict:
        """JSON-ready ``{kpi: number}`` map, the stored form."""
        return {c.kpi: _to_json_number(c.pct) for c in self.components}

    def __bool__(self):
        return bool(self.components)

    def __len__(self):
        return len(self.components)
