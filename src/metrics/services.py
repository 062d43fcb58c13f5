"""Business Metrics Projector: folds mission impacts into the owner's KPIs."""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .impact import FinancialImpact, ImpactVector, InformationalImpact
from .models import BusinessMetrics

logger = logging.getLogger("simulator")


def get_business_metrics(owner) -> BusinessMetrics:
    metrics, _created = BusinessMetrics.objects.get_or_create(owner=owner)
    return metrics


def _accumulate(bucket: dict, kpi: str, pct: Decimal) -> None:
    total = Decimal(str(bucket.get(kpi, 0))) + pct
    bucket[kpi] = int(total) if total == total.to_integral_value() else float(total)


@transaction.atomic
def apply_impact(owner, impact, paid_cost=Decimal("0.00"), now=None) -> BusinessMetrics:
    """
    Apply an impact vector to the owner's metrics row.

    ``paid_cost`` is the only thing that moves money: it is added to
    expenses, then profit and cash flow are recomputed as revenue minus
    expenses. Percentages are accumulated per KPI, money KPIs in
    ``financial_pressure`` and the rest in ``informational``.
    """
    vector = ImpactVector.parse(impact)
    paid_cost = Decimal(str(paid_cost or 0))
    now = now or timezone.now()

    get_business_metrics(owner)
    metrics = BusinessMetrics.objects.select_for_update().get(owner=owner)

    if paid_cost:
        metrics.expenses += paid_cost
    metrics.profit = metrics.revenue - metrics.expenses
    metrics.cash_flow = metrics.revenue - metrics.expenses

    pressure = dict(metrics.financial_pressure or {})
    informational = dict(metrics.informational or {})
    for component in vector.components:
        if isinstance(component, FinancialImpact):
            _accumulate(pressure, component.kpi, component.pct)
        elif isinstance(component, InformationalImpact):
            _accumulate(informational, component.kpi, component.pct)
        else:
            raise TypeError(f"Unknown impact component {component!r}")
    metrics.financial_pressure = pressure
    metrics.informational = informational
    metrics.last_applied_at = now
    metrics.save()

    logger.info(
        "Impact %s applied for owner %s (paid=%s, profit=%s)",
        vector.as_dict(), owner.pk, paid_cost, metrics.profit,
    )
    return metrics
