"""Models for the metrics app."""
from decimal import Decimal

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class BusinessMetrics(TimeStampedModel):
    """Running financial picture of one owner's business."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="business_metrics",
        verbose_name="owner",
    )
    revenue = models.DecimalField("revenue", max_digits=14, decimal_places=2, default=Decimal("0.00"))
    expenses = models.DecimalField("expenses", max_digits=14, decimal_places=2, default=Decimal("0.00"))
    profit = models.DecimalField("profit", max_digits=14, decimal_places=2, default=Decimal("0.00"))
    cash_flow = models.DecimalField("cash flow", max_digits=14, decimal_places=2, default=Decimal("0.00"))
    financial_pressure = models.JSONField(
        "financial KPI pressure",
        default=dict,
        blank=True,
        help_text="Accumulated percentage per money KPI (sales, expenses). Reported only.",
    )
    informational = models.JSONField(
        "informational KPIs",
        default=dict,
        blank=True,
        help_text="Accumulated percentage per non-financial KPI.",
    )
    last_applied_at = models.DateTimeField("last impact applied at", null=True, blank=True)

    class Meta:
        verbose_name = "business metrics"
        verbose_name_plural = "business metrics"

    def __str__(self):
        return f"Metrics of {self.owner} (profit: {self.profit})"
