import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="BusinessMetrics",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("revenue", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14, verbose_name="revenue")),
                ("expenses", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14, verbose_name="expenses")),
                ("profit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14, verbose_name="profit")),
                ("cash_flow", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14, verbose_name="cash flow")),
                (
                    "financial_pressure",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Accumulated percentage per money KPI (sales, expenses). Reported only.",
                        verbose_name="financial KPI pressure",
                    ),
                ),
                (
                    "informational",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Accumulated percentage per non-financial KPI.",
                        verbose_name="informational KPIs",
                    ),
                ),
                ("last_applied_at", models.DateTimeField(blank=True, null=True, verbose_name="last impact applied at")),
                (
                    "owner",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="business_metrics",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="owner",
                    ),
                ),
            ],
            options={
                "verbose_name": "business metrics",
                "verbose_name_plural": "business metrics",
            },
        ),
    ]
