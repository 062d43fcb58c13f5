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
            name="Mission",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("title", models.CharField(max_length=255, verbose_name="title")),
                ("description", models.TextField(blank=True, default="", verbose_name="description")),
                ("mission_type", models.CharField(db_index=True, max_length=50, verbose_name="type")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("completed", "Completed"), ("failed", "Failed")],
                        db_index=True,
                        default="active",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("deadline", models.DateTimeField(db_index=True, verbose_name="deadline")),
                (
                    "cost_to_solve",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14, verbose_name="cost to solve"),
                ),
                ("impact", models.JSONField(blank=True, default=dict, verbose_name="impact on business")),
                (
                    "event_source",
                    models.CharField(
                        choices=[
                            ("news", "News"),
                            ("festival", "Festival"),
                            ("labour", "Labour"),
                            ("curfew", "Curfew"),
                            ("system", "System"),
                        ],
                        default="system",
                        max_length=20,
                        verbose_name="event source",
                    ),
                ),
                ("location", models.CharField(blank=True, default="", max_length=100, verbose_name="affected location")),
                ("source_url", models.URLField(blank=True, default="", max_length=500, verbose_name="source URL")),
                ("dedup_key", models.CharField(db_index=True, max_length=64, verbose_name="dedup key")),
                ("resolved_at", models.DateTimeField(blank=True, null=True, verbose_name="resolved at")),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="missions",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="owner",
                    ),
                ),
            ],
            options={
                "verbose_name": "mission",
                "verbose_name_plural": "missions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["owner", "status"], name="mission_owner_status_idx"),
                    models.Index(fields=["status", "deadline"], name="mission_status_deadline_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("owner", "dedup_key"),
                        name="uniq_active_mission_per_owner",
                    ),
                ],
            },
        ),
    ]
