"""Models for the missions app."""
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.models import TimeStampedModel

from .events.types import EventSource


class Mission(TimeStampedModel):
    """A time-bound crisis the owner has to solve or let fail.

    ``cost_to_solve`` and ``impact`` are snapshotted from the template at
    creation and never change afterwards. Status moves once, from ACTIVE
    to COMPLETED or FAILED.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    class Source(models.TextChoices):
        NEWS = EventSource.NEWS.value, "News"
        FESTIVAL = EventSource.FESTIVAL.value, "Festival"
        LABOUR = EventSource.LABOUR.value, "Labour"
        CURFEW = EventSource.CURFEW.value, "Curfew"
        SYSTEM = EventSource.SYSTEM.value, "System"

    TERMINAL_STATUSES = frozenset({Status.COMPLETED, Status.FAILED})

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="missions",
        verbose_name="owner",
    )
    title = models.CharField("title", max_length=255)
    description = models.TextField("description", blank=True, default="")
    mission_type = models.CharField("type", max_length=50, db_index=True)
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    deadline = models.DateTimeField("deadline", db_index=True)
    cost_to_solve = models.DecimalField(
        "cost to solve",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    impact = models.JSONField("impact on business", default=dict, blank=True)
    event_source = models.CharField(
        "event source",
        max_length=20,
        choices=Source.choices,
        default=Source.SYSTEM,
    )
    location = models.CharField("affected location", max_length=100, blank=True, default="")
    source_url = models.URLField("source URL", max_length=500, blank=True, default="")
    dedup_key = models.CharField("dedup key", max_length=64, db_index=True)
    resolved_at = models.DateTimeField("resolved at", null=True, blank=True)

    class Meta:
        verbose_name = "mission"
        verbose_name_plural = "missions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "status"], name="mission_owner_status_idx"),
            models.Index(fields=["status", "deadline"], name="mission_status_deadline_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "dedup_key"],
                condition=Q(status="active"),
                name="uniq_active_mission_per_owner",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def is_expired(self, now=None) -> bool:
        """An active mission expires once its deadline is strictly in the past."""
        now = now or timezone.now()
        return self.status == self.Status.ACTIVE and self.deadline < now
