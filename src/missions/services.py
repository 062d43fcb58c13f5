"""Mission Lifecycle Manager.

Creates missions from event templates, resolves them against the ledger
and the metrics projector, and fails the ones whose deadline passed.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import Conflict, NotFound, ValidationFailed
from core.services import create_audit_log
from ledger import services as ledger
from metrics.services import apply_impact

from .events import EventAggregator, MissionTemplate
from .events.catalog import STANDARD_TEMPLATES, pre_generated_templates
from .models import Mission

logger = logging.getLogger("simulator")

ACTION_SOLVE = "solve"
ACTION_FAIL = "fail"
VALID_ACTIONS = (ACTION_SOLVE, ACTION_FAIL)


@dataclass
class ResolutionResult:
    """Result payload for a mission resolution."""

    mission: Mission
    new_balance: Decimal
    message: str


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def has_active_duplicate(owner, template: MissionTemplate) -> bool:
    return Mission.objects.filter(
        owner=owner,
        dedup_key=template.dedup_key,
        status=Mission.Status.ACTIVE,
    ).exists()


def create_mission(owner, template: MissionTemplate, now=None) -> Mission:
    """
    Persist an ACTIVE mission from ``template``.

    The deadline is ``now + template.duration``. Raises ``Conflict`` when
    the owner already has an active mission with the same dedup key, also
    when a concurrent insert wins the race on the partial unique index.
    """
    now = now or timezone.now()
    if has_active_duplicate(owner, template):
        raise Conflict(f"An active mission '{template.title}' already exists.")

    try:
        with transaction.atomic():
            mission = Mission.objects.create(
                owner=owner,
                title=template.title[:255],
                description=template.description,
                mission_type=template.mission_type,
                status=Mission.Status.ACTIVE,
                deadline=now + template.duration,
                cost_to_solve=template.cost_to_solve,
                impact=template.impact.as_dict(),
                event_source=template.event_source.value,
                location=(template.location or "")[:100],
                source_url=template.source_url or "",
                dedup_key=template.dedup_key,
            )
            create_audit_log(
                actor=owner,
                action="MISSION_CREATED",
                entity_type="Mission",
                entity_id=mission.pk,
                after={
                    "title": mission.title,
                    "cost_to_solve": str(mission.cost_to_solve),
                    "deadline": mission.deadline.isoformat(),
                },
            )
    except IntegrityError:
        raise Conflict(f"An active mission '{template.title}' already exists.")

    logger.info(
        "Mission created for owner %s: %s (deadline=%s, source=%s)",
        owner.pk, mission.title, mission.deadline, mission.event_source,
    )
    return mission


def _create_first_available(owner, templates, limit, now) -> list[Mission]:
    created = []
    for template in templates:
        if len(created) >= limit:
            break
        try:
            created.append(create_mission(owner, template, now=now))
        except Conflict:
            logger.debug("Skipped duplicate mission template: %s", template.title)
    return created


def create_missions_from_events(
    owner,
    locations: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
    aggregator: Optional[EventAggregator] = None,
    now=None,
) -> list[Mission]:
    """Create up to ``limit`` missions from the event pool.

    The pool is backed by the standard catalogue, so templates that
    duplicate an active mission are skipped without leaving the batch short
    while other candidates remain.
    """
    if limit is None:
        limit = settings.MISSIONS_PER_GENERATION
    aggregator = aggregator or EventAggregator()
    pool = aggregator.collect(locations)
    candidates = list(pool) + [t for t in STANDARD_TEMPLATES if t not in pool]
    created = _create_first_available(owner, candidates, limit, now)
    logger.info("Generated %d mission(s) for owner %s", len(created), owner.pk)
    return created


def create_random_mission(
    owner,
    locations: Optional[Sequence[str]] = None,
    auto_generate: bool = True,
    aggregator: Optional[EventAggregator] = None,
    rng: Optional[random.Random] = None,
    now=None,
) -> Mission:
    """Create one mission picked at random.

    With ``auto_generate`` the pick comes from the event pool, otherwise
    from the standard catalogue. Raises ``Conflict`` when every candidate
    is already active.
    """
    rng = rng or random.Random()
    if auto_generate:
        aggregator = aggregator or EventAggregator(rng=rng)
        candidates = list(aggregator.collect(locations))
    else:
        candidates = list(STANDARD_TEMPLATES)
    rng.shuffle(candidates)

    created = _create_first_available(owner, candidates, 1, now)
    if not created:
        raise Conflict("Every candidate mission is already active.")
    return created[0]


def seed_time_bound_missions(owner, target: int = 10, now=None) -> list[Mission]:
    """Top the owner up towards ``target`` active missions from the pre-generated set."""
    active = Mission.objects.filter(owner=owner, status=Mission.Status.ACTIVE).count()
    if active >= target:
        return []
    wanted = max(1, target - active)
    created = _create_first_available(owner, pre_generated_templates(), wanted, now)
    logger.info("Seeded %d mission(s) for owner %s", len(created), owner.pk)
    return created


def preview_candidates(locations=None, aggregator: Optional[EventAggregator] = None) -> list[MissionTemplate]:
    """The current template pool, without creating anything."""
    aggregator = aggregator or EventAggregator()
    return aggregator.collect(locations)


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def list_missions(owner, status: Optional[str] = None):
    """The owner's missions, most recent first."""
    qs = Mission.objects.filter(owner=owner)
    if status:
        if status not in Mission.Status.values:
            raise ValidationFailed(f"Unknown mission status: {status!r}.")
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_mission(owner, mission_id, action: str, now=None) -> ResolutionResult:
    """
    Solve or fail an active mission.

    ``solve`` debits ``cost_to_solve`` from the wallet first; when funds are
    short, ``InsufficientFunds`` propagates and nothing changes. Either way
    the mission's impact is then applied (solving mitigates a crisis, it
    does not undo it) and the status becomes terminal.

    Raises:
        ValidationFailed: unknown action or missing id.
        NotFound: the owner has no such mission.
        Conflict: the mission is already completed or failed.
        InsufficientFunds: the wallet cannot cover the cost.
    """
    if action not in VALID_ACTIONS:
        raise ValidationFailed(f"Invalid action {action!r}. Use 'solve' or 'fail'.")
    if not mission_id:
        raise ValidationFailed("A mission id is required.")
    now = now or timezone.now()

    with transaction.atomic():
        try:
            mission = Mission.objects.select_for_update().get(pk=mission_id, owner=owner)
        except (Mission.DoesNotExist, ValidationError, ValueError):
            raise NotFound("Mission not found.")

        if mission.is_terminal:
            raise Conflict(f"Mission is already {mission.status}.")

        before = {"status": mission.status}
        paid = Decimal("0.00")
        if action == ACTION_SOLVE:
            if mission.cost_to_solve > 0:
                entry = ledger.debit(
                    owner,
                    mission.cost_to_solve,
                    f"Solved mission: {mission.title}",
                    {"mission_id": str(mission.pk), "mission_title": mission.title},
                )
                new_balance = entry.balance_after
                paid = mission.cost_to_solve
            else:
                new_balance = ledger.get_or_create_wallet(owner).balance
            mission.status = Mission.Status.COMPLETED
            message = "Mission completed successfully"
        else:
            new_balance = ledger.get_or_create_wallet(owner).balance
            mission.status = Mission.Status.FAILED
            message = "Mission failed"

        apply_impact(owner, mission.impact, paid_cost=paid, now=now)
        mission.resolved_at = now
        mission.save(update_fields=["status", "resolved_at", "updated_at"])

        create_audit_log(
            actor=owner,
            action="MISSION_RESOLVED",
            entity_type="Mission",
            entity_id=mission.pk,
            before=before,
            after={"status": mission.status, "paid": str(paid)},
        )

    logger.info("Mission %s %s by owner %s", mission.pk, mission.status, owner.pk)
    return ResolutionResult(mission=mission, new_balance=new_balance, message=message)


# ---------------------------------------------------------------------------
# Deadline sweep
# ---------------------------------------------------------------------------

def sweep_expired_missions(now=None) -> int:
    """
    Fail every active mission whose deadline has passed.

    Each mission is handled in its own transaction and its status is
    re-read under the row lock, so overlapping sweeps transition a mission
    only once. Returns the number of missions failed by this call.
    """
    now = now or timezone.now()
    expired_ids = list(
        Mission.objects
        .filter(status=Mission.Status.ACTIVE, deadline__lt=now)
        .values_list("pk", flat=True)
    )

    failed = 0
    for mission_id in expired_ids:
        with transaction.atomic():
            mission = (
                Mission.objects
                .select_for_update(of=("self",))
                .filter(pk=mission_id, status=Mission.Status.ACTIVE)
                .select_related("owner")
                .first()
            )
            if mission is None or not mission.is_expired(now):
                continue
            apply_impact(mission.owner, mission.impact, now=now)
            mission.status = Mission.Status.FAILED
            mission.resolved_at = now
            mission.save(update_fields=["status", "resolved_at", "updated_at"])
            create_audit_log(
                actor=None,
                action="MISSION_EXPIRED",
                entity_type="Mission",
                entity_id=mission.pk,
                before={"status": Mission.Status.ACTIVE},
                after={"status": Mission.Status.FAILED},
            )
        failed += 1

    if failed:
        logger.info("Deadline sweep failed %d mission(s)", failed)
    return failed
