"""Festival source: seasonal slowdowns from a fixed annual calendar."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from django.conf import settings
from django.utils import timezone

from .types import EventSource, MissionTemplate, make_template


@dataclass(frozen=True)
class Festival:
    name: str
    month: int
    day: int
    location: str
    impact_note: str


CALENDAR: tuple[Festival, ...] = (
    Festival("Diwali", 11, 20, "All India", "Major festival - 3-5 day delay expected"),
    Festival("Dussehra", 10, 15, "All India", "Festival period - 2-3 day delay"),
    Festival("Holi", 3, 25, "North India", "Festival - 1-2 day delay"),
    Festival("Eid", 4, 10, "All India", "Religious holiday - 1-2 day delay"),
    Festival("Christmas", 12, 25, "All India", "Holiday - 1 day delay"),
    Festival("New Year", 1, 1, "All India", "Holiday - 1 day delay"),
)

FESTIVAL_HOURS = 72
FESTIVAL_COST = 400
FESTIVAL_IMPACT = {"sales": -15, "inventory": -25, "customerSatisfaction": -10}


@dataclass(frozen=True)
class UpcomingFestival:
    festival: Festival
    date: date
    days_until: int


def _local_date(now: datetime) -> date:
    if timezone.is_aware(now):
        return timezone.localtime(now).date()
    return now.date()


def next_occurrence(festival: Festival, today: date) -> date:
    """This year's date, or next year's once it has passed."""
    occurrence = date(today.year, festival.month, festival.day)
    if occurrence < today:
        occurrence = date(today.year + 1, festival.month, festival.day)
    return occurrence


def upcoming_festivals(now: datetime, lookahead_days: int, calendar=CALENDAR) -> list[UpcomingFestival]:
    """Festivals falling between today and ``lookahead_days`` from now, soonest first."""
    today = _local_date(now)
    upcoming = []
    for festival in calendar:
        occurrence = next_occurrence(festival, today)
        days_until = (occurrence - today).days
        if 0 <= days_until <= lookahead_days:
            upcoming.append(UpcomingFestival(festival, occurrence, days_until))
    return sorted(upcoming, key=lambda item: item.date)


def template_from_festival(item: UpcomingFestival) -> MissionTemplate:
    festival = item.festival
    return make_template(
        f"{festival.name} Festival - Supply Chain Impact",
        f"{festival.name} is approaching ({item.days_until} days away) in {festival.location}. "
        f"{festival.impact_note}. Plan ahead for delays.",
        "festival",
        FESTIVAL_HOURS,
        FESTIVAL_COST,
        FESTIVAL_IMPACT,
        event_source=EventSource.FESTIVAL,
        location=festival.location,
    )


class FestivalSource:
    name = "festivals"

    def __init__(self, lookahead_days: Optional[int] = None):
        if lookahead_days is None:
            lookahead_days = settings.FESTIVAL_LOOKAHEAD_DAYS
        self.lookahead_days = lookahead_days

    def collect(self, locations: Sequence[str], now=None, rng=None) -> list[MissionTemplate]:
        now = now or timezone.now()
        return [
            template_from_festival(item)
            for item in upcoming_festivals(now, self.lookahead_days)
        ]
