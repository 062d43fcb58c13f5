"""Value types passed between the event sources and the mission lifecycle."""
from __future__ import annotations

import enum
import hashlib
import re
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from metrics.impact import ImpactVector

_WHITESPACE = re.compile(r"\s+")


class EventSource(str, enum.Enum):
    """Where a crisis comes from."""
    NEWS = "news"
    FESTIVAL = "festival"
    LABOUR = "labour"
    CURFEW = "curfew"
    SYSTEM = "system"


class Relevance(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ImpactType(str, enum.Enum):
    """Operational category of a news article."""
    CURFEW = "curfew"
    FESTIVAL = "festival"
    LABOUR = "labour"
    SHIPPING = "shipping"
    SUPPLY_CHAIN = "supply_chain"
    DISASTER = "disaster"
    OTHER = "other"


def compute_dedup_key(title: str, mission_type: str) -> str:
    """SHA-256 of the case-folded, whitespace-collapsed title and type."""
    normalized_title = _WHITESPACE.sub(" ", title or "").strip().casefold()
    normalized_type = (mission_type or "").strip().casefold()
    payload = f"{normalized_title}\x1f{normalized_type}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


@dataclass(frozen=True)
class MissionTemplate:
    """A candidate crisis. Never persisted; a Mission snapshots it."""

    title: str
    description: str
    mission_type: str
    duration: timedelta
    cost_to_solve: Decimal
    impact: ImpactVector = field(default_factory=ImpactVector)
    event_source: EventSource = EventSource.SYSTEM
    location: Optional[str] = None
    source_url: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return compute_dedup_key(self.title, self.mission_type)

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "mission_type": self.mission_type,
            "duration_hours": self.duration_hours,
            "cost_to_solve": str(self.cost_to_solve),
            "impact": self.impact.as_dict(),
            "event_source": self.event_source.value,
            "location": self.location,
            "source_url": self.source_url,
        }


def make_template(
    title,
    description,
    mission_type,
    hours,
    cost,
    impact,
    event_source=EventSource.SYSTEM,
    location=None,
    source_url=None,
) -> MissionTemplate:
    """Shorthand used by the sources to build templates from literals."""
    return MissionTemplate(
        title=title,
        description=description,
        mission_type=mission_type,
        duration=timedelta(hours=hours),
        cost_to_solve=Decimal(str(cost)),
        impact=ImpactVector.parse(impact),
        event_source=EventSource(event_source),
        location=location,
        source_url=source_url,
    )


@dataclass(frozen=True)
class NewsArticle:
    """A provider-neutral news item."""

    title: str
    description: str
    url: str
    published_at: str
    source: str

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"
