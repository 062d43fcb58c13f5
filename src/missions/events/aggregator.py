"""Event Aggregator: merges every source into one candidate pool."""
from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence

from django.conf import settings
from django.utils import timezone

from .festivals import FestivalSource
from .news import NewsSource
from .synthetic import SyntheticSource, pick_standard_template
from .types import MissionTemplate

logger = logging.getLogger("simulator")


def _dedupe(templates: Sequence[MissionTemplate]) -> list[MissionTemplate]:
    seen = set()
    unique = []
    for template in templates:
        if template.dedup_key in seen:
            continue
        seen.add(template.dedup_key)
        unique.append(template)
    return unique


class EventAggregator:
    """
    Collect mission templates from news, the festival calendar and the
    synthetic generator.

    A failing source is logged and contributes nothing; ``collect`` itself
    never raises on a source failure. Each source is deduplicated on its
    own; the merged pool is not, duplicates are filtered when missions are
    created. When every source comes back empty, one standard template is
    drawn so the pool is never empty.

    ``clock`` and ``rng`` are injectable so generation can be replayed.
    """

    def __init__(
        self,
        sources: Optional[Sequence] = None,
        clock: Optional[Callable] = None,
        rng: Optional[random.Random] = None,
    ):
        if sources is None:
            sources = [NewsSource(), FestivalSource(), SyntheticSource()]
        self.sources = list(sources)
        self.clock = clock or timezone.now
        self.rng = rng or random.Random()

    def collect(self, locations: Optional[Sequence[str]] = None) -> list[MissionTemplate]:
        locations = list(locations or settings.MISSION_DEFAULT_LOCATIONS)
        now = self.clock()
        pool: list[MissionTemplate] = []

        for source in self.sources:
            name = getattr(source, "name", source.__class__.__name__)
            try:
                templates = source.collect(locations, now=now, rng=self.rng)
            except Exception:
                logger.warning("Event source %s failed", name, exc_info=True)
                continue
            templates = _dedupe(templates)
            logger.debug("Event source %s produced %d template(s)", name, len(templates))
            pool.extend(templates)

        if not pool:
            pool.append(pick_standard_template(self.rng))
        return pool
