"""Synthetic source: random labour shortages and local restrictions."""
from __future__ import annotations

import random
from typing import Optional, Sequence

from django.conf import settings

from .catalog import STANDARD_TEMPLATES
from .types import EventSource, MissionTemplate, make_template


def labour_shortage(location: str) -> MissionTemplate:
    return make_template(
        f"Labour Unavailability in {location}",
        f"Workers in {location} are on strike/unavailable. Manufacturing and shipping "
        f"operations are delayed.",
        "labour",
        48,
        700,
        {"sales": -20, "inventory": -30, "expenses": 12},
        event_source=EventSource.LABOUR,
        location=location,
    )


def local_restriction(location: str) -> MissionTemplate:
    return make_template(
        f"Restrictions Imposed in {location}",
        f"Local authorities have imposed restrictions in {location}. Operations are limited.",
        "curfew",
        72,
        900,
        {"sales": -25, "inventory": -35, "customerSatisfaction": -20},
        event_source=EventSource.CURFEW,
        location=location,
    )


def pick_standard_template(rng: random.Random) -> MissionTemplate:
    return rng.choice(STANDARD_TEMPLATES)


class SyntheticSource:
    """Independent random triggers over the caller's locations."""

    name = "synthetic"

    def __init__(
        self,
        labour_probability: Optional[float] = None,
        restriction_probability: Optional[float] = None,
    ):
        if labour_probability is None:
            labour_probability = settings.SYNTHETIC_LABOUR_PROBABILITY
        if restriction_probability is None:
            restriction_probability = settings.SYNTHETIC_RESTRICTION_PROBABILITY
        self.labour_probability = labour_probability
        self.restriction_probability = restriction_probability

    def collect(self, locations: Sequence[str], now=None, rng=None) -> list[MissionTemplate]:
        rng = rng or random.Random()
        locations = [loc for loc in locations if loc]
        if not locations:
            return []

        templates = []
        if rng.random() < self.labour_probability:
            templates.append(labour_shortage(rng.choice(locations)))
        if rng.random() < self.restriction_probability:
            templates.append(local_restriction(rng.choice(locations)))
        return templates
