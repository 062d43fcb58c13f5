from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
import logging
import random

import pytest

from missions.events import EventAggregator, compute_dedup_key
from missions.events.catalog import (
    DEADLINE_VARIATIONS,
    STANDARD_TEMPLATES,
    pre_generated_templates,
)
from missions.events.festivals import (
    CALENDAR,
    FestivalSource,
    next_occurrence,
    upcoming_festivals,
)
from missions.events.synthetic import SyntheticSource, labour_shortage, local_restriction
from missions.events.types import EventSource, make_template
from tests.missions.fakes import BrokenSource, StaticSource


class ScriptedRandom:
    """Replays a fixed sequence from ``random()`` and always picks the first item."""

    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)

    def choice(self, seq):
        return seq[0]


def _utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


class TestDedupKey:
    def test_whitespace_and_case_do_not_matter(self):
        assert compute_dedup_key('  Port   Strike ', 'Labour') == compute_dedup_key('port strike', 'labour')

    def test_type_is_part_of_the_key(self):
        assert compute_dedup_key('Port strike', 'labour') != compute_dedup_key('Port strike', 'logistics')


class TestFestivals:
    def test_next_occurrence_rolls_over_to_next_year(self):
        christmas = next(f for f in CALENDAR if f.name == 'Christmas')
        new_year = next(f for f in CALENDAR if f.name == 'New Year')

        assert next_occurrence(christmas, date(2025, 12, 25)) == date(2025, 12, 25)
        assert next_occurrence(new_year, date(2025, 12, 28)) == date(2026, 1, 1)

    def test_window_is_inclusive(self, settings):
        settings.TIME_ZONE = 'UTC'
        upcoming = upcoming_festivals(_utc(2025, 12, 18, 12), lookahead_days=7)
        assert [item.festival.name for item in upcoming] == ['Christmas']
        assert upcoming[0].days_until == 7

    def test_year_boundary(self, settings):
        settings.TIME_ZONE = 'UTC'
        upcoming = upcoming_festivals(_utc(2025, 12, 24, 12), lookahead_days=10)
        assert [item.festival.name for item in upcoming] == ['Christmas', 'New Year']

    def test_source_builds_festival_templates(self, settings):
        settings.TIME_ZONE = 'UTC'

        templates = FestivalSource(lookahead_days=7).collect([], now=_utc(2025, 11, 15, 8))

        assert len(templates) == 1
        template = templates[0]
        assert template.title == 'Diwali Festival - Supply Chain Impact'
        assert template.event_source is EventSource.FESTIVAL
        assert template.duration_hours == 72
        assert template.cost_to_solve == Decimal('400')
        assert '5 days away' in template.description

    def test_quiet_period(self, settings):
        settings.TIME_ZONE = 'UTC'
        assert FestivalSource(lookahead_days=7).collect([], now=_utc(2025, 6, 1)) == []


class TestSynthetic:
    def test_both_triggers_fire(self):
        rng = ScriptedRandom([0.01, 0.01])

        templates = SyntheticSource(0.10, 0.05).collect(['Delhi'], rng=rng)

        assert [t.title for t in templates] == [
            'Labour Unavailability in Delhi',
            'Restrictions Imposed in Delhi',
        ]
        assert templates[0].event_source is EventSource.LABOUR
        assert templates[1].event_source is EventSource.CURFEW

    def test_no_trigger(self):
        rng = ScriptedRandom([0.5, 0.5])
        assert SyntheticSource(0.10, 0.05).collect(['Delhi'], rng=rng) == []

    def test_thresholds_are_independent(self):
        rng = ScriptedRandom([0.5, 0.04])
        templates = SyntheticSource(0.10, 0.05).collect(['Delhi'], rng=rng)
        assert [t.mission_type for t in templates] == ['curfew']

    def test_no_locations(self):
        assert SyntheticSource(1, 1).collect([], rng=random.Random(1)) == []

    def test_fixed_shapes(self):
        labour = labour_shortage('Pune')
        curfew = local_restriction('Pune')
        assert (labour.duration_hours, labour.cost_to_solve) == (48, Decimal('700'))
        assert (curfew.duration_hours, curfew.cost_to_solve) == (72, Decimal('900'))


class TestCatalog:
    def test_pre_generated_templates_have_staggered_deadlines(self):
        templates = pre_generated_templates()

        assert len(templates) == 10
        assert [t.duration_hours for t in templates] == list(DEADLINE_VARIATIONS)
        assert {t.event_source for t in templates} == {EventSource.SYSTEM}
        assert all(t.source_url for t in templates)

    def test_standard_templates_have_unique_keys(self):
        keys = {t.dedup_key for t in STANDARD_TEMPLATES}
        assert len(keys) == len(STANDARD_TEMPLATES)


class TestEventAggregator:
    def test_merges_sources_in_order(self, fixed_now):
        a = make_template('A crisis', 'desc', 'logistics', 24, 100, {'sales': -5})
        b = make_template('B crisis', 'desc', 'quality', 12, 50, {})
        aggregator = EventAggregator(
            sources=[StaticSource([a]), StaticSource([b])],
            clock=lambda: fixed_now,
            rng=random.Random(1),
        )

        assert aggregator.collect(['India']) == [a, b]

    def test_duplicates_inside_one_source_are_dropped(self):
        a = make_template('A crisis', 'desc', 'logistics', 24, 100, {})
        a_again = make_template('a  CRISIS', 'other desc', 'logistics', 48, 300, {})

        pool = EventAggregator(sources=[StaticSource([a, a_again])]).collect(['India'])

        assert pool == [a]

    def test_failing_source_is_skipped(self, caplog, monkeypatch):
        monkeypatch.setattr(logging.getLogger('simulator'), 'propagate', True)
        a = make_template('A crisis', 'desc', 'logistics', 24, 100, {})

        with caplog.at_level('WARNING', logger='simulator'):
            pool = EventAggregator(sources=[BrokenSource(), StaticSource([a])]).collect(['India'])

        assert pool == [a]
        assert 'Event source broken failed' in caplog.text

    def test_empty_pool_falls_back_to_standard_catalogue(self):
        pool = EventAggregator(sources=[StaticSource([])], rng=random.Random(7)).collect(['India'])

        assert len(pool) == 1
        assert pool[0] in STANDARD_TEMPLATES

    def test_default_locations(self, settings):
        settings.MISSION_DEFAULT_LOCATIONS = ['Chennai']
        seen = []

        class Recorder:
            name = 'recorder'

            def collect(self, locations, now=None, rng=None):
                seen.append(list(locations))
                return []

        EventAggregator(sources=[Recorder()]).collect()

        assert seen == [['Chennai']]

    def test_clock_is_passed_to_sources(self, fixed_now):
        seen = []

        class Recorder:
            name = 'recorder'

            def collect(self, locations, now=None, rng=None):
                seen.append(now)
                return []

        EventAggregator(sources=[Recorder()], clock=lambda: fixed_now).collect(['India'])

        assert seen == [fixed_now]
