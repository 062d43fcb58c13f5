"""Event Aggregator and the sources feeding it."""
from .aggregator import EventAggregator
from .types import EventSource, MissionTemplate, compute_dedup_key

__all__ = ["EventAggregator", "EventSource", "MissionTemplate", "compute_dedup_key"]
