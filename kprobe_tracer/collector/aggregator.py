# kprobe_tracer/collector/aggregator.py - Event aggregation and statistics
"""
Aggregates delivered events into per-name counts for run summaries.
"""

from typing import Dict, List, Optional, Tuple
from collections import Counter, defaultdict
import logging

from kprobe_tracer.collector.event import Event


class EventAggregator:
    """
    Counts events by name and process.

    Keeps the last ``max_events`` events per name so exporters can dump a
    sample of what was captured.
    """

    def __init__(self, max_events: int = 1000):
        """
        Initialize the event aggregator.

        Args:
            max_events: Events kept per name
        """
        self.max_events = max_events

        # Events grouped by name
        self.events_by_name: Dict[str, List[Event]] = defaultdict(list)
        self.counts: Counter = Counter()
        self.pids = set()

        self.total_events = 0
        self.syscall_events = 0
        self.logger = logging.getLogger(__name__)

    def add_event(self, event: Event):
        """
        Add an event to the aggregator.

        Args:
            event: Parsed Event
        """
        events = self.events_by_name[event.name]
        events.append(event)
        if len(events) > self.max_events:
            del events[0]

        self.counts[event.name] += 1
        if event.pid is not None:
            self.pids.add(event.pid)

        if event.is_syscall:
            self.syscall_events += 1
        self.total_events += 1

    def get_name_stats(self, name: str) -> Optional[Dict]:
        """
        Get statistics for one event name.

        Returns:
            Dictionary containing statistics or None if no events
        """
        count = self.counts.get(name, 0)
        if not count:
            return None

        events = self.events_by_name[name]
        return {
            'count': count,
            'unique_pids': len({e.pid for e in events if e.pid is not None}),
            'last_args': dict(events[-1].args),
        }

    def get_top_events(self, n: int = 10) -> List[Tuple[str, int]]:
        return self.counts.most_common(n)

    def get_events(self) -> List[Event]:
        """All kept events ordered by timestamp."""
        events = [e for name_events in self.events_by_name.values() for e in name_events]
        return sorted(events, key=lambda e: e.timestamp or 0.0)

    def get_summary(self) -> Dict:
        """
        Get overall summary statistics.

        Returns:
            Dictionary with summary statistics
        """
        return {
            'total_events': self.total_events,
            'syscall_events': self.syscall_events,
            'sub_events': self.total_events - self.syscall_events,
            'unique_names': len(self.counts),
            'unique_pids': len(self.pids),
        }
