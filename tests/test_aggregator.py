# tests/test_aggregator.py - Tests for aggregator module
"""
Unit tests for the EventAggregator class.
"""

from kprobe_tracer.collector.aggregator import EventAggregator
from kprobe_tracer.collector.event import Event


def make_event(name='execve', pid=1234, is_syscall=True, timestamp=1.0, **args):
    return Event(name=name, is_syscall=is_syscall, args=args, pid=pid, timestamp=timestamp)


class TestEventAggregator:
    """Test cases for EventAggregator"""

    def test_aggregator_initialization(self):
        """Test aggregator initialization"""
        aggregator = EventAggregator()
        assert aggregator.total_events == 0
        assert len(aggregator.events_by_name) == 0

    def test_add_event(self):
        """Test adding events to aggregator"""
        aggregator = EventAggregator()

        aggregator.add_event(make_event(arg0='/bin/ls'))

        assert aggregator.total_events == 1
        assert 'execve' in aggregator.events_by_name
        assert len(aggregator.events_by_name['execve']) == 1

    def test_get_name_stats(self):
        """Test getting statistics for one event name"""
        aggregator = EventAggregator()

        for i in range(10):
            aggregator.add_event(make_event(pid=1000 + i % 3, arg0=str(i)))

        stats = aggregator.get_name_stats('execve')

        assert stats['count'] == 10
        assert stats['unique_pids'] == 3
        assert stats['last_args'] == {'arg0': '9'}
        assert aggregator.get_name_stats('missing') is None

    def test_max_events(self):
        aggregator = EventAggregator(max_events=2)

        for i in range(5):
            aggregator.add_event(make_event(timestamp=float(i)))

        assert len(aggregator.events_by_name['execve']) == 2
        assert aggregator.counts['execve'] == 5

    def test_get_summary(self):
        """Test getting overall summary"""
        aggregator = EventAggregator()

        aggregator.add_event(make_event(pid=1, timestamp=2.0))
        aggregator.add_event(make_event(name='sched_process_fork', pid=2, is_syscall=False, timestamp=1.0))
        aggregator.add_event(make_event(name='sched_process_fork', pid=None, is_syscall=False, timestamp=3.0))

        summary = aggregator.get_summary()

        assert summary == {
            'total_events': 3,
            'syscall_events': 1,
            'sub_events': 2,
            'unique_names': 2,
            'unique_pids': 2,
        }
        assert aggregator.get_top_events(1) == [('sched_process_fork', 2)]
        assert [e.timestamp for e in aggregator.get_events()] == [1.0, 2.0, 3.0]
