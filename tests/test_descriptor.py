# tests/test_descriptor.py - Tests for kprobe definitions
"""
Unit tests for make_descriptor and map_sub_events.
"""

import os

from kprobe_tracer.collector.descriptor import MAX_ARGUMENTS, make_descriptor, map_sub_events
from kprobe_tracer.collector.probe import Probe
from kprobe_tracer.utils.config import TracingPaths


class TestDescriptor:
    """Test cases for make_descriptor"""

    def test_descriptor_prefix(self):
        descriptor = make_descriptor("p1", "sys_execve")
        assert descriptor.startswith("p:kprobes/p1 sys_execve ")

    def test_descriptor_arguments(self):
        descriptor = make_descriptor("p1", "sys_execve")

        assert descriptor.count(":string") == MAX_ARGUMENTS
        assert " arg0=+0(+0(%si)):string" in descriptor
        assert " arg1=+0(+8(%si)):string" in descriptor
        assert descriptor.endswith(" arg15=+0(+120(%si)):string")

    def test_descriptor_is_pure(self):
        assert make_descriptor("p1", "sys_execve") == make_descriptor("p1", "sys_execve")


class TestMapSubEvents:
    """Test cases for map_sub_events"""

    def test_group_path_split(self):
        paths = TracingPaths.from_root("/t")
        mapping = map_sub_events(["sched/sched_process_fork"], paths)

        assert mapping == {
            "sched_process_fork": os.path.join("/t", "events", "sched", "sched_process_fork", "enable"),
        }

    def test_bare_name(self):
        paths = TracingPaths.from_root("/t")
        mapping = map_sub_events(["my_event"], paths)

        assert mapping == {"my_event": os.path.join("/t", "events", "my_event", "enable")}

    def test_none(self):
        assert map_sub_events(None, TracingPaths()) == {}

    def test_probe_construction_is_deterministic(self):
        """Test two probes built from the same inputs agree"""
        paths = TracingPaths.from_root("/t")
        events = ["sched/sched_process_fork", "sched/sched_process_exit"]

        first = Probe("p1", "sys_execve", events, paths=paths)
        second = Probe("p1", "sys_execve", events, paths=paths)

        assert first.descriptor == second.descriptor
        assert first.sub_events == second.sub_events
        assert first.file_name == os.path.join("/t", "events", "kprobes", "p1", "enable")
