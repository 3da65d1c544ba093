# kprobe_tracer/collector/__init__.py - Event collection module
"""
Collector module for attaching kprobes and reading their events.

This module provides:
- probe.py: Probe lifecycle and the trace_pipe worker
- reader.py: Background line reader for trace_pipe
- event.py: Trace line parser and Event model
- descriptor.py: kprobe definition strings and sub-event mapping
- aggregator.py: Event counting for summaries
- errors.py: Exception types
"""
