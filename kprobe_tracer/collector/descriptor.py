# kprobe_tracer/collector/descriptor.py - kprobe definitions
"""
Builds the kprobe definition written to kprobe_events and maps sub-event
identifiers to their enable files.
"""

from typing import Dict, Iterable, Optional

from kprobe_tracer.utils.config import TracingPaths

MAX_ARGUMENTS = 16


def make_descriptor(name: str, syscall: str) -> str:
    """
    Build a kprobe definition that fetches up to MAX_ARGUMENTS strings.

    Arguments are read as ``argv[n]`` through the pointer held in %si, so
    the probe only decodes anything useful on x86-64 for execve-like
    functions taking an argv array as their second parameter.

    Args:
        name: Probe name, registered as kprobes/<name>
        syscall: Kernel symbol to probe

    Returns:
        Definition string, e.g. ``p:kprobes/p1 sys_execve arg0=+0(+0(%si)):string ...``
    """
    descriptor = f"p:kprobes/{name} {syscall}"
    for argn in range(MAX_ARGUMENTS):
        descriptor += f" arg{argn}=+0(+{argn * 8}(%si)):string"
    return descriptor


def map_sub_events(sub_events: Optional[Iterable[str]], paths: TracingPaths) -> Dict[str, str]:
    """
    Map sub-event identifiers to their enable files.

    ``sched/sched_process_fork`` is keyed by ``sched_process_fork`` and
    enabled through ``events/sched/sched_process_fork/enable``.

    Args:
        sub_events: ``group/event`` identifiers (bare names are accepted)
        paths: Tracing paths

    Returns:
        Dictionary of bare event name to enable file path
    """
    mapping: Dict[str, str] = {}
    for event_path in sub_events or []:
        event_name = event_path.split('/', 1)[1] if '/' in event_path else event_path
        mapping[event_name] = paths.event_enable_file(event_path)
    return mapping
