# tests/conftest.py - Shared fixtures
"""
Fixtures building a fake tracing directory so probes never touch the kernel.
"""

import time

import pytest

from kprobe_tracer.utils.config import TracingPaths


SYSCALL_LINE = (
    '            bash-1234  [002] d... 1234.567890: p1: (SyS_execve+0x0/0x40) '
    'arg0="/bin/ls" arg1="-la" arg2=(fault) arg3="ignored"'
)
FORK_LINE = (
    '            bash-1234  [002] d... 1234.567900: sched_process_fork: '
    'comm=bash pid=1234 child_comm=bash child_pid=1240'
)
UNRELATED_LINE = '          <idle>-0     [000] d.h. 1234.568000: irq_handler_entry: irq=24 name=eth0'
MALFORMED_LINE = 'p1 this is not a trace line'


@pytest.fixture
def tracing_root(tmp_path):
    """A tracing directory with the files a probe named p1 needs."""
    root = tmp_path / 'tracing'
    probe_dir = root / 'events' / 'kprobes' / 'p1'
    probe_dir.mkdir(parents=True)
    (probe_dir / 'enable').write_text('0')
    # Enable files for the default config events (sched fork/exec/exit).
    for name in ('sched_process_fork', 'sched_process_exec', 'sched_process_exit'):
        event_dir = root / 'events' / 'sched' / name
        event_dir.mkdir(parents=True)
        (event_dir / 'enable').write_text('0')
    (root / 'kprobe_events').write_text('')
    (root / 'trace_pipe').write_text('')
    (root / 'ftrace_enabled').write_text('1\n')
    return root


@pytest.fixture
def paths(tracing_root):
    return TracingPaths.from_root(tracing_root, tracing_root / 'ftrace_enabled')


def write_trace(tracing_root, *lines):
    (tracing_root / 'trace_pipe').write_text('\n'.join(lines) + '\n')


def wait_for(predicate, timeout=2.0):
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
