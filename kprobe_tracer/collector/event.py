# kprobe_tracer/collector/event.py - Trace line parsing
"""
Event model and parser for lines read from the ftrace trace pipe.

A kprobe hit looks like::

    bash-1234  [002] d... 1234.567890: my_probe: (SyS_execve+0x0/0x40) arg0="/bin/ls" arg1=(fault)

while a regular trace event looks like::

    bash-1234  [002] d... 1234.567891: sched_process_fork: comm=bash pid=1234 child_comm=bash child_pid=1240
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from kprobe_tracer.collector.errors import ParseError

# Emitted by the kernel when a probe argument could not be dereferenced
FAULT_SENTINEL = '(fault)'

EVENT_PATTERN = re.compile(
    r'^\s*'
    r'(?:(?P<comm>.+?)-(?P<pid>\d+)\s+)?'
    r'(?:\(\s*(?P<tgid>-|\d+)\)\s+)?'
    r'\[(?P<cpu>\d+)\]\s+'
    r'(?:(?P<flags>[^\s\d]\S*)\s+)?'
    r'(?P<timestamp>\d+(?:\.\d+)?):\s+'
    r'(?P<name>[^:\s]+):'
    r'(?:\s+(?P<payload>.*?))?\s*$'
)


@dataclass(frozen=True)
class Event:
    """
    Structured representation of a single trace pipe line.
    """
    name: str
    is_syscall: bool = False
    args: Mapping[str, str] = field(default_factory=dict)
    pid: Optional[int] = None
    comm: Optional[str] = None
    cpu: Optional[int] = None
    timestamp: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'args', MappingProxyType(dict(self.args)))

    def argv(self) -> List[str]:
        """
        Argument values as a list.

        Syscall arguments are returned in positional order (arg0, arg1, ...),
        sub-event fields in the order they appeared on the line.
        """
        if self.is_syscall:
            return [self.args.get(f"arg{i}", "") for i in range(len(self.args))]
        return list(self.args.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pid': self.pid,
            'comm': self.comm,
            'cpu': self.cpu,
            'timestamp': self.timestamp,
            'name': self.name,
            'is_syscall': self.is_syscall,
            'args': dict(self.args),
        }

    def __str__(self) -> str:
        pid = self.pid if self.pid is not None else '?'
        if self.is_syscall:
            return f"pid:{pid} {self.name}({', '.join(self.argv())})"
        return f"pid:{pid} {self.name} -> {dict(self.args)}"


def _find_closing_quote(data: str, start: int) -> int:
    i = start
    while i < len(data):
        if data[i] == '\\':
            i += 2
            continue
        if data[i] == '"':
            return i
        i += 1
    return -1


def parse_args(data: str) -> Dict[str, str]:
    """
    Parse a ``key=value key2="quoted value"`` payload.

    Parsing stops at the first value equal to the fault sentinel: the kernel
    fetches arguments left to right, so nothing after it can be trusted.

    Args:
        data: Payload following the event name

    Returns:
        Dictionary of argument name to raw value (quotes stripped)
    """
    args: Dict[str, str] = {}
    rest = data

    while rest:
        rest = rest.lstrip(' ')
        eq_offset = rest.find('=')
        if eq_offset == -1:
            break

        arg_name = rest[:eq_offset]
        rest = rest[eq_offset + 1:]

        if rest.startswith('"'):
            end = _find_closing_quote(rest, 1)
            if end == -1:
                # truncated line
                break
            arg_value = rest[1:end]
            rest = rest[end + 1:]
        else:
            arg_value, _, rest = rest.partition(' ')

        if arg_value == FAULT_SENTINEL:
            break

        args[arg_name] = arg_value

    return args


def parse_event(line: str) -> Event:
    """
    Parse one raw trace pipe line.

    Args:
        line: Raw line as read from trace_pipe

    Returns:
        Parsed Event

    Raises:
        ParseError: If the line does not match the trace line grammar
    """
    m = EVENT_PATTERN.match(line)
    if m is None:
        raise ParseError(line)

    name = m.group('name')
    payload = m.group('payload') or ''
    is_syscall = payload.startswith('(')

    if is_syscall:
        # "(SyS_execve+0x0/0x40) arg0=..." -> "SyS_execve"
        name_end = payload.find(') ')
        if name_end != -1:
            symbol, payload = payload[1:name_end], payload[name_end + 2:]
        elif payload.endswith(')'):
            symbol, payload = payload[1:-1], ''
        else:
            raise ParseError(line)
        name = symbol.split('+', 1)[0].strip()

    pid = m.group('pid')
    cpu = m.group('cpu')

    return Event(
        name=name,
        is_syscall=is_syscall,
        args=parse_args(payload),
        pid=int(pid) if pid is not None else None,
        comm=m.group('comm').strip() if m.group('comm') is not None else None,
        cpu=int(cpu),
        timestamp=float(m.group('timestamp')),
    )
