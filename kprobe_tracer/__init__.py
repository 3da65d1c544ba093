"""Attach kprobes through tracefs and read their hits as structured events.

The ``Probe`` class registers a kprobe on a kernel symbol, optionally enables
extra trace events (``sched/sched_process_fork`` and friends), and turns the
matching trace_pipe lines into ``Event`` objects.
"""

import logging

from .collector.errors import (  # noqa
    DescriptorError,
    EnableEventError,
    KernelWriteError,
    ParseError,
    PipeOpenError,
    ProbeEnableError,
    ProbeError,
    UnavailableError,
    WriteTarget,
)
from .collector.event import Event, parse_event  # noqa
from .collector.probe import Probe  # noqa
from .utils.config import TracingPaths  # noqa
from .utils.helpers import available  # noqa

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
