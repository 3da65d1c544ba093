# kprobe_tracer/collector/errors.py - Probe error taxonomy
"""
Exceptions raised while driving a kprobe through tracefs.

Every kernel-facing failure carries the file it touched and the underlying
OSError so callers can branch on the exception class or on ``target``.
"""

from enum import Enum
from typing import Optional


class WriteTarget(Enum):
    """Kernel file write that failed."""
    EVENT_ENABLE = 'event_enable'
    DESCRIPTOR = 'descriptor'
    PROBE_ENABLE = 'probe_enable'
    EVENT_DISABLE = 'event_disable'
    PROBE_DISABLE = 'probe_disable'
    DEREGISTER = 'deregister'


class ProbeError(Exception):
    """Base class for all probe errors."""


class UnavailableError(ProbeError):
    """Raised when the ftrace facility is not enabled on this system."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"FTRACE kernel framework not available on your system ({path} is not '1')")


class KernelWriteError(ProbeError):
    """
    Raised when writing to a tracefs control file fails.

    Attributes:
        target: Which step failed
        subject: Event or probe name the write was for
        path: File that was written
        cause: Underlying OSError
    """

    def __init__(self, target: WriteTarget, subject: str, path: str, cause: Optional[OSError] = None):
        self.target = target
        self.subject = subject
        self.path = path
        self.cause = cause
        super().__init__(f"{target.value} write for {subject} to {path} failed: {cause}")


class EnableEventError(KernelWriteError):
    """A sub-event could not be enabled."""

    def __init__(self, event: str, path: str, cause: Optional[OSError] = None):
        super().__init__(WriteTarget.EVENT_ENABLE, event, path, cause)

    @property
    def event(self) -> str:
        return self.subject


class DescriptorError(KernelWriteError):
    """The kprobe descriptor could not be registered."""

    def __init__(self, probe: str, path: str, cause: Optional[OSError] = None):
        super().__init__(WriteTarget.DESCRIPTOR, probe, path, cause)


class ProbeEnableError(KernelWriteError):
    """The kprobe's own enable file could not be written."""

    def __init__(self, probe: str, path: str, cause: Optional[OSError] = None):
        super().__init__(WriteTarget.PROBE_ENABLE, probe, path, cause)


class PipeOpenError(ProbeError):
    """Raised when the trace pipe cannot be opened."""

    def __init__(self, path: str, cause: Optional[OSError] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Error while opening {path}: {cause}")


class ParseError(ProbeError, ValueError):
    """Raised when a trace line does not match the expected grammar."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Could not parse event data '{line}'")
