# kprobe_tracer/collector/state.py - Probe state guard
"""
Readers/writer guard around a probe's enabled flag.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class StateGuard:
    """
    Guards the enabled flag of a probe.

    Any number of threads may read the flag at once; ``transition()`` is
    exclusive and readers wait for it to finish, so a read always reflects
    the last completed transition.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._writing = False
        self._enabled = False

    @property
    def enabled(self) -> bool:
        with self._cond:
            self._cond.wait_for(lambda: not self._writing)
            return self._enabled

    @contextmanager
    def transition(self) -> Iterator['_Transition']:
        """Hold the guard exclusively for an enable/disable sequence."""
        with self._cond:
            self._cond.wait_for(lambda: not self._writing)
            self._writing = True

        try:
            yield _Transition(self)
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class _Transition:
    """Write access to the guarded flag, valid inside ``StateGuard.transition``."""

    def __init__(self, guard: StateGuard):
        self._guard = guard

    @property
    def enabled(self) -> bool:
        return self._guard._enabled

    def commit(self, enabled: bool):
        self._guard._enabled = enabled
