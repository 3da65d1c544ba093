# kprobe_tracer/collector/probe.py - kprobe lifecycle and event worker
"""
A Probe registers one kprobe (plus optional kernel sub-events) through tracefs,
reads trace_pipe on a background worker and republishes the matching lines as
Event objects.

Typical usage::

    probe = Probe('my_probe', 'sys_execve', ['sched/sched_process_fork'])
    probe.enable()
    try:
        for event in probe.events():
            print(event)
    finally:
        probe.disable()
"""

import queue
import threading
from typing import Dict, Iterable, Iterator, List, Optional
import logging

from kprobe_tracer.collector.descriptor import make_descriptor, map_sub_events
from kprobe_tracer.collector.errors import (
    DescriptorError,
    EnableEventError,
    KernelWriteError,
    ParseError,
    PipeOpenError,
    ProbeEnableError,
    UnavailableError,
    WriteTarget,
)
from kprobe_tracer.collector.event import Event, parse_event
from kprobe_tracer.collector.reader import LineReader
from kprobe_tracer.collector.state import StateGuard
from kprobe_tracer.utils.config import TracingPaths
from kprobe_tracer.utils.helpers import append_file, available, write_file


class Probe:
    """
    A kprobe on a kernel symbol and the trace events watched alongside it.

    The probe name doubles as the kprobe's name in tracefs, so it must be a
    valid trace event name.
    """

    def __init__(self, name: str, syscall: str, sub_events: Optional[Iterable[str]] = None,
                 paths: Optional[TracingPaths] = None, poll_interval: float = 0.1):
        """
        Initialize the Probe.

        Args:
            name: Probe name, also used as kprobes/<name>
            syscall: Kernel symbol to probe (e.g. 'sys_execve')
            sub_events: ``group/event`` trace events to enable and watch
            paths: tracefs locations (defaults to the kernel's)
            poll_interval: Seconds between cancellation checks of the worker
        """
        self.name = name
        self.syscall = syscall
        self.paths = paths or TracingPaths()
        self.poll_interval = poll_interval

        self.file_name = self.paths.probe_enable_file(name)
        self.descriptor = make_descriptor(name, syscall)
        self._sub_events = map_sub_events(sub_events, self.paths)

        self._state = StateGuard()
        # kernel files may have been modified by a failed enable()
        self._kernel_dirty = False

        self._bus: queue.Queue = queue.Queue(maxsize=1)
        self._reader: Optional[LineReader] = None
        self._worker: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None
        self._done: Optional[threading.Event] = None

        self.lines_read = 0
        self.lines_dropped = 0
        self.events_delivered = 0
        self.parse_errors = 0

        self.logger = logging.getLogger(f"{__name__}.{name}")

    @property
    def sub_events(self) -> Dict[str, str]:
        """Bare sub-event name to enable file path."""
        return dict(self._sub_events)

    @property
    def enabled(self) -> bool:
        """True if the probe is enabled and its worker started."""
        return self._state.enabled

    def select_event(self, line: str) -> bool:
        """
        Check whether a raw trace line belongs to this probe.

        Matches on substring containment of the probe name or any sub-event
        name, so an unrelated line mentioning one of them (e.g. in a comm)
        will also pass and is left to the parser.
        """
        if self.name in line:
            return True
        return any(event_name in line for event_name in self._sub_events)

    def enable(self):
        """
        Register and enable the probe, then start the worker.

        Raises:
            UnavailableError: ftrace is not enabled
            EnableEventError: A sub-event could not be enabled
            DescriptorError: The kprobe could not be registered
            ProbeEnableError: The kprobe could not be enabled
            PipeOpenError: trace_pipe could not be opened
        """
        with self._state.transition() as state:
            if state.enabled:
                return

            if not available(self.paths.enabled_status_file):
                raise UnavailableError(self.paths.enabled_status_file)

            self._kernel_dirty = True

            for event_name, event_file in self._sub_events.items():
                try:
                    write_file(event_file, "1")
                except OSError as e:
                    raise EnableEventError(event_name, event_file, e) from e

            try:
                write_file(self.paths.kprobe_events_file, self.descriptor)
            except OSError as e:
                raise DescriptorError(self.name, self.paths.kprobe_events_file, e) from e

            try:
                write_file(self.file_name, "1")
            except OSError as e:
                raise ProbeEnableError(self.name, self.file_name, e) from e

            stop = threading.Event()
            try:
                reader = LineReader(self.paths.trace_pipe_file, cancel=stop,
                                    poll_interval=self.poll_interval)
            except OSError as e:
                raise PipeOpenError(self.paths.trace_pipe_file, e) from e

            self._stop = stop
            self._done = threading.Event()
            self._reader = reader
            self._worker = threading.Thread(
                target=self._work,
                args=(reader, stop, self._done),
                name=f"probe:{self.name}",
                daemon=True,
            )

            state.commit(True)
            self._worker.start()

            self.logger.info(f"Probe {self.name} enabled on {self.syscall} "
                             f"({len(self._sub_events)} sub-events)")

    def disable(self):
        """
        Disable and deregister the probe and stop the worker.

        Every teardown step is attempted even if an earlier one fails; the
        worker is always stopped and no event is delivered after this returns.

        Raises:
            KernelWriteError: The first kernel write that failed
        """
        with self._state.transition() as state:
            if not state.enabled and not self._kernel_dirty:
                return

            errors: List[KernelWriteError] = []

            for event_name, event_file in self._sub_events.items():
                try:
                    write_file(event_file, "0")
                except OSError as e:
                    errors.append(KernelWriteError(WriteTarget.EVENT_DISABLE, event_name, event_file, e))

            try:
                write_file(self.file_name, "0")
            except OSError as e:
                errors.append(KernelWriteError(WriteTarget.PROBE_DISABLE, self.name, self.file_name, e))

            try:
                append_file(self.paths.kprobe_events_file, f"-:{self.name}")
            except OSError as e:
                errors.append(KernelWriteError(WriteTarget.DEREGISTER, self.name,
                                               self.paths.kprobe_events_file, e))

            self._stop_worker()
            self._kernel_dirty = False
            state.commit(False)

            for error in errors[1:]:
                self.logger.warning(f"Error while disabling probe {self.name}: {error}")

            if errors:
                raise errors[0]

            self.logger.info(f"Probe {self.name} disabled")

    def _stop_worker(self):
        if self._worker is None:
            return

        self._stop.set()
        self._done.wait()
        self._reader.close()
        self._worker.join()

        # drop anything published but not yet consumed
        discarded = 0
        while True:
            try:
                self._bus.get_nowait()
                discarded += 1
            except queue.Empty:
                break
        if discarded:
            self.logger.debug(f"Discarded {discarded} undelivered events")

        self._worker = None
        self._reader = None
        self._stop = None
        self._done = None

    def _publish(self, event: Event, stop: threading.Event) -> bool:
        while not stop.is_set():
            try:
                self._bus.put(event, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def _work(self, reader: LineReader, stop: threading.Event, done: threading.Event):
        try:
            for line in reader:
                if stop.is_set():
                    break

                self.lines_read += 1
                if not self.select_event(line):
                    self.lines_dropped += 1
                    continue

                try:
                    event = parse_event(line)
                except ParseError as e:
                    self.parse_errors += 1
                    self.logger.warning(f"Error while parsing event: {e}")
                    continue

                if not self._publish(event, stop):
                    break
                self.events_delivered += 1
        finally:
            done.set()
            self.logger.debug(f"Worker for {self.name} exited")

    def next_event(self, timeout: Optional[float] = None) -> Optional[Event]:
        """
        Wait for the next event.

        Args:
            timeout: Seconds to wait (None waits forever)

        Returns:
            The next Event, or None on timeout
        """
        try:
            return self._bus.get(timeout=timeout)
        except queue.Empty:
            return None

    def events(self) -> Iterator[Event]:
        """
        Iterate over delivered events until the probe is disabled.
        """
        while True:
            event = self.next_event(timeout=self.poll_interval)
            if event is not None:
                yield event
            elif not self.enabled:
                return

    def get_stats(self) -> Dict:
        """
        Get worker statistics.

        Returns:
            Dictionary with line and event counters
        """
        return {
            'lines_read': self.lines_read,
            'lines_dropped': self.lines_dropped,
            'events_delivered': self.events_delivered,
            'parse_errors': self.parse_errors,
        }

    def __enter__(self) -> 'Probe':
        self.enable()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disable()
        return False

    def __repr__(self) -> str:
        return f"Probe(name={self.name!r}, syscall={self.syscall!r}, enabled={self.enabled})"
