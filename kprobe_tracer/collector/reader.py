# kprobe_tracer/collector/reader.py - Background line reader
"""
Reads a (possibly never-ending) text file such as trace_pipe on a background
thread and hands its lines to a consumer through a bounded queue.
"""

import os
import queue
import select
import threading
from typing import Iterator, Optional
import logging

# Marks the end of the line stream
_EOF = object()


class LineReader:
    """
    Pumps lines from a file on a daemon thread.

    The file is opened in the constructor, so open errors surface to the
    caller. Iterating the reader yields lines until the file is exhausted or
    the ``cancel`` event is set. The file handle is always closed when the
    pump thread exits.
    """

    def __init__(self, filename: str, cancel: Optional[threading.Event] = None,
                 poll_interval: float = 0.1, chunk_size: int = 4096):
        """
        Open ``filename`` and start pumping it.

        Args:
            filename: File to read
            cancel: Event that stops the reader when set
            poll_interval: Seconds between cancellation checks
            chunk_size: Maximum bytes per read

        Raises:
            OSError: If the file cannot be opened
        """
        self.filename = filename
        self.poll_interval = poll_interval
        self.chunk_size = chunk_size
        self.cancel = cancel or threading.Event()

        self.logger = logging.getLogger(__name__)

        self._fp = open(filename, 'rb', buffering=0)
        self._lines: queue.Queue = queue.Queue(maxsize=1)
        self._closed = threading.Event()

        self._thread = threading.Thread(
            target=self._pump,
            name=f"reader:{os.path.basename(filename)}",
            daemon=True,
        )
        self._thread.start()

    @property
    def closed(self) -> bool:
        """True once the pump thread has released the file."""
        return self._closed.is_set()

    def _chunks(self) -> Iterator[bytes]:
        fd = self._fp.fileno()
        while not self.cancel.is_set():
            readable, _, _ = select.select([fd], [], [], self.poll_interval)
            if not readable:
                continue
            chunk = os.read(fd, self.chunk_size)
            if not chunk:
                return
            yield chunk

    def _read_lines(self) -> Iterator[str]:
        pending = b''
        for chunk in self._chunks():
            pending += chunk
            *lines, pending = pending.split(b'\n')
            for line in lines:
                yield line.rstrip(b'\r').decode('utf-8', 'replace')

        if pending and not self.cancel.is_set():
            yield pending.rstrip(b'\r').decode('utf-8', 'replace')

    def _offer(self, item) -> bool:
        """Put an item on the queue, giving up if cancelled."""
        while not self.cancel.is_set():
            try:
                self._lines.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def _pump(self):
        try:
            for line in self._read_lines():
                if not self._offer(line):
                    break
        except OSError as e:
            self.logger.error(f"Error while reading {self.filename}: {e}")
        finally:
            self._fp.close()
            self._closed.set()
            self._offer(_EOF)
            self.logger.debug(f"Reader for {self.filename} stopped")

    def __iter__(self) -> Iterator[str]:
        while not self.cancel.is_set():
            try:
                item = self._lines.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            if item is _EOF:
                return
            yield item

    def close(self, timeout: Optional[float] = None):
        """
        Stop the pump thread and wait for it to release the file.

        Args:
            timeout: Seconds to wait for the thread (None waits forever)
        """
        self.cancel.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
