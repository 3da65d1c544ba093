# tests/test_reader.py - Tests for the background line reader
"""
Unit tests for the LineReader class.
"""

import os
import threading

import pytest

from kprobe_tracer.collector.reader import LineReader

from conftest import wait_for


class TestLineReader:
    """Test cases for LineReader"""

    def test_reads_all_lines(self, tmp_path):
        """Test lines are delivered in order, including an unterminated last line"""
        source = tmp_path / 'pipe'
        source.write_bytes(b'first\nsecond\r\nthird')

        reader = LineReader(str(source), poll_interval=0.01)

        assert list(reader) == ['first', 'second', 'third']
        assert wait_for(lambda: reader.closed)

    def test_empty_file(self, tmp_path):
        source = tmp_path / 'pipe'
        source.write_bytes(b'')

        reader = LineReader(str(source), poll_interval=0.01)

        assert list(reader) == []
        assert wait_for(lambda: reader.closed)

    def test_invalid_utf8_replaced(self, tmp_path):
        source = tmp_path / 'pipe'
        source.write_bytes(b'ok \xff\n')

        reader = LineReader(str(source), poll_interval=0.01)

        assert list(reader) == ['ok \ufffd']

    def test_small_chunks(self, tmp_path):
        source = tmp_path / 'pipe'
        source.write_bytes(b'alpha\nbeta\ngamma\n')

        reader = LineReader(str(source), poll_interval=0.01, chunk_size=3)

        assert list(reader) == ['alpha', 'beta', 'gamma']

    def test_open_error(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LineReader(str(tmp_path / 'missing'))

    def test_cancel_releases_handle(self, tmp_path):
        """Test a reader blocked on a live stream stops when cancelled"""
        fifo = tmp_path / 'fifo'
        os.mkfifo(fifo)
        # O_RDWR keeps a writer attached so the read side never sees EOF
        writer = os.open(fifo, os.O_RDWR)
        try:
            cancel = threading.Event()
            reader = LineReader(str(fifo), cancel=cancel, poll_interval=0.01)

            os.write(writer, b'line one\n')
            lines = iter(reader)
            assert next(lines) == 'line one'
            assert not reader.closed

            reader.close(timeout=2)

            assert cancel.is_set()
            assert reader.closed
            assert list(lines) == []
        finally:
            os.close(writer)
