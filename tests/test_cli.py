# tests/test_cli.py - Tests for the command-line interface
"""
Tests for the click CLI against a fake tracing directory.
"""

import json
import logging
import signal

import pytest
from click.testing import CliRunner

from kprobe_tracer.cli import cli

from conftest import FORK_LINE, SYSCALL_LINE, write_trace


@pytest.fixture
def runner():
    """CliRunner that restores logging handlers and signal handlers afterwards."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    saved_signals = {s: signal.getsignal(s) for s in (signal.SIGHUP, signal.SIGTERM, signal.SIGQUIT)}

    yield CliRunner()

    root_logger.handlers = handlers
    root_logger.setLevel(level)
    for signum, handler in saved_signals.items():
        signal.signal(signum, handler)


class TestCLI:
    """Test cases for the CLI commands"""

    def test_descriptor(self, runner, tracing_root):
        result = runner.invoke(cli, [
            'descriptor', 'p1', 'sys_execve',
            '--event', 'sched/sched_process_fork',
            '--tracing-root', str(tracing_root),
        ])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert any(line.startswith('p:kprobes/p1 sys_execve arg0=') for line in lines)
        assert f"probe: {tracing_root}/events/kprobes/p1/enable" in lines
        assert f"sched_process_fork: {tracing_root}/events/sched/sched_process_fork/enable" in lines

    def test_trace_prints_events(self, runner, tracing_root):
        write_trace(tracing_root, SYSCALL_LINE, FORK_LINE)

        result = runner.invoke(cli, [
            'trace', 'p1', 'sys_execve',
            '--event', 'sched/sched_process_fork',
            '--tracing-root', str(tracing_root),
            '--enabled-status-file', str(tracing_root / 'ftrace_enabled'),
            '--duration', '1',
            '--no-color',
        ])

        assert result.exit_code == 0, result.output
        assert 'SYSCALL pid:1234 SyS_execve(/bin/ls, -la)' in result.stdout
        assert '\tpid:1234 sched_process_fork -> ' in result.stdout
        assert 'Total Events: 2' in result.stdout
        assert (tracing_root / 'kprobe_events').read_text().endswith('-:p1')

    def test_trace_json_output(self, runner, tracing_root, tmp_path):
        write_trace(tracing_root, SYSCALL_LINE)
        output_dir = tmp_path / 'results'

        result = runner.invoke(cli, [
            'trace', 'p1', 'sys_execve',
            '--tracing-root', str(tracing_root),
            '--enabled-status-file', str(tracing_root / 'ftrace_enabled'),
            '--duration', '1',
            '--output-format', 'json',
            '--output-dir', str(output_dir),
            '--no-color',
        ])

        assert result.exit_code == 0, result.output
        event_files = list(output_dir.glob('events_*.json'))
        assert len(event_files) == 1
        data = json.loads(event_files[0].read_text())
        assert data['events'][0]['name'] == 'SyS_execve'

    def test_trace_unavailable(self, runner, tracing_root):
        (tracing_root / 'ftrace_enabled').write_text('0\n')

        result = runner.invoke(cli, [
            'trace', 'p1', 'sys_execve',
            '--tracing-root', str(tracing_root),
            '--enabled-status-file', str(tracing_root / 'ftrace_enabled'),
            '--duration', '1',
        ])

        assert result.exit_code == 1
        assert 'not available' in result.output
        assert (tracing_root / 'kprobe_events').read_text() == ''

    def test_trace_honors_configured_status_file(self, runner, tracing_root, tmp_path):
        write_trace(tracing_root, SYSCALL_LINE)
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            'tracing:\n'
            f"  enabled_status_file: {tracing_root / 'ftrace_enabled'}\n"
        )

        result = runner.invoke(cli, [
            'trace', 'p1', 'sys_execve',
            '--config', str(config_file),
            '--tracing-root', str(tracing_root),
            '--duration', '1',
            '--no-color',
        ])

        assert result.exit_code == 0, result.output
        assert 'SYSCALL pid:1234 SyS_execve(/bin/ls, -la)' in result.stdout

    def test_check_reads_given_status_file(self, runner, tracing_root):
        result = runner.invoke(cli, [
            'check',
            '--tracing-root', str(tracing_root),
            '--enabled-status-file', str(tracing_root / 'ftrace_enabled'),
        ])

        assert '✓ tracefs mounted' in result.stdout
        assert '✓ ftrace enabled' in result.stdout
