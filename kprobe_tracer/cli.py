# kprobe_tracer/cli.py - Command-line interface
"""
Command-line interface for the kprobe tracer.
"""

import signal
import sys
import threading
import time
import logging

import click

from kprobe_tracer.utils.logger import setup_logging
from kprobe_tracer.utils.config import DEFAULT_TRACING_ROOT, Config, TracingPaths
from kprobe_tracer.utils.helpers import check_prerequisites


logger = logging.getLogger(__name__)


def _load_config(config_file, tracing_root, enabled_status_file):
    cfg = Config(config_file)
    if tracing_root:
        cfg.set('tracing.root', tracing_root)
    if enabled_status_file:
        cfg.set('tracing.enabled_status_file', enabled_status_file)
    return cfg


def setup_signals(stop: threading.Event):
    """
    Set ``stop`` on SIGHUP, SIGTERM and SIGQUIT.

    SIGINT keeps raising KeyboardInterrupt.
    """
    def handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping...")
        stop.set()

    for signum in (signal.SIGHUP, signal.SIGTERM, signal.SIGQUIT):
        signal.signal(signum, handler)


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """
    kprobe tracer

    Attach a kprobe through tracefs and print its hits as structured events.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.argument('name', required=False)
@click.argument('syscall', required=False)
@click.option('--event', 'sub_events', multiple=True, help='Trace event to watch, as group/name (repeatable)')
@click.option('--config', type=click.Path(exists=True), help='Configuration file')
@click.option('--tracing-root', type=click.Path(), help='tracefs directory (default: /sys/kernel/debug/tracing)')
@click.option('--enabled-status-file', type=click.Path(), help='ftrace_enabled file (default: /proc/sys/kernel/ftrace_enabled)')
@click.option('--duration', type=float, help='Duration to trace (seconds)')
@click.option('--output-format', type=click.Choice(['stdout', 'json']), help='Output format')
@click.option('--output-dir', type=click.Path(), help='Directory for JSON output')
@click.option('--prometheus-port', type=int, help='Expose Prometheus metrics on this port')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.pass_context
def trace(ctx, name, syscall, sub_events, config, tracing_root, enabled_status_file, duration,
          output_format, output_dir, prometheus_port, no_color):
    """
    Attach a probe and print its events until interrupted.

    Example:
        kprobe-tracer trace exec_probe sys_execve --event sched/sched_process_fork
        kprobe-tracer trace --config configs/default.yaml --duration 10
    """
    from kprobe_tracer.collector.aggregator import EventAggregator
    from kprobe_tracer.collector.errors import ProbeError
    from kprobe_tracer.collector.probe import Probe
    from kprobe_tracer.exporters.json_exporter import JSONExporter
    from kprobe_tracer.exporters.stdout import StdoutExporter

    cfg = _load_config(config, tracing_root, enabled_status_file)

    # Override config with CLI options
    if name:
        cfg.set('probe.name', name)
    if syscall:
        cfg.set('probe.syscall', syscall)
    if sub_events:
        cfg.set('probe.events', list(sub_events))
    if output_format:
        cfg.set('output.format', output_format)
    if output_dir:
        cfg.set('output.output_dir', output_dir)
    if prometheus_port:
        cfg.set('output.prometheus_port', prometheus_port)

    probe = Probe(
        cfg.get('probe.name'),
        cfg.get('probe.syscall'),
        cfg.get('probe.events', []),
        paths=TracingPaths.from_config(cfg),
        poll_interval=cfg.get('reader.poll_interval', 0.1),
    )
    aggregator = EventAggregator()
    exporter = StdoutExporter(use_colors=not no_color)
    fmt = cfg.get('output.format', 'stdout')

    metrics = None
    port = cfg.get('output.prometheus_port')
    if port:
        from kprobe_tracer.exporters.prometheus import PrometheusExporter
        metrics = PrometheusExporter(port=port)
        metrics.start()

    stop = threading.Event()
    setup_signals(stop)

    try:
        probe.enable()
    except ProbeError as e:
        click.echo(f"Error: {e}", err=True)
        try:
            probe.disable()
        except ProbeError as cleanup_error:
            logger.warning(f"Cleanup after failed enable: {cleanup_error}")
        sys.exit(1)

    logger.info("Probe is running. Press Ctrl+C to stop.")
    deadline = time.monotonic() + duration if duration else None

    try:
        while not stop.is_set():
            if deadline is not None and time.monotonic() >= deadline:
                break

            event = probe.next_event(timeout=0.5)
            if event is None:
                continue

            aggregator.add_event(event)
            if fmt == 'stdout':
                exporter.print_event(event)
            if metrics:
                metrics.record_event(probe.name, event)
                metrics.update_probe_stats(probe.name, probe.get_stats())

    except KeyboardInterrupt:
        logger.info("Stopping tracer...")
    finally:
        try:
            probe.disable()
            logger.info("Probe disabled.")
        except ProbeError as e:
            logger.error(f"Error while disabling probe: {e}")

        stats = {'summary': aggregator.get_summary(), 'probe': probe.get_stats()}
        if fmt == 'json':
            json_exporter = JSONExporter(cfg.get('output.output_dir'))
            path = json_exporter.export_events(aggregator.get_events())
            json_exporter.export_stats(stats)
            click.echo(f"Events written to {path}")

        exporter.print_stats(stats)
        exporter.print_top_events(aggregator.get_top_events(n=10))


@cli.command()
@click.option('--tracing-root', type=click.Path(), help='tracefs directory')
@click.option('--enabled-status-file', type=click.Path(), help='ftrace_enabled file')
def check(tracing_root, enabled_status_file):
    """
    Check system prerequisites for attaching probes.

    Verifies:
    - Root privileges
    - tracefs control files
    - ftrace enabled
    """
    paths = TracingPaths.from_root(tracing_root or DEFAULT_TRACING_ROOT, enabled_status_file)
    if check_prerequisites(paths):
        click.echo("\n✓ All prerequisites met!")
        sys.exit(0)
    else:
        click.echo("\n✗ Some prerequisites are missing")
        sys.exit(1)


@cli.command()
@click.argument('name')
@click.argument('syscall')
@click.option('--event', 'sub_events', multiple=True, help='Trace event, as group/name (repeatable)')
@click.option('--tracing-root', type=click.Path(), help='tracefs directory')
def descriptor(name, syscall, sub_events, tracing_root):
    """
    Show the kprobe definition and enable files a probe would use.

    Example:
        kprobe-tracer descriptor exec_probe sys_execve --event sched/sched_process_exec
    """
    from kprobe_tracer.collector.probe import Probe

    paths = TracingPaths.from_root(tracing_root) if tracing_root else TracingPaths()
    probe = Probe(name, syscall, sub_events, paths=paths)

    click.echo(probe.descriptor)
    click.echo(f"probe: {probe.file_name}")
    for event_name, event_file in probe.sub_events.items():
        click.echo(f"{event_name}: {event_file}")


if __name__ == '__main__':
    cli(obj={})
