# kprobe_tracer/exporters/prometheus.py - Prometheus metrics exporter
"""
Exports probe metrics in Prometheus format.
Provides HTTP endpoint for Prometheus to scrape.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest, start_http_server
from typing import Dict, Optional
import logging

from kprobe_tracer.collector.event import Event


class PrometheusExporter:
    """
    Exports event counters to Prometheus.

    Exposes an HTTP endpoint that Prometheus can scrape for metrics.
    """

    def __init__(self, port: int = 9090, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            registry: Registry to register metrics in (a private one by default)
        """
        self.port = port
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(__name__)

        self.event_count = Counter(
            'kprobe_tracer_events_total',
            'Total number of delivered events',
            ['probe', 'event', 'kind'],
            registry=self.registry,
        )

        self.lines_read = Gauge(
            'kprobe_tracer_lines_read',
            'Trace pipe lines read by the probe worker',
            ['probe'],
            registry=self.registry,
        )

        self.lines_dropped = Gauge(
            'kprobe_tracer_lines_dropped',
            'Trace pipe lines not matching the probe',
            ['probe'],
            registry=self.registry,
        )

        self.parse_errors = Gauge(
            'kprobe_tracer_parse_errors',
            'Trace pipe lines that could not be parsed',
            ['probe'],
            registry=self.registry,
        )

    def start(self):
        """
        Start the Prometheus HTTP server.
        """
        try:
            start_http_server(self.port, registry=self.registry)
            self.logger.info(f"Prometheus metrics available at http://localhost:{self.port}/metrics")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")
            raise

    def record_event(self, probe: str, event: Event):
        kind = 'syscall' if event.is_syscall else 'sub_event'
        self.event_count.labels(probe=probe, event=event.name, kind=kind).inc()

    def update_probe_stats(self, probe: str, stats: Dict):
        """
        Update gauges from ``Probe.get_stats()``.

        Args:
            probe: Probe name
            stats: Probe statistics dictionary
        """
        self.lines_read.labels(probe=probe).set(stats.get('lines_read', 0))
        self.lines_dropped.labels(probe=probe).set(stats.get('lines_dropped', 0))
        self.parse_errors.labels(probe=probe).set(stats.get('parse_errors', 0))

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.
        """
        return generate_latest(self.registry).decode('utf-8')
