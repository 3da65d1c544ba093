# kprobe_tracer/exporters/json_exporter.py - JSON format exporter
"""
Exports captured events and statistics as JSON files.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, Iterable, Optional
import logging

from kprobe_tracer.collector.event import Event


class JSONExporter:
    """
    Exports captured events to JSON format.
    """

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the JSON exporter.

        Args:
            output_dir: Directory to save JSON files (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path('.')
        self.logger = logging.getLogger(__name__)

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _output_path(self, prefix: str, filename: Optional[str]) -> Path:
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'{prefix}_{timestamp}.json'
        return self.output_dir / filename

    def export_events(self, events: Iterable[Event], filename: Optional[str] = None) -> str:
        """
        Export events to JSON file.

        Args:
            events: Events to export
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        output_path = self._output_path('events', filename)
        events_data = [event.to_dict() for event in events]

        with open(output_path, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'event_count': len(events_data),
                'events': events_data
            }, f, indent=2)

        self.logger.info(f"Exported {len(events_data)} events to {output_path}")
        return str(output_path)

    def export_stats(self, stats: Dict, filename: Optional[str] = None) -> str:
        """
        Export statistics to JSON file.

        Args:
            stats: Statistics dictionary
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        output_path = self._output_path('stats', filename)

        with open(output_path, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'statistics': stats
            }, f, indent=2)

        self.logger.info(f"Exported statistics to {output_path}")
        return str(output_path)
