# kprobe_tracer/exporters/stdout.py - Console output exporter
"""
Prints events and run statistics to stdout in human-readable format.
"""

from typing import Dict, List, Tuple
from colorama import Fore, Style
import logging

from kprobe_tracer.collector.event import Event


class StdoutExporter:
    """
    Prints events to stdout with colored output.

    Syscall hits are printed flush left, sub-events indented under them.
    """

    def __init__(self, use_colors: bool = True):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
        """
        self.use_colors = use_colors
        self.logger = logging.getLogger(__name__)

    def _color(self, color: str) -> str:
        return color if self.use_colors else ""

    def format_event(self, event: Event) -> str:
        reset = Style.RESET_ALL if self.use_colors else ""
        if event.is_syscall:
            return f"{self._color(Fore.GREEN)}SYSCALL {event}{reset}"
        return f"\t{self._color(Fore.CYAN)}{event}{reset}"

    def print_event(self, event: Event):
        """
        Print a single event to stdout.

        Args:
            event: Event object
        """
        print(self.format_event(event), flush=True)

    def print_stats(self, stats: Dict):
        """
        Print statistics to stdout.

        Args:
            stats: Dictionary with optional 'summary' and 'probe' sections
        """
        header = self._color(Fore.CYAN)
        label = self._color(Fore.YELLOW)
        reset = Style.RESET_ALL if self.use_colors else ""

        print(f"\n{header}{'='*80}{reset}")
        print(f"{header}Statistics{reset}")
        print(f"{header}{'='*80}{reset}\n")

        if 'summary' in stats:
            summary = stats['summary']
            print(f"{label}Summary:{reset}")
            print(f"  Total Events: {summary.get('total_events', 0)}")
            print(f"  Syscall Events: {summary.get('syscall_events', 0)}")
            print(f"  Sub Events: {summary.get('sub_events', 0)}")
            print(f"  Unique PIDs: {summary.get('unique_pids', 0)}")

        if 'probe' in stats:
            probe = stats['probe']
            print(f"{label}Probe:{reset}")
            print(f"  Lines Read: {probe.get('lines_read', 0)}")
            print(f"  Lines Dropped: {probe.get('lines_dropped', 0)}")
            print(f"  Parse Errors: {probe.get('parse_errors', 0)}")

        print()

    def print_top_events(self, top_events: List[Tuple[str, int]]):
        if not top_events:
            return

        print(f"{'Rank':<6} {'Event':<32} {'Count':<8}")
        print(f"{'-'*48}")
        for i, (name, count) in enumerate(top_events, 1):
            print(f"{i:<6} {name:<32} {count:<8}")
