# kprobe_tracer/utils/config.py - Configuration management
"""
Configuration management for the tracer.
Loads configuration from YAML files and resolves the tracefs paths used by probes.
"""

import copy
import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional
import logging


DEFAULT_TRACING_ROOT = '/sys/kernel/debug/tracing'
DEFAULT_ENABLED_STATUS_FILE = '/proc/sys/kernel/ftrace_enabled'


@dataclass(frozen=True)
class TracingPaths:
    """
    Locations of the ftrace control files.

    Defaults point at the real kernel files; tests build a fake tree with
    ``TracingPaths.from_root(tmp_path, tmp_path / 'ftrace_enabled')``.
    """
    enabled_status_file: str = DEFAULT_ENABLED_STATUS_FILE
    kprobe_events_file: str = os.path.join(DEFAULT_TRACING_ROOT, 'kprobe_events')
    trace_pipe_file: str = os.path.join(DEFAULT_TRACING_ROOT, 'trace_pipe')
    events_dir: str = os.path.join(DEFAULT_TRACING_ROOT, 'events')

    @classmethod
    def from_root(cls, root, enabled_status_file: Optional[str] = None) -> 'TracingPaths':
        """
        Build paths for a tracing directory.

        Args:
            root: Tracing directory (e.g. /sys/kernel/tracing)
            enabled_status_file: Override for the ftrace_enabled file
                (defaults to /proc/sys/kernel/ftrace_enabled)
        """
        root = str(root)
        if enabled_status_file is None:
            enabled_status_file = DEFAULT_ENABLED_STATUS_FILE

        return cls(
            enabled_status_file=str(enabled_status_file),
            kprobe_events_file=os.path.join(root, 'kprobe_events'),
            trace_pipe_file=os.path.join(root, 'trace_pipe'),
            events_dir=os.path.join(root, 'events'),
        )

    @classmethod
    def from_config(cls, config: 'Config') -> 'TracingPaths':
        return cls.from_root(
            config.get('tracing.root', DEFAULT_TRACING_ROOT),
            config.get('tracing.enabled_status_file'),
        )

    def probe_enable_file(self, name: str) -> str:
        """Enable file of the kprobe event registered as ``kprobes/<name>``."""
        return os.path.join(self.events_dir, 'kprobes', name, 'enable')

    def event_enable_file(self, event_path: str) -> str:
        """Enable file of a ``group/event`` trace event."""
        return os.path.join(self.events_dir, event_path, 'enable')


class Config:
    """
    Configuration manager for the tracer.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'tracing': {
            'root': DEFAULT_TRACING_ROOT,
            'enabled_status_file': DEFAULT_ENABLED_STATUS_FILE,
        },
        'probe': {
            'name': 'kprobe_tracer',
            'syscall': 'sys_execve',
            'events': [
                'sched/sched_process_fork',
                'sched/sched_process_exec',
                'sched/sched_process_exit',
            ],
        },
        'reader': {
            'poll_interval': 0.1,
        },
        'output': {
            'format': 'stdout',
            'output_dir': '.',
            'prometheus_port': None,
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f) or {}

            self._merge_config(self.config, loaded_config)
            self.logger.info(f"Loaded configuration from {config_file}")

        except yaml.YAMLError as e:
            self.logger.error(f"Failed to load config: {e}")
            raise

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'reader.poll_interval')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'tracing.root')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        return copy.deepcopy(self.config)

    def save_to_file(self, config_file: str):
        """
        Save current configuration to YAML file.

        Args:
            config_file: Path to output YAML file
        """
        config_path = Path(config_file)

        try:
            with open(config_path, 'w') as f:
                yaml.dump(self.config, f, default_flow_style=False)

            self.logger.info(f"Saved configuration to {config_file}")

        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")
            raise
